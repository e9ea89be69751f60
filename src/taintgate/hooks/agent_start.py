"""Before-agent-start hook for taintgate.

Prepends a security notice to the agent's context so it knows it runs
under trust-based shell restrictions.
"""

import logging
import threading
import time
from typing import Optional

from ..config import TaintGateConfig, get_config
from ..sessions import SessionRegistry
from ..tiers import TIER_ORDER, RestrictionTier

logger = logging.getLogger(__name__)

MAX_LISTED_PATTERNS = 10

TIER_SUMMARIES = {
    RestrictionTier.PERMISSIVE: "All shell commands allowed.",
    RestrictionTier.CAUTIOUS: "Dangerous commands blocked (rm -rf, DROP TABLE, etc.).",
    RestrictionTier.RESTRICTED: "Only safe commands allowed (ls, cat, echo, etc.).",
    RestrictionTier.LOCKDOWN: "ALL shell commands blocked.",
}


def build_security_context_prompt(config: TaintGateConfig, taint_level: int, tier: RestrictionTier) -> str:
    """Build the security notice injected at agent start.

    Args:
        config: Active configuration (tier ranges and trusted patterns)
        taint_level: Current taint level
        tier: Current restriction tier

    Returns:
        Multi-line prompt text
    """
    tier_name = tier.value if isinstance(tier, RestrictionTier) else str(tier)
    lines = [
        "[TAINTGATE SECURITY CONTEXT]",
        "",
        "This session uses a dynamic trust-based security system.",
        "",
        f"Current taint level: {taint_level}/100",
        f"Current restriction tier: {tier_name.upper()}",
        "",
        "How it works:",
        f"- Your taint level starts at {config.taint.initial_level} (100 = fully trusted).",
        "- Each time you access a website NOT in the trusted URL list, your taint level decreases.",
        "- As your taint level drops, shell command restrictions become stricter:",
        "",
    ]

    by_tier = {t.tier: t for t in config.taint.thresholds}
    for level in TIER_ORDER:
        threshold = by_tier.get(level)
        if threshold is None:
            continue
        span = f"{threshold.max_taint}-{threshold.min_taint}"
        label = f"({level.value.upper()}):"
        lines.append(f"  {span:<7}{label:<13} {TIER_SUMMARIES[level]}")
    lines.append("")

    patterns = config.trusted_urls.patterns
    if patterns:
        lines.append("Trusted URL patterns:")
        for pattern in patterns[:MAX_LISTED_PATTERNS]:
            lines.append(f"  - {pattern}")
        if len(patterns) > MAX_LISTED_PATTERNS:
            lines.append(f"  ... and {len(patterns) - MAX_LISTED_PATTERNS} more")
        lines.append("")

    lines.extend([
        "To maintain your shell access, prefer using trusted URLs.",
        "If a command is blocked, check your current taint level before retrying.",
    ])

    return "\n".join(lines)


class AgentStartHandler:
    """Injects the security notice once per session."""

    def __init__(
        self,
        config: Optional[TaintGateConfig] = None,
        registry: Optional[SessionRegistry] = None,
    ):
        self.config = config or get_config()
        self.registry = registry or SessionRegistry(self.config.taint)
        self._injected: set[str] = set()
        self._lock = threading.Lock()

    def before_agent_start(self, session_id: Optional[str] = None) -> Optional[str]:
        """Return the notice to prepend, or None if already injected or disabled."""
        try:
            # Generated keys scope injection only; the tracker stays the default session
            key = session_id or f"session_{int(time.time() * 1000)}"
            logger.info(f"before-agent-start entry: session={key}")

            if not self.config.global_.enabled:
                return None

            with self._lock:
                if key in self._injected:
                    logger.debug(f"Already injected for session={key}")
                    return None

            tracker = self.registry.get(session_id)
            prompt = build_security_context_prompt(
                self.config, tracker.current_level(), tracker.current_tier()
            )

            with self._lock:
                if key in self._injected:
                    return None
                self._injected.add(key)

            logger.info(f"before-agent-start exit: injected {len(prompt)} chars")
            return prompt
        except Exception:
            logger.exception("before-agent-start failed")
            return None

    def forget(self, session_id: str) -> None:
        """Allow the notice to be injected again for a session."""
        with self._lock:
            self._injected.discard(session_id)
