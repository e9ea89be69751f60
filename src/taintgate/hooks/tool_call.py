"""Before-tool-call hook for taintgate.

Intercepts every tool call to:
1. Check if the tool touches a URL and update the session's taint level
2. Check if the tool is a shell command and enforce the current tier
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from ..config import TaintGateConfig, get_config
from ..patterns import COMMAND_FIELDS
from ..sessions import SessionRegistry
from ..taint.shell import BlockCategory, ShellRestrictionEngine
from ..taint.tracker import TaintTracker
from ..taint.url_trust import TrustClassifier, UrlCheckResult

logger = logging.getLogger(__name__)

CRITICAL_CATEGORIES = {BlockCategory.ALWAYS_BLOCKED, BlockCategory.LOCKDOWN}


@dataclass
class ToolCallContext:
    """A tool call intercepted from the agent runtime."""

    tool_name: str
    tool_input: dict[str, Any] = field(default_factory=dict)
    session_id: Optional[str] = None


@dataclass
class ToolCallResult:
    """Decision returned to the agent runtime."""

    block: bool = False
    block_reason: Optional[str] = None
    metadata: dict[str, Any] = field(default_factory=dict)
    error: Optional[str] = None


def extract_command(tool_input: dict[str, Any]) -> Optional[str]:
    """Extract the command string from shell tool input."""
    for name in COMMAND_FIELDS:
        value = tool_input.get(name)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


class ToolCallGuard:
    """Runs URL trust, taint update and shell restriction for each tool call."""

    def __init__(
        self,
        config: Optional[TaintGateConfig] = None,
        registry: Optional[SessionRegistry] = None,
    ):
        """Initialize the guard.

        Args:
            config: Optional TaintGateConfig. If not provided, loads from file.
            registry: Session registry owning the taint trackers.
        """
        self.config = config or get_config()
        self.registry = registry or SessionRegistry(self.config.taint)
        self.classifier = TrustClassifier(self.config.trusted_urls.patterns)
        self.engine = ShellRestrictionEngine(self.config.shell_restrictions)

    def _update_taint(self, tracker: TaintTracker, check: UrlCheckResult) -> None:
        if not check.url_found:
            return

        if check.trusted:
            tracker.apply_recovery(
                f"Accessed trusted URL: {check.domain}",
                url=check.url,
                domain=check.domain,
            )
            return

        if check.malformed:
            reason = f"Accessed unparseable URL: {check.url}"
        else:
            reason = f"Accessed untrusted URL: {check.domain}"
        event = tracker.apply_penalty(reason, url=check.url, domain=check.domain)
        logger.info(f"Taint level: {event.previous_level} -> {event.new_level} (tier: {event.tier.value})")

    def _evaluate_shell(self, context: ToolCallContext, tracker: TaintTracker) -> Optional[ToolCallResult]:
        if not self.engine.is_governed_command_source(context.tool_name):
            return None

        command = extract_command(context.tool_input)
        if not command:
            return None

        # Read after this call's own taint update
        tier = tracker.current_tier()
        decision = self.engine.evaluate(command, tier)
        if decision.allowed:
            return None

        level = tracker.current_level()
        logger.info(
            f"Shell command BLOCKED: tool={context.tool_name}, tier={tier.value}, taint={level}"
        )
        return ToolCallResult(
            block=True,
            block_reason=decision.reason,
            metadata={
                "category": "shell-restriction",
                "rule": decision.category.value if decision.category else None,
                "matched_pattern": decision.matched_rule,
                "severity": "critical" if decision.category in CRITICAL_CATEGORIES else "high",
                "reason": decision.reason or "Shell command blocked by taint level restrictions",
                "taint_level": level,
                "tier": tier.value,
            },
        )

    def before_tool_call(self, context: ToolCallContext) -> ToolCallResult:
        """Decide whether a tool call may proceed.

        Unexpected faults fail open so a crash here never stops the agent.

        Args:
            context: The intercepted tool call

        Returns:
            ToolCallResult with block=True if the call must not run
        """
        try:
            logger.debug(f"before-tool-call entry: tool={context.tool_name}, session={context.session_id}")

            if not self.config.global_.enabled:
                return ToolCallResult()

            tool_input = context.tool_input if isinstance(context.tool_input, dict) else {}
            context = ToolCallContext(context.tool_name, tool_input, context.session_id)

            tracker = self.registry.get(context.session_id)
            with self.registry.lock(context.session_id):
                self._update_taint(tracker, self.classifier.check(tool_input))
                blocked = self._evaluate_shell(context, tracker)
                level = tracker.current_level()

            if blocked is not None:
                return blocked

            logger.debug(f"before-tool-call exit: tool={context.tool_name}, result=allow, taint={level}")
            return ToolCallResult()
        except Exception as e:
            logger.exception(f"before-tool-call failed for tool={context.tool_name}")
            return ToolCallResult(error=f"{type(e).__name__}: {e}")
