"""Shell restriction engine for taintgate.

Decides whether a shell command may run under a restriction tier:

    permissive  -> all commands allowed (except always-blocked)
    cautious    -> dangerous commands blocked
    restricted  -> only safe commands allowed
    lockdown    -> all shell commands blocked

Matching is case-insensitive substring containment, not shell parsing.
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Optional

from ..config import ShellRestrictionsConfig
from ..tiers import RestrictionTier

logger = logging.getLogger(__name__)

CHAIN_SEPARATORS = re.compile(r"[;&|]")


class BlockCategory(str, Enum):
    """Why a command was blocked."""

    ALWAYS_BLOCKED = "always_blocked"
    DANGEROUS = "dangerous"
    NOT_SAFE = "not_safe"
    LOCKDOWN = "lockdown"
    UNKNOWN_TIER = "unknown_tier"


@dataclass(frozen=True)
class ShellDecision:
    """Result of evaluating a shell command."""

    allowed: bool
    tier: Any
    reason: Optional[str] = None
    matched_rule: Optional[str] = None
    category: Optional[BlockCategory] = None


def command_contains(command: str, pattern: str) -> bool:
    """Check if a command contains a pattern (case-insensitive)."""
    return pattern.lower() in command.lower()


def extract_base_command(command: str) -> str:
    """Extract the executable name from a command string.

    Only the first command of a chain is considered:
    "ls -la /tmp && rm x" -> "ls".
    """
    first = CHAIN_SEPARATORS.split(command.strip(), maxsplit=1)[0]
    parts = first.split()
    return parts[0].lower() if parts else ""


class ShellRestrictionEngine:
    """Evaluates shell commands against tiered restriction rules."""

    def __init__(self, config: Optional[ShellRestrictionsConfig] = None):
        """Initialize the engine.

        Args:
            config: Optional ShellRestrictionsConfig. Defaults are used if not provided.
        """
        self.config = config or ShellRestrictionsConfig()
        self._tool_names = frozenset(name.lower() for name in self.config.tool_names)
        self._safe_bases = frozenset(
            entry.split()[0].lower() for entry in self.config.safe_commands if entry.split()
        )

    def is_governed_command_source(self, name: str) -> bool:
        """Check if a tool name is a shell tool whose commands need evaluation."""
        return isinstance(name, str) and name.lower() in self._tool_names

    is_shell_tool = is_governed_command_source

    def _first_match(self, command: str, patterns: Iterable[str]) -> Optional[str]:
        for pattern in patterns:
            if command_contains(command, pattern):
                return pattern
        return None

    def evaluate(self, command: str, tier: RestrictionTier) -> ShellDecision:
        """Evaluate whether a command is allowed under a tier.

        Args:
            command: Shell command text
            tier: Current restriction tier

        Returns:
            ShellDecision with the reason and matched rule when blocked
        """
        # Absolute denylist, applies even at the permissive tier
        pattern = self._first_match(command, self.config.always_blocked)
        if pattern is not None:
            logger.warning(f'Command blocked (always-blocked): "{command}" matched "{pattern}"')
            return ShellDecision(
                allowed=False,
                tier=tier,
                reason=f'Command matches always-blocked pattern: "{pattern}"',
                matched_rule=pattern,
                category=BlockCategory.ALWAYS_BLOCKED,
            )

        if tier == RestrictionTier.PERMISSIVE:
            return ShellDecision(allowed=True, tier=tier)

        if tier == RestrictionTier.CAUTIOUS:
            pattern = self._first_match(command, self.config.dangerous_commands)
            if pattern is None:
                return ShellDecision(allowed=True, tier=tier)
            logger.info(f'Command blocked (cautious tier): "{command}" matched "{pattern}"')
            return ShellDecision(
                allowed=False,
                tier=tier,
                reason=(
                    'Taint level reduced to "cautious" tier. '
                    f'Dangerous command blocked: "{pattern}"'
                ),
                matched_rule=pattern,
                category=BlockCategory.DANGEROUS,
            )

        if tier == RestrictionTier.RESTRICTED:
            base = extract_base_command(command)
            if base and base in self._safe_bases:
                return ShellDecision(allowed=True, tier=tier, matched_rule=base)
            logger.info(f'Command blocked (restricted tier): "{command}" is not in safe list')
            return ShellDecision(
                allowed=False,
                tier=tier,
                reason=(
                    'Taint level reduced to "restricted" tier. Only safe commands are '
                    f'allowed (ls, cat, echo, etc.). Command "{base}" is not in the safe list.'
                ),
                category=BlockCategory.NOT_SAFE,
            )

        if tier == RestrictionTier.LOCKDOWN:
            logger.warning("Command blocked (lockdown tier): all shell commands blocked")
            return ShellDecision(
                allowed=False,
                tier=tier,
                reason=(
                    "Taint level critically low: LOCKDOWN. All shell commands are blocked. "
                    "The agent has accessed too many untrusted websites."
                ),
                category=BlockCategory.LOCKDOWN,
            )

        logger.error(f"Unknown restriction tier {tier!r}, blocking command")
        return ShellDecision(
            allowed=False,
            tier=tier,
            reason=f"Unknown restriction tier: {tier!r}. Command blocked (configuration defect).",
            category=BlockCategory.UNKNOWN_TIER,
        )
