"""Taint level tracking for taintgate.

The taint level starts high (100 = fully trusted) and drops each time an
untrusted URL is accessed, moving the session into progressively stricter
shell restriction tiers.
"""

import logging
import numbers
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from ..config import TaintConfig, TierThreshold
from ..tiers import MOST_PERMISSIVE, MOST_RESTRICTIVE, RestrictionTier

logger = logging.getLogger(__name__)


class TaintEventType(str, Enum):
    """Kinds of taint mutation."""

    PENALTY = "penalty"
    RECOVERY = "recovery"


@dataclass(frozen=True)
class TaintEvent:
    """Record of one change to the taint level."""

    timestamp: float
    event_type: TaintEventType
    amount: int
    reason: str
    previous_level: int
    new_level: int
    tier: RestrictionTier
    url: Optional[str] = None
    domain: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "type": self.event_type.value,
            "amount": self.amount,
            "reason": self.reason,
            "url": self.url,
            "domain": self.domain,
            "previous_level": self.previous_level,
            "new_level": self.new_level,
            "tier": self.tier.value,
        }


@dataclass(frozen=True)
class TaintState:
    """Point-in-time view of a tracker."""

    level: int
    tier: RestrictionTier
    events: tuple[TaintEvent, ...] = field(default_factory=tuple)


def resolve_tier(level: Any, thresholds: list[TierThreshold]) -> RestrictionTier:
    """Determine the restriction tier for a taint level.

    Args:
        level: Taint level, normally an int within [0, 100]
        thresholds: Configured inclusive tier ranges

    Returns:
        The tier whose range contains the level. Levels outside every range
        resolve to lockdown at or below 0 and permissive above 0, which
        covers gaps between ranges. Non-numeric levels are lockdown.
    """
    if isinstance(level, bool) or not isinstance(level, numbers.Real) or level != level:
        return MOST_RESTRICTIVE

    for threshold in sorted(thresholds, key=lambda t: t.min_taint, reverse=True):
        if threshold.min_taint <= level <= threshold.max_taint:
            return threshold.tier

    if level <= 0:
        return MOST_RESTRICTIVE
    return MOST_PERMISSIVE


class TaintTracker:
    """Tracks the taint level and restriction tier for one session.

    Mutations are not synchronized; callers serialize them per session.
    """

    def __init__(self, config: Optional[TaintConfig] = None):
        """Initialize the tracker at the configured initial level.

        Args:
            config: Optional TaintConfig. Defaults are used if not provided.
        """
        self.config = config or TaintConfig()
        self._level: int = self._clamp(self.config.initial_level)
        self._events: list[TaintEvent] = []

    def _clamp(self, level: int) -> int:
        return max(self.config.minimum_level, min(100, level))

    def current_level(self) -> int:
        return self._level

    def current_tier(self) -> RestrictionTier:
        return resolve_tier(self._level, self.config.thresholds)

    def history(self) -> list[TaintEvent]:
        """Return a copy of the event history, oldest first."""
        return list(self._events)

    def snapshot(self) -> TaintState:
        return TaintState(level=self._level, tier=self.current_tier(), events=tuple(self._events))

    def _record(
        self,
        event_type: TaintEventType,
        amount: int,
        reason: str,
        previous_level: int,
        url: Optional[str],
        domain: Optional[str],
    ) -> TaintEvent:
        event = TaintEvent(
            timestamp=time.time(),
            event_type=event_type,
            amount=amount,
            reason=reason,
            previous_level=previous_level,
            new_level=self._level,
            tier=self.current_tier(),
            url=url,
            domain=domain,
        )
        self._events.append(event)
        return event

    def apply_penalty(
        self,
        reason: str,
        url: Optional[str] = None,
        domain: Optional[str] = None,
    ) -> TaintEvent:
        """Lower the taint level after an untrusted access.

        Args:
            reason: Human-readable reason for the penalty
            url: URL that was accessed, if known
            domain: Domain that was accessed, if known

        Returns:
            The recorded TaintEvent
        """
        previous_level = self._level
        previous_tier = self.current_tier()
        amount = self.config.penalty_per_untrusted_url

        self._level = self._clamp(self._level - amount)
        event = self._record(TaintEventType.PENALTY, amount, reason, previous_level, url, domain)

        logger.info(
            f"Taint penalty: {previous_level} -> {event.new_level} "
            f"({previous_tier.value} -> {event.tier.value}) | {reason}"
        )
        if event.tier != previous_tier:
            logger.warning(f"Restriction tier changed: {previous_tier.value} -> {event.tier.value}")

        return event

    def apply_recovery(
        self,
        reason: str,
        url: Optional[str] = None,
        domain: Optional[str] = None,
    ) -> TaintEvent:
        """Raise the taint level after a trusted access.

        A recovery amount of 0 still records a zero-amount event.

        Args:
            reason: Human-readable reason for the recovery
            url: URL that was accessed, if known
            domain: Domain that was accessed, if known

        Returns:
            The recorded TaintEvent
        """
        previous_level = self._level
        previous_tier = self.current_tier()
        amount = self.config.recovery_per_trusted_url

        self._level = self._clamp(self._level + amount)
        event = self._record(TaintEventType.RECOVERY, amount, reason, previous_level, url, domain)

        logger.debug(
            f"Taint recovery: {previous_level} -> {event.new_level} "
            f"({previous_tier.value} -> {event.tier.value}) | {reason}"
        )

        return event

    def reset(self) -> None:
        """Restore the initial level and clear the history."""
        self._level = self._clamp(self.config.initial_level)
        self._events = []
        logger.info(f"Taint level reset to {self._level}")
