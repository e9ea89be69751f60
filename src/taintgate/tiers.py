"""Restriction tiers for taintgate."""

from enum import Enum


class RestrictionTier(str, Enum):
    """Shell restriction tiers, from most to least permissive."""

    PERMISSIVE = "permissive"  # All commands except always-blocked
    CAUTIOUS = "cautious"  # Dangerous commands blocked
    RESTRICTED = "restricted"  # Only safe commands allowed
    LOCKDOWN = "lockdown"  # All shell commands blocked

    @property
    def severity(self) -> int:
        """Position in the tier ordering (0 = most permissive)."""
        return TIER_ORDER.index(self)

    def is_stricter_than(self, other: "RestrictionTier") -> bool:
        return self.severity > other.severity


TIER_ORDER: list[RestrictionTier] = [
    RestrictionTier.PERMISSIVE,
    RestrictionTier.CAUTIOUS,
    RestrictionTier.RESTRICTED,
    RestrictionTier.LOCKDOWN,
]

MOST_PERMISSIVE = TIER_ORDER[0]
MOST_RESTRICTIVE = TIER_ORDER[-1]
