"""Tests for the taint tracker."""

import pytest

from taintgate.config import TaintConfig, TierThreshold, default_thresholds
from taintgate.taint.tracker import TaintEventType, TaintTracker, resolve_tier
from taintgate.tiers import TIER_ORDER, RestrictionTier


def make_config(**overrides) -> TaintConfig:
    """Helper to create a taint config."""
    values = {
        "initial_level": 100,
        "penalty_per_untrusted_url": 10,
        "recovery_per_trusted_url": 5,
        "minimum_level": 0,
    }
    values.update(overrides)
    return TaintConfig(**values)


@pytest.fixture
def tracker():
    """Create a tracker with penalty 10 and recovery 5."""
    return TaintTracker(make_config())


class TestResolveTier:
    """Test tier resolution from a level."""

    @pytest.mark.parametrize(
        "level,tier",
        [
            (100, RestrictionTier.PERMISSIVE),
            (75, RestrictionTier.PERMISSIVE),
            (74, RestrictionTier.CAUTIOUS),
            (50, RestrictionTier.CAUTIOUS),
            (49, RestrictionTier.RESTRICTED),
            (25, RestrictionTier.RESTRICTED),
            (24, RestrictionTier.LOCKDOWN),
            (0, RestrictionTier.LOCKDOWN),
        ],
    )
    def test_default_boundaries(self, level, tier):
        """Test inclusive boundaries of the default ranges."""
        assert resolve_tier(level, default_thresholds()) == tier

    def test_every_level_resolves_monotonically(self):
        """Test each level has one tier and tiers never loosen as level drops."""
        thresholds = default_thresholds()
        previous = None
        for level in range(0, 101):
            tier = resolve_tier(level, thresholds)
            assert tier in TIER_ORDER
            if previous is not None:
                assert tier.severity <= previous.severity
            previous = tier

    def test_below_zero_is_lockdown(self):
        """Test levels below every range fall back to lockdown."""
        assert resolve_tier(-5, default_thresholds()) == RestrictionTier.LOCKDOWN

    def test_above_hundred_is_permissive(self):
        """Test levels above every range fall back to permissive."""
        assert resolve_tier(150, default_thresholds()) == RestrictionTier.PERMISSIVE

    def test_no_thresholds(self):
        """Test the fallback without any configured ranges."""
        assert resolve_tier(0, []) == RestrictionTier.LOCKDOWN
        assert resolve_tier(100, []) == RestrictionTier.PERMISSIVE

    def test_gap_above_zero_is_permissive(self):
        """Test a positive level inside a configuration gap resolves to permissive."""
        thresholds = [
            TierThreshold(min_taint=80, max_taint=100, tier=RestrictionTier.PERMISSIVE),
            TierThreshold(min_taint=0, max_taint=40, tier=RestrictionTier.RESTRICTED),
        ]
        assert resolve_tier(60, thresholds) == RestrictionTier.PERMISSIVE
        assert resolve_tier(40, thresholds) == RestrictionTier.RESTRICTED

    def test_gap_at_zero_is_lockdown(self):
        """Test a zero level not covered by any range resolves to lockdown."""
        thresholds = [TierThreshold(min_taint=50, max_taint=100, tier=RestrictionTier.PERMISSIVE)]
        assert resolve_tier(0, thresholds) == RestrictionTier.LOCKDOWN
        assert resolve_tier(1, thresholds) == RestrictionTier.PERMISSIVE

    @pytest.mark.parametrize("level", [None, "50", float("nan")])
    def test_non_numeric_is_lockdown(self, level):
        """Test non-numeric levels fail closed."""
        assert resolve_tier(level, default_thresholds()) == RestrictionTier.LOCKDOWN


class TestPenalty:
    """Test penalty application."""

    def test_initial_state(self, tracker):
        """Test a new tracker starts at the initial level."""
        assert tracker.current_level() == 100
        assert tracker.current_tier() == RestrictionTier.PERMISSIVE
        assert tracker.history() == []

    def test_penalty_reduces_level(self, tracker):
        """Test a penalty subtracts the configured amount."""
        event = tracker.apply_penalty("Accessed untrusted URL: evil.com", domain="evil.com")

        assert tracker.current_level() == 90
        assert event.event_type == TaintEventType.PENALTY
        assert event.amount == 10
        assert event.previous_level == 100
        assert event.new_level == 90
        assert event.domain == "evil.com"
        assert event.tier == RestrictionTier.PERMISSIVE

    def test_three_penalties_reach_cautious(self, tracker):
        """Test the tier changes exactly when crossing below 75."""
        tiers = [tracker.apply_penalty("untrusted").tier for _ in range(3)]

        assert tracker.current_level() == 70
        assert tiers == [
            RestrictionTier.PERMISSIVE,
            RestrictionTier.PERMISSIVE,
            RestrictionTier.CAUTIOUS,
        ]

    def test_clamps_at_floor(self):
        """Test penalties never go below the floor."""
        tracker = TaintTracker(make_config(initial_level=5))
        event = tracker.apply_penalty("untrusted")

        assert tracker.current_level() == 0
        assert event.new_level == 0
        assert tracker.current_tier() == RestrictionTier.LOCKDOWN

    def test_custom_floor(self):
        """Test a non-zero minimum level."""
        tracker = TaintTracker(make_config(minimum_level=30))
        for _ in range(20):
            tracker.apply_penalty("untrusted")

        assert tracker.current_level() == 30
        assert tracker.current_tier() == RestrictionTier.RESTRICTED

    def test_reaches_lockdown(self, tracker):
        """Test repeated penalties end in lockdown."""
        for _ in range(8):
            tracker.apply_penalty("untrusted")

        assert tracker.current_level() == 20
        assert tracker.current_tier() == RestrictionTier.LOCKDOWN


class TestRecovery:
    """Test recovery application."""

    def test_recovery_increases_level(self, tracker):
        """Test recovery adds the configured amount."""
        tracker.apply_penalty("untrusted")
        event = tracker.apply_recovery("trusted", url="https://docs.github.com", domain="docs.github.com")

        assert tracker.current_level() == 95
        assert event.event_type == TaintEventType.RECOVERY
        assert event.amount == 5
        assert event.url == "https://docs.github.com"

    def test_clamps_at_hundred(self, tracker):
        """Test recovery never exceeds 100."""
        event = tracker.apply_recovery("trusted")

        assert tracker.current_level() == 100
        assert event.previous_level == 100
        assert event.new_level == 100

    def test_penalty_then_equal_recovery_round_trips(self):
        """Test equal penalty and recovery cancel out away from boundaries."""
        tracker = TaintTracker(make_config(initial_level=60, recovery_per_trusted_url=10))
        tracker.apply_penalty("untrusted")
        tracker.apply_recovery("trusted")

        assert tracker.current_level() == 60

    def test_round_trip_with_clamping(self):
        """Test clamping at the floor breaks the round trip."""
        tracker = TaintTracker(make_config(initial_level=5, recovery_per_trusted_url=10))
        tracker.apply_penalty("untrusted")
        tracker.apply_recovery("trusted")

        assert tracker.current_level() == 10

    def test_zero_recovery_records_event(self):
        """Test zero recovery keeps the level but still records events."""
        tracker = TaintTracker(make_config(recovery_per_trusted_url=0))
        tracker.apply_penalty("untrusted")

        events = [tracker.apply_recovery("trusted") for _ in range(3)]

        assert tracker.current_level() == 90
        assert len(tracker.history()) == 4
        for event in events:
            assert event.amount == 0
            assert event.previous_level == event.new_level == 90
            assert event.event_type == TaintEventType.RECOVERY


class TestHistory:
    """Test event history and reset."""

    def test_history_order_and_linkage(self, tracker):
        """Test history length, order and level chaining."""
        tracker.apply_penalty("one")
        tracker.apply_penalty("two")
        tracker.apply_recovery("three")
        tracker.apply_penalty("four")

        history = tracker.history()
        assert [e.reason for e in history] == ["one", "two", "three", "four"]
        assert history[0].previous_level == 100
        for earlier, later in zip(history, history[1:]):
            assert later.previous_level == earlier.new_level
        assert history[-1].new_level == tracker.current_level()

    def test_history_is_a_copy(self, tracker):
        """Test callers cannot mutate tracker state through history()."""
        tracker.apply_penalty("untrusted")
        history = tracker.history()
        history.clear()

        assert len(tracker.history()) == 1

    def test_events_are_immutable(self, tracker):
        """Test recorded events cannot be modified."""
        event = tracker.apply_penalty("untrusted")
        with pytest.raises(AttributeError):
            event.new_level = 100

    def test_snapshot(self, tracker):
        """Test snapshots are consistent and detached."""
        tracker.apply_penalty("untrusted")
        state = tracker.snapshot()
        tracker.apply_penalty("untrusted")

        assert state.level == 90
        assert len(state.events) == 1
        assert tracker.current_level() == 80

    def test_reset(self, tracker):
        """Test reset restores the initial level and clears history."""
        for _ in range(5):
            tracker.apply_penalty("untrusted")
        tracker.reset()

        assert tracker.current_level() == 100
        assert tracker.current_tier() == RestrictionTier.PERMISSIVE
        assert tracker.history() == []

    def test_event_to_dict(self, tracker):
        """Test event serialization."""
        data = tracker.apply_penalty("untrusted", url="https://evil.com", domain="evil.com").to_dict()

        assert data["type"] == "penalty"
        assert data["tier"] == "permissive"
        assert data["previous_level"] == 100
        assert data["new_level"] == 90
        assert data["domain"] == "evil.com"

    def test_tracker_defaults(self):
        """Test a tracker built without configuration."""
        tracker = TaintTracker()
        tracker.apply_recovery("trusted")

        assert tracker.current_level() == 100
        assert tracker.history()[0].amount == 0
