"""Tests for hamlet.needs - decay, recovery, alerts, and happiness."""

import pytest

from hamlet import NeedLevel, Need, NeedsConfig, NeedState, NeedsTracker, NeedType


MINUTE = 60_000


class TestNeed:
    def test_value_is_clamped_on_creation(self):
        assert Need(NeedType.FOOD, 150.0).value == 100.0
        assert Need(NeedType.FOOD, -5.0).value == 0.0

    def test_food_decays_faster_while_working(self):
        idle = Need(NeedType.FOOD, 50.0)
        busy = Need(NeedType.FOOD, 50.0)
        idle.update(MINUTE, NeedState())
        busy.update(MINUTE, NeedState(is_working=True))
        assert idle.value == pytest.approx(49.5)
        assert busy.value == pytest.approx(49.0)

    def test_rest_recovers_while_resting(self):
        need = Need(NeedType.REST, 50.0)
        need.update(MINUTE, NeedState(is_resting=True))
        assert need.value == pytest.approx(55.0)

    def test_social_recovers_while_socializing(self):
        need = Need(NeedType.SOCIAL, 50.0)
        need.update(MINUTE, NeedState(is_socializing=True))
        assert need.value == pytest.approx(60.0)

    def test_shelter_only_decays_outside_territory(self):
        need = Need(NeedType.SHELTER, 50.0)
        need.update(MINUTE, NeedState())
        assert need.value == 50.0
        need.update(MINUTE, NeedState(is_inside_territory=False))
        assert need.value == pytest.approx(49.0)

    def test_non_positive_delta_is_ignored(self):
        need = Need(NeedType.FOOD, 50.0)
        need.update(0, NeedState())
        need.update(-MINUTE, NeedState())
        assert need.value == 50.0

    def test_satisfy_clamps_to_range(self):
        need = Need(NeedType.FOOD, 95.0)
        need.satisfy(20.0)
        assert need.value == 100.0
        need.satisfy(-500.0)
        assert need.value == 0.0

    def test_is_critical_below_threshold_only(self):
        assert Need(NeedType.FOOD, 19.9).is_critical() is True
        assert Need(NeedType.FOOD, 20.0).is_critical() is False

    def test_is_satisfied_at_threshold(self):
        assert Need(NeedType.FOOD, 60.0).is_satisfied() is True
        assert Need(NeedType.FOOD, 59.9).is_satisfied() is False

    @pytest.mark.parametrize("value,level,impact", [
        (10.0, NeedLevel.CRITICAL, -10.0),
        (30.0, NeedLevel.LOW, -3.0),
        (50.0, NeedLevel.MODERATE, 0.0),
        (70.0, NeedLevel.HIGH, 5.0),
        (90.0, NeedLevel.EXCELLENT, 5.0),
    ])
    def test_level_and_happiness_impact(self, value, level, impact):
        need = Need(NeedType.REST, value)
        assert need.level() is level
        assert need.happiness_impact() == impact


class TestRegistration:
    def test_register_uses_defaults(self):
        tracker = NeedsTracker()
        assert tracker.register_npc("a1") is True
        needs = tracker.get_needs("a1")
        assert needs[NeedType.FOOD].value == 100.0
        assert needs[NeedType.REST].value == 100.0
        assert needs[NeedType.SOCIAL].value == 50.0
        assert needs[NeedType.SHELTER].value == 100.0

    def test_register_accepts_lowercase_and_enum_keys(self):
        tracker = NeedsTracker()
        tracker.register_npc("a1", {"food": 5, NeedType.REST: 40, "SOCIAL": 120})
        assert tracker.get_need("a1", "FOOD").value == 5.0
        assert tracker.get_need("a1", NeedType.REST).value == 40.0
        assert tracker.get_need("a1", "social").value == 100.0

    def test_register_twice_fails(self):
        tracker = NeedsTracker()
        tracker.register_npc("a1")
        assert tracker.register_npc("a1") is False
        assert len(tracker) == 1

    def test_register_without_id_fails(self):
        tracker = NeedsTracker()
        assert tracker.register_npc(None) is False
        assert tracker.register_npc("") is False
        assert len(tracker) == 0

    def test_unregister_is_idempotent(self):
        tracker = NeedsTracker()
        tracker.register_npc("a1")
        assert tracker.unregister_npc("a1") is True
        assert tracker.unregister_npc("a1") is False
        assert "a1" not in tracker

    def test_unknown_agent_queries(self):
        tracker = NeedsTracker()
        assert tracker.get_needs("ghost") is None
        assert tracker.get_need("ghost", NeedType.FOOD) is None
        assert tracker.get_needs_summary("ghost") is None
        assert tracker.calculate_happiness_impact("ghost") == 0.0
        assert tracker.satisfy_need("ghost", NeedType.FOOD, 10) is False

    def test_unknown_need_type(self):
        tracker = NeedsTracker()
        tracker.register_npc("a1")
        assert tracker.get_need("a1", "THIRST") is None
        assert tracker.satisfy_need("a1", "THIRST", 10) is False


class TestUpdates:
    def test_update_applies_per_agent_state(self):
        tracker = NeedsTracker()
        tracker.register_npc("worker", {"rest": 50})
        tracker.register_npc("sleeper", {"rest": 50})
        tracker.update_all_needs(MINUTE, {
            "worker": NeedState(is_working=True),
            "sleeper": {"isResting": True},
        })
        assert tracker.get_need("worker", NeedType.REST).value == pytest.approx(48.5)
        assert tracker.get_need("sleeper", NeedType.REST).value == pytest.approx(55.0)

    def test_values_stay_in_range_over_long_runs(self):
        tracker = NeedsTracker()
        tracker.register_npc("a1", {"food": 1, "rest": 99, "social": 99})
        for _ in range(50):
            tracker.update_all_needs(10 * MINUTE, {"a1": NeedState(is_resting=True,
                                                                   is_socializing=True)})
            tracker.satisfy_need("a1", NeedType.SHELTER, 37.0)
        for need in tracker.get_needs("a1").values():
            assert 0.0 <= need.value <= 100.0
        assert tracker.get_need("a1", NeedType.FOOD).value == 0.0
        assert tracker.get_need("a1", NeedType.REST).value == 100.0

    def test_critical_alerts_follow_updates(self):
        tracker = NeedsTracker()
        tracker.register_npc("a1", {"food": 25})
        tracker.update_all_needs(1000)
        assert tracker.has_critical_needs("a1") is False
        tracker.satisfy_need("a1", NeedType.FOOD, -10)
        tracker.update_all_needs(1000)
        assert tracker.get_critical_needs("a1") == [NeedType.FOOD]
        assert tracker.get_all_critical_npcs() == ["a1"]
        tracker.satisfy_need("a1", NeedType.FOOD, 50)
        tracker.update_all_needs(1000)
        assert tracker.has_critical_needs("a1") is False


class TestQueries:
    def test_lowest_need_breaks_ties_in_need_order(self):
        tracker = NeedsTracker()
        tracker.register_npc("a1", {"food": 40, "rest": 40, "social": 70})
        lowest = tracker.get_lowest_need("a1")
        assert lowest.type is NeedType.FOOD
        assert lowest.value == 40.0

    def test_lowest_need_is_none_when_everything_full(self):
        tracker = NeedsTracker()
        tracker.register_npc("a1", {"social": 100})
        assert tracker.get_lowest_need("a1") is None

    def test_happiness_bonus_when_all_satisfied(self):
        tracker = NeedsTracker()
        tracker.register_npc("a1", {"social": 90})
        # four EXCELLENT needs plus the all-satisfied bonus
        assert tracker.calculate_happiness_impact("a1") == 25.0

    def test_happiness_without_bonus(self):
        tracker = NeedsTracker()
        tracker.register_npc("a1", {"food": 10, "rest": 30, "social": 50, "shelter": 70})
        assert tracker.calculate_happiness_impact("a1") == -8.0

    def test_summary(self):
        tracker = NeedsTracker()
        tracker.register_npc("a1", {"food": 5})
        tracker.update_all_needs(1000)
        summary = tracker.get_needs_summary("a1")
        assert summary.agent_id == "a1"
        assert set(summary.needs) == set(NeedType)
        assert summary.critical_needs == [NeedType.FOOD]
        assert summary.lowest_need.type is NeedType.FOOD
        assert summary.all_satisfied is False
        assert summary.needs[NeedType.FOOD].level is NeedLevel.CRITICAL


class TestResetAndStatistics:
    def test_reset_round_trip(self):
        tracker = NeedsTracker()
        tracker.register_npc("a1")
        tracker.reset_npc_needs("a1", {"food": 12.5, "rest": 130, "social": -4})
        summary = tracker.get_needs_summary("a1")
        assert summary.needs[NeedType.FOOD].value == 12.5
        assert summary.needs[NeedType.REST].value == 100.0
        assert summary.needs[NeedType.SOCIAL].value == 0.0
        assert summary.needs[NeedType.SHELTER].value == 50.0

    def test_reset_clears_critical_alert(self):
        tracker = NeedsTracker()
        tracker.register_npc("a1", {"food": 5})
        tracker.update_all_needs(1000)
        tracker.reset_npc_needs("a1")
        assert tracker.has_critical_needs("a1") is False
        assert tracker.reset_npc_needs("ghost") is False

    def test_statistics(self):
        tracker = NeedsTracker()
        tracker.register_npc("a1", {"food": 5})
        tracker.register_npc("a2")
        tracker.update_all_needs(1000)
        stats = tracker.get_statistics()
        assert stats["total_npcs_tracked"] == 2
        assert stats["total_needs_updated"] == 8
        assert stats["total_critical_events"] == 1
        assert stats["npcs_with_critical_needs"] == 1
        assert stats["need_distribution"]["FOOD"] == {"CRITICAL": 1, "EXCELLENT": 1}
        tracker.reset_statistics()
        assert tracker.get_statistics()["total_needs_updated"] == 0

    def test_clear_all(self):
        tracker = NeedsTracker()
        tracker.register_npc("a1")
        tracker.register_npc("a2")
        tracker.clear_all()
        assert len(tracker) == 0
        assert list(tracker) == []

    def test_config_thresholds_drive_alerts(self):
        tracker = NeedsTracker(NeedsConfig(critical_threshold=40.0))
        tracker.register_npc("a1", {"food": 35})
        tracker.update_all_needs(1)
        assert tracker.has_critical_needs("a1") is True
