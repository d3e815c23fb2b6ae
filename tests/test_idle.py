"""Tests for hamlet.idle - idle task selection, progress, and history."""

import random

import pytest

from hamlet import (
    AgentRecord,
    AgentRoster,
    BuildingRecord,
    BuildingRegistry,
    GridSpatialIndex,
    IdleTaskConfig,
    IdleTaskManager,
    IdleTaskType,
    Position,
)


class ScriptedRandom(random.Random):
    """Returns scripted values from random(), then 0.5 forever."""

    def __init__(self, values):
        super().__init__(0)
        self._values = list(values)

    def random(self):
        if self._values:
            return self._values.pop(0)
        return 0.5


def _world():
    roster = AgentRoster()
    buildings = BuildingRegistry()
    return roster, buildings, GridSpatialIndex(roster, buildings)


class TestAssignment:
    def test_agent_without_id_gets_nothing(self):
        manager = IdleTaskManager()
        assert manager.assign_task(None) is None
        assert manager.assign_task({"position": (0, 0, 0)}) is None
        assert manager.assign_task(AgentRecord(None)) is None
        assert manager.assign_task(AgentRecord(""), IdleTaskType.REST) is None
        assert manager.get_statistics()["total_assigned"] == 0
        assert manager.get_statistics()["active_tasks"] == 0

    def test_task_ids_are_numbered_per_manager(self):
        first = IdleTaskManager(rng=random.Random(1))
        second = IdleTaskManager(rng=random.Random(1))
        a1 = first.assign_task(AgentRecord("a1"), IdleTaskType.WANDER)
        a2 = first.assign_task(AgentRecord("a2"), IdleTaskType.WANDER)
        b1 = second.assign_task(AgentRecord("a1"), IdleTaskType.WANDER)
        assert (a1.id, a2.id) == ("idle_task_1", "idle_task_2")
        assert b1.id == "idle_task_1"

    def test_existing_task_is_returned(self):
        manager = IdleTaskManager(rng=random.Random(1))
        agent = AgentRecord("a1")
        first = manager.assign_task(agent, IdleTaskType.WANDER)
        second = manager.assign_task(agent, IdleTaskType.REST)
        assert second is first
        assert manager.get_statistics()["total_assigned"] == 1

    def test_accepts_mapping(self):
        manager = IdleTaskManager(rng=random.Random(1))
        task = manager.assign_task({"id": "a1", "restNeed": 10}, duration=100)
        assert task.type is IdleTaskType.REST
        assert task.is_active is True

    def test_fatigued_agent_rests(self):
        manager = IdleTaskManager(rng=random.Random(1))
        task = manager.assign_task(AgentRecord("a1", fatigued=True))
        assert task.type is IdleTaskType.REST
        assert task.data["npc_fatigue"] == 80.0

    def test_low_rest_need_rests(self):
        manager = IdleTaskManager(rng=random.Random(1))
        task = manager.assign_task(AgentRecord("a1", rest_need=20.0))
        assert task.type is IdleTaskType.REST
        assert task.data["npc_fatigue"] == 20.0

    def test_lonely_agent_with_company_socializes(self):
        roster, _, spatial = _world()
        roster.add(AgentRecord("friend", position=Position(3, 0, 4)))
        roster.add(AgentRecord("far", position=Position(50, 0, 0)))
        lonely = AgentRecord("a1", social_need=30.0)
        roster.add(lonely)
        manager = IdleTaskManager(spatial, rng=random.Random(1))
        task = manager.assign_task(lonely)
        assert task.type is IdleTaskType.SOCIALIZE
        assert task.data["target_npc"].id == "friend"
        assert task.data["npc_social_need"] == 30.0

    def test_working_agents_are_not_company(self):
        roster, _, spatial = _world()
        roster.add(AgentRecord("busy", position=Position(1, 0, 0)))
        roster.mark_working("busy", "b1")
        lonely = AgentRecord("a1", social_need=30.0)
        roster.add(lonely)
        manager = IdleTaskManager(spatial, rng=ScriptedRandom([0.1]))
        assert manager.assign_task(lonely).type is IdleTaskType.WANDER

    def test_random_choice_between_wander_and_inspect(self):
        wander = IdleTaskManager(rng=ScriptedRandom([0.59]))
        inspect = IdleTaskManager(rng=ScriptedRandom([0.6]))
        assert wander.assign_task(AgentRecord("a1")).type is IdleTaskType.WANDER
        assert inspect.assign_task(AgentRecord("a1")).type is IdleTaskType.INSPECT

    def test_wander_target_uses_polar_offset(self):
        # selection, offset fraction, angle fraction
        manager = IdleTaskManager(rng=ScriptedRandom([0.1, 0.4, 0.0]))
        agent = AgentRecord("a1", position=Position(10, 3, 10))
        task = manager.assign_task(agent)
        assert task.type is IdleTaskType.WANDER
        assert task.data["target_position"] == Position(17, 3, 10)

    def test_wander_target_within_radius(self):
        manager = IdleTaskManager(rng=random.Random(42))
        for i in range(30):
            agent = AgentRecord(f"a{i}")
            task = manager.assign_task(agent, IdleTaskType.WANDER)
            dist = agent.position.distance_to(task.data["target_position"])
            # integer rounding can shift the target by up to one cell diagonal
            assert 5 - 1.5 <= dist <= 10 + 1.5

    def test_inspect_targets_nearest_building(self):
        roster, buildings, spatial = _world()
        buildings.add(BuildingRecord("far", "FARM", position=Position(12, 0, 0)))
        buildings.add(BuildingRecord("near", "MINE", position=Position(4, 0, 0)))
        buildings.add(BuildingRecord("out", "MINE", position=Position(40, 0, 0)))
        manager = IdleTaskManager(spatial, rng=random.Random(1))
        task = manager.assign_task(AgentRecord("a1"), IdleTaskType.INSPECT)
        assert task.data["target_building"].id == "near"

    def test_inspect_without_buildings_has_no_target(self):
        manager = IdleTaskManager(rng=random.Random(1))
        task = manager.assign_task(AgentRecord("a1"), IdleTaskType.INSPECT)
        assert task.data["target_building"] is None


class TestProgress:
    def test_update_completes_and_records_history(self):
        manager = IdleTaskManager(rng=random.Random(1))
        manager.assign_task(AgentRecord("a1"), IdleTaskType.WANDER, duration=1000)
        manager.assign_task(AgentRecord("a2"), IdleTaskType.REST, duration=5000)
        assert manager.update_tasks(500) == []
        done = manager.update_tasks(500)
        assert [d.agent_id for d in done] == ["a1"]
        assert done[0].task.is_complete is True
        assert manager.has_active_task("a1") is False
        assert manager.has_active_task("a2") is True
        history = manager.get_task_history("a1")
        assert len(history) == 1
        assert history[0].task_type is IdleTaskType.WANDER
        assert history[0].completed_at == 1000.0

    def test_rewards_after_completion(self):
        manager = IdleTaskManager(rng=random.Random(1))
        manager.assign_task(AgentRecord("a1"), IdleTaskType.SOCIALIZE, duration=10)
        assert manager.get_task_rewards("a1") is None
        manager.update_tasks(10)
        assert manager.get_task_rewards("a1").social_need == 10.0

    def test_cancel(self):
        manager = IdleTaskManager(rng=random.Random(1))
        task = manager.assign_task(AgentRecord("a1"), IdleTaskType.WANDER, duration=1000)
        assert manager.cancel_task("a1") is True
        assert task.is_cancelled is True
        assert manager.cancel_task("a1") is False
        assert manager.get_current_task("a1") is None
        assert manager.update_tasks(5000) == []
        assert manager.get_task_history("a1") == []

    def test_history_limit(self):
        manager = IdleTaskManager(config=IdleTaskConfig(max_history_size=3),
                                  rng=random.Random(1))
        for _ in range(5):
            manager.assign_task(AgentRecord("a1"), IdleTaskType.INSPECT, duration=1)
            manager.update_tasks(1)
        assert manager.get_statistics()["history_size"] == 3
        assert len(manager.get_task_history("a1", limit=2)) == 2


class TestCleanup:
    def test_remove_npc(self):
        manager = IdleTaskManager(rng=random.Random(1))
        task = manager.assign_task(AgentRecord("a1"), IdleTaskType.WANDER, duration=1000)
        assert manager.remove_npc("a1") is True
        assert task.is_cancelled is True
        assert manager.remove_npc("a1") is False
        assert manager.remove_npc(None) is False

    def test_cleanup_history_by_age(self):
        manager = IdleTaskManager(rng=random.Random(1))
        manager.assign_task(AgentRecord("old"), IdleTaskType.INSPECT, duration=10)
        manager.update_tasks(10)
        manager.update_tasks(5000)
        manager.assign_task(AgentRecord("new"), IdleTaskType.INSPECT, duration=10)
        manager.update_tasks(10)
        assert manager.cleanup_history(max_age_ms=1000) == 1
        assert manager.get_task_history("old") == []
        assert len(manager.get_task_history("new")) == 1

    def test_cleanup_history_default_keeps_recent(self):
        manager = IdleTaskManager(rng=random.Random(1))
        manager.assign_task(AgentRecord("a1"), IdleTaskType.INSPECT, duration=10)
        manager.update_tasks(10)
        assert manager.cleanup_history() == 0

    def test_clear_all_tasks(self):
        manager = IdleTaskManager(rng=random.Random(1))
        a = manager.assign_task(AgentRecord("a1"), IdleTaskType.WANDER, duration=100)
        b = manager.assign_task(AgentRecord("a2"), IdleTaskType.REST, duration=100)
        manager.clear_all_tasks()
        assert a.is_cancelled and b.is_cancelled
        assert manager.get_statistics()["active_tasks"] == 0


class TestStatistics:
    def test_counts_and_rate(self):
        manager = IdleTaskManager(rng=random.Random(1))
        manager.assign_task(AgentRecord("a1"), IdleTaskType.WANDER, duration=10)
        manager.assign_task(AgentRecord("a2"), IdleTaskType.WANDER, duration=10)
        manager.assign_task(AgentRecord("a3"), IdleTaskType.REST, duration=1000)
        manager.update_tasks(10)
        manager.cancel_task("a3")
        stats = manager.get_statistics()
        assert stats["active_tasks"] == 0
        assert stats["total_assigned"] == 3
        assert stats["total_completed"] == 2
        assert stats["total_cancelled"] == 1
        assert stats["task_type_distribution"] == {"WANDER": 2, "REST": 1}
        assert stats["completion_rate"] == pytest.approx(66.7)

    def test_reset_statistics(self):
        manager = IdleTaskManager(rng=random.Random(1))
        manager.assign_task(AgentRecord("a1"), IdleTaskType.WANDER, duration=10)
        manager.update_tasks(10)
        manager.reset_statistics()
        stats = manager.get_statistics()
        assert stats["total_assigned"] == 0
        assert stats["history_size"] == 0
        assert stats["completion_rate"] == 0.0
