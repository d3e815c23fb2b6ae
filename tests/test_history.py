"""Tests for hamlet.history - bounded completed-task log."""

import pytest

from hamlet import IdleTaskType, TaskHistory, TaskHistoryEntry, TaskRewards


def _entry(agent_id, at, task_type=IdleTaskType.WANDER):
    return TaskHistoryEntry(agent_id, task_type, at, 1000.0, TaskRewards(happiness=0.5))


class TestTaskHistory:
    def test_rejects_non_positive_size(self):
        with pytest.raises(ValueError):
            TaskHistory(0)

    def test_eviction_keeps_newest(self):
        history = TaskHistory(max_entries=3)
        for i in range(5):
            history.append(_entry("a1", float(i)))
        assert len(history) == 3
        assert [e.completed_at for e in history.query()] == [2.0, 3.0, 4.0]

    def test_query_by_agent_and_limit(self):
        history = TaskHistory()
        history.append(_entry("a1", 1.0))
        history.append(_entry("a2", 2.0))
        history.append(_entry("a1", 3.0))
        history.append(_entry("a1", 4.0))
        assert [e.completed_at for e in history.query("a1")] == [1.0, 3.0, 4.0]
        assert [e.completed_at for e in history.query("a1", limit=2)] == [3.0, 4.0]
        assert history.query("a1", limit=0) == []
        assert history.query("nobody") == []

    def test_last(self):
        history = TaskHistory()
        history.append(_entry("a1", 1.0, IdleTaskType.REST))
        history.append(_entry("a2", 2.0))
        assert history.last("a1").task_type is IdleTaskType.REST
        assert history.last("a3") is None

    def test_prune_before(self):
        history = TaskHistory(max_entries=10)
        for at in (100.0, 200.0, 300.0):
            history.append(_entry("a1", at))
        assert history.prune_before(250.0) == 2
        assert [e.completed_at for e in history.query()] == [300.0]
        # capacity survives pruning
        for i in range(20):
            history.append(_entry("a1", 400.0 + i))
        assert len(history) == 10

    def test_snapshot_restore(self):
        history = TaskHistory()
        history.append(_entry("a1", 5.0, IdleTaskType.SOCIALIZE))
        data = history.snapshot()
        assert data[0]["task_type"] == "SOCIALIZE"
        assert data[0]["rewards"]["happiness"] == 0.5

        other = TaskHistory()
        other.restore(data)
        assert other.query() == history.query()

    def test_clear(self):
        history = TaskHistory()
        history.append(_entry("a1", 1.0))
        history.clear()
        assert len(history) == 0
