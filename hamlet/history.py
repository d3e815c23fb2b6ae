from __future__ import annotations

from collections import deque
from dataclasses import asdict, dataclass
from typing import Any

from hamlet.tasks import TaskRewards
from hamlet.types import AgentId, IdleTaskType


@dataclass(frozen=True)
class TaskHistoryEntry:
    agent_id: AgentId
    task_type: IdleTaskType
    completed_at: float
    duration: float
    rewards: TaskRewards


class TaskHistory:
    """Completed-task log. Oldest entries fall off once max_entries is reached."""

    def __init__(self, max_entries: int = 1000) -> None:
        if max_entries < 1:
            raise ValueError(f"max_entries must be >= 1, got {max_entries}")
        self._max = max_entries
        self._entries: deque[TaskHistoryEntry] = deque(maxlen=max_entries)

    @property
    def max_entries(self) -> int:
        return self._max

    def append(self, entry: TaskHistoryEntry) -> None:
        self._entries.append(entry)

    def query(self, agent_id: AgentId | None = None,
              limit: int | None = None) -> list[TaskHistoryEntry]:
        result = list(self._entries)
        if agent_id is not None:
            result = [e for e in result if e.agent_id == agent_id]
        if limit is not None:
            result = result[-limit:] if limit > 0 else []
        return result

    def last(self, agent_id: AgentId) -> TaskHistoryEntry | None:
        for e in reversed(self._entries):
            if e.agent_id == agent_id:
                return e
        return None

    def prune_before(self, cutoff: float) -> int:
        """Drop entries completed before cutoff. Returns the number removed."""
        kept = [e for e in self._entries if e.completed_at >= cutoff]
        removed = len(self._entries) - len(kept)
        self._entries = deque(kept, maxlen=self._max)
        return removed

    def clear(self) -> None:
        self._entries.clear()

    def snapshot(self) -> list[dict[str, Any]]:
        return [
            {
                "agent_id": e.agent_id,
                "task_type": e.task_type.value,
                "completed_at": e.completed_at,
                "duration": e.duration,
                "rewards": asdict(e.rewards),
            }
            for e in self._entries
        ]

    def restore(self, data: list[dict[str, Any]]) -> None:
        self._entries.clear()
        for d in data:
            self._entries.append(TaskHistoryEntry(
                agent_id=d["agent_id"],
                task_type=IdleTaskType(d["task_type"]),
                completed_at=d["completed_at"],
                duration=d["duration"],
                rewards=TaskRewards(**d["rewards"]),
            ))

    def __len__(self) -> int:
        return len(self._entries)
