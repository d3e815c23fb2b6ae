"""IdleTask - one timed, low-priority activity and its rewards."""
from __future__ import annotations

import random as _random_mod
import uuid
from dataclasses import dataclass
from typing import Any

from hamlet.types import IdleTaskType, Priority


@dataclass(frozen=True)
class TaskRewards:
    """Deltas granted on completion. Applied by the caller, not the task."""

    happiness: float = 0.0
    rest_need: float = 0.0
    social_need: float = 0.0
    fatigue: float = 0.0


# (min, max) seconds per task type.
DURATION_WINDOWS: dict[IdleTaskType, tuple[float, float]] = {
    IdleTaskType.WANDER: (5.0, 15.0),
    IdleTaskType.SOCIALIZE: (10.0, 20.0),
    IdleTaskType.REST: (15.0, 30.0),
    IdleTaskType.INSPECT: (5.0, 10.0),
}

REWARDS: dict[IdleTaskType, TaskRewards] = {
    IdleTaskType.WANDER: TaskRewards(happiness=0.5, rest_need=2.0),
    IdleTaskType.SOCIALIZE: TaskRewards(happiness=1.0, social_need=10.0),
    IdleTaskType.REST: TaskRewards(fatigue=-20.0, rest_need=15.0),
    IdleTaskType.INSPECT: TaskRewards(happiness=0.5),
}


def task_priority(task_type: IdleTaskType, data: dict[str, Any]) -> Priority:
    """Contextual priority for a task given its payload."""
    if task_type is IdleTaskType.SOCIALIZE:
        social = data.get("npc_social_need", 50.0)
        return Priority.HIGH if social < 30 else Priority.MEDIUM
    if task_type is IdleTaskType.REST:
        fatigue = data.get("npc_fatigue", 0.0)
        if fatigue > 70:
            return Priority.HIGH
        if fatigue > 40:
            return Priority.MEDIUM
        return Priority.LOW
    return Priority.LOW


@dataclass(frozen=True)
class TaskSummary:
    id: str
    type: IdleTaskType
    priority: Priority
    duration: float
    start_time: float | None
    completed_at: float | None
    is_active: bool
    is_complete: bool
    is_cancelled: bool
    rewards: TaskRewards


class IdleTask:
    """(unstarted) -> active -> complete | cancelled. Times are milliseconds."""

    def __init__(
        self,
        task_type: IdleTaskType,
        data: dict[str, Any] | None = None,
        *,
        duration: float | None = None,
        rng: _random_mod.Random | None = None,
        task_id: str | None = None,
    ) -> None:
        self.id = task_id if task_id is not None else f"idle_task_{uuid.uuid4().hex}"
        self.type = task_type
        self.data: dict[str, Any] = dict(data) if data else {}
        if duration is None:
            lo, hi = DURATION_WINDOWS[task_type]
            rng = rng if rng is not None else _random_mod.Random()
            duration = rng.uniform(lo, hi) * 1000.0
        if duration < 0:
            raise ValueError(f"duration must be >= 0, got {duration}")
        self.duration = float(duration)
        self.start_time: float | None = None
        self.completed_at: float | None = None
        self.is_active = False
        self.is_complete = False
        self.is_cancelled = False
        self.priority = task_priority(task_type, self.data)
        self.rewards = REWARDS[task_type]

    def __repr__(self) -> str:
        return (f"IdleTask(id={self.id!r}, type={self.type.value}, "
                f"duration={self.duration:.0f}, state={self.state})")

    @property
    def state(self) -> str:
        if self.is_complete:
            return "complete"
        if self.is_cancelled:
            return "cancelled"
        if self.is_active:
            return "active"
        return "unstarted"

    def start(self, now: float) -> bool:
        if self.is_active or self.is_complete or self.is_cancelled:
            return False
        self.start_time = now
        self.is_active = True
        return True

    def update(self, now: float) -> bool:
        """True once the task is complete; completes it when time is up."""
        if self.is_complete:
            return True
        if not self.is_active or self.start_time is None:
            return False
        if now - self.start_time >= self.duration:
            self.complete(now)
            return True
        return False

    def complete(self, now: float) -> bool:
        if self.is_complete or self.is_cancelled:
            return False
        self.is_active = False
        self.is_complete = True
        self.completed_at = now
        return True

    def cancel(self, now: float | None = None) -> bool:
        if not self.is_active:
            return False
        self.is_active = False
        self.is_cancelled = True
        self.completed_at = now
        return True

    def get_progress(self, now: float) -> float:
        if self.is_complete:
            return 1.0
        if self.start_time is None:
            return 0.0
        if self.duration <= 0:
            return 1.0
        return max(0.0, min(1.0, (now - self.start_time) / self.duration))

    def get_remaining_time(self, now: float) -> float:
        if self.is_complete or self.is_cancelled:
            return 0.0
        if self.start_time is None:
            return self.duration
        return max(0.0, self.duration - (now - self.start_time))

    def get_summary(self) -> TaskSummary:
        return TaskSummary(
            id=self.id,
            type=self.type,
            priority=self.priority,
            duration=self.duration,
            start_time=self.start_time,
            completed_at=self.completed_at,
            is_active=self.is_active,
            is_complete=self.is_complete,
            is_cancelled=self.is_cancelled,
            rewards=self.rewards,
        )
