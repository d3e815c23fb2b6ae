"""IdleTaskManager - one active idle task per agent, with bounded history."""
from __future__ import annotations

import itertools
import logging
import math
import random as _random_mod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Mapping

from hamlet.config import IdleTaskConfig
from hamlet.history import TaskHistory, TaskHistoryEntry
from hamlet.tasks import IdleTask, TaskRewards
from hamlet.types import AgentId, AgentRecord, IdleTaskType, Position

if TYPE_CHECKING:
    from hamlet.spatial import SpatialQueries

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CompletedTask:
    agent_id: AgentId
    task: IdleTask


class IdleTaskManager:
    """Selects, starts, advances, and retires idle tasks.

    Keeps its own millisecond clock, advanced only by ``update_tasks``, so
    task timing is independent of wall time.
    """

    def __init__(
        self,
        spatial: SpatialQueries | None = None,
        config: IdleTaskConfig | None = None,
        rng: _random_mod.Random | None = None,
    ) -> None:
        self._spatial = spatial
        self._config = config if config is not None else IdleTaskConfig()
        self._rng = rng if rng is not None else _random_mod.Random()
        self._now: float = 0.0
        self._active: dict[AgentId, IdleTask] = {}
        self._history = TaskHistory(self._config.max_history_size)
        self._stats = self._empty_stats()
        self._task_ids = itertools.count(1)

    @property
    def now(self) -> float:
        return self._now

    @property
    def history(self) -> TaskHistory:
        return self._history

    # --- Assignment ---

    def assign_task(
        self,
        agent: AgentRecord | Mapping[str, Any] | None,
        task_type: IdleTaskType | None = None,
        *,
        duration: float | None = None,
    ) -> IdleTask | None:
        """Start a task for an agent, or return the one already running."""
        if agent is None:
            return None
        if not isinstance(agent, AgentRecord):
            if agent.get("id") in (None, ""):
                return None
            agent = AgentRecord.from_mapping(agent)
        if agent.id is None or agent.id == "":
            return None

        current = self._active.get(agent.id)
        if current is not None:
            return current

        if task_type is None:
            task_type = self._select_task_type(agent)
        task = IdleTask(
            task_type,
            self._create_task_data(agent, task_type),
            duration=duration,
            task_id=f"idle_task_{next(self._task_ids)}",
            rng=self._rng,
        )
        if not task.start(self._now):
            return None
        self._active[agent.id] = task
        self._stats["total_assigned"] += 1
        counts = self._stats["task_type_count"]
        counts[task_type.value] = counts.get(task_type.value, 0) + 1
        logger.debug("%s started %s for %.0fms", agent.id, task_type.value, task.duration)
        return task

    def _select_task_type(self, agent: AgentRecord) -> IdleTaskType:
        cfg = self._config
        if agent.fatigued or (
            agent.rest_need is not None and agent.rest_need < cfg.fatigue_rest_need
        ):
            return IdleTaskType.REST
        if (
            agent.social_need is not None
            and agent.social_need < cfg.lonely_social_need
            and self._has_nearby_agent(agent)
        ):
            return IdleTaskType.SOCIALIZE
        if self._rng.random() < cfg.wander_probability:
            return IdleTaskType.WANDER
        return IdleTaskType.INSPECT

    def _create_task_data(
        self, agent: AgentRecord, task_type: IdleTaskType,
    ) -> dict[str, Any]:
        data: dict[str, Any] = {
            "npc_id": agent.id,
            "npc_position": agent.position,
            "npc_fatigue": 80.0 if agent.fatigued else 20.0,
            "npc_social_need": agent.social_need if agent.social_need is not None else 50.0,
        }
        if task_type is IdleTaskType.WANDER:
            data["target_position"] = self._random_wander_position(agent.position)
        elif task_type is IdleTaskType.SOCIALIZE:
            data["target_npc"] = self._find_social_target(agent)
        elif task_type is IdleTaskType.INSPECT:
            data["target_building"] = self._find_building(agent.position)
        return data

    def _random_wander_position(self, origin: Position) -> Position:
        cfg = self._config
        offset = cfg.wander_min + self._rng.random() * (cfg.wander_max - cfg.wander_min)
        angle = self._rng.random() * math.tau
        return Position(
            x=round(origin.x + math.cos(angle) * offset),
            y=origin.y,
            z=round(origin.z + math.sin(angle) * offset),
        )

    def _has_nearby_agent(self, agent: AgentRecord) -> bool:
        return self._find_social_target(agent) is not None

    def _find_social_target(self, agent: AgentRecord) -> AgentRecord | None:
        if self._spatial is None:
            return None
        return self._spatial.find_nearby_agent(agent, self._config.social_distance)

    def _find_building(self, position: Position) -> Any:
        if self._spatial is None:
            return None
        return self._spatial.find_nearest_building(position, self._config.inspect_distance)

    # --- Progress ---

    def update_tasks(self, delta_ms: float) -> list[CompletedTask]:
        """Advance the clock and retire finished tasks into history."""
        if delta_ms > 0:
            self._now += delta_ms
        completed: list[CompletedTask] = []
        for agent_id, task in list(self._active.items()):
            if task.update(self._now):
                completed.append(CompletedTask(agent_id, task))
                self._on_task_complete(agent_id, task)
        return completed

    def _on_task_complete(self, agent_id: AgentId, task: IdleTask) -> None:
        del self._active[agent_id]
        self._history.append(TaskHistoryEntry(
            agent_id=agent_id,
            task_type=task.type,
            completed_at=task.completed_at if task.completed_at is not None else self._now,
            duration=task.duration,
            rewards=task.rewards,
        ))
        self._stats["total_completed"] += 1
        logger.debug("%s completed %s", agent_id, task.type.value)

    def cancel_task(self, agent_id: AgentId) -> bool:
        task = self._active.get(agent_id)
        if task is None or not task.cancel(self._now):
            return False
        del self._active[agent_id]
        self._stats["total_cancelled"] += 1
        return True

    # --- Queries ---

    def get_current_task(self, agent_id: AgentId) -> IdleTask | None:
        return self._active.get(agent_id)

    def has_active_task(self, agent_id: AgentId) -> bool:
        return agent_id in self._active

    def get_task_rewards(self, agent_id: AgentId) -> TaskRewards | None:
        """Rewards of a finished current task, else of the latest completed one."""
        task = self._active.get(agent_id)
        if task is not None and task.is_complete:
            return task.rewards
        last = self._history.last(agent_id)
        return last.rewards if last is not None else None

    def get_task_history(
        self, agent_id: AgentId, limit: int = 10,
    ) -> list[TaskHistoryEntry]:
        return self._history.query(agent_id, limit)

    def get_statistics(self) -> dict[str, Any]:
        assigned = self._stats["total_assigned"]
        completed = self._stats["total_completed"]
        return {
            "active_tasks": len(self._active),
            "total_assigned": assigned,
            "total_completed": completed,
            "total_cancelled": self._stats["total_cancelled"],
            "task_type_distribution": dict(self._stats["task_type_count"]),
            "completion_rate": round(completed / assigned * 100, 1) if assigned else 0.0,
            "history_size": len(self._history),
        }

    # --- Cleanup ---

    def remove_npc(self, agent_id: AgentId) -> bool:
        """Cancel and forget an agent that is leaving the simulation."""
        if agent_id is None:
            return False
        task = self._active.pop(agent_id, None)
        if task is None:
            return False
        task.cancel(self._now)
        return True

    def cleanup_history(self, max_age_ms: float = 3_600_000) -> int:
        """Prune history older than max_age_ms. Returns entries removed."""
        return self._history.prune_before(self._now - max_age_ms)

    def clear_all_tasks(self) -> None:
        for task in self._active.values():
            task.cancel(self._now)
        self._active.clear()

    def reset_statistics(self) -> None:
        self._stats = self._empty_stats()
        self._history.clear()

    @staticmethod
    def _empty_stats() -> dict[str, Any]:
        return {
            "total_assigned": 0,
            "total_completed": 0,
            "total_cancelled": 0,
            "task_type_count": {},
        }
