"""DecisionEngine - picks the single most urgent action for an agent each cycle."""
from __future__ import annotations

import logging
import random as _random_mod
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Mapping

from hamlet.config import DecisionThresholds
from hamlet.types import (
    AgentRecord,
    ConfigurationError,
    DecisionType,
    IdleTaskType,
    NeedType,
    Priority,
)

if TYPE_CHECKING:
    from hamlet.idle import IdleTaskManager
    from hamlet.needs import NeedsSummary, NeedsTracker

logger = logging.getLogger(__name__)

SEEK_HEALING = "SEEK_HEALING"
SEEK_FOOD = "SEEK_FOOD"
SEEK_SHELTER = "SEEK_SHELTER"
ACCEPT_WORK = "ACCEPT_WORK"
KEEP_WORKING = "KEEP_WORKING"
CONTINUE_TASK = "CONTINUE_TASK"

NEED_ACTIONS: dict[NeedType, str] = {
    NeedType.FOOD: SEEK_FOOD,
    NeedType.REST: IdleTaskType.REST.value,
    NeedType.SOCIAL: IdleTaskType.SOCIALIZE.value,
    NeedType.SHELTER: SEEK_SHELTER,
}


@dataclass(frozen=True)
class Decision:
    type: DecisionType
    action: str
    priority: Priority
    reason: str
    timestamp: float


@dataclass(frozen=True)
class DecisionContext:
    has_work_offer: bool = False

    @classmethod
    def coerce(cls, value: DecisionContext | Mapping[str, Any] | None) -> DecisionContext:
        if value is None:
            return cls()
        if isinstance(value, DecisionContext):
            return value
        offer = value.get("has_work_offer", value.get("hasWorkOffer", False))
        return cls(has_work_offer=bool(offer))


def need_action(need_type: Any) -> str:
    """Action that satisfies a need; WANDER for anything unmapped."""
    key = NeedType.coerce(need_type)
    if key is None:
        return IdleTaskType.WANDER.value
    return NEED_ACTIONS.get(key, IdleTaskType.WANDER.value)


def _wall_clock_ms() -> float:
    return time.time() * 1000.0


class DecisionEngine:
    """Priority arbitration over needs, work offers, and idle activity."""

    def __init__(
        self,
        needs_tracker: NeedsTracker | None,
        idle_task_manager: IdleTaskManager | None,
        thresholds: DecisionThresholds | None = None,
        rng: _random_mod.Random | None = None,
        clock: Callable[[], float] | None = None,
    ) -> None:
        if needs_tracker is None or idle_task_manager is None:
            raise ConfigurationError(
                "DecisionEngine requires a NeedsTracker and an IdleTaskManager"
            )
        self._needs = needs_tracker
        self._tasks = idle_task_manager
        self._thresholds = thresholds if thresholds is not None else DecisionThresholds()
        self._rng = rng if rng is not None else _random_mod.Random()
        self._clock = clock if clock is not None else _wall_clock_ms
        self._stats = self._empty_stats()

    @property
    def thresholds(self) -> DecisionThresholds:
        return self._thresholds

    def decide_action(
        self,
        agent: AgentRecord | Mapping[str, Any] | None,
        context: DecisionContext | Mapping[str, Any] | None = None,
    ) -> Decision | None:
        """Return the decision for this cycle, or None when the agent has no id."""
        if agent is None:
            return None
        if not isinstance(agent, AgentRecord):
            if agent.get("id") in (None, ""):
                return None
            agent = AgentRecord.from_mapping(agent)
        if agent.id is None or agent.id == "":
            return None
        ctx = DecisionContext.coerce(context)

        self._stats["total_decisions"] += 1
        summary = self._needs.get_needs_summary(agent.id)
        if summary is None:
            if ctx.has_work_offer:
                return self._create(DecisionType.WORK, ACCEPT_WORK, Priority.MEDIUM,
                                    "No needs data")
            return self._create(DecisionType.IDLE_TASK, IdleTaskType.WANDER.value,
                                Priority.LOW, "Default action")

        decision = self._check_emergency(agent, summary)
        if decision is not None:
            self._stats["emergency_interrupts"] += 1
            logger.debug("%s emergency: %s", agent.id, decision.reason)
            return decision

        if ctx.has_work_offer:
            decision = self._evaluate_work_offer(summary)
            if decision.type is DecisionType.SATISFY_NEED:
                self._stats["work_refusals"] += 1
                logger.debug("%s refused work: %s", agent.id, decision.reason)
            return decision

        decision = self._check_needs(summary)
        if decision is not None:
            return decision

        if agent.is_working or agent.assigned_building:
            return self._create(DecisionType.CONTINUE, KEEP_WORKING, Priority.MEDIUM,
                                "All needs satisfied, continue working")

        if self._tasks.has_active_task(agent.id):
            return self._create(DecisionType.CONTINUE, CONTINUE_TASK, Priority.LOW,
                                "Continue current idle task")

        return self._create(
            DecisionType.IDLE_TASK,
            self._select_idle_task(summary).value,
            Priority.LOW,
            "All needs satisfied, perform idle activity",
        )

    def _check_emergency(
        self, agent: AgentRecord, summary: NeedsSummary,
    ) -> Decision | None:
        t = self._thresholds
        if agent.health < t.health_emergency:
            return self._create(DecisionType.EMERGENCY, SEEK_HEALING, Priority.EMERGENCY,
                                f"Critical health: {agent.health:.1f}")
        for need_type, need in summary.needs.items():
            if need.value < t.emergency:
                return self._create(
                    DecisionType.EMERGENCY, need_action(need_type), Priority.EMERGENCY,
                    f"Emergency: {need_type.value} at {need.value:.1f}",
                )
        return None

    def _evaluate_work_offer(self, summary: NeedsSummary) -> Decision:
        t = self._thresholds
        rest = summary.needs.get(NeedType.REST)
        if rest is not None and rest.value < t.work_refusal:
            return self._create(
                DecisionType.SATISFY_NEED, IdleTaskType.REST.value, Priority.HIGH,
                f"Too exhausted to work (REST: {rest.value:.1f})",
            )
        for need_type, need in summary.needs.items():
            if need.value < t.critical:
                return self._create(
                    DecisionType.SATISFY_NEED, need_action(need_type), Priority.CRITICAL,
                    f"Must satisfy {need_type.value} first ({need.value:.1f})",
                )
        return self._create(DecisionType.WORK, ACCEPT_WORK, Priority.MEDIUM,
                            "Needs satisfied, can work")

    def _check_needs(self, summary: NeedsSummary) -> Decision | None:
        lowest = summary.lowest_need
        if lowest is None or lowest.value >= self._thresholds.low:
            return None
        return self._create(
            DecisionType.SATISFY_NEED, need_action(lowest.type), Priority.HIGH,
            f"{lowest.type.value} low ({lowest.value:.1f})",
        )

    def _select_idle_task(self, summary: NeedsSummary) -> IdleTaskType:
        t = self._thresholds
        rest = summary.needs.get(NeedType.REST)
        if rest is not None and rest.value < t.idle_preference:
            return IdleTaskType.REST
        social = summary.needs.get(NeedType.SOCIAL)
        if social is not None and social.value < t.idle_preference:
            return IdleTaskType.SOCIALIZE
        if self._rng.random() < t.wander_probability:
            return IdleTaskType.WANDER
        return IdleTaskType.INSPECT

    def _create(
        self, type: DecisionType, action: str, priority: Priority, reason: str,
    ) -> Decision:
        by_type = self._stats["decisions_by_type"]
        by_type[type.value] = by_type.get(type.value, 0) + 1
        return Decision(type, action, priority, reason, self._clock())

    def should_interrupt(
        self, decision: Decision | None, agent: AgentRecord | Mapping[str, Any],
    ) -> bool:
        """Whether a decision should pre-empt what the agent is doing now."""
        if decision is None:
            return False
        if decision.type is DecisionType.EMERGENCY:
            return True
        if isinstance(agent, AgentRecord):
            busy = agent.is_working or bool(agent.assigned_building)
        else:
            busy = bool(agent.get("is_working", agent.get("isWorking"))) or bool(
                agent.get("assigned_building", agent.get("assignedBuilding"))
            )
        if not busy:
            return False
        return decision.priority >= Priority.CRITICAL

    # --- Statistics ---

    def get_statistics(self) -> dict[str, Any]:
        total = self._stats["total_decisions"]
        emergencies = self._stats["emergency_interrupts"]
        refusals = self._stats["work_refusals"]
        return {
            "total_decisions": total,
            "decisions_by_type": dict(self._stats["decisions_by_type"]),
            "emergency_interrupts": emergencies,
            "work_refusals": refusals,
            "emergency_rate": round(emergencies / total * 100, 1) if total else 0.0,
            "work_refusal_rate": round(refusals / total * 100, 1) if total else 0.0,
        }

    def reset_statistics(self) -> None:
        self._stats = self._empty_stats()

    @staticmethod
    def _empty_stats() -> dict[str, Any]:
        return {
            "total_decisions": 0,
            "decisions_by_type": {},
            "emergency_interrupts": 0,
            "work_refusals": 0,
        }
