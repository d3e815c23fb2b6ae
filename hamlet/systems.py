"""Phase systems run by the village each tick: needs, tasks, decisions, apply.

Each factory returns a ``(village, ctx) -> None`` callable.
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Callable

from hamlet.decision import Decision, DecisionContext, DecisionEngine
from hamlet.idle import CompletedTask, IdleTaskManager
from hamlet.needs import NeedState, NeedsTracker
from hamlet.roster import AgentRoster
from hamlet.types import (
    AgentId,
    AgentRecord,
    DecisionType,
    IdleTaskType,
    NeedType,
    TickContext,
)
from hamlet.work import WorkAssignment

if TYPE_CHECKING:
    from hamlet.village import Village

System = Callable[["Village", TickContext], None]

_IDLE_ACTIONS = {t.value: t for t in IdleTaskType}


def make_needs_system(
    tracker: NeedsTracker,
    roster: AgentRoster,
    task_manager: IdleTaskManager,
) -> System:
    def needs_system(village: Village, ctx: TickContext) -> None:
        states: dict[AgentId, NeedState] = {}
        for agent in roster:
            task = task_manager.get_current_task(agent.id)
            task_type = task.type if task is not None else None
            states[agent.id] = NeedState(
                is_working=agent.is_working,
                is_resting=task_type is IdleTaskType.REST,
                is_socializing=task_type is IdleTaskType.SOCIALIZE,
            )
        tracker.update_all_needs(ctx.dt, states)
        for agent in roster:
            sync_agent_needs(tracker, agent)
    return needs_system


def sync_agent_needs(tracker: NeedsTracker, agent: AgentRecord) -> None:
    """Copy REST and SOCIAL onto the record for idle-task selection."""
    rest = tracker.get_need(agent.id, NeedType.REST)
    social = tracker.get_need(agent.id, NeedType.SOCIAL)
    if rest is not None:
        agent.rest_need = rest.value
    if social is not None:
        agent.social_need = social.value


def make_task_system(
    task_manager: IdleTaskManager,
    tracker: NeedsTracker,
    on_complete: Callable[[Village, TickContext, CompletedTask], None] | None = None,
) -> System:
    def task_system(village: Village, ctx: TickContext) -> None:
        for done in task_manager.update_tasks(ctx.dt):
            rewards = done.task.rewards
            if rewards.rest_need:
                tracker.satisfy_need(done.agent_id, NeedType.REST, rewards.rest_need)
            if rewards.social_need:
                tracker.satisfy_need(done.agent_id, NeedType.SOCIAL, rewards.social_need)
            if rewards.fatigue:
                # Shedding fatigue restores REST by the same amount.
                tracker.satisfy_need(done.agent_id, NeedType.REST, abs(rewards.fatigue))
            agent = village.roster.get(done.agent_id)
            if agent is not None:
                agent.happiness = max(0.0, min(100.0, agent.happiness + rewards.happiness))
                sync_agent_needs(tracker, agent)
            if on_complete:
                on_complete(village, ctx, done)
    return task_system


def make_decision_system(
    engine: DecisionEngine,
    roster: AgentRoster,
    work_offer: Callable[[AgentRecord], bool] | None = None,
    on_decision: Callable[[Village, TickContext, AgentRecord, Decision], None] | None = None,
) -> System:
    def decision_system(village: Village, ctx: TickContext) -> None:
        decisions = village.decisions
        decisions.clear()
        for agent in roster:
            if not agent.alive:
                continue
            offer = work_offer(agent) if work_offer else False
            decision = engine.decide_action(agent, DecisionContext(has_work_offer=offer))
            if decision is None:
                continue
            decisions[agent.id] = decision
            if on_decision:
                on_decision(village, ctx, agent, decision)
    return decision_system


def make_apply_system(
    engine: DecisionEngine,
    roster: AgentRoster,
    task_manager: IdleTaskManager,
    work: WorkAssignment,
    on_apply: Callable[[Village, TickContext, AgentId, str], None] | None = None,
) -> System:
    """Carry out the tick's decisions.

    ``on_apply`` receives one of ``interrupted``, ``task_started``,
    ``assigned`` or ``unassigned`` for every change made to an agent.
    """
    def report(village: Village, ctx: TickContext, agent_id: AgentId, what: str) -> None:
        if on_apply:
            on_apply(village, ctx, agent_id, what)

    def apply_system(village: Village, ctx: TickContext) -> None:
        wants_work: set[AgentId] = set()
        for agent_id, decision in list(village.decisions.items()):
            agent = roster.get(agent_id)
            if agent is None:
                continue
            if engine.should_interrupt(decision, agent):
                if agent.is_working:
                    work.unassign_npc(agent_id)
                    report(village, ctx, agent_id, "unassigned")
                if task_manager.cancel_task(agent_id):
                    report(village, ctx, agent_id, "interrupted")

            if decision.type is DecisionType.WORK:
                wants_work.add(agent_id)
                continue
            task_type = _IDLE_ACTIONS.get(decision.action)
            if task_type is None or agent.is_working:
                continue
            if decision.type in (DecisionType.IDLE_TASK, DecisionType.SATISFY_NEED,
                                 DecisionType.EMERGENCY):
                current = task_manager.get_current_task(agent_id)
                if current is not None and current.type is not task_type:
                    task_manager.cancel_task(agent_id)
                    report(village, ctx, agent_id, "interrupted")
                    current = None
                if current is None and task_manager.assign_task(agent, task_type):
                    report(village, ctx, agent_id, "task_started")

        if not wants_work:
            return
        before = roster.working_ids()
        if not work.auto_assign(only=wants_work):
            return
        for agent in roster:
            if agent.is_working and agent.id not in before:
                task_manager.cancel_task(agent.id)
                report(village, ctx, agent.id, "assigned")
    return apply_system
