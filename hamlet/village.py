"""Village - wires the behavior components together and runs the tick loop."""
from __future__ import annotations

import logging
import os
import random
from typing import Any, Mapping

from hamlet.clock import Clock
from hamlet.config import DecisionThresholds, IdleTaskConfig, NeedsConfig
from hamlet.decision import Decision, DecisionEngine
from hamlet.events import EventLog
from hamlet.idle import CompletedTask, IdleTaskManager
from hamlet.needs import NeedsTracker
from hamlet.roster import AgentRoster
from hamlet.spatial import GridSpatialIndex
from hamlet.systems import (
    System,
    make_apply_system,
    make_decision_system,
    make_needs_system,
    make_task_system,
    sync_agent_needs,
)
from hamlet.types import (
    AgentId,
    AgentRecord,
    BuildingRecord,
    BuildingState,
    TickContext,
)
from hamlet.work import BuildingRegistry, WorkAssignment

logger = logging.getLogger(__name__)


class Village:
    """Needs, then tasks, then decisions, then their application, every tick."""

    def __init__(
        self,
        tps: int = 10,
        seed: int | None = None,
        needs_config: NeedsConfig | None = None,
        thresholds: DecisionThresholds | None = None,
        task_config: IdleTaskConfig | None = None,
    ) -> None:
        self._clock = Clock(tps)
        if seed is None:
            seed = int.from_bytes(os.urandom(8), "big")
        self._seed = seed
        self._rng = random.Random(seed)
        self._event_log = EventLog()
        self._decisions: dict[AgentId, Decision] = {}

        self.roster = AgentRoster()
        self.buildings = BuildingRegistry()
        self.needs = NeedsTracker(needs_config)
        self.tasks = IdleTaskManager(
            GridSpatialIndex(self.roster, self.buildings), task_config, self._rng,
        )
        self.engine = DecisionEngine(
            self.needs, self.tasks, thresholds, self._rng,
            clock=lambda: self._clock.elapsed,
        )
        self.work = WorkAssignment(self.roster, self.buildings)

        self._systems: list[System] = [
            make_needs_system(self.needs, self.roster, self.tasks),
            make_task_system(self.tasks, self.needs, on_complete=self._task_completed),
            make_decision_system(
                self.engine, self.roster,
                work_offer=self._has_work_for,
                on_decision=self._decided,
            ),
            make_apply_system(
                self.engine, self.roster, self.tasks, self.work,
                on_apply=self._applied,
            ),
        ]

    @property
    def clock(self) -> Clock:
        return self._clock

    @property
    def seed(self) -> int:
        return self._seed

    @property
    def event_log(self) -> EventLog:
        return self._event_log

    @property
    def decisions(self) -> dict[AgentId, Decision]:
        """Latest decision per agent, rebuilt every tick."""
        return self._decisions

    def add_system(self, system: System) -> None:
        """Append a system that runs after the built-in phases."""
        self._systems.append(system)

    # --- Agents and buildings ---

    def add_npc(
        self,
        agent: AgentRecord | Mapping[str, Any],
        initial_needs: Mapping[Any, float] | None = None,
    ) -> AgentRecord | None:
        """Register an agent everywhere. None if the id is already present.

        An ``assigned_building`` on the record is honoured through the work
        assignment rules; if they reject it the agent starts idle.
        """
        if not isinstance(agent, AgentRecord):
            agent = AgentRecord.from_mapping(agent)
        requested = agent.assigned_building
        if not self.roster.add(agent):
            return None
        self.needs.register_npc(agent.id, initial_needs)
        sync_agent_needs(self.needs, agent)
        if requested is not None:
            result = self.work.assign_npc_to_building(agent.id, requested)
            if result.success:
                self._event_log.emit(self._clock.tick_number, "assigned", agent.id,
                                     building_id=requested)
            else:
                logger.debug("%s starts idle: %s rejected (%s)",
                             agent.id, requested, result.error.value)
        return agent

    def remove_npc(self, agent_id: AgentId) -> bool:
        if not self.roster.has(agent_id):
            return False
        self.tasks.remove_npc(agent_id)
        self.work.remove_npc(agent_id)
        self.needs.unregister_npc(agent_id)
        self.roster.remove(agent_id)
        self._decisions.pop(agent_id, None)
        self._event_log.emit(self._clock.tick_number, "npc_removed", agent_id)
        return True

    def add_building(
        self, building: BuildingRecord | Mapping[str, Any],
    ) -> BuildingRecord | None:
        """Register a building. None if the id is already present."""
        if not isinstance(building, BuildingRecord):
            building = BuildingRecord(**building)
        if not self.buildings.add(building):
            return None
        return building

    def destroy_building(self, building_id: str) -> int:
        """Mark a building destroyed and return its workers to the idle pool."""
        if not self.buildings.has(building_id):
            return 0
        workers = self.work.get_workers_for_building(building_id)
        self.buildings.set_state(building_id, BuildingState.DESTROYED)
        released = self.work.clear_building_assignments(building_id)
        tick = self._clock.tick_number
        for agent_id in workers:
            self._event_log.emit(tick, "unassigned", agent_id, building_id=building_id)
        return released

    # --- Loop ---

    def _tick(self) -> None:
        self._clock.advance()
        ctx = self._clock.context(self._rng)
        for system in self._systems:
            system(self, ctx)

    def step(self) -> None:
        self._tick()

    def run(self, n: int) -> None:
        logger.info("village run start: %d agents, %d buildings, tick %d",
                    len(self.roster), len(self.buildings), self._clock.tick_number)
        for _ in range(n):
            self._tick()
        logger.info("village run stop: tick %d", self._clock.tick_number)

    # --- Hooks ---

    def _has_work_for(self, agent: AgentRecord) -> bool:
        if agent.is_working:
            return False
        return bool(self.work.get_buildings_with_available_slots())

    def _decided(
        self, village: Village, ctx: TickContext, agent: AgentRecord, decision: Decision,
    ) -> None:
        self._event_log.emit(
            ctx.tick_number, "decision", agent.id,
            decision_type=decision.type.value, action=decision.action,
        )

    def _task_completed(
        self, village: Village, ctx: TickContext, done: CompletedTask,
    ) -> None:
        self._event_log.emit(
            ctx.tick_number, "task_completed", done.agent_id,
            task_type=done.task.type.value,
            task_id=done.task.id,
        )

    def _applied(
        self, village: Village, ctx: TickContext, agent_id: AgentId, what: str,
    ) -> None:
        data: dict[str, Any] = {}
        if what == "assigned":
            data["building_id"] = self.work.get_assignment(agent_id)
        elif what == "task_started":
            task = self.tasks.get_current_task(agent_id)
            if task is not None:
                data["task_id"] = task.id
        self._event_log.emit(ctx.tick_number, what, agent_id, **data)
