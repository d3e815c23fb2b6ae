"""Capacity-constrained assignment of agents to workplaces."""
from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Any, Collection, Mapping

from hamlet.roster import AgentRoster
from hamlet.types import AgentId, BuildingRecord, BuildingState

logger = logging.getLogger(__name__)

# Lower sorts first in auto_assign; unknown types go last.
TYPE_PRIORITY: dict[str, int] = {
    "FARM": 0,
    "MINE": 1,
    "LUMBER_MILL": 2,
    "CRAFTING_STATION": 3,
    "MARKETPLACE": 4,
}
_OTHER_PRIORITY = len(TYPE_PRIORITY)


class AssignmentError(Enum):
    NPC_NOT_FOUND = "NPC_NOT_FOUND"
    BUILDING_NOT_FOUND = "BUILDING_NOT_FOUND"
    BUILDING_NOT_COMPLETE = "BUILDING_NOT_COMPLETE"
    NO_CAPACITY = "NO_CAPACITY"
    AT_CAPACITY = "AT_CAPACITY"


@dataclass(frozen=True)
class AssignmentResult:
    success: bool
    error: AssignmentError | None = None


_OK = AssignmentResult(success=True)


@dataclass(frozen=True)
class BuildingAssignmentInfo:
    building_id: str
    building_type: str
    capacity: int
    current: int
    workers: list[AgentId]

    @property
    def available(self) -> int:
        return max(0, self.capacity - self.current)


class BuildingRegistry:
    """Building records the assignment system validates against."""

    def __init__(self) -> None:
        self._buildings: dict[str, BuildingRecord] = {}

    def add(self, building: BuildingRecord | Mapping[str, Any]) -> bool:
        """Register a building. False if the id is already registered."""
        if not isinstance(building, BuildingRecord):
            building = BuildingRecord(**building)
        if building.id in self._buildings:
            return False
        self._buildings[building.id] = building
        return True

    def remove(self, building_id: str) -> bool:
        return self._buildings.pop(building_id, None) is not None

    def get(self, building_id: str) -> BuildingRecord | None:
        return self._buildings.get(building_id)

    def has(self, building_id: str) -> bool:
        return building_id in self._buildings

    def buildings(self) -> list[BuildingRecord]:
        return list(self._buildings.values())

    def set_state(self, building_id: str, state: BuildingState) -> None:
        """Raises KeyError if the building is not registered."""
        self._buildings[building_id].state = state

    def __len__(self) -> int:
        return len(self._buildings)


class WorkAssignment:
    """Maps agents to buildings without ever exceeding a building's capacity."""

    def __init__(self, roster: AgentRoster, buildings: BuildingRegistry) -> None:
        self._roster = roster
        self._buildings = buildings
        self._workers: dict[str, list[AgentId]] = {}
        self._assignment: dict[AgentId, str] = {}

    # --- Mutation ---

    def assign_npc_to_building(
        self, agent_id: AgentId, building_id: str,
    ) -> AssignmentResult:
        """Validate, then assign. Nothing changes when validation fails."""
        if not self._roster.has(agent_id):
            return AssignmentResult(False, AssignmentError.NPC_NOT_FOUND)
        building = self._buildings.get(building_id)
        if building is None:
            return AssignmentResult(False, AssignmentError.BUILDING_NOT_FOUND)
        if building.state is not BuildingState.COMPLETE:
            return AssignmentResult(False, AssignmentError.BUILDING_NOT_COMPLETE)
        capacity = building.capacity
        if capacity <= 0:
            return AssignmentResult(False, AssignmentError.NO_CAPACITY)
        if self._assignment.get(agent_id) == building_id:
            return _OK
        if len(self._workers.get(building_id, ())) >= capacity:
            return AssignmentResult(False, AssignmentError.AT_CAPACITY)

        if agent_id in self._assignment:
            self._release(agent_id)
        self._workers.setdefault(building_id, []).append(agent_id)
        self._assignment[agent_id] = building_id
        self._roster.mark_working(agent_id, building_id)
        logger.debug("assigned %s to %s", agent_id, building_id)
        return _OK

    def unassign_npc(self, agent_id: AgentId) -> bool:
        if agent_id not in self._assignment:
            return False
        self._release(agent_id)
        if self._roster.has(agent_id):
            self._roster.mark_idle(agent_id)
        logger.debug("unassigned %s", agent_id)
        return True

    def _release(self, agent_id: AgentId) -> None:
        building_id = self._assignment.pop(agent_id)
        workers = self._workers.get(building_id)
        if workers is not None:
            workers.remove(agent_id)
            if not workers:
                del self._workers[building_id]

    def auto_assign(self, only: Collection[AgentId] | None = None) -> int:
        """Fill buildings in type-priority order from the idle FIFO queue.

        ``only`` restricts the queue to the given agents, keeping FIFO order.
        """
        queue: deque[AgentId] = deque()
        for agent_id in self._roster.idle_ids():
            if only is not None and agent_id not in only:
                continue
            agent = self._roster.get(agent_id)
            if agent is not None and agent.alive:
                queue.append(agent_id)
        candidates = sorted(
            (b for b in self._buildings.buildings()
             if b.state is BuildingState.COMPLETE and b.capacity > 0),
            key=lambda b: TYPE_PRIORITY.get(b.type, _OTHER_PRIORITY),
        )
        assigned = 0
        for building in candidates:
            while queue and len(self._workers.get(building.id, ())) < building.capacity:
                agent_id = queue.popleft()
                if self.assign_npc_to_building(agent_id, building.id).success:
                    assigned += 1
            if not queue:
                break
        if assigned:
            logger.debug("auto-assigned %d agents", assigned)
        return assigned

    def clear_building_assignments(self, building_id: str) -> int:
        """Unassign every worker of a building. Returns how many were released."""
        workers = list(self._workers.get(building_id, ()))
        for agent_id in workers:
            self.unassign_npc(agent_id)
        if workers:
            logger.info("released %d workers from %s", len(workers), building_id)
        return len(workers)

    def remove_npc(self, agent_id: AgentId) -> bool:
        """Drop an agent's assignment without re-queueing it as idle."""
        if agent_id not in self._assignment:
            return False
        self._release(agent_id)
        return True

    # --- Queries ---

    def get_assignment(self, agent_id: AgentId) -> str | None:
        return self._assignment.get(agent_id)

    def get_workers_for_building(self, building_id: str) -> list[AgentId]:
        return list(self._workers.get(building_id, ()))

    def get_building_assignment_info(
        self, building_id: str,
    ) -> BuildingAssignmentInfo | None:
        building = self._buildings.get(building_id)
        if building is None:
            return None
        workers = self.get_workers_for_building(building_id)
        return BuildingAssignmentInfo(
            building_id=building_id,
            building_type=building.type,
            capacity=building.capacity,
            current=len(workers),
            workers=workers,
        )

    def get_buildings_with_available_slots(self) -> list[BuildingAssignmentInfo]:
        result = []
        for building in self._buildings.buildings():
            if building.state is not BuildingState.COMPLETE:
                continue
            info = self.get_building_assignment_info(building.id)
            if info is not None and info.available > 0:
                result.append(info)
        return result

    def get_statistics(self) -> dict[str, Any]:
        total_slots = sum(
            b.capacity for b in self._buildings.buildings()
            if b.state is BuildingState.COMPLETE
        )
        return {
            "total_assigned": len(self._assignment),
            "total_slots": total_slots,
            "buildings_staffed": sum(1 for w in self._workers.values() if w),
            "idle_npcs": len(self._roster.idle_ids()),
            "working_npcs": len(self._roster.working_ids()),
        }
