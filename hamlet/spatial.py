"""Spatial query protocol used for idle-task targets, and a roster-backed index."""
from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

from hamlet.types import AgentRecord, BuildingRecord, Position

if TYPE_CHECKING:
    from hamlet.roster import AgentRoster
    from hamlet.work import BuildingRegistry


class SpatialQueries(Protocol):
    def find_nearby_agent(
        self, agent: AgentRecord, radius: float,
    ) -> AgentRecord | None: ...
    def find_nearest_building(
        self, position: Position, radius: float,
    ) -> BuildingRecord | None: ...


class GridSpatialIndex:
    """Linear-scan nearest queries over a roster and a building registry.

    An agent is sociable when it is alive and not working. Distance is
    Euclidean; a target must be strictly closer than the radius.
    """

    def __init__(
        self,
        roster: AgentRoster,
        buildings: BuildingRegistry | None = None,
    ) -> None:
        self._roster = roster
        self._buildings = buildings

    def find_nearby_agent(
        self, agent: AgentRecord, radius: float,
    ) -> AgentRecord | None:
        best: AgentRecord | None = None
        best_dist = radius
        for other in self._roster:
            if other.id == agent.id or not other.alive or other.is_working:
                continue
            dist = agent.position.distance_to(other.position)
            if dist < best_dist:
                best = other
                best_dist = dist
        return best

    def find_nearest_building(
        self, position: Position, radius: float,
    ) -> BuildingRecord | None:
        if self._buildings is None:
            return None
        best: BuildingRecord | None = None
        best_dist = radius
        for building in self._buildings.buildings():
            dist = position.distance_to(building.position)
            if dist < best_dist:
                best = building
                best_dist = dist
        return best
