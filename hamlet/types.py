"""Shared enums, records, and errors for the village behavior engine."""
from __future__ import annotations

import random as _random
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Any, Hashable, Mapping

AgentId = Hashable


class ConfigurationError(ValueError):
    """Raised when a component is constructed without a required collaborator."""


class NeedType(Enum):
    FOOD = "FOOD"
    REST = "REST"
    SOCIAL = "SOCIAL"
    SHELTER = "SHELTER"

    @classmethod
    def coerce(cls, key: Any) -> NeedType | None:
        """Accept a NeedType or a case-insensitive name; None if unknown."""
        if isinstance(key, NeedType):
            return key
        if isinstance(key, str):
            try:
                return cls(key.upper())
            except ValueError:
                return None
        return None


class Priority(IntEnum):
    """Closed, ordered set of decision and task priorities."""

    LOW = 10
    MEDIUM = 25
    HIGH = 50
    CRITICAL = 75
    EMERGENCY = 100


class DecisionType(Enum):
    EMERGENCY = "EMERGENCY"
    SATISFY_NEED = "SATISFY_NEED"
    WORK = "WORK"
    IDLE_TASK = "IDLE_TASK"
    CONTINUE = "CONTINUE"


class IdleTaskType(Enum):
    WANDER = "WANDER"
    SOCIALIZE = "SOCIALIZE"
    REST = "REST"
    INSPECT = "INSPECT"


class BuildingState(Enum):
    BLUEPRINT = "BLUEPRINT"
    BUILDING = "BUILDING"
    COMPLETE = "COMPLETE"
    DAMAGED = "DAMAGED"
    DESTROYED = "DESTROYED"


@dataclass(frozen=True)
class Position:
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    def distance_to(self, other: Position) -> float:
        dx = self.x - other.x
        dy = self.y - other.y
        dz = self.z - other.z
        return (dx * dx + dy * dy + dz * dz) ** 0.5

    @classmethod
    def coerce(cls, value: Any) -> Position:
        if isinstance(value, Position):
            return value
        if value is None:
            return cls()
        if isinstance(value, Mapping):
            return cls(
                float(value.get("x", 0.0)),
                float(value.get("y", 0.0)),
                float(value.get("z", 0.0)),
            )
        x, y, *rest = value
        return cls(float(x), float(y), float(rest[0]) if rest else 0.0)


# camelCase keys handed in by collaborators -> record field names.
_AGENT_ALIASES = {
    "isWorking": "is_working",
    "assignedBuilding": "assigned_building",
    "socialNeed": "social_need",
    "restNeed": "rest_need",
}


@dataclass
class AgentRecord:
    """An agent as seen by the behavior engine.

    Owned by the agent-management collaborator; the engine reads the flags
    and the work-assignment system updates ``is_working`` and
    ``assigned_building``.
    """

    id: AgentId
    position: Position = field(default_factory=Position)
    is_working: bool = False
    assigned_building: str | None = None
    health: float = 100.0
    alive: bool = True
    fatigued: bool = False
    social_need: float | None = None
    rest_need: float | None = None
    happiness: float = 50.0

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> AgentRecord:
        """Build a record from a loosely-shaped dict, validating the id."""
        fields: dict[str, Any] = {}
        for key, value in data.items():
            name = _AGENT_ALIASES.get(key, key)
            if name in cls.__dataclass_fields__:
                fields[name] = value
        agent_id = fields.get("id")
        if agent_id is None or agent_id == "":
            raise ValueError("AgentRecord requires a non-empty id")
        fields["position"] = Position.coerce(fields.get("position"))
        if fields.get("health") is None:
            fields.pop("health", None)
        return cls(**fields)


@dataclass
class BuildingRecord:
    """A workplace as seen by the assignment system."""

    id: str
    type: str
    state: BuildingState = BuildingState.COMPLETE
    position: Position = field(default_factory=Position)
    properties: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("BuildingRecord id must be non-empty")
        if isinstance(self.state, str):
            self.state = BuildingState(self.state)
        self.position = Position.coerce(self.position)

    @property
    def capacity(self) -> int:
        explicit = self.properties.get("npc_capacity")
        if explicit is None:
            explicit = self.properties.get("npcCapacity")
        if explicit is not None:
            return max(0, int(explicit))
        return DEFAULT_CAPACITY.get(self.type, 0)


# Work slots per building type when a record carries no explicit capacity.
DEFAULT_CAPACITY: dict[str, int] = {
    "FARM": 1,
    "MINE": 2,
    "LUMBER_MILL": 2,
    "CRAFTING_STATION": 1,
    "MARKETPLACE": 1,
}


@dataclass(frozen=True)
class TickContext:
    tick_number: int
    dt: float  # milliseconds
    elapsed: float  # milliseconds
    random: _random.Random
