from __future__ import annotations

from collections import Counter, deque
from dataclasses import dataclass, field
from typing import Any

from hamlet.types import AgentId


@dataclass(frozen=True)
class VillageEvent:
    tick: int
    type: str
    agent_id: AgentId | None = None
    data: dict[str, Any] = field(default_factory=dict)


class EventLog:
    """Bounded record of what happened in the village, newest last."""

    def __init__(self, max_entries: int = 1000) -> None:
        if max_entries < 1:
            raise ValueError(f"max_entries must be >= 1, got {max_entries}")
        self._events: deque[VillageEvent] = deque(maxlen=max_entries)

    def emit(self, tick: int, type: str, agent_id: AgentId | None = None,
             **data: Any) -> VillageEvent:
        event = VillageEvent(tick, type, agent_id, data)
        self._events.append(event)
        return event

    def query(self, type: str | None = None, agent_id: AgentId | None = None,
              since: int | None = None) -> list[VillageEvent]:
        """Events matching every given filter; ``since`` is inclusive."""
        result = list(self._events)
        if type is not None:
            result = [e for e in result if e.type == type]
        if agent_id is not None:
            result = [e for e in result if e.agent_id == agent_id]
        if since is not None:
            result = [e for e in result if e.tick >= since]
        return result

    def last(self, type: str, agent_id: AgentId | None = None) -> VillageEvent | None:
        for e in reversed(self._events):
            if e.type == type and (agent_id is None or e.agent_id == agent_id):
                return e
        return None

    def counts(self) -> dict[str, int]:
        return dict(Counter(e.type for e in self._events))

    def clear(self) -> None:
        self._events.clear()

    def __len__(self) -> int:
        return len(self._events)
