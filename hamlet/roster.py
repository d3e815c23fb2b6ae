"""AgentRoster - agent records split into an idle FIFO pool and a working pool."""
from __future__ import annotations

from typing import Any, Iterator, Mapping

from hamlet.types import AgentId, AgentRecord


class AgentRoster:
    def __init__(self) -> None:
        self._agents: dict[AgentId, AgentRecord] = {}
        # dict keeps insertion order, which is the idle queue's FIFO order.
        self._idle: dict[AgentId, None] = {}
        self._working: set[AgentId] = set()

    def add(self, agent: AgentRecord | Mapping[str, Any]) -> bool:
        """Add an agent to the back of the idle pool, clearing its work flags.

        Only ``mark_working`` moves an agent into the working pool.
        """
        if not isinstance(agent, AgentRecord):
            agent = AgentRecord.from_mapping(agent)
        if agent.id in self._agents:
            return False
        agent.is_working = False
        agent.assigned_building = None
        self._agents[agent.id] = agent
        self._idle[agent.id] = None
        return True

    def remove(self, agent_id: AgentId) -> bool:
        if agent_id not in self._agents:
            return False
        del self._agents[agent_id]
        self._idle.pop(agent_id, None)
        self._working.discard(agent_id)
        return True

    def get(self, agent_id: AgentId) -> AgentRecord | None:
        return self._agents.get(agent_id)

    def has(self, agent_id: AgentId) -> bool:
        return agent_id in self._agents

    def agents(self) -> list[AgentRecord]:
        return list(self._agents.values())

    def idle_ids(self) -> list[AgentId]:
        """Idle agents, longest-waiting first."""
        return list(self._idle)

    def working_ids(self) -> frozenset[AgentId]:
        return frozenset(self._working)

    def mark_working(self, agent_id: AgentId, building_id: str) -> None:
        agent = self._agents[agent_id]
        agent.is_working = True
        agent.assigned_building = building_id
        self._idle.pop(agent_id, None)
        self._working.add(agent_id)

    def mark_idle(self, agent_id: AgentId) -> None:
        """Clear the work flags and queue the agent at the back of the idle pool."""
        agent = self._agents[agent_id]
        agent.is_working = False
        agent.assigned_building = None
        self._working.discard(agent_id)
        self._idle.pop(agent_id, None)
        self._idle[agent_id] = None

    def __len__(self) -> int:
        return len(self._agents)

    def __contains__(self, agent_id: object) -> bool:
        return agent_id in self._agents

    def __iter__(self) -> Iterator[AgentRecord]:
        return iter(list(self._agents.values()))
