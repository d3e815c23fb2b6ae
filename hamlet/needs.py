"""Per-agent needs: decay, recovery, happiness impact, and critical alerts."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterator, Mapping

from hamlet.config import NeedsConfig
from hamlet.types import AgentId, NeedType

logger = logging.getLogger(__name__)

_MS_PER_MINUTE = 60_000.0

# Registration order; also the tie-break order for lowest-need queries.
NEED_ORDER = (NeedType.FOOD, NeedType.REST, NeedType.SOCIAL, NeedType.SHELTER)


class NeedLevel(Enum):
    CRITICAL = "CRITICAL"
    LOW = "LOW"
    MODERATE = "MODERATE"
    HIGH = "HIGH"
    EXCELLENT = "EXCELLENT"


# Happiness delta per hour for a need sitting at each level.
_HAPPINESS_BY_LEVEL = {
    NeedLevel.CRITICAL: -10.0,
    NeedLevel.LOW: -3.0,
    NeedLevel.MODERATE: 0.0,
    NeedLevel.HIGH: 5.0,
    NeedLevel.EXCELLENT: 5.0,
}

_ALL_SATISFIED_BONUS = 5.0


def _clamp(value: float) -> float:
    return max(0.0, min(100.0, float(value)))


_STATE_ALIASES = {
    "isWorking": "is_working",
    "isResting": "is_resting",
    "isSocializing": "is_socializing",
    "isInsideTerritory": "is_inside_territory",
}


@dataclass(frozen=True)
class NeedState:
    """Per-tick activity flags supplied by the caller."""

    is_working: bool = False
    is_resting: bool = False
    is_socializing: bool = False
    is_inside_territory: bool = True

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> NeedState:
        kwargs = {}
        for key, value in data.items():
            name = _STATE_ALIASES.get(key, key)
            if name in cls.__dataclass_fields__:
                kwargs[name] = bool(value)
        return cls(**kwargs)


@dataclass(frozen=True)
class NeedSnapshot:
    type: NeedType
    value: float
    level: NeedLevel
    is_critical: bool
    is_satisfied: bool


@dataclass(frozen=True)
class LowestNeed:
    type: NeedType
    value: float


@dataclass(frozen=True)
class NeedsSummary:
    agent_id: AgentId
    needs: dict[NeedType, NeedSnapshot]
    critical_needs: list[NeedType]
    lowest_need: LowestNeed | None
    happiness_impact: float
    all_satisfied: bool


@dataclass
class Need:
    """One depletable/refillable scalar in [0, 100]."""

    type: NeedType
    value: float = 100.0
    config: NeedsConfig = field(default_factory=NeedsConfig, repr=False)

    def __post_init__(self) -> None:
        self.value = _clamp(self.value)

    def rate_per_minute(self, state: NeedState) -> float:
        """Signed change per minute for the given activity flags."""
        cfg = self.config
        if self.type is NeedType.FOOD:
            return -(cfg.food_decay_working if state.is_working else cfg.food_decay)
        if self.type is NeedType.REST:
            if state.is_resting:
                return cfg.rest_recovery
            return -(cfg.rest_decay_working if state.is_working else cfg.rest_decay)
        if self.type is NeedType.SOCIAL:
            if state.is_socializing:
                return cfg.social_recovery
            return -cfg.social_decay
        if self.type is NeedType.SHELTER:
            return 0.0 if state.is_inside_territory else -cfg.shelter_decay
        return 0.0

    def update(self, delta_ms: float, state: NeedState) -> None:
        if delta_ms <= 0:
            return
        self.value = _clamp(self.value + self.rate_per_minute(state) * delta_ms / _MS_PER_MINUTE)

    def satisfy(self, amount: float) -> None:
        self.value = _clamp(self.value + amount)

    def reset(self, value: float) -> None:
        self.value = _clamp(value)

    def is_critical(self) -> bool:
        return self.value < self.config.critical_threshold

    def is_satisfied(self) -> bool:
        return self.value >= self.config.satisfied_threshold

    def level(self) -> NeedLevel:
        if self.is_critical():
            return NeedLevel.CRITICAL
        if self.value < 40:
            return NeedLevel.LOW
        if not self.is_satisfied():
            return NeedLevel.MODERATE
        if self.value < 80:
            return NeedLevel.HIGH
        return NeedLevel.EXCELLENT

    def happiness_impact(self) -> float:
        """Happiness change per hour contributed by this need."""
        return _HAPPINESS_BY_LEVEL[self.level()]

    def summary(self) -> NeedSnapshot:
        return NeedSnapshot(
            type=self.type,
            value=self.value,
            level=self.level(),
            is_critical=self.is_critical(),
            is_satisfied=self.is_satisfied(),
        )


def _lookup(values: Mapping[Any, float], need_type: NeedType) -> float | None:
    """Find a value keyed by NeedType, its name, or its lowercase name."""
    for key in (need_type, need_type.value, need_type.value.lower()):
        if key in values and values[key] is not None:
            return values[key]
    return None


class NeedsTracker:
    """Owns the four needs of every registered agent."""

    def __init__(self, config: NeedsConfig | None = None) -> None:
        self._config = config if config is not None else NeedsConfig()
        self._needs: dict[AgentId, dict[NeedType, Need]] = {}
        self._critical: dict[AgentId, list[NeedType]] = {}
        self._stats = self._empty_stats()

    @property
    def config(self) -> NeedsConfig:
        return self._config

    # --- Registration ---

    def register_npc(
        self, agent_id: AgentId, initial_values: Mapping[Any, float] | None = None,
    ) -> bool:
        """Create the four needs for an agent. False if already registered."""
        if agent_id is None or agent_id == "" or agent_id in self._needs:
            return False
        values = initial_values or {}
        cfg = self._config
        defaults = {
            NeedType.FOOD: cfg.default_food,
            NeedType.REST: cfg.default_rest,
            NeedType.SOCIAL: cfg.default_social,
            NeedType.SHELTER: cfg.default_shelter,
        }
        needs: dict[NeedType, Need] = {}
        for need_type in NEED_ORDER:
            value = _lookup(values, need_type)
            needs[need_type] = Need(
                need_type,
                defaults[need_type] if value is None else value,
                cfg,
            )
        self._needs[agent_id] = needs
        self._stats["total_npcs_registered"] += 1
        logger.debug("registered needs for %s", agent_id)
        return True

    def unregister_npc(self, agent_id: AgentId) -> bool:
        if agent_id not in self._needs:
            return False
        del self._needs[agent_id]
        self._critical.pop(agent_id, None)
        return True

    # --- Updates ---

    def update_all_needs(
        self,
        delta_ms: float,
        states: Mapping[AgentId, NeedState | Mapping[str, Any]] | None = None,
    ) -> None:
        """Advance every need of every agent, then refresh critical alerts."""
        states = states or {}
        for agent_id, needs in self._needs.items():
            raw = states.get(agent_id)
            if raw is None:
                state = NeedState()
            elif isinstance(raw, NeedState):
                state = raw
            else:
                state = NeedState.from_mapping(raw)
            self._update_agent(agent_id, needs, delta_ms, state)
        self._stats["total_needs_updated"] += len(self._needs) * len(NEED_ORDER)

    def _update_agent(
        self, agent_id: AgentId, needs: dict[NeedType, Need],
        delta_ms: float, state: NeedState,
    ) -> None:
        critical: list[NeedType] = []
        distribution = self._stats["need_distribution"]
        for need_type, need in needs.items():
            need.update(delta_ms, state)
            if need.is_critical():
                critical.append(need_type)
                self._stats["total_critical_events"] += 1
            by_level = distribution.setdefault(need_type.value, {})
            level = need.level().value
            by_level[level] = by_level.get(level, 0) + 1
        if critical:
            if agent_id not in self._critical:
                logger.debug("%s has critical needs: %s", agent_id,
                             [n.value for n in critical])
            self._critical[agent_id] = critical
        else:
            self._critical.pop(agent_id, None)

    def satisfy_need(self, agent_id: AgentId, need_type: Any, amount: float) -> bool:
        need = self.get_need(agent_id, need_type)
        if need is None:
            return False
        need.satisfy(amount)
        return True

    # --- Queries ---

    def get_needs(self, agent_id: AgentId) -> dict[NeedType, Need] | None:
        return self._needs.get(agent_id)

    def get_need(self, agent_id: AgentId, need_type: Any) -> Need | None:
        needs = self._needs.get(agent_id)
        key = NeedType.coerce(need_type)
        if needs is None or key is None:
            return None
        return needs.get(key)

    def get_lowest_need(self, agent_id: AgentId) -> LowestNeed | None:
        """Strictly lowest need below 100, earliest type winning ties."""
        needs = self._needs.get(agent_id)
        if needs is None:
            return None
        lowest: LowestNeed | None = None
        lowest_value = 100.0
        for need_type, need in needs.items():
            if need.value < lowest_value:
                lowest_value = need.value
                lowest = LowestNeed(need_type, need.value)
        return lowest

    def get_critical_needs(self, agent_id: AgentId) -> list[NeedType]:
        return list(self._critical.get(agent_id, ()))

    def has_critical_needs(self, agent_id: AgentId) -> bool:
        return agent_id in self._critical

    def get_all_critical_npcs(self) -> list[AgentId]:
        return list(self._critical)

    def calculate_happiness_impact(self, agent_id: AgentId) -> float:
        """Happiness change per hour from all needs, plus the all-satisfied bonus."""
        needs = self._needs.get(agent_id)
        if needs is None:
            return 0.0
        total = sum(need.happiness_impact() for need in needs.values())
        if len(needs) == len(NEED_ORDER) and all(n.is_satisfied() for n in needs.values()):
            total += _ALL_SATISFIED_BONUS
        return total

    def get_needs_summary(self, agent_id: AgentId) -> NeedsSummary | None:
        needs = self._needs.get(agent_id)
        if needs is None:
            return None
        snapshots = {need_type: need.summary() for need_type, need in needs.items()}
        return NeedsSummary(
            agent_id=agent_id,
            needs=snapshots,
            critical_needs=self.get_critical_needs(agent_id),
            lowest_need=self.get_lowest_need(agent_id),
            happiness_impact=self.calculate_happiness_impact(agent_id),
            all_satisfied=all(s.is_satisfied for s in snapshots.values()),
        )

    # --- Statistics ---

    def get_statistics(self) -> dict[str, Any]:
        return {
            "total_npcs_tracked": len(self._needs),
            "total_needs_updated": self._stats["total_needs_updated"],
            "total_critical_events": self._stats["total_critical_events"],
            "npcs_with_critical_needs": len(self._critical),
            "need_distribution": {
                k: dict(v) for k, v in self._stats["need_distribution"].items()
            },
        }

    def reset_statistics(self) -> None:
        self._stats = self._empty_stats()

    @staticmethod
    def _empty_stats() -> dict[str, Any]:
        return {
            "total_npcs_registered": 0,
            "total_needs_updated": 0,
            "total_critical_events": 0,
            "need_distribution": {},
        }

    # --- Reset ---

    def reset_npc_needs(
        self, agent_id: AgentId, values: Mapping[Any, float] | None = None,
    ) -> bool:
        """Set every need to the given value (missing types use reset_value)."""
        needs = self._needs.get(agent_id)
        if needs is None:
            return False
        values = values or {}
        for need_type, need in needs.items():
            value = _lookup(values, need_type)
            need.reset(self._config.reset_value if value is None else value)
        self._critical.pop(agent_id, None)
        return True

    def clear_all(self) -> None:
        self._needs.clear()
        self._critical.clear()

    def __len__(self) -> int:
        return len(self._needs)

    def __contains__(self, agent_id: object) -> bool:
        return agent_id in self._needs

    def __iter__(self) -> Iterator[AgentId]:
        return iter(list(self._needs))
