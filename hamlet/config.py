"""Tuning dataclasses for needs, decisions, and idle tasks."""
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class NeedsConfig:
    """Immutable need tuning.

    Attributes:
        food_decay: FOOD lost per minute while idle.
        food_decay_working: FOOD lost per minute while working.
        rest_decay: REST lost per minute while idle.
        rest_decay_working: REST lost per minute while working.
        rest_recovery: REST gained per minute while resting.
        social_decay: SOCIAL lost per minute while not socializing.
        social_recovery: SOCIAL gained per minute while socializing.
        shelter_decay: SHELTER lost per minute outside the territory.
        critical_threshold: Values below this raise a critical alert.
        satisfied_threshold: Values at or above this count as satisfied.
    """

    food_decay: float = 0.5
    food_decay_working: float = 1.0
    rest_decay: float = 0.3
    rest_decay_working: float = 1.5
    rest_recovery: float = 5.0
    social_decay: float = 0.2
    social_recovery: float = 10.0
    shelter_decay: float = 1.0
    critical_threshold: float = 20.0
    satisfied_threshold: float = 60.0
    default_food: float = 100.0
    default_rest: float = 100.0
    default_social: float = 50.0
    default_shelter: float = 100.0
    reset_value: float = 50.0

    def __post_init__(self) -> None:
        for name in (
            "food_decay", "food_decay_working", "rest_decay",
            "rest_decay_working", "rest_recovery", "social_decay",
            "social_recovery", "shelter_decay",
        ):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be >= 0, got {getattr(self, name)}")
        if not 0 <= self.critical_threshold <= self.satisfied_threshold <= 100:
            raise ValueError(
                "thresholds must satisfy 0 <= critical <= satisfied <= 100"
            )


@dataclass(frozen=True)
class DecisionThresholds:
    """Need values (and health) that drive the decision engine."""

    emergency: float = 10.0
    critical: float = 20.0
    low: float = 30.0
    satisfied: float = 60.0
    work_refusal: float = 15.0
    health_emergency: float = 20.0
    idle_preference: float = 50.0  # rest/social below this steer idle choice
    wander_probability: float = 0.6

    def __post_init__(self) -> None:
        if not 0 <= self.emergency <= self.critical <= self.low <= 100:
            raise ValueError(
                "thresholds must satisfy 0 <= emergency <= critical <= low <= 100"
            )
        if not 0.0 <= self.wander_probability <= 1.0:
            raise ValueError(
                f"wander_probability must be in [0, 1], got {self.wander_probability}"
            )


@dataclass(frozen=True)
class IdleTaskConfig:
    """Idle task manager tuning. Distances are grid cells."""

    max_history_size: int = 1000
    social_distance: float = 10.0
    inspect_distance: float = 15.0
    wander_min: float = 5.0
    wander_max: float = 10.0
    wander_probability: float = 0.6
    fatigue_rest_need: float = 30.0
    lonely_social_need: float = 40.0

    def __post_init__(self) -> None:
        if self.max_history_size < 1:
            raise ValueError(
                f"max_history_size must be >= 1, got {self.max_history_size}"
            )
        if not 0 <= self.wander_min <= self.wander_max:
            raise ValueError("wander radius must satisfy 0 <= min <= max")
