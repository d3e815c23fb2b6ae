"""hamlet - needs-driven behavior and work assignment for village NPCs."""
from __future__ import annotations

# Shared types
from hamlet.types import (
    AgentId, AgentRecord, BuildingRecord, BuildingState, ConfigurationError,
    DecisionType, IdleTaskType, NeedType, Position, Priority, TickContext,
)
from hamlet.config import DecisionThresholds, IdleTaskConfig, NeedsConfig

# Needs
from hamlet.needs import (
    LowestNeed, Need, NeedLevel, NeedSnapshot, NeedState, NeedsSummary, NeedsTracker,
)

# Decisions
from hamlet.decision import Decision, DecisionContext, DecisionEngine, need_action

# Idle tasks
from hamlet.tasks import IdleTask, TaskRewards, TaskSummary
from hamlet.history import TaskHistory, TaskHistoryEntry
from hamlet.idle import CompletedTask, IdleTaskManager
from hamlet.spatial import GridSpatialIndex, SpatialQueries

# Work
from hamlet.roster import AgentRoster
from hamlet.work import (
    AssignmentError, AssignmentResult, BuildingAssignmentInfo, BuildingRegistry,
    WorkAssignment,
)

# Loop
from hamlet.clock import Clock
from hamlet.events import EventLog, VillageEvent
from hamlet.systems import (
    make_apply_system, make_decision_system, make_needs_system, make_task_system,
)
from hamlet.village import Village

__all__ = [
    "AgentId", "AgentRecord", "BuildingRecord", "BuildingState", "ConfigurationError",
    "DecisionType", "IdleTaskType", "NeedType", "Position", "Priority", "TickContext",
    "DecisionThresholds", "IdleTaskConfig", "NeedsConfig",
    "LowestNeed", "Need", "NeedLevel", "NeedSnapshot", "NeedState", "NeedsSummary",
    "NeedsTracker",
    "Decision", "DecisionContext", "DecisionEngine", "need_action",
    "IdleTask", "TaskRewards", "TaskSummary",
    "TaskHistory", "TaskHistoryEntry",
    "CompletedTask", "IdleTaskManager",
    "GridSpatialIndex", "SpatialQueries",
    "AgentRoster",
    "AssignmentError", "AssignmentResult", "BuildingAssignmentInfo", "BuildingRegistry",
    "WorkAssignment",
    "Clock", "EventLog", "VillageEvent",
    "make_apply_system", "make_decision_system", "make_needs_system", "make_task_system",
    "Village",
]
