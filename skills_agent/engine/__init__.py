"""Observability engine: models, state machines, and the state store."""
from .models import (
    LogEntry,
    LogType,
    RunStatus,
    StoreSnapshot,
    SubagentInfo,
    SubagentStatus,
    TodoItem,
    TodoStatus,
    ToolCall,
    ToolCallStatus,
)
from .config import DashboardConfig
from .errors import (
    DuplicateIdError,
    InvalidTransitionError,
    NotFoundError,
    SkillFileError,
    StoreError,
    SubscriberError,
)
from .store import AgentObservabilityStore

__all__ = [
    "AgentObservabilityStore",
    "DashboardConfig",
    # Models
    "LogEntry",
    "LogType",
    "RunStatus",
    "StoreSnapshot",
    "SubagentInfo",
    "SubagentStatus",
    "TodoItem",
    "TodoStatus",
    "ToolCall",
    "ToolCallStatus",
    # Errors
    "DuplicateIdError",
    "InvalidTransitionError",
    "NotFoundError",
    "SkillFileError",
    "StoreError",
    "SubscriberError",
]
