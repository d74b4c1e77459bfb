"""Exception hierarchy for the observability store.

Every caller-facing error names the operation and the offending id so
the producer can decide whether to retry, ignore, or abort.
"""
from __future__ import annotations

from collections.abc import Callable


class StoreError(Exception):
    """Base exception for all store mutation errors."""
    def __init__(self, operation: str, entity_id: str, message: str):
        self.operation = operation
        self.entity_id = entity_id
        super().__init__(f"{operation}({entity_id!r}): {message}")


class DuplicateIdError(StoreError):
    """Tried to create an entity whose id already exists."""
    def __init__(self, operation: str, entity_id: str):
        super().__init__(operation, entity_id, "id already exists")


class NotFoundError(StoreError):
    """Tried to update an entity that does not exist."""
    def __init__(self, operation: str, entity_id: str):
        super().__init__(operation, entity_id, "no such id")


class InvalidTransitionError(StoreError):
    """Status change along an edge missing from the state machine."""
    def __init__(
        self,
        operation: str,
        entity_id: str,
        current: str,
        target: str,
        allowed: list[str],
    ):
        self.current = current
        self.target = target
        allowed_str = ", ".join(allowed) or "none (terminal)"
        super().__init__(
            operation,
            entity_id,
            f"invalid transition {current} -> {target}. "
            f"Allowed from {current}: {allowed_str}",
        )


class SubscriberError(Exception):
    """A subscriber callback raised during notification.

    Built and logged by the store; never propagated to the mutator's caller.
    """
    def __init__(self, callback: Callable[[], None], cause: BaseException):
        self.callback = callback
        self.cause = cause
        name = getattr(callback, "__qualname__", repr(callback))
        super().__init__(
            f"Subscriber {name} raised {type(cause).__name__}: {cause}"
        )


class SkillFileError(Exception):
    """Invalid skill metadata or a failed skill-file write."""
