"""
Error taxonomy for the ordering engine.

Expected conditions (nothing matched, a field is missing, a size is outside
the catalog) are reported as data using ErrorKind. Exceptions are reserved
for broken invariants and for the concurrency guard of the session store.
"""

from enum import Enum


class ErrorKind(str, Enum):
    """Machine-readable reason attached to match results and validation issues."""
    ENTITY_NOT_FOUND = "entity_not_found"
    INVALID_SIZE = "invalid_size"
    INVALID_MODIFIER_SELECTION = "invalid_modifier_selection"
    INCOMPLETE_ORDER = "incomplete_order"
    INVALID_BRANCH = "invalid_branch"
    INVALID_PAYMENT = "invalid_payment"
    UNAVAILABLE = "unavailable"
    STALE_SESSION_WRITE = "stale_session_write"


class OrderBotError(Exception):
    """Base class for all errors raised by the ordering engine."""


class InvalidOrderState(OrderBotError):
    """The order references something the catalog does not declare."""


class OrderFinalizedError(OrderBotError):
    """A field of an order was assigned after its order number was set."""


class StaleSessionWrite(OrderBotError):
    """A session write raced with a newer write for the same key."""

    def __init__(self, key: str, expected: int | None, actual: int | None):
        self.key = key
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Stale write for session '{key}': expected version {expected}, stored version {actual}"
        )


class SessionNotFound(OrderBotError):
    """No session exists for the given key."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"Session not found: {key}")
