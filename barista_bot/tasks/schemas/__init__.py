"""
Order Flow Schemas.

This package contains the value objects describing where a conversation is
in the order flow.
"""

from .steps import (
    MODIFIER_PREFIX,
    StepKind,
    Step,
    WELCOME,
    AWAITING_READY,
    BRANCH,
    BEVERAGE,
    SIZE,
    FOOD,
    REVIEW,
    CONFIRM,
    PAYMENT,
    DONE,
)

__all__ = [
    "MODIFIER_PREFIX",
    "StepKind",
    "Step",
    "WELCOME",
    "AWAITING_READY",
    "BRANCH",
    "BEVERAGE",
    "SIZE",
    "FOOD",
    "REVIEW",
    "CONFIRM",
    "PAYMENT",
    "DONE",
]
