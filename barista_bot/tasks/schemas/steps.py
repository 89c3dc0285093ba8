"""
Order Step Definitions.

This module defines the StepKind enum and the Step value object that name
the next piece of information the conversation has to collect.
"""

from dataclasses import dataclass
from enum import Enum

MODIFIER_PREFIX = "modifier:"


class StepKind(str, Enum):
    """Closed set of steps, in the order the flow visits them."""
    WELCOME = "welcome"
    AWAITING_READY = "awaiting_ready"
    BRANCH = "branch"
    BEVERAGE = "beverage"
    SIZE = "size"
    MODIFIER = "modifier"  # One per unanswered required modifier group
    FOOD = "food"
    REVIEW = "review"
    CONFIRM = "confirm"
    PAYMENT = "payment"
    DONE = "done"


@dataclass(frozen=True)
class Step:
    """
    A step of the order flow.

    Only MODIFIER steps carry a group_id. str(step) gives the wire tag:
    "size", "modifier:tipo_leche", "done".
    """
    kind: StepKind
    group_id: str | None = None

    def __post_init__(self):
        if self.kind is StepKind.MODIFIER and not self.group_id:
            raise ValueError("Modifier steps need a group_id")
        if self.kind is not StepKind.MODIFIER and self.group_id is not None:
            raise ValueError(f"Step {self.kind.value} does not take a group_id")

    def __str__(self) -> str:
        if self.kind is StepKind.MODIFIER:
            return f"{MODIFIER_PREFIX}{self.group_id}"
        return self.kind.value

    @property
    def tag(self) -> str:
        return str(self)

    @classmethod
    def modifier(cls, group_id: str) -> "Step":
        return cls(StepKind.MODIFIER, group_id)

    @classmethod
    def parse(cls, tag: str) -> "Step":
        """Build a Step from its wire tag."""
        if tag.startswith(MODIFIER_PREFIX):
            return cls.modifier(tag[len(MODIFIER_PREFIX):])
        return cls(StepKind(tag))


WELCOME = Step(StepKind.WELCOME)
AWAITING_READY = Step(StepKind.AWAITING_READY)
BRANCH = Step(StepKind.BRANCH)
BEVERAGE = Step(StepKind.BEVERAGE)
SIZE = Step(StepKind.SIZE)
FOOD = Step(StepKind.FOOD)
REVIEW = Step(StepKind.REVIEW)
CONFIRM = Step(StepKind.CONFIRM)
PAYMENT = Step(StepKind.PAYMENT)
DONE = Step(StepKind.DONE)
