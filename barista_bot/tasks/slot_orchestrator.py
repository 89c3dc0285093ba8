"""
Slot Orchestrator for order capture.

Determines what information to collect next from the current Order. The
order flow is declared as a list of slots; the first slot that is not yet
filled is the next step:

    welcome -> awaiting_ready -> branch -> beverage -> size
    -> modifier:<group> (each required group, catalog order) -> food
    -> review -> confirm -> payment -> done

Size and modifier steps only exist for beverages that need them. They are
checked before any checkout slot, so an order with a half-configured beverage
returns to the missing step even when review or confirmation is already set.
"""

from dataclasses import dataclass
from typing import Callable

from .catalog import Catalog, Product
from .models import Order
from .schemas.steps import (
    AWAITING_READY,
    BEVERAGE,
    BRANCH,
    CONFIRM,
    DONE,
    FOOD,
    PAYMENT,
    REVIEW,
    SIZE,
    WELCOME,
    Step,
)


@dataclass
class SlotDefinition:
    """A top-level order slot and how to tell whether it is filled."""
    step: Step
    field_path: str
    is_filled: Callable[[Order], bool]


# Slots asked before the beverage is configured
INTAKE_SLOTS: list[SlotDefinition] = [
    SlotDefinition(WELCOME, "welcomed", lambda order: order.welcomed),
    SlotDefinition(AWAITING_READY, "ready_to_order", lambda order: order.ready_to_order),
    SlotDefinition(BRANCH, "branch", lambda order: order.branch is not None),
]

# Slots asked once the beverage is fully configured
CHECKOUT_SLOTS: list[SlotDefinition] = [
    SlotDefinition(FOOD, "food", lambda order: order.food is not None),
    SlotDefinition(REVIEW, "reviewed", lambda order: order.reviewed),
    SlotDefinition(CONFIRM, "confirmed", lambda order: order.confirmed),
    SlotDefinition(PAYMENT, "payment_method", lambda order: order.payment_method is not None),
]


def resolve_beverage(order: Order, catalog: Catalog) -> Product | None:
    """The catalog product of the order's beverage; None if unset or unknown."""
    if order.beverage is None:
        return None
    return catalog.find(order.beverage.id)


def beverage_step(order: Order, product: Product) -> Step | None:
    """
    The size or modifier step the beverage still needs, if any.

    A size that the product does not offer counts as unset.
    """
    if product.requires_size() and product.get_size(order.size) is None:
        return SIZE
    for group in product.required_groups():
        if not order.has_modifier(group.id):
            return Step.modifier(group.id)
    return None


def next_step(order: Order, catalog: Catalog) -> Step:
    """
    Compute the next step for an order.

    Pure: depends only on the order fields and the catalog. The first
    unfilled slot wins, and the beverage slots come before checkout, so
    flags such as reviewed or confirmed never skip a missing size or modifier.
    """
    for slot in INTAKE_SLOTS:
        if not slot.is_filled(order):
            return slot.step

    product = resolve_beverage(order, catalog)
    if product is None:
        return BEVERAGE

    pending = beverage_step(order, product)
    if pending is not None:
        return pending

    for slot in CHECKOUT_SLOTS:
        if not slot.is_filled(order):
            return slot.step

    return DONE


class SlotOrchestrator:
    """
    Determines what slot to fill next based on Order state.

    Wraps next_step with progress reporting for logs and the chat API.
    """

    def __init__(self, order: Order, catalog: Catalog):
        self.order = order
        self.catalog = catalog

    def get_next_step(self) -> Step:
        return next_step(self.order, self.catalog)

    def is_complete(self) -> bool:
        """Check if every slot is filled."""
        return self.get_next_step() == DONE

    def get_progress(self) -> dict[str, bool]:
        """
        Get progress for each slot.

        Returns dict mapping step tag to filled status. Size and modifier
        slots appear only when the current beverage needs them.
        """
        progress: dict[str, bool] = {}
        for slot in INTAKE_SLOTS:
            progress[str(slot.step)] = slot.is_filled(self.order)

        product = resolve_beverage(self.order, self.catalog)
        progress[str(BEVERAGE)] = product is not None
        if product is not None:
            if product.requires_size():
                progress[str(SIZE)] = product.get_size(self.order.size) is not None
            for group in product.required_groups():
                progress[str(Step.modifier(group.id))] = self.order.has_modifier(group.id)

        for slot in CHECKOUT_SLOTS:
            progress[str(slot.step)] = slot.is_filled(self.order)
        return progress

    def get_summary(self) -> str:
        """Get a human-readable summary of slot states."""
        lines = ["Slot Status:"]
        for tag, filled in self.get_progress().items():
            status = "filled" if filled else "EMPTY"
            lines.append(f"  {tag}: {status}")
        return "\n".join(lines)
