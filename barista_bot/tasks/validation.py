"""
Order Validation.

Final gate before an order is closed. The checks are independent of the
step state machine and every violation is reported, each with a stable
field tag (branch, beverage, size, modifier:<group_id>, food, payment) that
callers can render as a checklist.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable

from .catalog import Branch, Catalog, PaymentMethod
from .errors import ErrorKind
from .models import Order
from .parsers.normalizer import normalize
from .schemas.steps import MODIFIER_PREFIX

logger = logging.getLogger(__name__)


@dataclass
class ValidationIssue:
    """One violation found in an order."""
    field: str
    kind: ErrorKind
    message: str


@dataclass
class ValidationResult:
    """Validation outcome; missing lists the field tags of all issues."""
    issues: list[ValidationIssue] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.issues

    @property
    def missing(self) -> list[str]:
        tags: list[str] = []
        for issue in self.issues:
            if issue.field not in tags:
                tags.append(issue.field)
        return tags

    def add(self, field_tag: str, kind: ErrorKind, message: str) -> None:
        self.issues.append(ValidationIssue(field=field_tag, kind=kind, message=message))


def _known_payment(payment_method: str, methods: Iterable[PaymentMethod]) -> bool:
    wanted = normalize(payment_method)
    return any(
        wanted in (normalize(method.name), normalize(method.id))
        for method in methods
    )


def validate(
    order: Order,
    catalog: Catalog,
    branches: Iterable[Branch],
    payment_methods: Iterable[PaymentMethod] | None = None,
) -> ValidationResult:
    """
    Cross-check an order against the catalog, branches and payment methods.

    Args:
        order: Order to check
        catalog: Catalog the order refers to
        branches: Known pickup branches
        payment_methods: Accepted payment methods (defaults to config)

    Returns:
        ValidationResult listing every violation
    """
    if payment_methods is None:
        from ..config import PAYMENT_METHODS
        payment_methods = PAYMENT_METHODS

    result = ValidationResult()

    # Branch
    branch_names = {normalize(branch.name) for branch in branches}
    if order.branch is None:
        result.add("branch", ErrorKind.INCOMPLETE_ORDER, "No branch selected")
    elif normalize(order.branch) not in branch_names:
        result.add("branch", ErrorKind.INVALID_BRANCH, f"Unknown branch '{order.branch}'")

    # Beverage, size and modifiers
    product = None
    if order.beverage is None:
        result.add("beverage", ErrorKind.INCOMPLETE_ORDER, "No beverage selected")
    else:
        product = catalog.find(order.beverage.id)
        if product is None:
            result.add("beverage", ErrorKind.ENTITY_NOT_FOUND, f"Unknown beverage '{order.beverage.name}'")
        elif not product.available:
            result.add("beverage", ErrorKind.UNAVAILABLE, f"'{product.name}' is not available")

    if product is not None:
        if order.size is not None and product.get_size(order.size) is None:
            result.add("size", ErrorKind.INVALID_SIZE, f"Size '{order.size}' is not offered for '{product.name}'")
        elif order.size is None and product.requires_size():
            result.add("size", ErrorKind.INCOMPLETE_ORDER, f"No size selected for '{product.name}'")

        declared = {group.id for group in product.modifier_groups}
        for selection in order.selected_modifiers:
            if selection.group_id not in declared:
                result.add(
                    f"{MODIFIER_PREFIX}{selection.group_id}",
                    ErrorKind.INVALID_MODIFIER_SELECTION,
                    f"Modifier group '{selection.group_id}' is not declared for '{product.name}'",
                )

        for group in product.modifier_groups:
            tag = f"{MODIFIER_PREFIX}{group.id}"
            selections = order.selections_for(group.id)
            for selection in selections:
                if group.get_option(selection.option_id) is None:
                    result.add(
                        tag,
                        ErrorKind.INVALID_MODIFIER_SELECTION,
                        f"Option '{selection.option_id}' is not in group '{group.id}'",
                    )
            if group.required and len(selections) < group.min:
                result.add(tag, ErrorKind.INCOMPLETE_ORDER, f"'{group.name}' needs at least {group.min} selection(s)")
            if len(selections) > group.max:
                result.add(
                    tag,
                    ErrorKind.INVALID_MODIFIER_SELECTION,
                    f"'{group.name}' allows at most {group.max} selection(s)",
                )

    # Food
    if order.has_food and catalog.find(order.food.id) is None:
        result.add("food", ErrorKind.ENTITY_NOT_FOUND, f"Unknown food '{order.food.name}'")

    # Payment
    if order.payment_method is None:
        result.add("payment", ErrorKind.INCOMPLETE_ORDER, "No payment method selected")
    elif not _known_payment(order.payment_method, payment_methods):
        result.add("payment", ErrorKind.INVALID_PAYMENT, f"Unknown payment method '{order.payment_method}'")

    if not result.valid:
        logger.debug("Order invalid: %s", ", ".join(result.missing))
    return result
