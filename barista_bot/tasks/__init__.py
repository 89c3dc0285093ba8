"""
Order Capture Tasks.

This package provides the deterministic core of the order assistant:
- Catalog models (products, sizes, modifier groups, branches, payment methods)
- The order aggregate (Session, Order, FinalizedOrder)
- Text normalization and intent parsing
- Menu lookup with a cascade of matching strategies
- The step state machine, pricing, validation and turn processing

Only the modules without configuration dependencies are re-exported here;
import flow, pricing, menu_lookup and message_builder directly.
"""

from .catalog import (
    Size,
    ModifierOption,
    ModifierGroup,
    Product,
    Branch,
    PaymentMethod,
    Catalog,
)

from .errors import (
    ErrorKind,
    OrderBotError,
    InvalidOrderState,
    OrderFinalizedError,
    StaleSessionWrite,
    SessionNotFound,
)

from .models import (
    NO_FOOD,
    ProductRef,
    SelectedModifier,
    Order,
    LineItem,
    FinalizedOrder,
    Session,
    MatchResult,
)

from .schemas import (
    StepKind,
    Step,
)

from .parsers import (
    Intent,
    normalize,
)

__all__ = [
    # Catalog
    "Size",
    "ModifierOption",
    "ModifierGroup",
    "Product",
    "Branch",
    "PaymentMethod",
    "Catalog",
    # Errors
    "ErrorKind",
    "OrderBotError",
    "InvalidOrderState",
    "OrderFinalizedError",
    "StaleSessionWrite",
    "SessionNotFound",
    # Models
    "NO_FOOD",
    "ProductRef",
    "SelectedModifier",
    "Order",
    "LineItem",
    "FinalizedOrder",
    "Session",
    "MatchResult",
    # Steps
    "StepKind",
    "Step",
    # Parsing
    "Intent",
    "normalize",
]
