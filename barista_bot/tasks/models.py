"""
Pydantic models for the order aggregate.

The models represent one customer's conversation:
- Session (root, one per session key)
  - Order (the order being built, mutated turn by turn)
  - FinalizedOrder[] (append-only history of closed orders)

Once an Order receives its order number it is frozen: any further field
assignment raises OrderFinalizedError and only a new Order can be started.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer

from .errors import ErrorKind, OrderFinalizedError

# Exact amount in pesos, serialized to JSON as a number
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]

# Sentinel stored in Order.food when the customer declines food
NO_FOOD = "none"


class ProductRef(BaseModel):
    """Reference to a catalog product by id, with its display name."""
    id: str
    name: str


class SelectedModifier(BaseModel):
    """One chosen option within a modifier group."""
    group_id: str
    option_id: str


class Order(BaseModel):
    """
    The in-progress order of a session.

    Fields are filled one step at a time; the step state machine reads which
    ones are still missing. last_suggestions holds the alternatives offered
    on the previous turn for the step named by suggestions_for, so an answer
    like "el dos" can be resolved against them.
    """

    # Flow flags
    welcomed: bool = False
    ready_to_order: bool = False

    # Order fields
    branch: str | None = None
    beverage: ProductRef | None = None
    size: str | None = None
    selected_modifiers: list[SelectedModifier] = Field(default_factory=list)
    food: ProductRef | Literal["none"] | None = None

    # Checkout
    reviewed: bool = False
    confirmed: bool = False
    payment_method: str | None = None
    order_number: str | None = None

    # Suggestions surfaced on the last turn
    last_suggestions: list[str] = Field(default_factory=list)
    suggestions_for: str | None = None

    def __setattr__(self, name: str, value: Any) -> None:
        if self.__dict__.get("order_number") is not None:
            raise OrderFinalizedError(
                f"Order {self.__dict__['order_number']} is finalized; cannot set '{name}'"
            )
        super().__setattr__(name, value)

    @property
    def is_finalized(self) -> bool:
        return self.order_number is not None

    @property
    def has_food(self) -> bool:
        """True when a food product (not the no-food sentinel) is set."""
        return isinstance(self.food, ProductRef)

    def has_modifier(self, group_id: str) -> bool:
        return any(m.group_id == group_id for m in self.selected_modifiers)

    def selections_for(self, group_id: str) -> list[SelectedModifier]:
        return [m for m in self.selected_modifiers if m.group_id == group_id]

    def select_modifier(self, group_id: str, option_id: str, max_selections: int = 1) -> None:
        """
        Record an option for a group.

        With max_selections == 1 the option replaces any earlier choice for
        the group. Otherwise it is appended unless already chosen; once the
        group is full the oldest choice is dropped.
        """
        entry = SelectedModifier(group_id=group_id, option_id=option_id)
        others = [m for m in self.selected_modifiers if m.group_id != group_id]
        current = self.selections_for(group_id)

        if max_selections <= 1:
            self.selected_modifiers = others + [entry]
            return

        if any(m.option_id == option_id for m in current):
            return
        current.append(entry)
        if len(current) > max_selections:
            current = current[-max_selections:]
        self.selected_modifiers = others + current

    def clear_modifiers(self, group_id: str | None = None) -> None:
        """Drop the selections of one group, or of every group."""
        if group_id is None:
            self.selected_modifiers = []
        else:
            self.selected_modifiers = [
                m for m in self.selected_modifiers if m.group_id != group_id
            ]

    def set_beverage(self, product_id: str, name: str) -> None:
        """Set the beverage; a different beverage invalidates size and modifiers."""
        if self.beverage is not None and self.beverage.id == product_id:
            return
        self.beverage = ProductRef(id=product_id, name=name)
        self.size = None
        self.selected_modifiers = []

    def set_suggestions(self, step_tag: str, suggestions: list[str]) -> None:
        self.last_suggestions = list(suggestions)
        self.suggestions_for = step_tag

    def clear_suggestions(self) -> None:
        if self.last_suggestions or self.suggestions_for is not None:
            self.last_suggestions = []
            self.suggestions_for = None

    def offered_for(self, step_tag: str) -> list[str]:
        """Suggestions offered for the given step, empty if they were for another step."""
        if self.suggestions_for == step_tag:
            return list(self.last_suggestions)
        return []


@dataclass
class LineItem:
    """One priced line of an order."""
    kind: Literal["beverage", "modifier", "food"]
    name: str
    price: Money
    size: str | None = None  # Size label for beverage lines
    group_id: str | None = None  # Modifier group for modifier lines


class FinalizedOrder(BaseModel):
    """Immutable snapshot of a closed order, appended to the session history."""

    model_config = ConfigDict(frozen=True)

    order_number: str
    order: Order
    line_items: list[LineItem]
    total: Money
    loyalty_points: int
    finalized_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class Session(BaseModel):
    """
    Conversation state stored per session key.

    version is the optimistic concurrency counter maintained by the session
    store; turn_count is the number of customer turns handled so far.
    """

    session_id: str
    current_order: Order = Field(default_factory=Order)
    history: list[FinalizedOrder] = Field(default_factory=list)
    version: int = 0
    turn_count: int = 0
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def is_archived(self, order_number: str | None) -> bool:
        if order_number is None:
            return False
        return any(entry.order_number == order_number for entry in self.history)

    def start_new_order(self, beverage: ProductRef | None = None) -> Order:
        """
        Replace the current order with a fresh one.

        The customer has already been greeted, so the new order skips the
        welcome and ready steps.
        """
        order = Order(welcomed=True, ready_to_order=True, beverage=beverage)
        self.current_order = order
        return order


@dataclass
class MatchResult:
    """
    Outcome of resolving an utterance against catalog entities.

    entity is the matched Product, Size, ModifierOption, Branch or suggestion
    string. strategy names the cascade stage that produced the hit.
    """
    found: bool
    entity: Any = None
    suggestions: list[str] = field(default_factory=list)
    strategy: str | None = None
    score: float = 0.0
    error: ErrorKind | None = None

    @property
    def name(self) -> str | None:
        if self.entity is None:
            return None
        if isinstance(self.entity, str):
            return self.entity
        return getattr(self.entity, "name", None)
