"""
Conversation processing for all chat endpoints.

This module provides a single ConversationService class that handles the
complete lifecycle of a customer turn:
- Session load under the per-session lock
- Turn processing on a private working copy (tasks.flow.process_turn)
- Pricing and reply rendering
- Versioned write-back to the session store
- Response caching for retried requests

The HTTP routes only translate requests and responses; everything stateful
happens here.
"""

import logging
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, Iterable, List, Optional

from ..config import BRANCHES, PAYMENT_METHODS
from ..tasks.catalog import Branch, Catalog, PaymentMethod
from ..tasks.errors import InvalidOrderState, SessionNotFound
from ..tasks.flow import apply_answer, process_turn
from ..tasks.menu_lookup import MenuMatcher
from ..tasks.message_builder import MessageBuilder, clean_text_for_tts
from ..tasks.models import FinalizedOrder, Order
from ..tasks.pricing import PriceBreakdown, price_order
from ..tasks.schemas.steps import WELCOME
from ..tasks.slot_orchestrator import next_step
from .session import InMemorySessionStore, ResponseCache

logger = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# Data Classes
# -----------------------------------------------------------------------------

@dataclass
class TurnResult:
    """Output of one processed turn (or of starting a session)."""
    session_id: str
    reply: str
    step: str
    turn: int
    suggestions: List[str] = field(default_factory=list)
    order: Dict[str, Any] = field(default_factory=dict)
    price: Optional[Dict[str, Any]] = None

    # Status flags
    order_complete: bool = False
    order_data: Optional[Dict[str, Any]] = None
    cached: bool = False

    @property
    def speech(self) -> str:
        """The reply with symbols a speech engine would read aloud removed."""
        return clean_text_for_tts(self.reply)


def _price_dict(breakdown: PriceBreakdown | None) -> Optional[Dict[str, Any]]:
    if breakdown is None:
        return None
    return {
        "line_items": [
            {"kind": item.kind, "name": item.name, "price": float(item.price), "size": item.size}
            for item in breakdown.line_items
        ],
        "total": float(breakdown.total),
        "loyalty_points": breakdown.loyalty_points,
    }


class ConversationService:
    """
    Runs customer turns against the session store.

    Args:
        catalog: Parsed product catalog
        branches: Pickup branches (defaults to config)
        store: Session store (a fresh in-memory store by default)
        matcher: Menu matcher (built from the catalog by default)
        payment_methods: Accepted payment methods (defaults to config)
        response_cache: Reply cache (a fresh cache by default)
        number_factory: Order number generator, for deterministic tests
    """

    def __init__(
        self,
        catalog: Catalog,
        branches: Iterable[Branch] | None = None,
        store: InMemorySessionStore | None = None,
        matcher: MenuMatcher | None = None,
        payment_methods: Iterable[PaymentMethod] | None = None,
        response_cache: ResponseCache | None = None,
        number_factory: Callable[[], str] | None = None,
    ):
        self.catalog = catalog
        self.branches = list(branches if branches is not None else BRANCHES)
        self.store = store if store is not None else InMemorySessionStore()
        self.matcher = matcher or MenuMatcher(catalog)
        self.payment_methods = list(payment_methods if payment_methods is not None else PAYMENT_METHODS)
        self.response_cache = response_cache if response_cache is not None else ResponseCache()
        self.number_factory = number_factory
        self.messages = MessageBuilder(catalog, self.branches, self.payment_methods)

    def _premium_names(self) -> List[str]:
        return [method.name for method in self.payment_methods if method.premium]

    def _price(self, order: Order) -> PriceBreakdown | None:
        try:
            return price_order(order, self.catalog, self._premium_names())
        except InvalidOrderState as e:
            logger.warning("Could not price order: %s", e)
            return None

    def start(self, session_id: str | None = None) -> TurnResult:
        """
        Create a session and greet the customer.

        The welcome step is answered immediately, so the first customer
        turn answers the "ready to order?" question.

        Raises:
            StaleSessionWrite: session_id names a live session
        """
        session = self.store.create(session_id)
        with self.store.lock(session.session_id):
            working = self.store.get(session.session_id)
            apply_answer(
                working.current_order, WELCOME, None, self.catalog, self.branches,
                self.matcher, self.payment_methods,
            )
            self.store.set(working.session_id, working, expected_version=session.version)

        step = next_step(working.current_order, self.catalog)
        logger.info("New chat session started: %s", working.session_id[:8])
        return TurnResult(
            session_id=working.session_id,
            reply=self.messages.welcome(),
            step=str(step),
            turn=working.turn_count,
            order=working.current_order.model_dump(mode="json"),
        )

    def handle_turn(self, session_id: str, message: str, turn: int | None = None) -> TurnResult:
        """
        Process one customer message.

        Args:
            session_id: Session key returned by start()
            message: Customer utterance
            turn: Client-side turn number; a retry with the same message and
                turn returns the cached reply. Defaults to the session's
                turn count.

        Returns:
            TurnResult with the reply, next step and order state

        Raises:
            SessionNotFound: No live session exists for session_id
            StaleSessionWrite: The session changed underneath this turn
        """
        with self.store.lock(session_id):
            session = self.store.get(session_id)
            if session is None:
                raise SessionNotFound(session_id)

            cache_key = (message, turn if turn is not None else session.turn_count, session_id)
            cached = self.response_cache.get(cache_key)
            if cached is not None:
                logger.debug("Response cache hit for session %s", session_id[:8])
                return replace(cached, cached=True)

            base_version = session.version
            outcome = process_turn(
                session, message, self.catalog, self.branches, self.matcher,
                self.payment_methods, self.number_factory,
            )
            order = session.current_order
            breakdown = self._price(order)
            suggestions = list(order.last_suggestions) if not order.is_finalized else []
            reply = self.messages.build_reply(outcome, order, breakdown, suggestions)

            self.store.set(session_id, session, expected_version=base_version)

        result = TurnResult(
            session_id=session_id,
            reply=reply,
            step=str(outcome.step),
            turn=session.turn_count,
            suggestions=suggestions,
            order=order.model_dump(mode="json"),
            price=_price_dict(breakdown),
            order_complete=outcome.finalized is not None,
            order_data=outcome.finalized.model_dump(mode="json") if outcome.finalized else None,
        )
        self.response_cache.put(cache_key, result)
        logger.info(
            "Session %s turn %d: %s -> %s",
            session_id[:8], session.turn_count, outcome.previous_step, outcome.step,
        )
        return result

    def get_history(self, session_id: str) -> List[FinalizedOrder]:
        """Closed orders of a session, oldest first."""
        session = self.store.get(session_id)
        if session is None:
            raise SessionNotFound(session_id)
        return list(session.history)
