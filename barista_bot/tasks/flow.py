"""
Flow Control for Order Capture.

This module provides deterministic flow control on top of the step state
machine:
- Answer application (utterance -> the fields owned by the current step)
- Intent overlays (add/remove/change at review and confirm, new order after
  an order is closed)
- Finalization (validate, price, number and archive a completed order)
- process_turn, which runs one customer turn end to end on a Session

apply_answer never advances the step itself; the next call to next_step
reflects whatever it changed.
"""

import logging
import random
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Iterable

from ..config import ORDER_NUMBER_PREFIX, PAYMENT_METHODS
from .catalog import Branch, Catalog, PaymentMethod, Product
from .menu_lookup import MenuMatcher
from .models import (
    NO_FOOD,
    FinalizedOrder,
    MatchResult,
    Order,
    ProductRef,
    Session,
)
from .parsers.intents import (
    Intent,
    classify_intent,
    declines_food,
    is_review_done,
    mentioned_product_keyword,
    parse_payment,
    parse_yes_no,
)
from .parsers.normalizer import normalize
from .pricing import price_order
from .schemas.steps import DONE, MODIFIER_PREFIX, REVIEW, Step, StepKind
from .slot_orchestrator import next_step, resolve_beverage
from .validation import ValidationResult, validate

logger = logging.getLogger(__name__)

# suggestions_for values used by the review overlays
REMOVE_TARGET = "remove"
CHANGE_TARGET = "change"

# Strategies trusted when resolving an answer against offered suggestions.
# Looser hits fall through to a full catalog lookup.
_SUGGESTION_STRATEGIES = {"ordinal", "exact", "spaceless", "edit_distance"}


@dataclass
class AnswerOutcome:
    """What apply_answer did with an utterance."""
    step: Step
    accepted: bool
    match: MatchResult | None = None
    suggestions: list[str] = field(default_factory=list)
    note: str | None = None  # e.g. "unavailable", "not_ready", "removed"


@dataclass
class FinalizationOutcome:
    """Result of trying to close an order."""
    finalized: FinalizedOrder | None
    validation: ValidationResult


@dataclass
class TurnOutcome:
    """Everything one customer turn changed, for the reply builder and API."""
    previous_step: Step
    step: Step
    intent: Intent
    answer: AnswerOutcome | None = None
    finalized: FinalizedOrder | None = None
    validation: ValidationResult | None = None
    new_order_started: bool = False


def generate_order_number(
    prefix: str = ORDER_NUMBER_PREFIX,
    now: datetime | None = None,
    rng: random.Random | None = None,
) -> str:
    """Order number: prefix + day of month (2 digits) + 4 random digits, e.g. SBX194821."""
    day = (now or datetime.now()).day
    number = (rng or random).randint(1000, 9999)
    return f"{prefix}{day:02d}{number}"


# =============================================================================
# Answer application
# =============================================================================

@dataclass
class _StepContext:
    order: Order
    step: Step
    utterance: str
    catalog: Catalog
    branches: list[Branch]
    matcher: MenuMatcher
    payment_methods: list[PaymentMethod]


def _from_offered(ctx: _StepContext) -> str | None:
    """The suggestion offered for this step that the utterance picks, if any."""
    offered = ctx.order.offered_for(str(ctx.step))
    if not offered:
        return None
    result = ctx.matcher.match_suggestion(ctx.utterance, offered)
    if result.found and result.strategy in _SUGGESTION_STRATEGIES:
        return result.entity
    return None


def _by_name(items: Iterable, name: str):
    wanted = normalize(name)
    for item in items:
        if normalize(item.name) == wanted:
            return item
    return None


def _miss(ctx: _StepContext, result: MatchResult, note: str | None = None) -> AnswerOutcome:
    ctx.order.set_suggestions(str(ctx.step), result.suggestions)
    return AnswerOutcome(
        step=ctx.step,
        accepted=False,
        match=result,
        suggestions=list(result.suggestions),
        note=note,
    )


def _hit(ctx: _StepContext, result: MatchResult | None = None, note: str | None = None) -> AnswerOutcome:
    ctx.order.clear_suggestions()
    return AnswerOutcome(step=ctx.step, accepted=True, match=result, note=note)


def _apply_welcome(ctx: _StepContext) -> AnswerOutcome:
    ctx.order.welcomed = True
    return AnswerOutcome(step=ctx.step, accepted=True)


def _apply_ready(ctx: _StepContext) -> AnswerOutcome:
    if parse_yes_no(ctx.utterance) is True:
        ctx.order.ready_to_order = True
        return AnswerOutcome(step=ctx.step, accepted=True)
    return AnswerOutcome(step=ctx.step, accepted=False, note="not_ready")


def _apply_branch(ctx: _StepContext) -> AnswerOutcome:
    picked = _from_offered(ctx)
    branch = _by_name(ctx.branches, picked) if picked else None
    result = MatchResult(found=True, entity=branch, strategy="suggestion") if branch else None

    if branch is None:
        result = ctx.matcher.match_branch(ctx.utterance, ctx.branches)
        if not result.found:
            return _miss(ctx, result)
        branch = result.entity

    ctx.order.branch = branch.name
    return _hit(ctx, result)


def _capture_size(ctx: _StepContext, product: Product) -> None:
    """A size said together with the beverage ("capuchino grande") is kept."""
    if not product.requires_size():
        return
    size_result = ctx.matcher.match_size(ctx.utterance, product)
    if size_result.found and size_result.strategy == "exact":
        ctx.order.size = size_result.entity.id
        logger.debug("Captured size '%s' with beverage", size_result.entity.label)


def _apply_beverage(ctx: _StepContext) -> AnswerOutcome:
    beverages = ctx.catalog.beverages()
    picked = _from_offered(ctx)
    product = _by_name(beverages, picked) if picked else None
    result = MatchResult(found=True, entity=product, strategy="suggestion") if product else None

    if product is None or not product.available:
        result = ctx.matcher.match_product(ctx.utterance, beverages)
        if not result.found:
            note = "unavailable" if result.entity is not None else None
            return _miss(ctx, result, note)
        product = result.entity

    ctx.order.set_beverage(product.id, product.name)
    _capture_size(ctx, product)
    return _hit(ctx, result)


def _apply_size(ctx: _StepContext) -> AnswerOutcome:
    product = resolve_beverage(ctx.order, ctx.catalog)
    if product is None:
        return AnswerOutcome(step=ctx.step, accepted=False, note="no_beverage")

    picked = _from_offered(ctx)
    size = None
    if picked:
        size = next((s for s in product.sizes if normalize(s.label) == normalize(picked)), None)
    result = MatchResult(found=True, entity=size, strategy="suggestion") if size else None

    if size is None:
        result = ctx.matcher.match_size(ctx.utterance, product)
        if not result.found:
            return _miss(ctx, result)
        size = result.entity

    ctx.order.size = size.id
    return _hit(ctx, result)


def _apply_modifier(ctx: _StepContext) -> AnswerOutcome:
    product = resolve_beverage(ctx.order, ctx.catalog)
    group = product.get_group(ctx.step.group_id) if product else None
    if group is None:
        return AnswerOutcome(step=ctx.step, accepted=False, note="no_group")

    picked = _from_offered(ctx)
    option = _by_name(group.options, picked) if picked else None
    result = MatchResult(found=True, entity=option, strategy="suggestion") if option else None

    if option is None:
        result = ctx.matcher.match_modifier_option(ctx.utterance, group)
        if not result.found:
            return _miss(ctx, result)
        option = result.entity

    ctx.order.select_modifier(group.id, option.id, group.max)
    return _hit(ctx, result)


def _apply_food(ctx: _StepContext) -> AnswerOutcome:
    foods = ctx.catalog.foods()
    picked = _from_offered(ctx)
    product = _by_name(foods, picked) if picked else None
    result = MatchResult(found=True, entity=product, strategy="suggestion") if product else None

    if product is None and declines_food(ctx.utterance):
        ctx.order.food = NO_FOOD
        return _hit(ctx, note="no_food")

    if product is None or not product.available:
        result = ctx.matcher.match_product(ctx.utterance, foods)
        if not result.found:
            note = "unavailable" if result.entity is not None else None
            return _miss(ctx, result, note)
        product = result.entity

    ctx.order.food = ProductRef(id=product.id, name=product.name)
    return _hit(ctx, result)


def _apply_review(ctx: _StepContext) -> AnswerOutcome:
    if is_review_done(ctx.utterance) or parse_yes_no(ctx.utterance) is True:
        ctx.order.reviewed = True
        return _hit(ctx)
    return AnswerOutcome(step=ctx.step, accepted=False)


def _apply_confirm(ctx: _StepContext) -> AnswerOutcome:
    answer = parse_yes_no(ctx.utterance)
    if answer is True:
        ctx.order.confirmed = True
        return _hit(ctx)
    if answer is False:
        ctx.order.reviewed = False
        return AnswerOutcome(step=ctx.step, accepted=True, note="back_to_review")
    return AnswerOutcome(step=ctx.step, accepted=False)


def _apply_payment(ctx: _StepContext) -> AnswerOutcome:
    picked = _from_offered(ctx)
    method = _by_name(ctx.payment_methods, picked) if picked else None
    if method is None:
        method = parse_payment(ctx.utterance, ctx.payment_methods)
    if method is None:
        miss = MatchResult(found=False, suggestions=[m.name for m in ctx.payment_methods])
        return _miss(ctx, miss)

    ctx.order.payment_method = method.name
    return _hit(ctx, MatchResult(found=True, entity=method, strategy="keyword", score=1.0))


def _apply_done(ctx: _StepContext) -> AnswerOutcome:
    return AnswerOutcome(step=ctx.step, accepted=False)


_STEP_HANDLERS: dict[StepKind, Callable[[_StepContext], AnswerOutcome]] = {
    StepKind.WELCOME: _apply_welcome,
    StepKind.AWAITING_READY: _apply_ready,
    StepKind.BRANCH: _apply_branch,
    StepKind.BEVERAGE: _apply_beverage,
    StepKind.SIZE: _apply_size,
    StepKind.MODIFIER: _apply_modifier,
    StepKind.FOOD: _apply_food,
    StepKind.REVIEW: _apply_review,
    StepKind.CONFIRM: _apply_confirm,
    StepKind.PAYMENT: _apply_payment,
    StepKind.DONE: _apply_done,
}


def apply_answer(
    order: Order,
    step: Step,
    utterance: str | None,
    catalog: Catalog,
    branches: Iterable[Branch],
    matcher: MenuMatcher | None = None,
    payment_methods: Iterable[PaymentMethod] | None = None,
) -> AnswerOutcome:
    """
    Interpret an utterance as the answer to a step and update the order.

    Only the fields owned by the step change (the beverage step may also set
    the size when it is said in the same breath). Suggestions offered for
    the step on the previous turn are tried first, so "el dos" or a close
    spelling picks from them. An unresolved answer leaves the field unset
    and stores new suggestions on the order.

    Raises:
        OrderFinalizedError: The order already has an order number
    """
    ctx = _StepContext(
        order=order,
        step=step,
        utterance=utterance or "",
        catalog=catalog,
        branches=list(branches),
        matcher=matcher or MenuMatcher(catalog),
        payment_methods=list(payment_methods if payment_methods is not None else PAYMENT_METHODS),
    )
    if step.kind is StepKind.DONE:
        return _apply_done(ctx)

    outcome = _STEP_HANDLERS[step.kind](ctx)
    logger.debug(
        "Step %s: accepted=%s strategy=%s",
        step, outcome.accepted, outcome.match.strategy if outcome.match else None,
    )
    return outcome


# =============================================================================
# Intent overlays
# =============================================================================

def _order_items(order: Order, catalog: Catalog) -> list[tuple[str, str]]:
    """(display name, target tag) for every item that can be removed or changed."""
    items: list[tuple[str, str]] = []
    product = resolve_beverage(order, catalog)
    if order.beverage is not None:
        items.append((order.beverage.name, "beverage"))
    if product is not None:
        for selection in order.selected_modifiers:
            group = product.get_group(selection.group_id)
            option = group.get_option(selection.option_id) if group else None
            if option is not None:
                items.append((option.name, f"{MODIFIER_PREFIX}{group.id}"))
    if order.has_food:
        items.append((order.food.name, "food"))
    return items


def _remove_target(order: Order, target: str) -> None:
    if target == "beverage":
        order.beverage = None
        order.size = None
        order.clear_modifiers()
    elif target == "food":
        order.food = NO_FOOD
    elif target.startswith(MODIFIER_PREFIX):
        order.clear_modifiers(target[len(MODIFIER_PREFIX):])
    order.reviewed = False
    order.confirmed = False


def _reopen_target(order: Order, target: str) -> None:
    """Clear a field so the state machine asks for it again."""
    if target == "beverage":
        order.beverage = None
        order.size = None
        order.clear_modifiers()
    elif target == "size":
        order.size = None
    elif target == "food":
        order.food = None
    elif target.startswith(MODIFIER_PREFIX):
        order.clear_modifiers(target[len(MODIFIER_PREFIX):])
    order.reviewed = False
    order.confirmed = False


def _pick_item(ctx: _StepContext, items: list[tuple[str, str]], purpose: str) -> str | None:
    """Target tag of the order item the utterance names, offering choices when unclear."""
    if not items:
        return None
    names = [name for name, _ in items]

    if ctx.order.suggestions_for == purpose and ctx.order.last_suggestions:
        result = ctx.matcher.match_suggestion(ctx.utterance, ctx.order.last_suggestions)
    else:
        result = ctx.matcher.match_suggestion(ctx.utterance, names)
        if result.strategy == "ordinal":
            result = MatchResult(found=False)

    if result.found:
        for name, target in items:
            if name == result.entity:
                return target
    ctx.order.set_suggestions(purpose, names)
    return None


def _apply_edit(ctx: _StepContext) -> str | None:
    """
    Apply an edit described in the utterance ("agrega un croissant",
    "cambia a leche de almendra", "mejor grande").

    Returns a note describing what changed, or None when nothing matched.
    """
    order, catalog, matcher = ctx.order, ctx.catalog, ctx.matcher
    product = resolve_beverage(order, catalog)

    food_result = matcher.match_product(ctx.utterance, catalog.foods())
    if food_result.found and food_result.strategy != "token_overlap":
        order.food = ProductRef(id=food_result.entity.id, name=food_result.entity.name)
        return "food_set"

    if product is not None:
        if product.requires_size():
            size_result = matcher.match_size(ctx.utterance, product)
            if size_result.found and size_result.strategy in ("exact", "keyword"):
                order.size = size_result.entity.id
                return "size_set"
        for group in product.modifier_groups:
            option_result = matcher.match_modifier_option(ctx.utterance, group)
            if option_result.found and option_result.strategy in ("exact", "keyword"):
                order.select_modifier(group.id, option_result.entity.id, group.max)
                return "modifier_set"

    beverage_result = matcher.match_product(ctx.utterance, catalog.beverages())
    if beverage_result.found and (product is None or beverage_result.entity.id != product.id):
        order.set_beverage(beverage_result.entity.id, beverage_result.entity.name)
        _capture_size(ctx, beverage_result.entity)
        return "beverage_set"
    return None


def _apply_review_overlay(ctx: _StepContext, intent: Intent) -> AnswerOutcome | None:
    """
    Handle add/remove/change requests while the order summary is on screen.

    The order is re-opened instead of advancing: reviewed stays False and
    the affected field is either set directly or cleared so it is asked
    again.
    """
    order = ctx.order
    pending = order.suggestions_for if order.suggestions_for in (REMOVE_TARGET, CHANGE_TARGET) else None
    if intent is Intent.NONE and pending is None:
        return None
    if intent is Intent.NONE and is_review_done(ctx.utterance):
        # The customer dropped the pending remove/change question
        order.clear_suggestions()
        return None

    if intent is Intent.REMOVE or (intent is Intent.NONE and pending == REMOVE_TARGET):
        target = _pick_item(ctx, _order_items(order, ctx.catalog), REMOVE_TARGET)
        if target is None:
            return AnswerOutcome(step=ctx.step, accepted=False, suggestions=list(order.last_suggestions), note="remove_which")
        _remove_target(order, target)
        order.clear_suggestions()
        return AnswerOutcome(step=ctx.step, accepted=True, note="removed")

    if intent is Intent.ADD:
        note = _apply_edit(ctx)
        if note is None:
            order.food = None
            note = "reopened_food"
        order.reviewed = False
        order.clear_suggestions()
        return AnswerOutcome(step=ctx.step, accepted=True, note=note)

    if intent is Intent.CHANGE or pending == CHANGE_TARGET:
        note = _apply_edit(ctx)
        if note is None:
            target = _pick_item(ctx, _order_items(order, ctx.catalog), CHANGE_TARGET)
            if target is None:
                return AnswerOutcome(step=ctx.step, accepted=False, suggestions=list(order.last_suggestions), note="change_which")
            _reopen_target(order, target)
            note = "reopened"
        order.reviewed = False
        order.clear_suggestions()
        return AnswerOutcome(step=ctx.step, accepted=True, note=note)

    return None


def _apply_confirm_overlay(ctx: _StepContext, intent: Intent) -> AnswerOutcome | None:
    """A change, removal or addition request at confirmation goes back to review."""
    if intent in (Intent.CHANGE, Intent.REMOVE, Intent.ADD):
        ctx.order.reviewed = False
        return AnswerOutcome(step=ctx.step, accepted=True, note="back_to_review")
    return None


# =============================================================================
# Finalization
# =============================================================================

def _premium_names(payment_methods: Iterable[PaymentMethod]) -> list[str]:
    return [method.name for method in payment_methods if method.premium]


def reopen_invalid_fields(order: Order, validation: ValidationResult) -> None:
    """Clear every field the validator rejected so the flow asks for it again."""
    structural = False
    for tag in validation.missing:
        if tag == "branch":
            order.branch = None
        elif tag == "beverage":
            order.beverage = None
            order.size = None
            order.clear_modifiers()
        elif tag == "size":
            order.size = None
        elif tag.startswith(MODIFIER_PREFIX):
            order.clear_modifiers(tag[len(MODIFIER_PREFIX):])
        elif tag == "food":
            order.food = None
        elif tag == "payment":
            order.payment_method = None
            continue
        structural = True
    if structural:
        order.reviewed = False
        order.confirmed = False


def finalize_order(
    session: Session,
    catalog: Catalog,
    branches: Iterable[Branch],
    payment_methods: Iterable[PaymentMethod] | None = None,
    number_factory: Callable[[], str] | None = None,
) -> FinalizationOutcome:
    """
    Close the session's current order.

    Validates, prices, assigns the order number and appends a snapshot to
    the history. An invalid order is re-opened instead.
    """
    methods = list(payment_methods if payment_methods is not None else PAYMENT_METHODS)
    order = session.current_order
    validation = validate(order, catalog, branches, methods)
    if not validation.valid:
        logger.warning("Finalization rejected for session %s: %s", session.session_id, ", ".join(validation.missing))
        reopen_invalid_fields(order, validation)
        return FinalizationOutcome(finalized=None, validation=validation)

    breakdown = price_order(order, catalog, _premium_names(methods))
    order.clear_suggestions()
    order.order_number = (number_factory or generate_order_number)()

    snapshot = FinalizedOrder(
        order_number=order.order_number,
        order=order.model_copy(deep=True),
        line_items=breakdown.line_items,
        total=breakdown.total,
        loyalty_points=breakdown.loyalty_points,
    )
    session.history.append(snapshot)
    logger.info(
        "Order %s finalized for session %s: total %.2f, %d stars",
        snapshot.order_number, session.session_id, snapshot.total, snapshot.loyalty_points,
    )
    return FinalizationOutcome(finalized=snapshot, validation=validation)


def archive_order(session: Session, catalog: Catalog, payment_methods: Iterable[PaymentMethod]) -> bool:
    """
    Append the current (finalized) order to the history unless it is already there.

    Returns True if a snapshot was appended.
    """
    order = session.current_order
    if not order.is_finalized or session.is_archived(order.order_number):
        return False
    breakdown = price_order(order, catalog, _premium_names(payment_methods))
    session.history.append(FinalizedOrder(
        order_number=order.order_number,
        order=order.model_copy(deep=True),
        line_items=breakdown.line_items,
        total=breakdown.total,
        loyalty_points=breakdown.loyalty_points,
    ))
    return True


def start_new_order(
    session: Session,
    utterance: str | None,
    catalog: Catalog,
    matcher: MenuMatcher,
    payment_methods: Iterable[PaymentMethod],
) -> Order:
    """Archive the closed order and start a new one, pre-filling a mentioned beverage."""
    archive_order(session, catalog, payment_methods)

    prefill = None
    result = matcher.match_product(utterance, catalog.beverages())
    if result.found:
        prefill = ProductRef(id=result.entity.id, name=result.entity.name)
    order = session.start_new_order(beverage=prefill)
    if prefill is not None:
        ctx = _StepContext(
            order=order, step=Step(StepKind.BEVERAGE), utterance=utterance or "",
            catalog=catalog, branches=[], matcher=matcher, payment_methods=list(payment_methods),
        )
        _capture_size(ctx, result.entity)
    logger.info("New order started for session %s", session.session_id)
    return order


# =============================================================================
# Suggestions for the next prompt
# =============================================================================

def default_suggestions(
    order: Order,
    step: Step,
    catalog: Catalog,
    branches: Iterable[Branch],
    matcher: MenuMatcher,
    payment_methods: Iterable[PaymentMethod],
) -> list[str]:
    """Choices offered with the prompt for a step."""
    if step.kind is StepKind.BRANCH:
        return [branch.name for branch in branches]
    if step.kind is StepKind.BEVERAGE:
        return matcher.suggest_products(catalog.beverages())
    if step.kind is StepKind.FOOD:
        return matcher.suggest_products(catalog.foods())
    if step.kind is StepKind.PAYMENT:
        return [method.name for method in payment_methods]

    product = resolve_beverage(order, catalog)
    if product is None:
        return []
    if step.kind is StepKind.SIZE:
        return [size.label for size in product.sizes]
    if step.kind is StepKind.MODIFIER:
        group = product.get_group(step.group_id)
        return [option.name for option in group.options] if group else []
    return []


def offer_suggestions(
    order: Order,
    step: Step,
    catalog: Catalog,
    branches: Iterable[Branch],
    matcher: MenuMatcher,
    payment_methods: Iterable[PaymentMethod],
) -> list[str]:
    """
    Store the choices shown with the next prompt on the order.

    Suggestions already stored for this step (after a miss) are kept, as
    are pending remove/change choices at review.
    """
    if order.is_finalized:
        return []
    if order.suggestions_for == str(step):
        return list(order.last_suggestions)
    if step == REVIEW and order.suggestions_for in (REMOVE_TARGET, CHANGE_TARGET):
        return list(order.last_suggestions)

    suggestions = default_suggestions(order, step, catalog, branches, matcher, payment_methods)
    if suggestions:
        order.set_suggestions(str(step), suggestions)
    else:
        order.clear_suggestions()
    return suggestions


# =============================================================================
# Turn processing
# =============================================================================

def process_turn(
    session: Session,
    utterance: str | None,
    catalog: Catalog,
    branches: Iterable[Branch],
    matcher: MenuMatcher | None = None,
    payment_methods: Iterable[PaymentMethod] | None = None,
    number_factory: Callable[[], str] | None = None,
) -> TurnOutcome:
    """
    Run one customer turn on a session.

    Steps: after a closed order, a new-order request (or a product mention)
    starts a new order; otherwise the intent overlays for review/confirm
    apply, or the utterance answers the current step. When the next step is
    done the order is finalized.
    """
    branch_list = list(branches)
    methods = list(payment_methods if payment_methods is not None else PAYMENT_METHODS)
    matcher = matcher or MenuMatcher(catalog)

    session.turn_count += 1
    order = session.current_order
    step = next_step(order, catalog)
    intent = classify_intent(utterance)

    if order.is_finalized:
        if intent is Intent.NEW_ORDER or mentioned_product_keyword(utterance):
            order = start_new_order(session, utterance, catalog, matcher, methods)
            new_step = next_step(order, catalog)
            offer_suggestions(order, new_step, catalog, branch_list, matcher, methods)
            return TurnOutcome(previous_step=step, step=new_step, intent=intent, new_order_started=True)
        return TurnOutcome(previous_step=step, step=DONE, intent=intent)

    ctx = _StepContext(
        order=order, step=step, utterance=utterance or "", catalog=catalog,
        branches=branch_list, matcher=matcher, payment_methods=methods,
    )

    answer = None
    if step.kind is StepKind.REVIEW:
        answer = _apply_review_overlay(ctx, intent)
    elif step.kind is StepKind.CONFIRM:
        answer = _apply_confirm_overlay(ctx, intent)
    if answer is None:
        answer = apply_answer(order, step, utterance, catalog, branch_list, matcher, methods)

    new_step = next_step(order, catalog)
    outcome = TurnOutcome(previous_step=step, step=new_step, intent=intent, answer=answer)

    if new_step == DONE:
        finalization = finalize_order(session, catalog, branch_list, methods, number_factory)
        outcome.finalized = finalization.finalized
        outcome.validation = finalization.validation
        if finalization.finalized is None:
            new_step = next_step(order, catalog)
            outcome.step = new_step

    offer_suggestions(order, outcome.step, catalog, branch_list, matcher, methods)
    logger.debug("Session %s: %s -> %s", session.session_id, step, outcome.step)
    return outcome
