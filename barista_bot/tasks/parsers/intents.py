"""
Intent and short-answer parsing.

Small deterministic classifiers over normalized text: the order-level intent
(add, remove, change, new order), yes/no answers, ordinal selections and the
payment method keyword.
"""

import logging
from enum import Enum
from typing import Iterable

from ..catalog import PaymentMethod
from .constants import (
    ADD_KEYWORDS,
    AFFIRMATIVE_PATTERN,
    CHANGE_KEYWORDS,
    NEGATIVE_PATTERN,
    NEW_ORDER_KEYWORDS,
    NO_FOOD_PATTERN,
    ORDINAL_PATTERN,
    ORDINAL_WORDS,
    PRODUCT_MENTION_KEYWORDS,
    REMOVE_KEYWORDS,
    REVIEW_DONE_PATTERN,
    WORD_TO_NUM,
)
from .normalizer import contains_phrase, normalize

logger = logging.getLogger(__name__)


class Intent(str, Enum):
    """Order-level intent detected in an utterance."""
    ADD = "add"
    REMOVE = "remove"
    CHANGE = "change"
    NEW_ORDER = "new_order"
    NONE = "none"


# Checked in this order; the first list with a hit wins
_INTENT_KEYWORDS: list[tuple[Intent, list[str]]] = [
    (Intent.NEW_ORDER, NEW_ORDER_KEYWORDS),
    (Intent.ADD, ADD_KEYWORDS),
    (Intent.REMOVE, REMOVE_KEYWORDS),
    (Intent.CHANGE, CHANGE_KEYWORDS),
]


def _has_any(text: str, phrases: Iterable[str]) -> bool:
    return any(contains_phrase(text, phrase) for phrase in phrases)


def classify_intent(utterance: str | None) -> Intent:
    """
    Classify the order-level intent of an utterance.

    Examples:
        "quiero hacer otro pedido" -> Intent.NEW_ORDER
        "agrega un croissant" -> Intent.ADD
        "quita el muffin" -> Intent.REMOVE
        "cambia la leche" -> Intent.CHANGE
        "si" -> Intent.NONE
    """
    text = normalize(utterance)
    if not text:
        return Intent.NONE
    for intent, keywords in _INTENT_KEYWORDS:
        if _has_any(text, keywords):
            logger.debug("Intent %s detected in '%s'", intent.value, text)
            return intent
    return Intent.NONE


def mentioned_product_keyword(utterance: str | None) -> str | None:
    """Return the first product word mentioned in the utterance, if any."""
    text = normalize(utterance)
    for keyword in PRODUCT_MENTION_KEYWORDS:
        if contains_phrase(text, keyword):
            return keyword
    return None


def parse_yes_no(utterance: str | None) -> bool | None:
    """
    Interpret a yes/no answer.

    An utterance that starts with a negative word is negative even if an
    affirmative phrase follows ("no, así está bien" answers no).

    Returns:
        True for yes, False for no, None when neither is detected.
    """
    text = normalize(utterance)
    if not text:
        return None
    negative = NEGATIVE_PATTERN.search(text)
    if negative and negative.start() == 0:
        return False
    if AFFIRMATIVE_PATTERN.search(text):
        return True
    if negative:
        return False
    return None


def is_review_done(utterance: str | None) -> bool:
    """True when the customer says the order summary needs no changes."""
    return bool(REVIEW_DONE_PATTERN.search(normalize(utterance)))


def declines_food(utterance: str | None) -> bool:
    """True when the customer answers the food question with no."""
    return bool(NO_FOOD_PATTERN.search(normalize(utterance)))


def parse_ordinal(utterance: str | None) -> int | None:
    """
    Parse a positional selection ("2", "el dos", "número 3", "la segunda").

    Returns:
        The 1-indexed position, or None if the utterance is not an ordinal.
    """
    text = normalize(utterance)
    match = ORDINAL_PATTERN.match(text)
    if not match:
        return None
    word = match.group(1)
    if word.isdigit():
        return int(word) if int(word) > 0 else None
    if word in WORD_TO_NUM:
        return WORD_TO_NUM[word]
    return ORDINAL_WORDS.get(word)


def parse_payment(utterance: str | None, methods: Iterable[PaymentMethod]) -> PaymentMethod | None:
    """
    Find the payment method named in the utterance.

    Keywords and method names are matched as whole-word phrases; the longest
    hit wins so "tarjeta starbucks" picks the Starbucks Card over a bank card.
    """
    text = normalize(utterance)
    if not text:
        return None

    best: PaymentMethod | None = None
    best_length = 0
    for method in methods:
        for phrase in [method.name, *method.keywords]:
            candidate = normalize(phrase)
            if contains_phrase(text, candidate) and len(candidate) > best_length:
                best = method
                best_length = len(candidate)
    return best
