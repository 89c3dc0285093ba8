"""
Parsers Package.

This package contains the text normalization, keyword tables and small
classifiers used to interpret customer utterances.

Exports:
- Normalizer: normalize, tokenize, spaceless, contains_phrase
- Intents: Intent enum and the yes/no, ordinal and payment parsers
"""

from .normalizer import (
    normalize,
    tokenize,
    spaceless,
    contains_phrase,
)

from .intents import (
    Intent,
    classify_intent,
    mentioned_product_keyword,
    parse_yes_no,
    is_review_done,
    declines_food,
    parse_ordinal,
    parse_payment,
)

__all__ = [
    "normalize",
    "tokenize",
    "spaceless",
    "contains_phrase",
    "Intent",
    "classify_intent",
    "mentioned_product_keyword",
    "parse_yes_no",
    "is_review_done",
    "declines_food",
    "parse_ordinal",
    "parse_payment",
]
