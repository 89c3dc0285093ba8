"""
Menu Lookup Engine.

Resolves noisy customer utterances (voice transcripts) to catalog entities:
products, sizes, modifier options, branches, or one of the suggestions that
were offered on the previous turn.

Every lookup runs the same cascade over normalized text and stops at the
first stage with a hit:

1. exact          - utterance equals the name, or contains it as a phrase
2. spaceless      - equal once all spaces are removed
3. keyword        - alias table (concept key -> spoken variants)
4. token_overlap  - share of meaningful utterance words found in the name
5. edit_distance  - whole-utterance Levenshtein distance (suggestion lists only)

Ordinal answers ("el dos", "número 3") are resolved against offered
suggestions before any text matching. A miss is a normal outcome: the
result carries found=False and up to three suggestions.

Usage:
    matcher = MenuMatcher(catalog)
    result = matcher.match_product("quiero un capuchino grande")
    if result.found:
        product = result.entity
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable

from rapidfuzz.distance import Levenshtein

from ..config import MAX_SUGGESTIONS, TOKEN_OVERLAP_THRESHOLD
from .catalog import Branch, Catalog, ModifierGroup, Product
from .errors import ErrorKind
from .models import MatchResult
from .parsers.constants import (
    FILLER_WORDS,
    OPTION_KEYWORDS,
    PRODUCT_ALIASES,
    SIZE_ALIASES,
)
from .parsers.intents import parse_ordinal
from .parsers.normalizer import contains_phrase, normalize
from .recommendations import Recommender

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MatchPolicy:
    """
    How the cascade behaves for one entity type.

    threshold: minimum token-overlap score; None accepts any overlap.
    containment: also accept a name that contains the whole utterance.
    edit_distance: enable the Levenshtein stage.
    ignore_size_words: drop size words from the utterance before scoring.
    stopwords: extra words ignored when scoring.
    """
    name: str
    aliases: dict[str, list[str]] = field(default_factory=dict)
    threshold: float | None = TOKEN_OVERLAP_THRESHOLD
    containment: bool = False
    edit_distance: bool = False
    ignore_size_words: bool = True
    stopwords: frozenset[str] = frozenset()


PRODUCT_POLICY = MatchPolicy(name="product", aliases=PRODUCT_ALIASES)
SIZE_POLICY = MatchPolicy(name="size", aliases=SIZE_ALIASES, ignore_size_words=False)
OPTION_POLICY = MatchPolicy(name="option", aliases=OPTION_KEYWORDS, threshold=None, containment=True)
BRANCH_POLICY = MatchPolicy(
    name="branch",
    stopwords=frozenset({"starbucks", "sucursal", "tienda", "cafeteria"}),
)
SUGGESTION_POLICY = MatchPolicy(
    name="suggestion",
    aliases={**PRODUCT_ALIASES, **OPTION_KEYWORDS},
    edit_distance=True,
    ignore_size_words=False,
)

# Minimum length of a word that takes part in token overlap
MIN_TOKEN_LENGTH = 3


def _tokens_match(token: str, candidate: str) -> bool:
    """Substring/superstring, or a small typo relative to the candidate word."""
    if token in candidate or candidate in token:
        return True
    return Levenshtein.distance(token, candidate) <= max(1, int(len(candidate) * 0.2))


def _overlap(tokens: list[str], name: str) -> tuple[float, float]:
    """
    Score a normalized name against utterance tokens.

    Returns (score, coverage): the share of utterance tokens found in the
    name, and the share of name words found in the utterance.
    """
    words = [w for w in name.split(" ") if len(w) >= MIN_TOKEN_LENGTH]
    if not tokens or not words:
        return 0.0, 0.0
    matched = sum(1 for t in tokens if any(_tokens_match(t, w) for w in words))
    covered = sum(1 for w in words if any(_tokens_match(t, w) for t in tokens))
    return matched / len(tokens), covered / len(words)


class MenuMatcher:
    """
    Fuzzy matcher over one catalog.

    Args:
        catalog: The catalog the products come from
        recommender: Source of time-of-day recommendations for suggestions
        max_suggestions: How many product suggestions a miss carries
    """

    def __init__(
        self,
        catalog: Catalog,
        recommender: Recommender | None = None,
        max_suggestions: int = MAX_SUGGESTIONS,
    ):
        self.catalog = catalog
        self.recommender = recommender or Recommender()
        self.max_suggestions = max_suggestions

        size_words = {normalize(word) for word in catalog.size_vocabulary()}
        for key, variants in SIZE_ALIASES.items():
            size_words.add(key)
            size_words.update(variants)
        self._size_words = {word for word in size_words if word}

    # =========================================================================
    # Public lookups
    # =========================================================================

    def match_product(self, utterance: str | None, products: Iterable[Product] | None = None) -> MatchResult:
        """
        Resolve an utterance to a product.

        Args:
            utterance: Raw customer text
            products: Candidate subset (defaults to the whole catalog)

        Returns:
            MatchResult with the Product as entity. An unavailable product is
            reported as found=False with error UNAVAILABLE and the product as
            entity.
        """
        pool = list(products) if products is not None else self.catalog.all_products()
        result = self._cascade(utterance, [(p.name, p) for p in pool], PRODUCT_POLICY)

        if result.found and not result.entity.available:
            logger.debug("Matched unavailable product '%s'", result.entity.name)
            return MatchResult(
                found=False,
                entity=result.entity,
                suggestions=self.suggest_products(pool),
                strategy=result.strategy,
                score=result.score,
                error=ErrorKind.UNAVAILABLE,
            )
        if not result.found:
            result.suggestions = self.suggest_products(pool)
        return result

    def match_size(self, utterance: str | None, product: Product) -> MatchResult:
        """Resolve an utterance to one of the product's sizes."""
        candidates: list[tuple[str, Any]] = []
        for size in product.sizes:
            candidates.append((size.label, size))
            if normalize(size.name) != normalize(size.label):
                candidates.append((size.name, size))

        result = self._cascade(utterance, candidates, SIZE_POLICY)
        if not result.found:
            result.suggestions = [size.label for size in product.sizes]
        return result

    def match_modifier_option(self, utterance: str | None, group: ModifierGroup) -> MatchResult:
        """Resolve an utterance to an option of the modifier group."""
        result = self._cascade(
            utterance, [(option.name, option) for option in group.options], OPTION_POLICY
        )
        if not result.found:
            result.suggestions = [option.name for option in group.options[:self.max_suggestions]]
        return result

    def match_branch(self, utterance: str | None, branches: Iterable[Branch]) -> MatchResult:
        """Resolve an utterance to a pickup branch."""
        branch_list = list(branches)
        result = self._cascade(utterance, [(b.name, b) for b in branch_list], BRANCH_POLICY)
        if not result.found:
            result.suggestions = [branch.name for branch in branch_list]
        return result

    def match_suggestion(self, utterance: str | None, suggestions: list[str]) -> MatchResult:
        """
        Resolve an answer against the suggestions offered on the last turn.

        A bare number, number word, "número N" or ordinal word selects the
        Nth suggestion (1-indexed). Otherwise the text cascade runs with the
        edit-distance stage enabled. The entity is the suggestion string.
        """
        if not suggestions:
            return MatchResult(found=False, error=ErrorKind.ENTITY_NOT_FOUND)

        position = parse_ordinal(utterance)
        if position is not None:
            if 1 <= position <= len(suggestions):
                logger.debug("Ordinal %d selects '%s'", position, suggestions[position - 1])
                return MatchResult(
                    found=True,
                    entity=suggestions[position - 1],
                    strategy="ordinal",
                    score=1.0,
                )
            return MatchResult(
                found=False,
                suggestions=list(suggestions),
                error=ErrorKind.ENTITY_NOT_FOUND,
            )

        result = self._cascade(utterance, [(s, s) for s in suggestions], SUGGESTION_POLICY)
        if not result.found:
            result.suggestions = list(suggestions)
        return result

    def suggest_products(self, products: Iterable[Product] | None = None) -> list[str]:
        """
        Product names to offer after a miss.

        Time-of-day recommendations present in the pool come first; the rest
        is topped up from the pool in catalog order, then from the whole
        catalog when the pool is too small. Unavailable products are never
        suggested.
        """
        pool = [
            p for p in (products if products is not None else self.catalog.all_products())
            if p.available
        ]
        by_name = {normalize(p.name): p for p in pool}

        names: list[str] = []
        for recommended in self.recommender.recommended_names():
            product = by_name.get(normalize(recommended))
            if product is not None and product.name not in names:
                names.append(product.name)
            if len(names) >= self.max_suggestions:
                return names

        for product in pool + self.catalog.all_products():
            if len(names) >= self.max_suggestions:
                break
            if product.available and product.name not in names:
                names.append(product.name)
        return names

    # =========================================================================
    # Cascade
    # =========================================================================

    def _cascade(
        self,
        utterance: str | None,
        candidates: list[tuple[str, Any]],
        policy: MatchPolicy,
    ) -> MatchResult:
        text = normalize(utterance)
        prepared = [(normalize(name), entity) for name, entity in candidates]
        prepared = [(name, entity) for name, entity in prepared if name]
        if not text or not prepared:
            return MatchResult(found=False, error=ErrorKind.ENTITY_NOT_FOUND)

        stages = (
            self._match_exact,
            self._match_spaceless,
            self._match_keyword,
            self._match_token_overlap,
            self._match_edit_distance,
        )
        for stage in stages:
            hit = stage(text, prepared, policy)
            if hit is not None:
                logger.debug(
                    "Matched %s '%s' -> '%s' via %s (score %.2f)",
                    policy.name, text, hit.name, hit.strategy, hit.score,
                )
                return hit

        logger.debug("No %s match for '%s'", policy.name, text)
        return MatchResult(found=False, error=ErrorKind.ENTITY_NOT_FOUND)

    def _match_exact(self, text: str, prepared: list[tuple[str, Any]], policy: MatchPolicy) -> MatchResult | None:
        for name, entity in prepared:
            if name == text:
                return MatchResult(found=True, entity=entity, strategy="exact", score=1.0)

        # Longest name mentioned as a phrase wins
        best: tuple[str, Any] | None = None
        for name, entity in prepared:
            if contains_phrase(text, name) and (best is None or len(name) > len(best[0])):
                best = (name, entity)

        if best is None and policy.containment and len(text) >= MIN_TOKEN_LENGTH:
            for name, entity in prepared:
                if contains_phrase(name, text):
                    best = (name, entity)
                    break

        if best is None:
            return None
        return MatchResult(found=True, entity=best[1], strategy="exact", score=1.0)

    def _match_spaceless(self, text: str, prepared: list[tuple[str, Any]], policy: MatchPolicy) -> MatchResult | None:
        compact = text.replace(" ", "")
        for name, entity in prepared:
            if name.replace(" ", "") == compact:
                return MatchResult(found=True, entity=entity, strategy="spaceless", score=1.0)
        return None

    def _match_keyword(self, text: str, prepared: list[tuple[str, Any]], policy: MatchPolicy) -> MatchResult | None:
        if not policy.aliases:
            return None

        hits: list[tuple[int, str, Any]] = []
        for index, (name, entity) in enumerate(prepared):
            for key, variants in policy.aliases.items():
                if key in name and any(contains_phrase(text, v) for v in variants):
                    hits.append((index, name, entity))
                    break
        if not hits:
            return None

        # Several names share the concept ("Croissant", "Croissant de Jamón"):
        # prefer the one the rest of the utterance describes best.
        tokens = self._utterance_tokens(text, policy)
        index, name, entity = max(
            hits, key=lambda hit: (_overlap(tokens, hit[1]), -len(hit[1]), -hit[0])
        )
        return MatchResult(found=True, entity=entity, strategy="keyword", score=1.0)

    def _match_token_overlap(self, text: str, prepared: list[tuple[str, Any]], policy: MatchPolicy) -> MatchResult | None:
        tokens = self._utterance_tokens(text, policy)
        if not tokens:
            return None

        best_key: tuple[float, float] | None = None
        best_entity: Any = None
        for name, entity in prepared:
            key = _overlap(tokens, name)
            if key[0] <= 0:
                continue
            if best_key is None or key > best_key:
                best_key = key
                best_entity = entity

        if best_key is None:
            return None
        if policy.threshold is not None and best_key[0] < policy.threshold:
            return None
        return MatchResult(
            found=True,
            entity=best_entity,
            strategy="token_overlap",
            score=round(best_key[0], 3),
        )

    def _match_edit_distance(self, text: str, prepared: list[tuple[str, Any]], policy: MatchPolicy) -> MatchResult | None:
        if not policy.edit_distance:
            return None

        best: tuple[int, str, Any] | None = None
        for name, entity in prepared:
            distance = Levenshtein.distance(text, name)
            if distance <= max(2, int(len(name) * 0.2)) and (best is None or distance < best[0]):
                best = (distance, name, entity)

        if best is None:
            return None
        distance, name, entity = best
        return MatchResult(
            found=True,
            entity=entity,
            strategy="edit_distance",
            score=round(1 - distance / max(len(name), 1), 3),
        )

    def _utterance_tokens(self, text: str, policy: MatchPolicy) -> list[str]:
        """Meaningful utterance words: long enough, not filler, not size words when ignored."""
        tokens = []
        for token in text.split(" "):
            if len(token) < MIN_TOKEN_LENGTH or token in FILLER_WORDS or token in policy.stopwords:
                continue
            if policy.ignore_size_words and token in self._size_words:
                continue
            tokens.append(token)
        return tokens


# =============================================================================
# One-off helpers
# =============================================================================

def match_product(
    utterance: str | None,
    products: Catalog | Iterable[Product],
    recommender: Recommender | None = None,
) -> MatchResult:
    """Match a product against a catalog or an explicit list of products."""
    if isinstance(products, Catalog):
        return MenuMatcher(products, recommender).match_product(utterance)
    pool = list(products)
    return MenuMatcher(Catalog(categories={"products": pool}), recommender).match_product(utterance, pool)


def match_size(utterance: str | None, product: Product) -> MatchResult:
    """Match one of the product's sizes."""
    return MenuMatcher(Catalog(categories={"products": [product]})).match_size(utterance, product)


def match_modifier_option(utterance: str | None, group: ModifierGroup) -> MatchResult:
    """Match an option of the modifier group."""
    return MenuMatcher(Catalog()).match_modifier_option(utterance, group)
