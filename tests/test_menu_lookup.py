"""
Tests for the menu lookup cascade.
"""
from datetime import datetime

import pytest
from rapidfuzz.distance import Levenshtein

from barista_bot.tasks.errors import ErrorKind
from barista_bot.tasks.menu_lookup import MenuMatcher, match_product
from barista_bot.tasks.recommendations import Recommender, TimeOfDay, time_of_day


class TestLevenshtein:

    @pytest.mark.parametrize("a,b,expected", [
        ("", "", 0),
        ("latte", "latte", 0),
        ("latte", "", 5),
        ("capuchino", "cappuccino", 2),
        ("moca", "mocha", 1),
    ])
    def test_distances(self, a, b, expected):
        assert Levenshtein.distance(a, b) == expected

    def test_one_letter_typo_still_matches_a_word(self, matcher, branches):
        """"condeza" is one edit from "condesa"."""
        result = matcher.match_branch("en la de condeza", branches)
        assert result.found
        assert result.entity.name == "Starbucks Condesa"
        assert result.strategy == "token_overlap"


class TestMatchProduct:
    """Product resolution over the whole catalog or a subset."""

    def test_misspelled_product_with_size_word(self, matcher, catalog):
        """"capuchino grande" resolves to Cappuccino by token overlap."""
        result = matcher.match_product("quiero un capuchino grande", catalog.beverages())
        assert result.found
        assert result.entity.id == "cappuccino"
        assert result.strategy == "token_overlap"

    def test_exact_phrase(self, matcher, catalog):
        result = matcher.match_product("un americano por favor", catalog.beverages())
        assert result.found
        assert result.entity.id == "americano"
        assert result.strategy == "exact"

    def test_accent_insensitive(self, matcher):
        result = matcher.match_product("caffe latte")
        assert result.found
        assert result.entity.name == "Caffè Latte"

    def test_alias_keyword(self, matcher, catalog):
        result = matcher.match_product("un cruasan", catalog.foods())
        assert result.found
        assert result.entity.id == "croissant"
        assert result.strategy == "keyword"

    def test_alias_prefers_best_described_variant(self, matcher, catalog):
        result = matcher.match_product("un cruasan de jamon", catalog.foods())
        assert result.found
        assert result.entity.id == "croissant_jamon"

    def test_longest_exact_phrase_wins(self, matcher, catalog):
        result = matcher.match_product("croissant de jamon y queso", catalog.foods())
        assert result.entity.id == "croissant_jamon"

    def test_miss_carries_recommendations(self, matcher, catalog):
        result = matcher.match_product("una pizza hawaiana", catalog.beverages())
        assert not result.found
        assert result.error is ErrorKind.ENTITY_NOT_FOUND
        assert result.suggestions == ["Caffè Latte", "Cappuccino", "Americano"]

    def test_unavailable_product_is_reported(self, matcher, catalog):
        result = matcher.match_product("un nitro cold brew", catalog.beverages())
        assert not result.found
        assert result.error is ErrorKind.UNAVAILABLE
        assert result.entity.id == "nitro_cold_brew"
        assert "Nitro Cold Brew" not in result.suggestions

    def test_empty_utterance(self, matcher):
        result = matcher.match_product("")
        assert not result.found

    def test_module_level_helper_accepts_catalog(self, catalog, recommender):
        result = match_product("cappuccino", catalog, recommender=recommender)
        assert result.found
        assert result.entity.id == "cappuccino"


class TestMatchSize:
    """Size resolution for one product."""

    def test_size_label_exact(self, matcher, catalog):
        result = matcher.match_size("quiero un capuchino grande", catalog.find("cappuccino"))
        assert result.found
        assert result.entity.id == "grande"
        assert result.strategy == "exact"

    @pytest.mark.parametrize("utterance,size_id", [
        ("tall", "alto"),
        ("mediano", "grande"),
        ("el chico", "corto"),
        ("venti", "venti"),
    ])
    def test_size_aliases(self, matcher, catalog, utterance, size_id):
        result = matcher.match_size(utterance, catalog.find("caffe_latte"))
        assert result.found
        assert result.entity.id == size_id

    def test_size_not_offered(self, matcher, catalog):
        result = matcher.match_size("corto", catalog.find("caffe_mocha"))
        assert not result.found
        assert result.suggestions == ["Alto", "Grande", "Venti"]


class TestMatchModifierOption:
    """Option resolution inside one modifier group."""

    @pytest.fixture
    def milk(self, catalog):
        return catalog.find("caffe_latte").get_group("tipo_leche")

    @pytest.mark.parametrize("utterance,option_id", [
        ("leche de almendra", "almendra"),
        ("almendra", "almendra"),
        ("de soya", "soya"),
        ("descremada", "light"),
        ("coconut", "coco"),
    ])
    def test_options(self, matcher, milk, utterance, option_id):
        result = matcher.match_modifier_option(utterance, milk)
        assert result.found
        assert result.entity.id == option_id

    def test_miss_suggests_first_options(self, matcher, milk):
        result = matcher.match_modifier_option("de avena", milk)
        assert not result.found
        assert result.suggestions == ["Leche Entera", "Leche Light", "Leche Deslactosada"]


class TestMatchBranch:

    def test_branch_by_partial_name(self, matcher, branches):
        result = matcher.match_branch("en la de reforma", branches)
        assert result.found
        assert result.entity.name == "Starbucks Reforma 222"

    def test_brand_word_alone_is_not_enough(self, matcher, branches):
        result = matcher.match_branch("starbucks", branches)
        assert not result.found
        assert result.suggestions == [b.name for b in branches]


class TestMatchSuggestion:
    """Answers against the suggestions offered on the previous turn."""

    SUGGESTIONS = ["Latte", "Cappuccino", "Mocha"]

    @pytest.mark.parametrize("utterance", ["2", "el dos", "número 2", "la segunda"])
    def test_ordinal_selects_position(self, matcher, utterance):
        result = matcher.match_suggestion(utterance, self.SUGGESTIONS)
        assert result.found
        assert result.entity == "Cappuccino"
        assert result.strategy == "ordinal"

    def test_ordinal_out_of_range(self, matcher):
        result = matcher.match_suggestion("5", self.SUGGESTIONS)
        assert not result.found
        assert result.suggestions == self.SUGGESTIONS

    def test_close_spelling_matches(self, matcher):
        result = matcher.match_suggestion("moca", self.SUGGESTIONS)
        assert result.found
        assert result.entity == "Mocha"

    def test_no_suggestions(self, matcher):
        assert not matcher.match_suggestion("2", []).found


class TestSuggestProducts:
    """Suggestions after a miss depend on the time of day."""

    @pytest.mark.parametrize("hour,expected", [
        (8, TimeOfDay.MORNING),
        (12, TimeOfDay.AFTERNOON),
        (18, TimeOfDay.AFTERNOON),
        (19, TimeOfDay.NIGHT),
        (3, TimeOfDay.NIGHT),
    ])
    def test_time_of_day(self, hour, expected):
        assert time_of_day(datetime(2024, 1, 1, hour, 30)) is expected

    def test_night_recommendations(self, catalog):
        matcher = MenuMatcher(catalog, recommender=Recommender(clock=lambda: datetime(2024, 1, 1, 21, 0)))
        suggestions = matcher.suggest_products(catalog.beverages())
        assert suggestions[0] == "Caffè Mocha"
        assert "Chai Tea Latte" in suggestions
        assert len(suggestions) == 3

    def test_topped_up_from_pool(self, matcher, catalog):
        assert matcher.suggest_products(catalog.foods()) == [
            "Croissant", "Muffin de Moras Azules", "Brownie",
        ]

    def test_small_pool_is_topped_up_from_catalog(self, matcher, catalog):
        suggestions = matcher.suggest_products([catalog.find("brownie")])
        assert suggestions == ["Brownie", "Caffè Latte", "Cappuccino"]

    def test_top_up_skips_unavailable_products(self, matcher, catalog):
        suggestions = matcher.suggest_products([catalog.find("bagel_salmon")])
        assert len(suggestions) == 3
        assert "Bagel de Salmón" not in suggestions
