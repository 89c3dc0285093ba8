"""
Tests for the catalog models and the bundled catalog file.
"""
import pytest
from pydantic import ValidationError

from barista_bot.tasks.catalog import Catalog, ModifierGroup, Product, Size


class TestCatalogInvariants:
    """Structural rules enforced when the catalog is built."""

    def test_duplicate_size_ids_rejected(self):
        with pytest.raises(ValidationError):
            Product(
                id="latte",
                name="Latte",
                sizes=[
                    Size(id="grande", name="Grande", price=60),
                    Size(id="grande", name="Grande (16 oz)", price=65),
                ],
            )

    def test_negative_price_rejected(self):
        with pytest.raises(ValidationError):
            Size(id="alto", name="Alto", price=-1)

    @pytest.mark.parametrize("kwargs", [
        {"min": 2, "max": 1},
        {"min": -1, "max": 1},
        {"required": True, "min": 0, "max": 1},
    ])
    def test_invalid_cardinality_rejected(self, kwargs):
        with pytest.raises(ValidationError):
            ModifierGroup(id="tipo_leche", name="Tipo de leche", **kwargs)

    def test_models_are_immutable(self):
        size = Size(id="alto", name="Alto", price=50)
        with pytest.raises(ValidationError):
            size.price = 10


class TestProductHelpers:
    """Size and modifier helpers on Product."""

    def test_size_label_strips_ounces(self):
        assert Size(id="grande", name="Grande (16 oz)", price=69).label == "Grande"

    def test_requires_size_only_with_a_real_choice(self, catalog):
        assert catalog.find("caffe_latte").requires_size()
        assert not catalog.find("espresso").requires_size()
        assert not catalog.find("croissant").requires_size()

    def test_effective_size_prefers_selection_then_default(self, catalog):
        latte = catalog.find("caffe_latte")
        assert latte.effective_size("alto").id == "alto"
        assert latte.effective_size(None).id == "grande"
        assert latte.effective_size("gigante") is None

    def test_effective_size_falls_back_to_first(self, catalog):
        cappuccino = catalog.find("cappuccino")
        assert cappuccino.effective_size(None).id == "corto"

    def test_required_groups_keep_catalog_order(self, catalog):
        mocha = catalog.find("caffe_mocha")
        assert [g.id for g in mocha.required_groups()] == ["tipo_leche", "crema_batida"]

    def test_option_price_for_size(self, catalog):
        almendra = catalog.find("caffe_latte").get_group("tipo_leche").get_option("almendra")
        assert almendra.price_for("grande") == 10
        assert almendra.price_for("nope") == 0
        assert almendra.price_for(None) == 0


class TestBundledCatalog:
    """The sample catalog shipped with the package."""

    def test_categories_split_beverages_and_foods(self, catalog):
        beverage_ids = {p.id for p in catalog.beverages()}
        food_ids = {p.id for p in catalog.foods()}
        assert "cappuccino" in beverage_ids
        assert "croissant" in food_ids
        assert not beverage_ids & food_ids

    def test_find_and_category_of(self, catalog):
        assert catalog.find("americano").name == "Americano"
        assert catalog.find("missing") is None
        assert catalog.find(None) is None
        assert catalog.category_of("brownie") == "alimentos_dulces"

    def test_size_vocabulary(self, catalog):
        assert {"corto", "alto", "grande", "venti"} <= catalog.size_vocabulary()

    def test_missing_categories_fall_back_to_all_products(self):
        catalog = Catalog(categories={"menu": [Product(id="te", name="Té Verde", base_price=40)]})
        assert [p.id for p in catalog.beverages()] == ["te"]
        assert [p.id for p in catalog.foods()] == ["te"]
