"""
Catalog Model.

Read-only pydantic view over the parsed menu: categories of products, their
sizes and modifier groups. Every other component of the ordering engine reads
the catalog through these models.

The catalog is immutable for the duration of a conversation. Structural
invariants (unique size ids, non-negative prices, modifier cardinalities) are
enforced when the models are built, so the matcher, state machine and price
calculator can rely on them.
"""

import re
from typing import Iterable

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class Size(BaseModel):
    """A serving size with its own absolute price."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    price: float = Field(ge=0)

    @property
    def label(self) -> str:
        """Short label for prompts: "Grande (16 oz)" -> "Grande"."""
        match = re.match(r"^([^(]+)", self.name)
        return match.group(1).strip() if match else self.name


class ModifierOption(BaseModel):
    """One selectable option inside a modifier group."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    price_per_size: dict[str, float] = Field(default_factory=dict)

    def price_for(self, size_id: str | None) -> float:
        """Surcharge for the given size (0 when absent)."""
        if size_id is None:
            return 0.0
        return self.price_per_size.get(size_id) or 0.0


class ModifierGroup(BaseModel):
    """A named set of options with cardinality constraints (e.g. milk type)."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    required: bool = False
    min: int = 0
    max: int = 1
    options: list[ModifierOption] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_cardinality(self) -> "ModifierGroup":
        if self.min < 0 or self.min > self.max:
            raise ValueError(
                f"Modifier group '{self.id}' must satisfy 0 <= min <= max "
                f"(got min={self.min}, max={self.max})"
            )
        if self.required and self.min < 1:
            raise ValueError(f"Required modifier group '{self.id}' must have min >= 1")
        return self

    def get_option(self, option_id: str) -> ModifierOption | None:
        for option in self.options:
            if option.id == option_id:
                return option
        return None


class Product(BaseModel):
    """A catalog product (beverage or food)."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    base_price: float = Field(default=0.0, ge=0)
    sizes: list[Size] = Field(default_factory=list)
    default_size: Size | None = None
    modifier_groups: list[ModifierGroup] = Field(default_factory=list)
    available: bool = True

    @field_validator("sizes")
    @classmethod
    def _unique_size_ids(cls, sizes: list[Size]) -> list[Size]:
        seen: set[str] = set()
        for size in sizes:
            if size.id in seen:
                raise ValueError(f"Duplicate size id '{size.id}'")
            seen.add(size.id)
        return sizes

    def requires_size(self) -> bool:
        """A size question is only needed when there is a real choice."""
        return len(self.sizes) > 1

    def get_size(self, size_id: str | None) -> Size | None:
        if size_id is None:
            return None
        for size in self.sizes:
            if size.id == size_id:
                return size
        return None

    def effective_size(self, size_id: str | None) -> Size | None:
        """
        Size used for pricing.

        The selected size when set; otherwise the default size, otherwise the
        first listed size. Returns None for sizeless products.
        """
        if size_id is not None:
            return self.get_size(size_id)
        if not self.sizes:
            return None
        if self.default_size is not None and self.get_size(self.default_size.id):
            return self.get_size(self.default_size.id)
        return self.sizes[0]

    def get_group(self, group_id: str) -> ModifierGroup | None:
        for group in self.modifier_groups:
            if group.id == group_id:
                return group
        return None

    def required_groups(self) -> list[ModifierGroup]:
        """Required modifier groups in catalog-declared order."""
        return [group for group in self.modifier_groups if group.required]


class Branch(BaseModel):
    """A physical pickup location."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    address: str | None = None


class PaymentMethod(BaseModel):
    """A declared payment method and how customers say it."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    keywords: list[str] = Field(default_factory=list)
    premium: bool = False


class Catalog(BaseModel):
    """
    Mapping from category name to products.

    Categories keep their declared order; flattening walks them in that order.
    """

    model_config = ConfigDict(frozen=True)

    categories: dict[str, list[Product]] = Field(default_factory=dict)

    def all_products(self) -> list[Product]:
        """Flatten all categories in declared order."""
        products: list[Product] = []
        for items in self.categories.values():
            products.extend(items)
        return products

    def find(self, product_id: str | None) -> Product | None:
        """Look up a product by id across all categories."""
        if product_id is None:
            return None
        for product in self.all_products():
            if product.id == product_id:
                return product
        return None

    def category_of(self, product_id: str) -> str | None:
        for category, items in self.categories.items():
            if any(product.id == product_id for product in items):
                return category
        return None

    def products_in(self, categories: Iterable[str]) -> list[Product]:
        """Products in the given categories, in the order the categories are listed."""
        products: list[Product] = []
        for category in categories:
            products.extend(self.categories.get(category, []))
        return products

    def beverages(self, categories: Iterable[str] | None = None) -> list[Product]:
        """
        Products offered during the beverage step.

        Falls back to every product when none of the beverage categories
        exist in this catalog.
        """
        if categories is None:
            from ..config import BEVERAGE_CATEGORIES
            categories = BEVERAGE_CATEGORIES
        return self.products_in(categories) or self.all_products()

    def foods(self, categories: Iterable[str] | None = None) -> list[Product]:
        """Products offered during the food step (all products if no food category exists)."""
        if categories is None:
            from ..config import FOOD_CATEGORIES
            categories = FOOD_CATEGORIES
        return self.products_in(categories) or self.all_products()

    def size_vocabulary(self) -> set[str]:
        """Every size label in the catalog, lower-cased."""
        vocabulary: set[str] = set()
        for product in self.all_products():
            for size in product.sizes:
                vocabulary.add(size.label.lower())
        return vocabulary
