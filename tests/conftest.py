"""
Shared fixtures: the bundled catalog, pinned clock and a TestClient wired to
an in-memory session store.
"""
from datetime import datetime

import pytest
from fastapi.testclient import TestClient

from barista_bot.app_factory import create_app, load_catalog
from barista_bot.config import BRANCHES, PAYMENT_METHODS
from barista_bot.routes import limiter
from barista_bot.services.conversation import ConversationService
from barista_bot.services.session import InMemorySessionStore, ResponseCache
from barista_bot.tasks.menu_lookup import MenuMatcher
from barista_bot.tasks.models import Order, ProductRef, SelectedModifier, Session
from barista_bot.tasks.recommendations import Recommender

# 09:00 -> morning recommendations (Caffè Latte, Cappuccino, Americano)
MORNING = datetime(2024, 5, 19, 9, 0)
ORDER_NUMBER = "SBX191234"


@pytest.fixture(scope="session")
def catalog():
    return load_catalog()


@pytest.fixture
def branches():
    return list(BRANCHES)


@pytest.fixture
def payment_methods():
    return list(PAYMENT_METHODS)


@pytest.fixture
def recommender():
    return Recommender(clock=lambda: MORNING)


@pytest.fixture
def matcher(catalog, recommender):
    return MenuMatcher(catalog, recommender=recommender)


@pytest.fixture
def store():
    return InMemorySessionStore(ttl_seconds=3600, max_size=100)


@pytest.fixture
def service(catalog, branches, store, matcher, payment_methods):
    return ConversationService(
        catalog=catalog,
        branches=branches,
        store=store,
        matcher=matcher,
        payment_methods=payment_methods,
        response_cache=ResponseCache(max_size=50),
        number_factory=lambda: ORDER_NUMBER,
    )


@pytest.fixture
def client(service):
    """FastAPI TestClient over a fresh in-memory store, rate limiting off."""
    limiter.enabled = False
    app = create_app(service=service)
    with TestClient(app) as test_client:
        yield test_client
    limiter.reset()


@pytest.fixture
def session():
    """A session whose customer has been greeted and is ready to order."""
    return Session(session_id="test-session", current_order=Order(welcomed=True, ready_to_order=True))


def make_latte_order(**overrides) -> Order:
    """A complete Caffè Latte Grande with whole milk, ready for payment."""
    fields = dict(
        welcomed=True,
        ready_to_order=True,
        branch="Starbucks Reforma 222",
        beverage=ProductRef(id="caffe_latte", name="Caffè Latte"),
        size="grande",
        selected_modifiers=[SelectedModifier(group_id="tipo_leche", option_id="entera")],
        food="none",
        reviewed=True,
        confirmed=True,
    )
    fields.update(overrides)
    return Order(**fields)


@pytest.fixture
def latte_order():
    """Factory for complete latte orders with optional field overrides."""
    return make_latte_order
