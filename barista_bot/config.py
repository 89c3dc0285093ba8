"""
Configuration Module for Barista Bot
====================================

This module centralizes the configuration settings, environment variables and
constants used throughout the ordering engine. All values are parsed at import
time so configuration errors surface when the application starts.

Configuration Categories:
-------------------------
- **Branches**: Pickup locations offered during the branch step.

- **Payment & Loyalty**: The enumeration of accepted payment methods and the
  loyalty-point divisors. The premium rate is granted by an explicit flag on
  the payment method rather than inferred from its name.

- **Catalog**: Where the parsed catalog comes from and which categories hold
  beverages and food.

- **Matching**: Thresholds used by the fuzzy matcher.

- **Session Management**: TTL and cache sizes for the in-memory session store
  and response cache.

- **Input Validation / CORS / Rate Limiting**: HTTP layer constraints.

Environment Variables:
----------------------
- SESSION_TTL_SECONDS: Idle session expiry (default: 3600)
- SESSION_MAX_CACHE_SIZE: Max sessions kept in memory (default: 1000)
- RESPONSE_CACHE_SIZE: Max cached replies (default: 50)
- MAX_MESSAGE_LENGTH: Max user message length (default: 500)
- CATALOG_PATH: JSON catalog to load (default: bundled sample)
- CORS_ORIGINS: Comma-separated allowed origins (default: "*")
- ORDER_NUMBER_PREFIX: Prefix for generated order numbers (default: "SBX")
- RATE_LIMIT_CHAT: Chat endpoint rate limit (default: "30 per minute")
- RATE_LIMIT_ENABLED: Enable/disable rate limiting (default: "true")

Usage:
------
    from barista_bot.config import (
        BRANCHES,
        PAYMENT_METHODS,
        SESSION_TTL_SECONDS,
    )
"""

import os
from pathlib import Path
from typing import List

from .tasks.catalog import Branch, PaymentMethod


# =============================================================================
# Branch Configuration
# =============================================================================
# Physical pickup locations. The branch step matches the customer's answer
# against these names.

BRANCHES: List[Branch] = [
    Branch(id="1", name="Starbucks Reforma 222", address="Av. Reforma 222, CDMX"),
    Branch(id="2", name="Starbucks Insurgentes Sur", address="Av. Insurgentes Sur 1431, CDMX"),
    Branch(id="3", name="Starbucks Condesa", address="Av. Tamaulipas 123, CDMX"),
]


# =============================================================================
# Payment & Loyalty Configuration
# =============================================================================
# Stars are earned at 1 per LOYALTY_PREMIUM_DIVISOR pesos when paying with a
# premium method, 1 per LOYALTY_STANDARD_DIVISOR pesos otherwise.

PAYMENT_METHODS: List[PaymentMethod] = [
    PaymentMethod(
        id="cash",
        name="Efectivo",
        keywords=["efectivo", "cash", "billete", "billetes"],
    ),
    PaymentMethod(
        id="bank_card",
        name="Tarjeta bancaria",
        keywords=["tarjeta", "tarjeta bancaria", "debito", "credito", "visa", "mastercard"],
    ),
    PaymentMethod(
        id="starbucks_card",
        name="Starbucks Card",
        keywords=["starbucks card", "starbucks", "tarjeta starbucks", "rewards"],
        premium=True,
    ),
]

LOYALTY_PREMIUM_DIVISOR: int = 10
LOYALTY_STANDARD_DIVISOR: int = 20


def get_premium_payment_methods() -> List[str]:
    """
    Names of the payment methods that earn the premium loyalty rate.

    Returns:
        List of payment method display names flagged as premium
    """
    return [method.name for method in PAYMENT_METHODS if method.premium]


# =============================================================================
# Catalog Configuration
# =============================================================================

_DEFAULT_CATALOG_PATH = Path(__file__).resolve().parent / "data" / "catalog.json"
CATALOG_PATH: Path = Path(os.getenv("CATALOG_PATH", str(_DEFAULT_CATALOG_PATH)))

# Category names searched during the beverage and food steps
BEVERAGE_CATEGORIES: List[str] = [
    "bebidas_calientes",
    "bebidas_frias",
    "frappuccino",
    "bebidas_te",
]

FOOD_CATEGORIES: List[str] = [
    "panaderia",
    "alimentos_dulces",
    "alimentos_salados",
    "alimentos_saludables",
]


# =============================================================================
# Matching Configuration
# =============================================================================

# Minimum token-overlap score for products, sizes and branches
TOKEN_OVERLAP_THRESHOLD: float = 0.5

# Maximum suggestions offered when a product is not recognized
MAX_SUGGESTIONS: int = 3


# =============================================================================
# Order Numbers
# =============================================================================

ORDER_NUMBER_PREFIX: str = os.getenv("ORDER_NUMBER_PREFIX", "SBX")


# =============================================================================
# Session Management Configuration
# =============================================================================
# Sessions live in memory only. Idle sessions expire after the TTL; when the
# store is full the least recently used idle sessions are evicted.

SESSION_TTL_SECONDS: int = int(os.getenv("SESSION_TTL_SECONDS", "3600"))  # 1 hour
SESSION_MAX_CACHE_SIZE: int = int(os.getenv("SESSION_MAX_CACHE_SIZE", "1000"))

# Replies cached by (utterance, turn, session); oldest entries dropped first
RESPONSE_CACHE_SIZE: int = int(os.getenv("RESPONSE_CACHE_SIZE", "50"))


# =============================================================================
# Input Validation Configuration
# =============================================================================

# Voice transcripts are short; anything longer is rejected by the HTTP layer
MAX_MESSAGE_LENGTH: int = int(os.getenv("MAX_MESSAGE_LENGTH", "500"))


# =============================================================================
# CORS Configuration
# =============================================================================

_cors_origins_env = os.getenv("CORS_ORIGINS", "")
CORS_ORIGINS: List[str] = [
    origin.strip()
    for origin in _cors_origins_env.split(",")
    if origin.strip()
] or ["*"]


# =============================================================================
# Rate Limiting Configuration
# =============================================================================
# Protects the chat endpoints from abuse. Uses slowapi with in-memory storage
# (use Redis for multi-worker prod).

# Rate limit format: "X per Y" where Y is second, minute, hour, or day
RATE_LIMIT_CHAT: str = os.getenv("RATE_LIMIT_CHAT", "30 per minute")
RATE_LIMIT_ENABLED: bool = os.getenv("RATE_LIMIT_ENABLED", "true").lower() == "true"


def get_rate_limit_chat() -> str:
    """
    Return the current chat rate limit.

    Read on every request so tests can override the module-level constant.
    """
    return RATE_LIMIT_CHAT
