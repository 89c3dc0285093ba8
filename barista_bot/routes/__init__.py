"""
Routes Package for Barista Bot
==============================

This package contains the API route definitions. Each module defines a
FastAPI APIRouter with related endpoints grouped together.

**Customer-Facing Routes:**
- chat.py: Chat session and messaging endpoints for ordering

Router Registration:
--------------------
Routers are registered in app_factory.py under two prefixes:
1. /api/v1/* - Versioned API (recommended)
2. /* - Root paths for backward compatibility

Usage:
------
    from barista_bot.routes import chat_router
"""

from .chat import chat_router, limiter

__all__ = ["chat_router", "limiter"]
