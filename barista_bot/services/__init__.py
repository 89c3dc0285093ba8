"""
Services Package for Barista Bot
================================

This package contains the stateful components of the application.

Available Services:
-------------------
- **session**: In-memory session store and response cache
- **conversation**: Runs customer turns against the session store

Usage:
------
    from barista_bot.services.session import InMemorySessionStore
    from barista_bot.services.conversation import ConversationService
"""
