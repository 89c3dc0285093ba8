"""
Schemas Package for Barista Bot
===============================

Pydantic request/response models for the HTTP API.
"""

from .chat import (
    ChatStartResponse,
    ChatMessageRequest,
    ChatMessageResponse,
    ChatHistoryResponse,
    OrderHistoryEntry,
    LineItemOut,
    PriceOut,
)

__all__ = [
    "ChatStartResponse",
    "ChatMessageRequest",
    "ChatMessageResponse",
    "ChatHistoryResponse",
    "OrderHistoryEntry",
    "LineItemOut",
    "PriceOut",
]
