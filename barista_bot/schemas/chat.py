"""
Chat Schemas for Barista Bot
============================

This module defines Pydantic models for the chat API endpoints, which carry
one customer conversation turn at a time. These schemas validate incoming
requests and structure outgoing responses.

Endpoint Coverage:
------------------
- POST /chat/start: Start a new chat session
- POST /chat/message: Send a message and receive a response
- GET /chat/{session_id}/history: Closed orders of a session

Key Concepts:
-------------
1. **Sessions**: Each conversation is identified by a session_id (UUID).
   Sessions hold the order in progress and the history of closed orders.

2. **Steps**: Every response names the step the assistant is waiting on
   ("branch", "size", "modifier:tipo_leche", ...), so a voice front-end can
   pick the right prompt audio or quick-reply buttons.

3. **Suggestions**: The choices offered with the prompt. Answering with a
   position ("el dos") picks from these.

Validation:
-----------
- Message length is constrained by MAX_MESSAGE_LENGTH (default: 500 chars);
  longer messages are rejected with 422 before reaching the engine.
- All required fields are enforced by Pydantic.

Usage:
------
    @router.post("/message", response_model=ChatMessageResponse)
    def chat_message(req: ChatMessageRequest, ...):
        # req is automatically validated
        return ChatMessageResponse(...)
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from ..config import MAX_MESSAGE_LENGTH


class ChatStartResponse(BaseModel):
    """
    Response from starting a new chat session.

    Attributes:
        session_id: Key for this chat session (use in subsequent requests)
        message: Greeting from the assistant
        speech: The greeting cleaned for text-to-speech
        step: Step the assistant now waits on
    """
    session_id: str
    message: str
    speech: str
    step: str


class ChatMessageRequest(BaseModel):
    """
    Request body for sending a chat message.

    Attributes:
        session_id: Key of the current chat session
        message: Customer's transcribed utterance (1-MAX_MESSAGE_LENGTH characters)
        turn: Optional client turn counter; retrying a message with the same
            turn returns the cached reply instead of processing it twice
    """
    session_id: str
    message: str = Field(..., min_length=1, max_length=MAX_MESSAGE_LENGTH)
    turn: Optional[int] = Field(None, ge=0)


class LineItemOut(BaseModel):
    """A priced line of the order."""
    kind: str
    name: str
    price: float
    size: Optional[str] = None


class PriceOut(BaseModel):
    """Running price of the order."""
    line_items: List[LineItemOut] = Field(default_factory=list)
    total: float = 0.0
    loyalty_points: int = 0


class ChatMessageResponse(BaseModel):
    """
    Response from sending a chat message.

    Attributes:
        reply: Assistant's reply text
        speech: The reply cleaned for text-to-speech
        step: Step the assistant now waits on ("done" once the order is closed)
        turn: Number of turns processed in this session
        suggestions: Choices offered with the prompt
        order_state: Current order fields
        price: Running itemized price (absent if the order cannot be priced)
        order_complete: True on the turn the order was closed
        order_data: Snapshot of the closed order (order number, lines, total, stars)
        cached: True when the reply was served from the response cache
    """
    reply: str
    speech: str
    step: str
    turn: int
    suggestions: List[str] = Field(default_factory=list)
    order_state: Dict[str, Any]
    price: Optional[PriceOut] = None
    order_complete: bool = False
    order_data: Optional[Dict[str, Any]] = None
    cached: bool = False


class OrderHistoryEntry(BaseModel):
    """A closed order in the session history."""
    order_number: str
    total: float
    loyalty_points: int
    line_items: List[LineItemOut]
    finalized_at: str


class ChatHistoryResponse(BaseModel):
    """Closed orders of a session, oldest first."""
    session_id: str
    orders: List[OrderHistoryEntry] = Field(default_factory=list)
