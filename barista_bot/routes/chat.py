"""
Chat Routes for Barista Bot
===========================

This module contains the customer-facing chat endpoints of the voice ordering
assistant. A voice front-end transcribes the customer, posts the text here,
and speaks the returned reply.

Endpoints:
----------
- POST /chat/start: Start a new chat session
- POST /chat/message: Send a message (synchronous response)
- GET /chat/{session_id}/history: Closed orders of a session

Conversation Flow:
------------------
1. Client calls /chat/start to get a session_id and the greeting
2. Client sends each utterance via /chat/message
3. The reply names the step the assistant waits on and the offered choices
4. On the turn the order closes, order_complete is true and order_data
   carries the order number, total and loyalty stars

Error Handling:
---------------
- 404: Unknown or expired session_id
- 409: The session was modified concurrently; the client should retry
- 422: Invalid request body (e.g. message too long)
- 429: Rate limit exceeded (RATE_LIMIT_CHAT per client address)
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from ..config import RATE_LIMIT_ENABLED, get_rate_limit_chat
from ..services.conversation import ConversationService, TurnResult
from ..tasks.errors import SessionNotFound, StaleSessionWrite
from ..schemas.chat import (
    ChatHistoryResponse,
    ChatMessageRequest,
    ChatMessageResponse,
    ChatStartResponse,
    OrderHistoryEntry,
    LineItemOut,
)

logger = logging.getLogger(__name__)

chat_router = APIRouter(prefix="/chat", tags=["Chat"])


# =============================================================================
# Rate Limiting Setup
# =============================================================================

limiter = Limiter(key_func=get_remote_address, enabled=RATE_LIMIT_ENABLED)


def get_conversation_service(request: Request) -> ConversationService:
    """Conversation service created by the app factory."""
    return request.app.state.conversation


def _message_response(result: TurnResult) -> ChatMessageResponse:
    return ChatMessageResponse(
        reply=result.reply,
        speech=result.speech,
        step=result.step,
        turn=result.turn,
        suggestions=result.suggestions,
        order_state=result.order,
        price=result.price,
        order_complete=result.order_complete,
        order_data=result.order_data,
        cached=result.cached,
    )


# =============================================================================
# Chat Endpoints
# =============================================================================

@chat_router.post("/start", response_model=ChatStartResponse)
@limiter.limit(get_rate_limit_chat)
def chat_start(
    request: Request,
    service: ConversationService = Depends(get_conversation_service),
) -> ChatStartResponse:
    """Start a new chat session and return the greeting."""
    result = service.start()
    return ChatStartResponse(
        session_id=result.session_id,
        message=result.reply,
        speech=result.speech,
        step=result.step,
    )


@chat_router.post("/message", response_model=ChatMessageResponse)
@limiter.limit(get_rate_limit_chat)
def chat_message(
    request: Request,
    req: ChatMessageRequest,
    service: ConversationService = Depends(get_conversation_service),
) -> ChatMessageResponse:
    """Send a customer utterance and receive the assistant's reply."""
    try:
        result = service.handle_turn(req.session_id, req.message, req.turn)
    except SessionNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except StaleSessionWrite as e:
        logger.warning("Concurrent update on session %s", req.session_id[:8])
        raise HTTPException(status_code=409, detail=str(e))
    return _message_response(result)


@chat_router.get("/{session_id}/history", response_model=ChatHistoryResponse)
def chat_history(
    session_id: str,
    service: ConversationService = Depends(get_conversation_service),
) -> ChatHistoryResponse:
    """List the orders closed in a session."""
    try:
        history = service.get_history(session_id)
    except SessionNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))

    orders = [
        OrderHistoryEntry(
            order_number=entry.order_number,
            total=float(entry.total),
            loyalty_points=entry.loyalty_points,
            line_items=[
                LineItemOut(kind=item.kind, name=item.name, price=float(item.price), size=item.size)
                for item in entry.line_items
            ],
            finalized_at=entry.finalized_at.isoformat(),
        )
        for entry in history
    ]
    return ChatHistoryResponse(session_id=session_id, orders=orders)
