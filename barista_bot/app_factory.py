"""
Application factory for the ordering FastAPI application.

This module wires the catalog, the session store and the conversation
service into a FastAPI app. Tests build apps with their own catalog and
store; `run()` serves the default configuration with uvicorn.
"""

import json
import logging
import os
from pathlib import Path
from typing import Iterable, Optional

from dotenv import load_dotenv
from fastapi import APIRouter, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from .config import BRANCHES, CATALOG_PATH, CORS_ORIGINS, PAYMENT_METHODS
from .logging_config import setup_logging
from .middleware import RequestIDMiddleware
from .routes import chat_router, limiter
from .services.conversation import ConversationService
from .services.session import InMemorySessionStore
from .tasks.catalog import Branch, Catalog

logger = logging.getLogger(__name__)


def load_catalog(path: Optional[Path] = None) -> Catalog:
    """
    Load and validate the product catalog from a JSON file.

    The file holds {"categories": {category: [product, ...]}}.

    Raises:
        FileNotFoundError: The file does not exist
        pydantic.ValidationError: The catalog is malformed
    """
    path = Path(path or CATALOG_PATH)
    with path.open(encoding="utf-8") as f:
        data = json.load(f)
    catalog = Catalog.model_validate(data)
    logger.info(
        "Loaded catalog from %s: %d categories, %d products",
        path, len(catalog.categories), len(catalog.all_products()),
    )
    return catalog


def create_app(
    catalog: Optional[Catalog] = None,
    branches: Optional[Iterable[Branch]] = None,
    store: Optional[InMemorySessionStore] = None,
    service: Optional[ConversationService] = None,
) -> FastAPI:
    """
    Create a FastAPI application.

    Args:
        catalog: Product catalog (loaded from CATALOG_PATH if not provided)
        branches: Pickup branches (config defaults if not provided)
        store: Session store (a fresh in-memory store if not provided)
        service: Fully built conversation service; overrides the other arguments

    Returns:
        Configured FastAPI application
    """
    load_dotenv()
    setup_logging()

    if service is None:
        service = ConversationService(
            catalog=catalog if catalog is not None else load_catalog(),
            branches=branches if branches is not None else BRANCHES,
            store=store,
            payment_methods=PAYMENT_METHODS,
        )

    app = FastAPI(
        title="Barista Bot API",
        description="Slot-filling order engine for a Spanish voice coffee assistant",
        version="1.0.0",
    )
    app.state.conversation = service

    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Configure rate limiting
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    # Include routers with API version prefix
    api_v1 = APIRouter(prefix="/api/v1")
    api_v1.include_router(chat_router)
    app.include_router(api_v1)

    # Also mount at root for backward compatibility
    app.include_router(chat_router)

    # Health check endpoint
    @app.get("/health")
    def health_check():
        return {
            "status": "healthy",
            "sessions": service.store.stats(),
        }

    logger.info("Application created with %d products", len(service.catalog.all_products()))
    return app


def run(host: str = "0.0.0.0", port: Optional[int] = None, reload: bool = False) -> None:
    """
    Serve the application with uvicorn.

    Args:
        host: Host to bind to
        port: Port to run on (PORT env var, default 8000)
        reload: Enable auto-reload for development
    """
    import uvicorn

    if port is None:
        port = int(os.getenv("PORT", "8000"))
    logger.info("Starting server on %s:%d", host, port)
    uvicorn.run(create_app(), host=host, port=port, reload=reload)


if __name__ == "__main__":
    run()
