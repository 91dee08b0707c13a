"""FastAPI application factory."""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from config.config import Config
from models.errors import AskWebError
from server.dependencies import get_conversation_store
from server.routes import chats, health, search
from server.utils import askweb_error_handler, validation_error_handler
from utils.logger import get_logger

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan event handler for startup/shutdown logic."""
    logger.info("FastAPI server starting up")
    config = Config()
    if not config.validate():
        logger.warning("Search endpoints will answer 500 until API keys are configured")

    yield

    # Let in-flight title synthesis land before the process exits
    store = getattr(get_conversation_store, "_instance", None)
    if store is not None and store.pending_title_count:
        logger.info(f"Waiting for {store.pending_title_count} pending chat titles")
        await store.wait_for_pending_titles()
    logger.info("FastAPI server shutting down")


def create_app() -> FastAPI:
    """Factory function to create FastAPI application."""
    app = FastAPI(
        title="AskWeb API",
        description="Conversational web search with cited answers",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(AskWebError, askweb_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)

    app.include_router(health.router)
    app.include_router(search.router)
    app.include_router(chats.router)

    return app
