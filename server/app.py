"""FastAPI application factory."""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config.config import Config
from server.dependencies import close_session
from server.routes import chat, conversation, health, search
from utils.logger import get_logger

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan event handler for startup/shutdown logic."""
    config = Config()
    logger.info(f"Assistant backend starting up ({config.get_model_info()})")
    if not config.validate():
        logger.warning("Configuration is invalid; requests may fail")

    yield

    await close_session()
    logger.info("Assistant backend shutting down")


def create_app() -> FastAPI:
    """Factory function to create FastAPI application."""
    app = FastAPI(
        title="Local Assistant API",
        description="Streaming chat and web search backend for the desktop assistant",
        version="1.0.0",
        lifespan=lifespan,
    )

    # The desktop shell loads its UI from a local origin
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health.router)
    app.include_router(chat.router)
    app.include_router(conversation.router)
    app.include_router(search.router)

    return app
