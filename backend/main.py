"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from backend import __version__
from backend.api import router as api_router
from backend.approaches import build_approach_factory
from backend.core.config import get_settings
from backend.core.logging import setup_logging
from backend.generation import ChatCompletionClient
from backend.search import SearchIndex, VectorMemory, index_corpus

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the shared search index and model client once per process."""
    settings = get_settings()
    setup_logging(settings.log_level)
    logger.info("Starting %s...", settings.app_name)

    search_index = SearchIndex()
    logger.info("Vector search enabled: %s", search_index.vectors_enabled)

    corpus_dir = Path(settings.corpus_dir)
    if corpus_dir.is_dir():
        index_corpus(search_index, corpus_dir)
    else:
        logger.warning("Corpus directory %s not found; starting with an empty index", corpus_dir)

    chat_client = ChatCompletionClient.from_settings(settings)

    memory = VectorMemory(search_index) if search_index.vectors_enabled else None

    app.state.search_index = search_index
    app.state.approach_factory = build_approach_factory(search_index, chat_client, memory)

    yield

    logger.info("Shutting down...")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="Ask questions and chat over your own documents",
        version=__version__,
        lifespan=lifespan,
    )

    # CORS middleware - configurable via CORS_ORIGINS env var
    cors_origins = settings.cors_origins.split(",") if settings.cors_origins != "*" else ["*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api_router)  # /api

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {
            "name": settings.app_name,
            "version": __version__,
            "endpoints": {
                "ask": "/api/ask - Answer a single question",
                "chat": "/api/chat - Answer within a conversation",
                "chat_stream": "/api/chat/stream - Streamed chat answer (NDJSON)",
                "documents": "/api/documents - Index a document",
                "status": "/api/status - Index statistics",
            },
        }

    @app.get("/health")
    async def health():
        """Health check endpoint."""
        return {"status": "healthy"}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
