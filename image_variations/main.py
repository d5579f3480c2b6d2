"""Main FastAPI application entry point."""

import os
from contextlib import asynccontextmanager
from typing import Optional
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api import health, sessions
from .core import PromptBuilder, SessionRegistry, VariationOrchestrator
from .core.fanout import ImageGenerationClient
from .providers import GeminiImageClient
from .utils.config import Config, load_config
from .utils.logger import get_logger

logger = get_logger(__name__)


def build_client(config: Config) -> Optional[GeminiImageClient]:
    """Gemini client for the configured model, None without a credential."""
    if not config.has_credentials:
        logger.warning("GEMINI_API_KEY is not set; generation requests will be rejected")
        return None

    return GeminiImageClient(
        api_key=config.gemini_api_key,
        model=config.generation.model,
        base_url=config.generation.base_url,
        timeout=config.timeout_gemini_seconds,
    )


def create_app(
    config: Optional[Config] = None,
    client: Optional[ImageGenerationClient] = None,
) -> FastAPI:
    """
    Build the application.

    Args:
        config: Preloaded configuration; loaded from env/YAML when omitted
        client: Generation capability override; built from config when omitted
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Lifespan context manager for startup and shutdown.

        Builds the generation client and session registry on startup,
        closes the client on shutdown.
        """
        logger.info("Application starting up...")

        try:
            app_config = config or load_config()

            generation_client = client if client is not None else build_client(app_config)
            if isinstance(generation_client, GeminiImageClient):
                await generation_client.initialize()

            orchestrator = VariationOrchestrator(
                client=generation_client,
                builder=PromptBuilder(),
                variations=app_config.generation.variations,
                default_mime_type=app_config.generation.default_mime_type,
            )
            registry = SessionRegistry(
                orchestrator,
                swipe_threshold=app_config.viewer.swipe_threshold,
                idle_ttl_seconds=app_config.sessions.idle_ttl_seconds,
            )

            app.state.config = app_config
            app.state.client = generation_client
            app.state.orchestrator = orchestrator
            app.state.registry = registry

            logger.info(
                "Application startup complete",
                extra={
                    "model": app_config.generation.model,
                    "variations": app_config.generation.variations,
                }
            )

        except Exception as e:
            logger.error(f"Startup failed: {e}")
            raise

        yield

        logger.info("Application shutting down...")

        if isinstance(generation_client, GeminiImageClient):
            await generation_client.close()

        logger.info("Application shutdown complete")

    app = FastAPI(
        title="Image Variations",
        description="Generates several image variations from reference images and edit instructions",
        version="1.0.0",
        lifespan=lifespan,
    )

    # Add CORS middleware (adjust origins for production)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health.router, prefix="/health", tags=["health"])
    app.include_router(sessions.router, prefix="/sessions", tags=["sessions"])

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {
            "service": "image-variations",
            "version": "1.0.0",
            "status": "running",
            "docs": "/docs",
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    port = int(os.getenv("PORT", 8000))

    uvicorn.run(
        "image_variations.main:app",
        host="0.0.0.0",
        port=port,
        reload=True,
        log_level="info",
    )
