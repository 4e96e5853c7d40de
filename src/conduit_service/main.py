"""
Extension Service - Main FastAPI Application

Hosts a single extension and exposes the host-facing endpoints:
- Registration handshake (manifest)
- Event batch processing
- Audience membership and subscription processing
"""
import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Dict, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from conduit import Extension, load_extension

from .api import router
from .config import settings

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager.
    """
    extension: Extension = app.state.extension
    logger.info(
        f"Starting {settings.service_name} hosting {extension.name} v{extension.version} "
        f"({len(extension.handlers)} record handlers)"
    )
    yield
    logger.info(f"{settings.service_name} shutdown complete")


def create_app(extension: Optional[Extension] = None) -> FastAPI:
    """
    Build the application.

    Args:
        extension: Extension to host; loaded from settings.extension when omitted
    """
    if extension is None:
        extension = load_extension(settings.extension).with_options(
            distinct_skip_reasons=settings.distinct_skip_reasons,
        )

    app = FastAPI(
        title="Conduit Extension Service",
        description="Capability registration and batch processing for a Conduit extension",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.extension = extension

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(router)

    @app.get("/", tags=["Info"])
    async def root() -> Dict[str, str]:
        """Root endpoint with service info."""
        return {
            "service": settings.service_name,
            "extension": extension.name,
            "version": extension.version,
            "docs": "/docs",
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.host, port=settings.port)
