from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from .. import __version__
from ..indexer.config import Settings, load_settings
from ..indexer.engine_client import SearchEngineClient
from ..indexer.initialization import provision
from ..schema import HealthStatus
from ..search.config import QueryConfig
from ..search.search_service import SearchService
from ..utils.logging import get_logger
from .routers.search import router as search_router

logger = get_logger(__name__)


def create_app(settings: Optional[Settings] = None, client: Optional[SearchEngineClient] = None) -> FastAPI:
    """
    Build the API application.

    Provisioning runs inside the lifespan, so the app only starts serving
    once the collection is ready; a provisioning failure aborts startup.
    """
    app_settings = settings or load_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Application lifespan manager."""
        engine = client or SearchEngineClient(app_settings.to_engine_config())

        # Startup
        if app_settings.provision_on_startup:
            try:
                result = await provision(engine, app_settings)
            except Exception:
                await engine.close()
                raise
            app.state.provisioning_state = result.state
            logger.info("provisioning_complete", state=result.state.value, documents=result.documents_loaded)

        app.state.search_service = SearchService(engine, QueryConfig.from_settings(app_settings))
        yield
        # Shutdown
        await app.state.search_service.close()
        app.state.search_service = None

    app = FastAPI(title="KraickList Search", lifespan=lifespan)
    app.state.search_service = None
    app.state.provisioning_state = None

    app.include_router(search_router, prefix="/api/v1")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health")
    async def health_check() -> HealthStatus:
        return HealthStatus(status="ok", version=__version__)

    # Front-end at the root; mounted last so API routes match first
    static_dir = Path(app_settings.static_dir)
    if static_dir.is_dir():
        app.mount("/", StaticFiles(directory=static_dir, html=True), name="static")
    else:
        logger.info("static_dir_missing", path=str(static_dir))

    return app
