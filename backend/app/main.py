from fastapi import FastAPI
from contextlib import asynccontextmanager

from backend.app.config import AppConfig
from backend.app.api.routes_state import router as state_router
from backend.app.api.routes_hierarchy import router as hierarchy_router
from backend.app.api.routes_locks import router as locks_router
from backend.app.api.routes_migration import router as migration_router
from backend.app.dependencies import get_hierarchy_service


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifecycle hooks.

    Loads the seed state once at startup so the first request
    does not pay for it.
    """
    get_hierarchy_service()

    yield


def create_app(config: AppConfig) -> FastAPI:
    app = FastAPI(
        title=config.app_name,
        lifespan=lifespan,
    )

    app.include_router(
        state_router,
        prefix=f"{config.api_prefix}/state",
        tags=["state"],
    )

    app.include_router(
        hierarchy_router,
        prefix=f"{config.api_prefix}/hierarchy",
        tags=["hierarchy"],
    )

    app.include_router(
        locks_router,
        prefix=f"{config.api_prefix}/locks",
        tags=["locks"],
    )

    app.include_router(
        migration_router,
        prefix=f"{config.api_prefix}/migration",
        tags=["migration"],
    )

    return app


config = AppConfig()
app = create_app(config)
