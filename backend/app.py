import asyncio
import contextlib
import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path

import setproctitle
from brotli_asgi import BrotliMiddleware
from fastapi import FastAPI, APIRouter
from starlette.middleware import Middleware
from starlette.middleware.sessions import SessionMiddleware

import settings
from routes.auth_route import router as auth_router, get_version
from routes.connections import router as connections_router
from routes.notifications import router as notifications_router
from services.feed import change_feed
from services.reconcile import reconcile_periodically
from utils import setup_logs

logger = logging.getLogger("soundalchemy.main")
setup_logs()
setproctitle.setproctitle("SoundAlchemy API")


def update_database():  # pragma: no cover
    """Init the DB or run the Alembic migrations"""
    import alembic.config

    if not Path("alembic.ini").is_file():
        os.chdir(settings.BACKEND_DIR)

    try:
        alembic.config.main(
            argv=[
                "--raiseerr",
                "upgrade",
                "head",
            ]
        )
    except Exception as e:
        logger.exception(f"Cannot run DB migrations: {e}")


@asynccontextmanager
async def app_lifespan(app: FastAPI):
    """Lifespan context manager for FastAPI app"""
    logger.debug("Starting...")
    update_database()
    sweeper = None
    if settings.RECONCILE_INTERVAL_SECONDS > 0:
        sweeper = asyncio.create_task(
            reconcile_periodically(settings.RECONCILE_INTERVAL_SECONDS, feed=change_feed)
        )
    yield
    change_feed.close()
    if sweeper is not None:
        sweeper.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await sweeper
    logger.debug("Closing app")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application"""

    app = FastAPI(
        title="SoundAlchemy",
        description="Musician connections: friend requests, friends and notifications",
        version=get_version(),
        middleware=[
            Middleware(BrotliMiddleware, minimum_size=1000),
            Middleware(SessionMiddleware, secret_key=settings.SESSION_SECRET_KEY),
        ],
        swagger_ui_parameters={
            "defaultModelsExpandDepth": 0,
        },  # collapse the swagger schema
        lifespan=app_lifespan,
    )

    # Mount routers
    api_router = APIRouter()
    api_router.include_router(auth_router)
    api_router.include_router(connections_router, tags=["connections"])
    api_router.include_router(notifications_router, tags=["notifications"])
    app.include_router(api_router, prefix=settings.API_PREFIX)
    return app
