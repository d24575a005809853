# src/api/main.py

import logging

from fastapi import FastAPI
from contextlib import asynccontextmanager

from core.config.settings import settings
from core.containers.app_containers import AppContainer
from core.logging.logger import get_logger, setup_logging
from game.repository import ensure_player_indexes
from api.routes.health_router import router as health_router
from api.routes.github_router import router as github_router

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    container: AppContainer = app.container

    mongo_client = container.mongo_client()
    await ensure_player_indexes(mongo_client[settings.MONGO_DB_NAME])
    logger.info("Mongo connected, indexes ready")

    yield

    mongo_client.close()
    logger.info("Mongo disconnected")


def create_app() -> FastAPI:
    setup_logging(logging.DEBUG if settings.DEBUG else logging.INFO)

    container = AppContainer()
    container.wire(modules=["api.routes.health_router", "api.routes.github_router"])
    app = FastAPI(
        title=settings.APP_NAME,
        lifespan=lifespan
    )

    app.container = container

    app.include_router(health_router)
    app.include_router(github_router)

    return app


app = create_app()
