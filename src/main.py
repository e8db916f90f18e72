"""Application factory. Run with `chess-arena` or `uvicorn src.main:create_app --factory`."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.api.routes import arena_error_handler, router
from src.core.config import Settings, configure_logging
from src.core.exceptions import ArenaError
from src.services.arena_service import ArenaService, build_arena_service

logger = logging.getLogger(__name__)

VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Rooms and payment state live only as long as the process; shutdown drops every room."""
    yield
    service: ArenaService = app.state.service
    logger.info("Shutting down, dropping %s room(s)", len(service.registry))
    service.registry.clear()


def create_app(
    settings: Optional[Settings] = None, service: Optional[ArenaService] = None
) -> FastAPI:
    settings = settings or Settings.from_env()
    configure_logging(settings.log_level)

    app = FastAPI(title="Chess Stake Arena", version=VERSION, lifespan=lifespan)
    app.state.service = service or build_arena_service(settings)
    app.add_middleware(
        CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"]
    )
    app.add_exception_handler(ArenaError, arena_error_handler)
    app.include_router(router, prefix="/api")

    logger.info(
        "Chess Stake Arena %s - wallet: %s",
        VERSION,
        settings.wallet_address or "NOT SET",
    )
    return app


def run() -> None:
    settings = Settings.from_env()
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port)
