from __future__ import annotations  # FastAPI server exposing the mock interview session API

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.routes import router
from config.settings import settings
from observability import configure_logging
from session_lifecycle import SessionLifecycleManager, build_manager


logger = logging.getLogger(__name__)


def create_app(manager: Optional[SessionLifecycleManager] = None) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if getattr(app.state, "manager", None) is None:
            app.state.manager = build_manager(settings)
            logger.info("Session manager ready (db=%s)", settings.DB_PATH)
        try:
            yield
        finally:
            app.state.manager.close()

    configure_logging()
    app = FastAPI(title="Mock Interview API", lifespan=lifespan)
    app.state.manager = manager
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.CORS_ORIGINS),
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(router)
    return app


app = create_app()
