from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from tortoise.contrib.fastapi import RegisterTortoise

from .config import Settings, get_settings
from .ledger import ScoreLedger
from .log import get_logger, setup_logging
from .questions import QuestionProvider
from .routers import questions as questions_router
from .routers import rooms as rooms_router
from .routers import users as users_router
from .routers import websockets as ws_router
from .state import Runtime

logger = get_logger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    question_provider: Optional[QuestionProvider] = None,
    score_ledger: Optional[ScoreLedger] = None,
) -> FastAPI:
    settings = settings or get_settings()
    setup_logging(settings.log_level)

    runtime = Runtime(settings, question_provider=question_provider, score_ledger=score_ledger)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        async with RegisterTortoise(
            app,
            db_url=settings.database_url,
            modules={"models": ["sportsquiz.models"]},
            generate_schemas=settings.generate_schemas,
            add_exception_handlers=True,
        ):
            logger.info("%s started", settings.project_name)
            yield
            runtime.shutdown()

    app = FastAPI(title=settings.project_name, lifespan=lifespan)
    app.state.runtime = runtime

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Register routers
    app.include_router(users_router.router)
    app.include_router(questions_router.router)
    app.include_router(rooms_router.router)
    app.include_router(ws_router.router)
    return app


__all__ = ["create_app"]
