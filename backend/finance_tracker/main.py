from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session, sessionmaker

from finance_tracker.api.routers import api_router
from finance_tracker.core.config import Settings, get_settings
from finance_tracker.core.errors import ServiceError
from finance_tracker.db.init_db import ensure_schema, ensure_seed_data
from finance_tracker.db.session import build_connection_url, create_db_engine, create_session_factory

logger = logging.getLogger(__name__)


def create_app(
    settings: Settings | None = None,
    session_factory: sessionmaker[Session] | None = None,
) -> FastAPI:
    settings = settings or get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(title="Finance Tracker API")
    app.state.settings = settings
    app.state.session_factory = session_factory

    origins = [o.strip() for o in settings.cors_origins.split(",") if o.strip()]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api_router, prefix="/api")

    @app.exception_handler(ServiceError)
    async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.warning("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse(
            {"error": {"code": exc.code, "message": exc.message}},
            status_code=exc.status_code,
        )

    @app.on_event("startup")
    def on_startup() -> None:
        # The engine is built lazily so importing the module never connects.
        if app.state.session_factory is None:
            engine = create_db_engine(build_connection_url(settings))
            if settings.seed_on_startup:
                ensure_schema(engine)
            app.state.session_factory = create_session_factory(engine)

        if settings.seed_on_startup:
            with app.state.session_factory() as db:
                ensure_seed_data(db)

    return app


app = create_app()
