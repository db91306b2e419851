# path: tcat-route-api/app/main.py

from __future__ import annotations

import logging

from fastapi import FastAPI

from app.api.routes.routes import router as routes_router
from app.core.config import Settings, load_settings


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or load_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    app = FastAPI(title="tcat-route-api")
    app.include_router(routes_router)
    return app


app = create_app()
