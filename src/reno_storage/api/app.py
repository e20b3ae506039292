from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from .rate_limit import init_rate_limiter

from ..config import Settings, get_settings
from ..integrations.base import StorageConfigError
from ..services.photo_service import PhotoService, create_photo_service


def create_app(settings: Optional[Settings] = None, photo_service: Optional[PhotoService] = None) -> FastAPI:
    settings = settings or get_settings()

    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    logger = logging.getLogger(__name__)

    app = FastAPI(title="Renovation Storage API")
    init_rate_limiter(app)

    app.add_middleware(GZipMiddleware, minimum_size=1000)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # State/services
    if photo_service is None:
        try:
            photo_service = create_photo_service(settings)
        except StorageConfigError as e:
            # Key endpoints still work; photo endpoints answer 503.
            logger.warning("Photo storage disabled: %s", e)
    app.state.settings = settings
    app.state.photo_service = photo_service

    # Routers (import here to avoid circular imports)
    from .routes.keys import router as keys_router
    from .routes.photos import router as photos_router

    app.include_router(keys_router)
    app.include_router(photos_router)

    @app.get("/api/health")
    async def health():
        return {"status": "ok", "photo_storage": app.state.photo_service is not None}

    return app
