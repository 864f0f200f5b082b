"""HTTP surface for the rates cache.

One RateCacheManager is built per application and shared by every router
through `app.state.manager`; the worker process builds its own from the same
settings, and the two meet in the SQLite database.

Run with: uvicorn fxcache.main:create_app --factory
"""

import logging
import sqlite3
from typing import Optional

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from .core import errors
from .core.config import Settings, get_settings
from .core.logging import init_logging, request_context_middleware
from .routers import currencies, health, rates
from .services.rates.cache_service import RateCacheManager, build_rate_cache_manager

logger = logging.getLogger("fxcache.app")

EXCEPTION_HANDLERS = (
    (StarletteHTTPException, errors.not_found_handler),
    (RequestValidationError, errors.validation_error_handler),
    (errors.UnknownCurrency, errors.unknown_currency_handler),
    (Exception, errors.server_error_handler),
)


def create_app(
    settings_override: Optional[Settings] = None,
    manager: Optional[RateCacheManager] = None,
) -> FastAPI:
    """Build the API around a single rate cache manager.

    settings_override isolates tests (temp DB); manager injects a prepared
    manager (e.g. one with a fake provider). Without one, the manager is built
    from settings, which also migrates the database.
    """
    settings = settings_override or get_settings()
    if settings.db_path is None:
        settings.init_post_load()
    init_logging(debug=settings.debug)

    if manager is None:
        try:
            manager = build_rate_cache_manager(settings)
        except sqlite3.Error:
            logger.exception("cannot open rates database at %s", settings.db_path)
            raise

    app = FastAPI(title=settings.app_name, debug=settings.debug, version=settings.version)
    app.state.settings = settings
    app.state.manager = manager

    app.middleware("http")(request_context_middleware)
    for exc_class, handler in EXCEPTION_HANDLERS:
        app.add_exception_handler(exc_class, handler)
    for module in (health, currencies, rates):
        app.include_router(module.router)

    @app.get("/")
    def root():
        return {
            "message": settings.app_name,
            "version": settings.version,
            "restricted_mode": settings.fixer_test_mode,
        }

    logger.info(
        "rates cache API ready",
        extra={"db_path": str(manager.db.db_path), "restricted_mode": settings.fixer_test_mode},
    )
    return app
