from __future__ import annotations

from fastapi import Depends, Request

from fxcache.services.rates.cache_service import RateCacheManager
from fxcache.services.rates.conversion import ConversionEngine


def get_manager(request: Request) -> RateCacheManager:
    return request.app.state.manager


def get_conversion_engine(
    manager: RateCacheManager = Depends(get_manager),
) -> ConversionEngine:
    return ConversionEngine(manager.rates)
