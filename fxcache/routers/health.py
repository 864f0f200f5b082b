from fastapi import APIRouter, Depends

from fxcache.routers.deps import get_manager
from fxcache.services.rates.cache_service import RateCacheManager

router = APIRouter(tags=["health"])


@router.get("/health")
def health(manager: RateCacheManager = Depends(get_manager)):
    state = manager.cache_state
    return {
        "status": "ok",
        "currencies": manager.currencies.count(),
        "rates": manager.rates.count(),
        "currencies_list_populated": state.populated,
    }
