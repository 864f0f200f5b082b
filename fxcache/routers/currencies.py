"""Currencies router.

Endpoints:
    - GET  /currencies            -> cached list (fetched on first use)
    - GET  /currencies/selected   -> list restricted to tracked codes
    - POST /currencies/refresh    -> forced update from the provider
    - DELETE /local-data          -> wipe cached currencies and rates
"""

from __future__ import annotations

from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from fxcache.models import CurrencyListOut
from fxcache.routers.deps import get_manager
from fxcache.services.rates.cache_service import RateCacheManager

router = APIRouter(tags=["currencies"])


def _list_out(manager: RateCacheManager, mapping: Dict[str, str]) -> CurrencyListOut:
    state = manager.cache_state
    return CurrencyListOut(
        populated=state.populated, refreshed_at=state.refreshed_at, currencies=mapping
    )


@router.get(
    "/currencies", response_model=CurrencyListOut, summary="List known currencies"
)
def list_currencies(
    force_update: bool = Query(False, description="Refresh from the provider first"),
    manager: RateCacheManager = Depends(get_manager),
):
    mapping = manager.get_currencies_list(force_update=force_update)
    if mapping is None:
        if force_update:
            raise HTTPException(status_code=502, detail="no update applied")
        mapping = {}
    return _list_out(manager, mapping)


@router.get(
    "/currencies/selected",
    response_model=Dict[str, str],
    summary="Currencies list restricted to tracked codes",
)
def selected_currencies(
    codes: Optional[List[str]] = Query(None, description="Override tracked codes"),
    manager: RateCacheManager = Depends(get_manager),
):
    return manager.selected_currencies_list(codes)


@router.post(
    "/currencies/refresh",
    response_model=CurrencyListOut,
    summary="Force a currencies list update",
)
def refresh_currencies(manager: RateCacheManager = Depends(get_manager)):
    mapping = manager.get_currencies_list(force_update=True)
    if mapping is None:
        raise HTTPException(status_code=502, detail="no update applied")
    return _list_out(manager, mapping)


@router.delete("/local-data", summary="Delete all cached currencies and rates")
def clean_local_data(manager: RateCacheManager = Depends(get_manager)):
    removed = manager.clean_local_data()
    return {"status": "deleted", "removed": removed}
