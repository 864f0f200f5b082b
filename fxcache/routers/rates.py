"""Rates router.

Endpoints:
    - GET  /rates                   -> cached entries, optionally for one base
    - GET  /rates/{base}/{second}   -> one cached entry (404 when never cached)
    - PUT  /rates/{base}/{second}   -> set a rate by hand (both currencies must exist)
    - POST /rates/refresh           -> fetch and store rates for the given bases
    - GET  /convert                 -> amount converted with the cached rate

Handlers are plain functions so FastAPI runs them in its threadpool; a slow
provider behind /rates/refresh never holds up /convert or /rates reads.
"""

from __future__ import annotations

import time
from typing import List, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query

from fxcache.models import ConversionOut, RateEntry, RateSetIn, RatesRefreshIn
from fxcache.routers.deps import get_conversion_engine, get_manager
from fxcache.services.rates.cache_service import RateCacheManager
from fxcache.services.rates.conversion import DEFAULT_PRECISION, ConversionEngine

router = APIRouter(tags=["rates"])


@router.get("/rates", response_model=List[RateEntry], summary="List cached rates")
def list_rates(
    base: Optional[str] = Query(None, description="Restrict to one base currency"),
    manager: RateCacheManager = Depends(get_manager),
):
    return manager.rates.list_rates(base)


@router.get(
    "/rates/{base}/{second}", response_model=RateEntry, summary="Get a cached rate"
)
def get_rate(
    base: str, second: str, manager: RateCacheManager = Depends(get_manager)
):
    entry = manager.rates.get_entry(base, second)
    if entry is None:
        raise HTTPException(
            status_code=404, detail=f"no rate cached for {base.upper()}/{second.upper()}"
        )
    return entry


@router.put(
    "/rates/{base}/{second}", response_model=RateEntry, summary="Set a rate manually"
)
def set_rate(
    base: str,
    second: str,
    payload: RateSetIn,
    manager: RateCacheManager = Depends(get_manager),
):
    timestamp = payload.timestamp if payload.timestamp is not None else int(time.time())
    if not manager.rates.upsert(base, second, payload.rate, timestamp):
        raise HTTPException(
            status_code=409,
            detail=f"a newer rate is cached for {base.upper()}/{second.upper()}",
        )
    return manager.rates.get_entry(base, second)


@router.post("/rates/refresh", summary="Refresh rates from the provider")
def refresh_rates(
    payload: Optional[RatesRefreshIn] = Body(None),
    manager: RateCacheManager = Depends(get_manager),
):
    report = manager.save_rates(payload.bases if payload else None)
    return report.to_dict()


@router.get("/convert", response_model=ConversionOut, summary="Convert an amount")
def convert(
    base: str = Query(..., min_length=1, max_length=10),
    second: str = Query(..., min_length=1, max_length=10),
    amount: float = Query(1.0, allow_inf_nan=False),
    precision: int = Query(DEFAULT_PRECISION, ge=0, le=12),
    engine: ConversionEngine = Depends(get_conversion_engine),
):
    res = engine.convert_detailed(base, second, amount, precision)
    return ConversionOut(
        base=res.base,
        second=res.second,
        amount=res.amount,
        rate=res.rate,
        precision=res.precision,
        result=res.result,
        available=res.available,
    )
