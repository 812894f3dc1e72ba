"""Pricing router: cached snapshots, explicit refresh and polling control."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, HTTPException

from api.models.prices import PriceResponse, TokenInfo, TokenListResponse, WatchRequest, WatchResponse
from api.services.prices import price_service
from stableswap.errors import UnsupportedError

router = APIRouter()


@router.get("/prices/{chain}/{token}", response_model=PriceResponse)
async def get_price(chain: str, token: str):
    try:
        snapshot = await price_service.get_price(chain, token)
    except UnsupportedError as exc:
        raise HTTPException(status_code=404, detail=exc.message) from exc
    return PriceResponse.from_snapshot(snapshot)


@router.post("/prices/{chain}/{token}/refresh", response_model=PriceResponse)
async def refresh_price(chain: str, token: str):
    try:
        snapshot = await price_service.refresh_price(chain, token)
    except UnsupportedError as exc:
        raise HTTPException(status_code=404, detail=exc.message) from exc
    return PriceResponse.from_snapshot(snapshot)


@router.post("/prices/{chain}/{token}/watch", response_model=WatchResponse)
async def watch_price(chain: str, token: str, payload: Optional[WatchRequest] = None):
    interval_ms = payload.interval_ms if payload else None
    try:
        key = await price_service.watch(chain, token, interval_ms)
    except UnsupportedError as exc:
        raise HTTPException(status_code=404, detail=exc.message) from exc
    return WatchResponse(key=str(key), polling=price_service.is_polling(key))


@router.delete("/prices/{chain}/{token}/watch", response_model=WatchResponse)
async def unwatch_price(chain: str, token: str):
    try:
        key = price_service.unwatch(chain, token)
    except UnsupportedError as exc:
        raise HTTPException(status_code=404, detail=exc.message) from exc
    return WatchResponse(key=str(key), polling=price_service.is_polling(key))


@router.get("/tokens/{chain}", response_model=TokenListResponse)
async def list_tokens(chain: str):
    try:
        tokens = price_service.list_tokens(chain)
    except UnsupportedError as exc:
        raise HTTPException(status_code=404, detail=exc.message) from exc
    items = [TokenInfo.from_allowed(token) for token in tokens]
    return TokenListResponse(chain=chain, count=len(items), items=items)
