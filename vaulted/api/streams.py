from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from typing import List, Optional, Literal
from loguru import logger

from vaulted.core.exceptions import (
    ExhaustedError,
    ProviderNotFoundError,
    RealDebridAPIError,
    ResolutionTimeoutError,
)
from vaulted.core.models import Resolution, StreamCandidate
from vaulted.services.aggregator import SourceAggregator

router = APIRouter()

# --- Models ---

class ProviderOut(BaseModel):
    id: str
    name: str
    enabled: bool
    priority: int

class ProviderToggle(BaseModel):
    enabled: bool

class ResolveRequest(BaseModel):
    catalog_id: str
    media_kind: Literal["movie", "series"] = "movie"
    season: Optional[int] = None
    episode: Optional[int] = None
    timeout: Optional[float] = None


def get_aggregator(request: Request) -> SourceAggregator:
    return request.app.state.aggregator

# --- Providers ---

@router.get("/providers", response_model=List[ProviderOut])
async def list_providers(aggregator: SourceAggregator = Depends(get_aggregator)):
    return [
        ProviderOut(id=p.id, name=p.name, enabled=p.enabled, priority=p.priority)
        for p in aggregator.registry.list()
    ]

@router.put("/providers/{provider_id}", response_model=ProviderOut)
async def toggle_provider(provider_id: str, body: ProviderToggle, aggregator: SourceAggregator = Depends(get_aggregator)):
    try:
        p = aggregator.registry.set_enabled(provider_id, body.enabled)
    except ProviderNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return ProviderOut(id=p.id, name=p.name, enabled=p.enabled, priority=p.priority)

# --- Streams ---

@router.get("/streams/{media_kind}/{catalog_id}", response_model=List[StreamCandidate])
async def list_streams(
    media_kind: Literal["movie", "series"],
    catalog_id: str,
    season: Optional[int] = None,
    episode: Optional[int] = None,
    aggregator: SourceAggregator = Depends(get_aggregator)
):
    """
    Ranked candidates for manual source selection.
    """
    return await aggregator.get_sorted_sources(catalog_id, media_kind, season, episode)

@router.post("/resolve", response_model=Resolution)
async def resolve(body: ResolveRequest, aggregator: SourceAggregator = Depends(get_aggregator)):
    logger.info(f"Resolve: {body.media_kind} {body.catalog_id} S{body.season}E{body.episode}")
    try:
        return await aggregator.find_stream(body.catalog_id, body.media_kind, body.season, body.episode, timeout=body.timeout)
    except ExhaustedError as e:
        return JSONResponse(status_code=404, content={"error": str(e), "attempted": e.attempted})
    except ResolutionTimeoutError as e:
        return JSONResponse(status_code=504, content={"error": str(e)})

# --- Debrid ---

@router.get("/debrid/user")
async def debrid_user(aggregator: SourceAggregator = Depends(get_aggregator)):
    try:
        user = await aggregator.validate_key()
    except RealDebridAPIError as e:
        logger.error(f"Real-Debrid key check failed: {e}")
        raise HTTPException(status_code=401, detail="Invalid Real-Debrid API key")
    if not user:
        raise HTTPException(status_code=401, detail="No Real-Debrid API key configured")
    return user
