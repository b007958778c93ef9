"""Flight search router."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends

from flightbooker_api.cache.redis_client import CacheStore
from flightbooker_api.dependencies import get_cache, get_inventory_provider
from flightbooker_api.providers.base import FlightInventoryProvider
from flightbooker_api.schemas.search import FlightSearchRequest, FlightSearchResponse
from flightbooker_api.services.search_service import SearchService

router = APIRouter(prefix="/search", tags=["search"])

CacheDep = Annotated[CacheStore, Depends(get_cache)]
ProviderDep = Annotated[FlightInventoryProvider, Depends(get_inventory_provider)]


@router.post("/flights", response_model=FlightSearchResponse)
async def search_flights(
    request: FlightSearchRequest,
    cache: CacheDep,
    provider: ProviderDep,
) -> FlightSearchResponse:
    """Search for flights matching the given criteria."""
    service = SearchService(cache, provider)
    return await service.search_flights(request)
