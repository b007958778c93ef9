"""Booking router."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Header, HTTPException, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from flightbooker_api.cache.redis_client import CacheStore
from flightbooker_api.dependencies import (
    client_ip,
    get_cache,
    get_db,
    require_current_user,
    user_id_from_token,
)
from flightbooker_api.errors import (
    BookingCreationError,
    BookingNotFoundError,
    BookingValidationError,
)
from flightbooker_api.schemas.bookings import BookingRequest, BookingResult
from flightbooker_api.schemas.common import ErrorResponse
from flightbooker_api.services.booking_service import BookingService

router = APIRouter(prefix="/bookings", tags=["bookings"])

DbDep = Annotated[AsyncSession, Depends(get_db)]
CacheDep = Annotated[CacheStore, Depends(get_cache)]
CurrentUser = Annotated[dict, Depends(require_current_user)]


@router.post(
    "",
    response_model=BookingResult,
    status_code=status.HTTP_201_CREATED,
    responses={
        200: {"model": BookingResult, "description": "Idempotent replay"},
        401: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
async def create_booking(
    body: BookingRequest,
    request: Request,
    response: Response,
    db: DbDep,
    cache: CacheDep,
    current_user: CurrentUser,
    idempotency_key: Annotated[
        str | None, Header(alias="Idempotency-Key", min_length=1, max_length=128)
    ] = None,
) -> BookingResult:
    """Create a booking; repeating the same ``Idempotency-Key`` replays it."""
    service = BookingService(db, cache)
    try:
        result = await service.create_booking(
            body,
            user_id=user_id_from_token(current_user),
            idempotency_key=idempotency_key,
            client_ip=client_ip(request),
        )
    except BookingValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={"message": "Booking validation failed", "errors": exc.errors},
        ) from exc
    except BookingCreationError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(exc),
        ) from exc

    if result.replay:
        response.status_code = status.HTTP_200_OK
    return result


@router.get(
    "/{booking_id}",
    response_model=BookingResult,
    responses={404: {"model": ErrorResponse}},
)
async def get_booking(
    booking_id: str,
    request: Request,
    db: DbDep,
    cache: CacheDep,
    current_user: CurrentUser,
) -> BookingResult:
    service = BookingService(db, cache)
    try:
        return await service.get_booking(
            booking_id,
            user_id=user_id_from_token(current_user),
            client_ip=client_ip(request),
        )
    except BookingNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Booking not found",
        ) from exc
