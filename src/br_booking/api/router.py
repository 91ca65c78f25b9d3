"""br_booking REST API — create, read, return, and status sync."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.br_booking.application.schemas import (
    CreateBookingRequest,
    ReturnBoxRequest,
    SyncStatusesRequest,
)
from src.br_booking.application.service import BookingApplicationService, BookingStatusService
from src.br_common.database import get_db_session
from src.br_common.datetime_utils import utc_now
from src.br_common.response import ApiResponse, success_response
from src.br_gateway.auth.dependencies import get_current_user_id

router = APIRouter(prefix="/bookings", tags=["bookings"])

_service = BookingApplicationService()
_status_service = BookingStatusService()


@router.post("/sync-statuses")
async def sync_statuses(
    body: SyncStatusesRequest,
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    # Scoped to the caller: explicit ids are still filtered by owner
    data = await _status_service.sync(db, utc_now(), user_id=user_id, booking_ids=body.booking_ids)
    return success_response(data.model_dump(mode="json"), request)


@router.post("", status_code=201)
async def create_booking(
    body: CreateBookingRequest,
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.create_booking(db, body, user_id, utc_now())
    return success_response(data.model_dump(mode="json"), request)


@router.get("/{booking_id}")
async def get_booking(
    booking_id: str,
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.get_booking(db, booking_id, user_id, utc_now())
    return success_response(data.model_dump(mode="json"), request)


@router.post("/{booking_id}/return")
async def return_box(
    booking_id: str,
    body: ReturnBoxRequest,
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.return_box(
        db, booking_id, user_id, utc_now(), body.confirmed_good_status
    )
    return success_response(data.model_dump(mode="json"), request)
