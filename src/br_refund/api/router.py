"""br_refund REST API — cancellation and refund preview."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.br_common.database import get_db_session
from src.br_common.datetime_utils import utc_now
from src.br_common.response import ApiResponse, success_response
from src.br_gateway.auth.dependencies import get_current_user_id
from src.br_refund.application.service import CancellationService

router = APIRouter(prefix="/bookings", tags=["refunds"])

_service = CancellationService()


@router.post("/{booking_id}/cancel")
async def cancel_booking(
    booking_id: str,
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    """success=False (already cancelled, not eligible) is a 200 with the reason."""
    data = await _service.cancel_booking(db, booking_id, user_id, utc_now())
    return success_response(data.model_dump(mode="json"), request)


@router.get("/{booking_id}/refund-preview")
async def refund_preview(
    booking_id: str,
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.preview_refund(db, booking_id, user_id, utc_now())
    return success_response(data.model_dump(mode="json"), request)
