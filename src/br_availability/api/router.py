"""br_availability REST API — read-only, all endpoints require JWT authentication."""

from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.br_availability.application.service import AvailabilityApplicationService
from src.br_common.database import get_db_session
from src.br_common.datetime_utils import ensure_utc
from src.br_common.enums import BoxModel
from src.br_common.response import ApiResponse, success_response
from src.br_gateway.auth.dependencies import get_current_user_id

router = APIRouter(tags=["availability"])

_service = AvailabilityApplicationService()


@router.get("/boxes/{box_id}/availability")
async def check_box_availability(
    box_id: str,
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    start: datetime = Query(..., description="Requested start (ISO8601)"),
    end: datetime = Query(..., description="Requested end (ISO8601)"),
) -> ApiResponse:
    data = await _service.check_box(db, box_id, ensure_utc(start), ensure_utc(end))
    return success_response(data.model_dump(mode="json"), request)


@router.get("/boxes/{box_id}/blocked-ranges")
async def get_box_blocked_ranges(
    box_id: str,
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.blocked_ranges(db, box_id)
    return success_response(data.model_dump(mode="json"), request)


@router.get("/stands/{stand_id}/boxes/ranked")
async def rank_stand_boxes(
    stand_id: str,
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    start: datetime = Query(..., description="Requested start (ISO8601)"),
    end: datetime = Query(..., description="Requested end (ISO8601)"),
) -> ApiResponse:
    data = await _service.rank_stand_boxes(db, stand_id, ensure_utc(start), ensure_utc(end))
    return success_response(data.model_dump(mode="json"), request)


@router.get("/locations/{location_id}/blocked-ranges")
async def get_model_blocked_ranges(
    location_id: str,
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    model: BoxModel = Query(..., description="Box model, e.g. CLASSIC or PRO"),
) -> ApiResponse:
    data = await _service.model_blocked_ranges(db, location_id, model)
    return success_response(data.model_dump(mode="json"), request)
