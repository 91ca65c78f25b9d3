"""AvailabilityApplicationService — read-only queries over the availability engine.

No transactions: every call reads booking rows and derives ranges on the fly.
"""

from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from src.br_availability.application.schemas import (
    BlockedRangesResponse,
    BoxAvailabilityResponse,
    DateRangeItem,
    ModelBlockedRangesResponse,
    RankedBoxesResponse,
)
from src.br_availability.domain.engine import AvailabilityEngine
from src.br_availability.domain.models import BoxAvailability
from src.br_availability.domain.ranges import (
    earliest_available_start,
    is_range_blocked,
    rental_days,
)
from src.br_availability.domain.repository import BoxRepositoryProtocol
from src.br_availability.infrastructure.persistence import BoxRepository
from src.br_booking.domain.models import Box
from src.br_common.enums import BoxModel
from src.br_common.errors import (
    BoxNotFoundError,
    InvalidDateRangeError,
    LocationNotFoundError,
    StandNotFoundError,
)


def _validate_range(start: datetime, end: datetime) -> None:
    if start > end:
        raise InvalidDateRangeError("start must not be after end")


class AvailabilityApplicationService:
    def __init__(self, repo: BoxRepositoryProtocol | None = None) -> None:
        self._repo: BoxRepositoryProtocol = repo or BoxRepository()
        self._engine = AvailabilityEngine(self._repo)

    async def _require_box(self, db: AsyncSession, box_id: str) -> Box:
        box = await self._repo.get_box(db, box_id)
        if box is None:
            raise BoxNotFoundError(box_id)
        return box

    async def check_box(
        self, db: AsyncSession, box_id: str, start: datetime, end: datetime
    ) -> BoxAvailabilityResponse:
        _validate_range(start, end)
        box = await self._require_box(db, box_id)
        blocked = await self._engine.blocked_ranges_for(db, box.id)
        if not is_range_blocked(start, end, blocked):
            return BoxAvailabilityResponse.from_domain(BoxAvailability(box, True, start, blocked))
        earliest = earliest_available_start(blocked, start, rental_days(start, end))
        return BoxAvailabilityResponse.from_domain(BoxAvailability(box, False, earliest, blocked))

    async def blocked_ranges(self, db: AsyncSession, box_id: str) -> BlockedRangesResponse:
        box = await self._require_box(db, box_id)
        blocked = await self._engine.blocked_ranges_for(db, box.id)
        return BlockedRangesResponse(
            box_id=box.id, blocked_ranges=[DateRangeItem.from_domain(r) for r in blocked]
        )

    async def rank_stand_boxes(
        self, db: AsyncSession, stand_id: str, start: datetime, end: datetime
    ) -> RankedBoxesResponse:
        _validate_range(start, end)
        if not await self._repo.stand_exists(db, stand_id):
            raise StandNotFoundError(stand_id)
        boxes = await self._repo.list_stand_boxes(db, stand_id)
        ranked = await self._engine.rank_by_earliest_availability(db, boxes, start, end)
        selected = ranked[0].box.id if ranked and ranked[0].is_available else None
        return RankedBoxesResponse(
            stand_id=stand_id,
            requested_start=start,
            requested_end=end,
            selected_box_id=selected,
            items=[BoxAvailabilityResponse.from_domain(a) for a in ranked],
        )

    async def model_blocked_ranges(
        self, db: AsyncSession, location_id: str, model: BoxModel
    ) -> ModelBlockedRangesResponse:
        if not await self._repo.location_exists(db, location_id):
            raise LocationNotFoundError(location_id)
        blocked = await self._engine.model_blocked_ranges(db, location_id, model.value)
        return ModelBlockedRangesResponse(
            location_id=location_id,
            model=model.value,
            blocked_ranges=[DateRangeItem.from_domain(r) for r in blocked],
        )
