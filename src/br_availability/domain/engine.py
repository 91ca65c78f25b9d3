"""AvailabilityEngine — blocked ranges per box and availability ranking.

Read-only and lock-free: every call derives blocked ranges from the current
booking rows, so concurrent queries never conflict.
"""

from collections.abc import Sequence
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from src.br_availability.domain.models import BoxAvailability, DateRange
from src.br_availability.domain.ranges import (
    earliest_available_start,
    is_range_blocked,
    merge_ranges,
    rental_days,
)
from src.br_availability.domain.repository import BoxRepositoryProtocol
from src.br_booking.domain.models import Box


def rank_by_earliest_availability(
    candidates: Sequence[tuple[Box, list[DateRange]]],
    requested_start: datetime,
    requested_end: datetime,
) -> list[BoxAvailability]:
    """Available boxes first (input order kept), then the rest by earliest opening.

    Boxes whose earliest opening cannot be computed sort last.
    """
    duration = rental_days(requested_start, requested_end)
    available: list[BoxAvailability] = []
    unavailable: list[BoxAvailability] = []
    for box, blocked in candidates:
        if not is_range_blocked(requested_start, requested_end, blocked):
            available.append(BoxAvailability(box, True, requested_start, blocked))
            continue
        earliest = earliest_available_start(blocked, requested_start, duration)
        unavailable.append(BoxAvailability(box, False, earliest, blocked))

    # sorted() is stable: ties keep the repository's score order
    unavailable.sort(
        key=lambda a: (
            a.earliest_available_start is None,
            a.earliest_available_start or requested_start,
        )
    )
    return available + unavailable


class AvailabilityEngine:
    def __init__(self, repo: BoxRepositoryProtocol) -> None:
        self._repo = repo

    async def blocked_ranges_for(self, db: AsyncSession, box_id: str) -> list[DateRange]:
        return merge_ranges(await self._repo.list_blocking_ranges(db, box_id))

    async def is_available(
        self, db: AsyncSession, box_id: str, start: datetime, end: datetime
    ) -> bool:
        return not is_range_blocked(start, end, await self.blocked_ranges_for(db, box_id))

    async def rank_by_earliest_availability(
        self,
        db: AsyncSession,
        boxes: Sequence[Box],
        requested_start: datetime,
        requested_end: datetime,
    ) -> list[BoxAvailability]:
        candidates = [(box, await self.blocked_ranges_for(db, box.id)) for box in boxes]
        return rank_by_earliest_availability(candidates, requested_start, requested_end)

    async def model_blocked_ranges(
        self, db: AsyncSession, location_id: str, model: str
    ) -> list[DateRange]:
        """Merged ranges across every active box of a model at a location."""
        return merge_ranges(
            await self._repo.list_model_blocking_ranges(db, location_id, model)
        )
