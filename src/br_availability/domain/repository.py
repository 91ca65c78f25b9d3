"""Repository Protocol for availability queries (read-only)."""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.br_availability.domain.models import DateRange
from src.br_booking.domain.models import Box


class BoxRepositoryProtocol(Protocol):
    async def get_box(
        self, db: AsyncSession, box_id: str, for_update: bool = False
    ) -> Box | None: ...

    async def list_blocking_ranges(
        self, db: AsyncSession, box_id: str
    ) -> list[DateRange]: ...

    async def stand_exists(self, db: AsyncSession, stand_id: str) -> bool: ...

    async def list_stand_boxes(self, db: AsyncSession, stand_id: str) -> list[Box]: ...

    async def location_exists(self, db: AsyncSession, location_id: str) -> bool: ...

    async def list_model_blocking_ranges(
        self, db: AsyncSession, location_id: str, model: str
    ) -> list[DateRange]: ...
