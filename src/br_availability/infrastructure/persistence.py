"""BoxRepository — concrete implementation of BoxRepositoryProtocol.

Blocked ranges are read fresh from booking rows on every call; there is no
cache, so staleness is bounded by the read transaction only.
"""

from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.br_availability.domain.models import DateRange
from src.br_booking.domain.models import Box

# ---------------------------------------------------------------------------
# SQL
# ---------------------------------------------------------------------------

_BOX_COLUMNS = "id, stand_id, display_id, model, status, score"

_GET_BOX_SQL = text(f"SELECT {_BOX_COLUMNS} FROM boxes WHERE id = :box_id")

# Locks the box row so concurrent reservations of the same box serialize
_GET_BOX_FOR_UPDATE_SQL = text(
    f"SELECT {_BOX_COLUMNS} FROM boxes WHERE id = :box_id FOR UPDATE"
)

_BLOCKING_RANGES_SQL = text("""
    SELECT start_date, end_date
    FROM bookings
    WHERE box_id = :box_id
      AND status IN ('PENDING', 'UPCOMING', 'ACTIVE', 'OVERDUE')
    ORDER BY start_date
""")

_STAND_EXISTS_SQL = text("SELECT 1 FROM stands WHERE id = :stand_id")

# Lower score first: least-utilized boxes are offered first
_LIST_STAND_BOXES_SQL = text(f"""
    SELECT {_BOX_COLUMNS}
    FROM boxes
    WHERE stand_id = :stand_id AND status = 'ACTIVE'
    ORDER BY score ASC, display_id ASC
""")

_LOCATION_EXISTS_SQL = text("SELECT 1 FROM locations WHERE id = :location_id")

_MODEL_BLOCKING_RANGES_SQL = text("""
    SELECT b.start_date, b.end_date
    FROM bookings b
    JOIN boxes x ON x.id = b.box_id
    JOIN stands s ON s.id = x.stand_id
    WHERE s.location_id = :location_id
      AND x.model = :model
      AND x.status = 'ACTIVE'
      AND b.status IN ('PENDING', 'UPCOMING', 'ACTIVE', 'OVERDUE')
    ORDER BY b.start_date
""")

# ---------------------------------------------------------------------------
# Row mappers
# ---------------------------------------------------------------------------


def _row_to_box(row: Any) -> Box:
    return Box(
        id=row.id,
        stand_id=row.stand_id,
        display_id=row.display_id,
        model=row.model,
        status=row.status,
        score=row.score,
    )


def _row_to_range(row: Any) -> DateRange:
    return DateRange(start=row.start_date, end=row.end_date)


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class BoxRepository:
    """Concrete repository — all operations are read-only SQL queries."""

    async def get_box(
        self, db: AsyncSession, box_id: str, for_update: bool = False
    ) -> Box | None:
        sql = _GET_BOX_FOR_UPDATE_SQL if for_update else _GET_BOX_SQL
        result = await db.execute(sql, {"box_id": box_id})
        row = result.fetchone()
        return _row_to_box(row) if row else None

    async def list_blocking_ranges(
        self, db: AsyncSession, box_id: str
    ) -> list[DateRange]:
        result = await db.execute(_BLOCKING_RANGES_SQL, {"box_id": box_id})
        return [_row_to_range(row) for row in result.fetchall()]

    async def stand_exists(self, db: AsyncSession, stand_id: str) -> bool:
        result = await db.execute(_STAND_EXISTS_SQL, {"stand_id": stand_id})
        return result.fetchone() is not None

    async def list_stand_boxes(self, db: AsyncSession, stand_id: str) -> list[Box]:
        result = await db.execute(_LIST_STAND_BOXES_SQL, {"stand_id": stand_id})
        return [_row_to_box(row) for row in result.fetchall()]

    async def location_exists(self, db: AsyncSession, location_id: str) -> bool:
        result = await db.execute(_LOCATION_EXISTS_SQL, {"location_id": location_id})
        return result.fetchone() is not None

    async def list_model_blocking_ranges(
        self, db: AsyncSession, location_id: str, model: str
    ) -> list[DateRange]:
        result = await db.execute(
            _MODEL_BLOCKING_RANGES_SQL, {"location_id": location_id, "model": model}
        )
        return [_row_to_range(row) for row in result.fetchall()]
