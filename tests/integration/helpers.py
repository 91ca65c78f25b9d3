"""Seeding and lookup helpers shared by the integration tests."""

import uuid
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from jose import jwt
from sqlalchemy import text

from config.settings import settings
from src.br_common.database import async_session_factory


@dataclass
class SeededStand:
    location_id: str
    stand_id: str
    box_ids: list[str]


def bearer(user_id: str) -> dict[str, str]:
    now = datetime.now(UTC)
    token = jwt.encode(
        {"sub": user_id, "type": "access", "iat": now, "exp": now + timedelta(minutes=30)},
        settings.JWT_SECRET,
        algorithm=settings.JWT_ALGORITHM,
    )
    return {"Authorization": f"Bearer {token}"}


async def seed_stand() -> SeededStand:
    """A fresh location + stand with two CLASSIC boxes (scores 0 and 100)."""
    suffix = uuid.uuid4().hex[:8]
    seeded = SeededStand(
        location_id=f"loc-{suffix}",
        stand_id=f"stand-{suffix}",
        box_ids=[f"box-{suffix}-a", f"box-{suffix}-b"],
    )
    async with async_session_factory() as db:
        await db.execute(
            text("INSERT INTO locations (id, name) VALUES (:id, :name)"),
            {"id": seeded.location_id, "name": f"Location {suffix}"},
        )
        await db.execute(
            text(
                "INSERT INTO stands (id, location_id, operator_id, name) "
                "VALUES (:id, :location_id, :operator_id, :name)"
            ),
            {
                "id": seeded.stand_id,
                "location_id": seeded.location_id,
                "operator_id": f"op-{suffix}",
                "name": f"Stand {suffix}",
            },
        )
        for display, (box_id, score) in enumerate(zip(seeded.box_ids, (0, 100), strict=True)):
            await db.execute(
                text(
                    "INSERT INTO boxes (id, stand_id, display_id, model, score) "
                    "VALUES (:id, :stand_id, :display_id, 'CLASSIC', :score)"
                ),
                {
                    "id": box_id,
                    "stand_id": seeded.stand_id,
                    "display_id": f"A{display + 1}",
                    "score": score,
                },
            )
        await db.commit()
    return seeded


async def box_score(box_id: str) -> int:
    async with async_session_factory() as db:
        result = await db.execute(text("SELECT score FROM boxes WHERE id = :id"), {"id": box_id})
        return int(result.scalar_one())


async def booking_row(booking_id: str) -> tuple[str, str]:
    """(booking status, payment status)"""
    async with async_session_factory() as db:
        result = await db.execute(
            text(
                "SELECT b.status, p.status AS payment_status FROM bookings b "
                "JOIN payments p ON p.id = b.payment_id WHERE b.id = :id"
            ),
            {"id": booking_id},
        )
        row = result.one()
        return row.status, row.payment_status
