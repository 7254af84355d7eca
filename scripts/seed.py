"""Seed script: populates dev DB with a sample event type and weekday availability."""

import asyncio
from datetime import time

from sqlalchemy import select
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from bookly.config import get_settings
from bookly.models.availability import AvailabilityRule
from bookly.models.event_type import EventType

SEED_SLUG = "30-min"
SEED_TIMEZONE = "UTC"
WORKDAY_START = time(9, 0)
WORKDAY_END = time(17, 0)


async def seed():
    settings = get_settings()
    engine = create_async_engine(settings.database_url, echo=False)
    session_factory = async_sessionmaker(engine, expire_on_commit=False)

    async with session_factory() as db:
        result = await db.execute(select(EventType.id).where(EventType.slug == SEED_SLUG))
        if result.scalar():
            print(f"Event type {SEED_SLUG} already exists, skipping.")
            await engine.dispose()
            return

        event_type = EventType(
            name="30 Minute Meeting",
            slug=SEED_SLUG,
            duration_minutes=30,
            description="A quick 30 minute call",
        )
        db.add(event_type)
        await db.flush()

        # Monday (1) through Friday (5)
        db.add_all(
            [
                AvailabilityRule(
                    event_type_id=event_type.id,
                    day_of_week=day,
                    start_time=WORKDAY_START,
                    end_time=WORKDAY_END,
                    timezone=SEED_TIMEZONE,
                )
                for day in range(1, 6)
            ]
        )

        await db.commit()
        print(f"Seeded: event type {SEED_SLUG}, 5 weekday availability rules")

    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(seed())
