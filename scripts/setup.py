#!/usr/bin/env python3
"""Setup script for the tour checkout API: migrate the database and seed sample tours."""

import asyncio
import logging
import sys
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from pathlib import Path

# Add the server directory to the Python path
server_dir = Path(__file__).parent.parent / "server"
sys.path.insert(0, str(server_dir))

from alembic import command  # noqa: E402
from alembic.config import Config  # noqa: E402
from sqlalchemy import func, select  # noqa: E402

from tourcheckout.core.database import async_session_factory, close_db  # noqa: E402
from tourcheckout.models import Tour, TourTeam  # noqa: E402

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def setup_database():
    """Bring the schema up to the latest migration."""
    logger.info("Running database migrations...")
    alembic_cfg = Config(str(server_dir / "db" / "alembic.ini"))
    alembic_cfg.set_main_option("script_location", str(server_dir / "db" / "alembic"))
    command.upgrade(alembic_cfg, "head")
    logger.info("Database migrations completed")


async def create_sample_data():
    """Create a week of sample tours with guide assignments."""
    logger.info("Creating sample data...")

    async with async_session_factory() as db:
        try:
            existing_tours = await db.execute(select(func.count(Tour.id)))
            if existing_tours.scalar_one() > 0:
                logger.info("Sample data already exists, skipping...")
                return

            base_date = (datetime.now(timezone.utc) + timedelta(days=7)).replace(
                hour=9, minute=30, second=0, microsecond=0
            )
            for day in range(7):
                tour = Tour(
                    code="GG",
                    starts_at=base_date + timedelta(days=day),
                    price=Decimal("59.00"),
                    conf_code="PIER39",
                    auto_confirm=True,
                    riders_require_height=True,
                    teams=[TourTeam(version=1, guide="Sam", sweep="Lee")],
                )
                db.add(tour)

            # A small manually confirmed evening tour with its own capacity
            db.add(Tour(
                code="SUNSET",
                starts_at=base_date.replace(hour=18),
                price=Decimal("13.57"),
                capacity=6,
                auto_confirm=False,
            ))

            await db.commit()
            logger.info("Sample data created successfully!")

        except Exception as e:
            await db.rollback()
            logger.error(f"Failed to create sample data: {e}")
            raise


async def seed():
    try:
        await create_sample_data()
    finally:
        await close_db()


def main():
    """Main setup function."""
    logger.info("Starting tour checkout API setup...")

    setup_database()
    asyncio.run(seed())

    logger.info("Setup completed successfully!")
    logger.info("You can now start the API server with: cd server && uvicorn tourcheckout.main:app --reload")


if __name__ == "__main__":
    main()
