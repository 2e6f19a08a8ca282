"""Tour catalog: read-only tour, capacity and team lookups."""

import logging
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.order import Order, OrderItem
from ..models.tour import Tour, TourTeam
from ..schemas.tour import Team, TourDetail

logger = logging.getLogger(__name__)


class TourCatalog:
    """Service for tour lookups. Nothing here is cached; every call hits the store."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_tour_by_id(self, tour_id: int) -> Optional[Tour]:
        """Get tour by ID."""
        stmt = select(Tour).where(Tour.id == tour_id)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def count_booked_riders(self, tour_id: int) -> int:
        """
        Sum riders on paid orders for a tour.

        Orders whose payment was never recorded do not hold capacity.
        """
        stmt = (
            select(func.coalesce(func.sum(OrderItem.riders), 0))
            .join(Order, Order.id == OrderItem.order_id)
            .where(OrderItem.tour_id == tour_id, Order.payment_recorded.is_(True))
        )
        result = await self.db.execute(stmt)
        return int(result.scalar_one())

    async def lookup_tour_detail(self, tour_id: int, default_capacity: int) -> Optional[TourDetail]:
        """
        Get a tour with its price and remaining spots.

        Args:
            tour_id: Tour ID to look up
            default_capacity: Capacity for tours that do not set one

        Returns:
            TourDetail if found, None otherwise
        """
        tour = await self.get_tour_by_id(tour_id)
        if tour is None:
            logger.info("Tour not found", extra={"tour_id": tour_id})
            return None

        capacity = tour.capacity if tour.capacity is not None else default_capacity
        booked = await self.count_booked_riders(tour_id)

        detail = TourDetail(
            id=tour.id,
            code=tour.code,
            starts_at=tour.starts_at,
            price=tour.price,
            capacity=tour.capacity,
            conf_code=tour.conf_code,
            auto_confirm=tour.auto_confirm,
            full=tour.full,
            cancelled=tour.cancelled,
            deleted=tour.deleted,
            riders_require_height=tour.riders_require_height,
            spots_remaining=capacity - booked,
        )

        logger.debug(
            "Tour detail loaded",
            extra={"tour_id": tour_id, "capacity": capacity, "booked_riders": booked}
        )
        return detail

    async def list_teams_for_tour(self, tour_id: int) -> list[Team]:
        """
        Get the current guide/sweep assignments for a tour.

        Only rows at the tour's highest version are returned.
        """
        latest = (
            select(func.max(TourTeam.version))
            .where(TourTeam.tour_id == tour_id)
            .scalar_subquery()
        )
        stmt = (
            select(TourTeam)
            .where(TourTeam.tour_id == tour_id, TourTeam.version == latest)
            .order_by(TourTeam.id)
        )
        result = await self.db.execute(stmt)
        return [Team.model_validate(row) for row in result.scalars()]
