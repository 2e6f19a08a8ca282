"""Order repository: atomic order creation and best-effort status updates."""

import logging
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..models.order import Order, OrderItem, OrderRider
from ..schemas.confirmation import ContactDetails, Rider

logger = logging.getLogger(__name__)


class OrderRepository:
    """Durable store for orders, their line item and riders."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_order(
        self,
        tour_id: int,
        num_riders: int,
        riders: list[Rider],
        total_minor_units: int,
        currency: str,
        contact: ContactDetails,
    ) -> int:
        """
        Create an order with its line item and riders in one transaction.

        Args:
            tour_id: Booked tour
            num_riders: Rider count on the line item
            riders: Per-rider gender/height, possibly empty
            total_minor_units: Server-computed total, the amount to be charged
            currency: ISO 4217 code of the total
            contact: Trimmed contact fields

        Returns:
            ID of the new order

        Raises:
            SQLAlchemyError: If the transaction fails; nothing is persisted
        """
        order = Order(
            customer_name=contact.name,
            customer_email=contact.email,
            mobile=contact.mobile,
            hotel=contact.hotel,
            misc=contact.misc,
            total_minor_units=total_minor_units,
            currency=currency,
            payment_recorded=False,
            confirmation_sent=False,
            items=[OrderItem(item_num=0, tour_id=tour_id, riders=num_riders)],
            riders=[
                OrderRider(position=position, gender=rider.gender, height=rider.height)
                for position, rider in enumerate(riders)
            ],
        )

        try:
            self.db.add(order)
            await self.db.commit()
        except SQLAlchemyError:
            await self.db.rollback()
            raise

        logger.info(
            "Order created",
            extra={
                "order_id": order.id,
                "tour_id": tour_id,
                "num_riders": num_riders,
                "total_minor_units": total_minor_units,
                "currency": currency,
            }
        )
        return order.id

    async def mark_payment_recorded(self, order_id: int) -> None:
        """Flag an order as paid."""
        await self._set_flag(order_id, payment_recorded=True)

    async def mark_confirmation_sent(self, order_id: int) -> None:
        """Flag an order's customer confirmation as sent."""
        await self._set_flag(order_id, confirmation_sent=True)

    async def _set_flag(self, order_id: int, **values: bool) -> None:
        stmt = update(Order).where(Order.id == order_id).values(**values)
        try:
            result = await self.db.execute(stmt)
            if result.rowcount != 1:
                raise LookupError(f"Order {order_id} not found")
            await self.db.commit()
        except (SQLAlchemyError, LookupError):
            await self.db.rollback()
            raise

        logger.info("Order updated", extra={"order_id": order_id, **values})

    async def get_order(self, order_id: int) -> Optional[Order]:
        """Get an order with its items and riders."""
        stmt = (
            select(Order)
            .options(selectinload(Order.items), selectinload(Order.riders))
            .where(Order.id == order_id)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()
