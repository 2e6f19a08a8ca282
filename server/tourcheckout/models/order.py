"""Order, order item and order rider model definitions."""

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, CheckConstraint, DateTime, ForeignKey, Integer, String, Text, false, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..core.database import Base

if TYPE_CHECKING:
    from .tour import Tour


class Order(Base):
    """A placed checkout order. Created once, then only its status flags change."""

    __tablename__ = "orders"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # Contact details
    customer_name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    customer_email: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    mobile: Mapped[str] = mapped_column(String(64), nullable=False, default="")
    hotel: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    misc: Mapped[str] = mapped_column(Text, nullable=False, default="")

    # Server-computed total in minor units, identical to the charged amount
    total_minor_units: Mapped[int] = mapped_column(Integer, nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="USD")

    # Completion flags, updated independently after the charge
    payment_recorded: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default=false(),
        index=True
    )
    confirmation_sent: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default=false()
    )

    placed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now()
    )

    __table_args__ = (
        CheckConstraint("total_minor_units >= 0", name="ck_order_total_non_negative"),
        CheckConstraint("length(currency) = 3", name="ck_order_currency_length"),
    )

    items: Mapped[list["OrderItem"]] = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItem.item_num"
    )
    riders: Mapped[list["OrderRider"]] = relationship(
        "OrderRider",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderRider.position"
    )

    def __repr__(self) -> str:
        return (
            f"<Order(id={self.id}, total={self.total_minor_units} {self.currency}, "
            f"paid={self.payment_recorded}, confirmed={self.confirmation_sent})>"
        )


class OrderItem(Base):
    """One tour line on an order."""

    __tablename__ = "order_items"

    order_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("orders.id", ondelete="CASCADE"),
        primary_key=True
    )
    item_num: Mapped[int] = mapped_column(Integer, primary_key=True, default=0)
    tour_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("tours.id"),
        nullable=False,
        index=True
    )
    riders: Mapped[int] = mapped_column(Integer, nullable=False)

    __table_args__ = (
        CheckConstraint("riders > 0", name="ck_order_item_riders_positive"),
    )

    order: Mapped["Order"] = relationship("Order", back_populates="items")
    tour: Mapped["Tour"] = relationship("Tour", back_populates="order_items")


class OrderRider(Base):
    """Gender and height of one rider, kept for equipment sizing."""

    __tablename__ = "order_riders"

    order_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("orders.id", ondelete="CASCADE"),
        primary_key=True
    )
    position: Mapped[int] = mapped_column(Integer, primary_key=True)
    gender: Mapped[str] = mapped_column(String(1), nullable=False)
    height: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    order: Mapped["Order"] = relationship("Order", back_populates="riders")
