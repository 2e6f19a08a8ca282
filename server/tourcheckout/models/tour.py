"""Tour and tour team model definitions."""

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, CheckConstraint, DateTime, ForeignKey, Integer, Numeric, String, false, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..core.database import Base

if TYPE_CHECKING:
    from .order import OrderItem


class Tour(Base):
    """A scheduled, bookable tour instance."""

    __tablename__ = "tours"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # Display code shared by every instance of the same tour product
    code: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    starts_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)

    # Price per rider in major currency units
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)

    # NULL means the system-wide default capacity applies
    capacity: Mapped[int | None] = mapped_column(Integer, nullable=True)

    # Meeting-point code used by the confirmation email
    conf_code: Mapped[str | None] = mapped_column(String(32), nullable=True)

    # Operator flags
    auto_confirm: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default=false())
    full: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default=false())
    cancelled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default=false())
    deleted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default=false())
    riders_require_height: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default=false()
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now()
    )

    __table_args__ = (
        CheckConstraint("price >= 0", name="ck_tour_price_non_negative"),
        CheckConstraint("capacity IS NULL OR capacity >= 0", name="ck_tour_capacity_non_negative"),
    )

    teams: Mapped[list["TourTeam"]] = relationship(
        "TourTeam",
        back_populates="tour",
        cascade="all, delete-orphan"
    )
    order_items: Mapped[list["OrderItem"]] = relationship("OrderItem", back_populates="tour")

    def __repr__(self) -> str:
        return f"<Tour(id={self.id}, code='{self.code}', starts_at={self.starts_at}, price={self.price})>"


class TourTeam(Base):
    """
    Guide and sweep assigned to a tour.

    Assignments are versioned; the row with the highest version for a
    tour is the current one.
    """

    __tablename__ = "tour_teams"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    tour_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("tours.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    guide: Mapped[str] = mapped_column(String(128), nullable=False, default="")
    sweep: Mapped[str] = mapped_column(String(128), nullable=False, default="")

    tour: Mapped["Tour"] = relationship("Tour", back_populates="teams")

    def __repr__(self) -> str:
        return f"<TourTeam(tour_id={self.tour_id}, version={self.version}, guide='{self.guide}')>"
