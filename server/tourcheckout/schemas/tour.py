"""Tour-related Pydantic schemas."""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class TourDetail(BaseModel):
    """A tour with its price and current remaining capacity, read fresh per request."""

    model_config = ConfigDict(from_attributes=True)

    id: int = Field(..., description="Tour ID")
    code: str = Field(..., description="Display code of the tour product")
    starts_at: datetime = Field(..., description="Scheduled start time")
    price: Decimal = Field(..., ge=0, description="Price per rider in major currency units")
    capacity: Optional[int] = Field(None, description="Tour capacity, None when the default cap applies")
    conf_code: Optional[str] = Field(None, description="Meeting-point confirmation code")
    auto_confirm: bool = Field(False, description="Customer email may be sent automatically")
    full: bool = Field(False, description="Operator marked the tour full")
    cancelled: bool = Field(False, description="Operator cancelled the tour")
    deleted: bool = Field(False, description="Operator deleted the tour")
    riders_require_height: bool = Field(False, description="Riders must submit gender and height")
    spots_remaining: int = Field(..., description="Capacity minus riders on paid orders; may be negative")

    def starts_before(self, moment: datetime) -> bool:
        """Compare the start time with an aware datetime, reading naive values as UTC."""
        starts_at = self.starts_at
        if starts_at.tzinfo is None:
            starts_at = starts_at.replace(tzinfo=timezone.utc)
        return starts_at < moment


class Team(BaseModel):
    """Guide and sweep currently assigned to a tour."""

    model_config = ConfigDict(from_attributes=True)

    tour_id: int
    version: int
    guide: str = ""
    sweep: str = ""
