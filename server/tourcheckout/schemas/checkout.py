"""Checkout form and preview Pydantic schemas."""

import re
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .tour import TourDetail

# Riders.<index>.<Field>
RIDER_KEY_PATTERN = re.compile(r"^Riders\.(\d+)\.(Gender|Height)$")
MAX_RIDER_INDEX = 100
MAX_NUM_RIDERS = 100
# Largest value an INTEGER column holds
MAX_STORED_INT = 2**31 - 1


class RiderForm(BaseModel):
    """One rider as submitted; validated later against the tour."""

    model_config = ConfigDict(populate_by_name=True)

    gender: str = Field("", alias="Gender")
    height: int = Field(0, alias="Height", description="Height in inches, 0 when missing or unreadable")

    @field_validator("gender", mode="before")
    @classmethod
    def strip_gender(cls, v: Any) -> str:
        return str(v or "").strip()

    @field_validator("height", mode="before")
    @classmethod
    def parse_height(cls, v: Any) -> int:
        """Heights that cannot be read or stored collapse to the 0 sentinel."""
        try:
            height = v if isinstance(v, int) else int(str(v).strip())
        except (TypeError, ValueError):
            return 0
        return height if abs(height) <= MAX_STORED_INT else 0


class CheckoutForm(BaseModel):
    """Decoded POST body of the confirmation form."""

    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    tour_id: int = Field(..., alias="TourID", le=MAX_STORED_INT)
    num_riders: int = Field(..., alias="NumRiders", le=MAX_NUM_RIDERS)
    riders: list[RiderForm] = Field(default_factory=list, alias="Riders")
    quoted_total: str = Field(..., alias="QuotedTotal", description="Client-displayed total, e.g. '$13.57'")
    stripe_token: str = Field("", alias="StripeToken")
    name: str = Field("", alias="Name")
    email: str = Field("", alias="Email")
    mobile: str = Field("", alias="Mobile")
    hotel: str = Field("", alias="Hotel")
    misc: str = Field("", alias="Misc")

    @classmethod
    def from_form(cls, form: Mapping[str, Any]) -> "CheckoutForm":
        """
        Build the model from flat form fields.

        Rider fields arrive as ``Riders.<i>.Gender`` / ``Riders.<i>.Height``;
        they are gathered into a list ordered by index, with gaps filled by
        empty riders.

        Raises:
            ValueError: If a rider index is out of range
            pydantic.ValidationError: If a field fails validation
        """
        data: dict[str, Any] = {}
        riders: dict[int, dict[str, Any]] = {}
        for key, value in form.items():
            match = RIDER_KEY_PATTERN.match(key)
            if match is None:
                data[key] = value
                continue
            index = int(match.group(1))
            if index >= MAX_RIDER_INDEX:
                raise ValueError(f"Rider index {index} out of range")
            riders.setdefault(index, {})[match.group(2)] = value

        if riders:
            data["Riders"] = [riders.get(i, {}) for i in range(max(riders) + 1)]
        return cls.model_validate(data)


class CheckoutPreview(BaseModel):
    """Tour details shown on the checkout page before the customer pays."""

    tour: TourDetail
    num_riders_options: list[int] = Field(..., description="Selectable rider counts")
    currency: str
    warnings: list[str] = Field(default_factory=list)
