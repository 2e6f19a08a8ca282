"""Confirmation workflow Pydantic schemas."""

from pydantic import BaseModel, ConfigDict, Field

from ..services.warning_set import WarningSet
from .tour import TourDetail


class Rider(BaseModel):
    """A validated rider as persisted on the order."""

    gender: str = Field(..., min_length=1, max_length=1)
    height: int = Field(0, description="Height in inches, 0 when not provided")


class ContactDetails(BaseModel):
    """Trimmed customer contact fields."""

    name: str = ""
    email: str = ""
    mobile: str = ""
    hotel: str = ""
    misc: str = ""


class ConfirmationResult(BaseModel):
    """Outcome of a successful confirmation, warnings included."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    tour: TourDetail
    order_id: int
    num_riders: int
    riders: list[Rider] = Field(default_factory=list)
    total_minor_units: int
    currency: str
    display_total: str
    contact: ContactDetails
    warnings: WarningSet = Field(default_factory=WarningSet)
    email_skipped: str = Field("", description="Why the customer email was not sent; empty when it was")

    @property
    def summary(self) -> str:
        return (
            f"tour:{self.tour.id} riders:{self.num_riders} {self.display_total} "
            f"'{self.contact.name}' <{self.contact.email}>"
        )
