"""Pydantic schemas package."""

from .checkout import CheckoutForm, CheckoutPreview, RiderForm
from .common import Problem
from .confirmation import ConfirmationResult, ContactDetails, Rider
from .tour import Team, TourDetail

__all__ = [
    "CheckoutForm",
    "CheckoutPreview",
    "ConfirmationResult",
    "ContactDetails",
    "Problem",
    "Rider",
    "RiderForm",
    "Team",
    "TourDetail",
]
