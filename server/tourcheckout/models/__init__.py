"""Models module exporting all database models."""

from .order import Order, OrderItem, OrderRider
from .tour import Tour, TourTeam

__all__ = [
    # Catalog entities
    "Tour",
    "TourTeam",

    # Order entities
    "Order",
    "OrderItem",
    "OrderRider",
]
