"""FastAPI routers package."""

from .metrics import router as metrics_router
from .reservations import router as reservations_router

__all__ = [
    "metrics_router",
    "reservations_router",
]
