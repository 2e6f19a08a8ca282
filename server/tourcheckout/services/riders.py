"""Rider count and rider attribute validation."""

import logging

from ..core.exceptions import ValidationError
from ..schemas.checkout import RiderForm
from ..schemas.confirmation import Rider
from .warning_set import WarningKind, WarningSet

logger = logging.getLogger(__name__)

KNOWN_GENDERS = frozenset({"F", "M", "X"})
UNKNOWN_GENDER = "?"


class RiderValidator:
    """Checks a requested rider count and rider list against a tour's requirements."""

    def __init__(self, height_min: int, height_max: int):
        if height_min > height_max:
            raise ValueError("height_min must not exceed height_max")
        self.height_min = height_min
        self.height_max = height_max

    def validate(
        self,
        num_riders: int,
        spots_remaining: int,
        heights_required: bool,
        submitted: list[RiderForm],
        warnings: WarningSet,
    ) -> list[Rider]:
        """
        Validate the rider count and normalize the rider list.

        Args:
            num_riders: Requested rider count
            spots_remaining: Advisory remaining capacity of the tour
            heights_required: Whether the tour needs gender/height per rider
            submitted: Riders as decoded from the form
            warnings: Warning set to record non-fatal findings in

        Returns:
            Riders to persist; empty when heights are not required

        Raises:
            ValidationError: If fewer than one rider is requested
        """
        if num_riders < 1:
            raise ValidationError(detail="NumRiders must be at least 1")

        if num_riders > spots_remaining:
            # Capacity is read without isolation, so this is advisory only
            warnings.add(WarningKind.OVERSUBSCRIBED, f"riders({num_riders})>spots({spots_remaining})")

        if not heights_required:
            return []

        if len(submitted) < num_riders:
            warnings.add(WarningKind.INVALID_HEIGHTS, f"submitted({len(submitted)})<riders({num_riders})")

        riders = []
        for form in submitted[:num_riders]:
            gender = form.gender
            if gender not in KNOWN_GENDERS:
                gender = UNKNOWN_GENDER
                warnings.add(WarningKind.INVALID_HEIGHTS)
            if form.height <= 0:
                warnings.add(WarningKind.INVALID_HEIGHTS)
            elif not self.height_min <= form.height <= self.height_max:
                warnings.add(WarningKind.UNKNOWN_HEIGHTS)
            riders.append(Rider(gender=gender, height=max(form.height, 0)))

        if WarningKind.INVALID_HEIGHTS in warnings or WarningKind.UNKNOWN_HEIGHTS in warnings:
            logger.info(
                "Rider details incomplete",
                extra={
                    "num_riders": num_riders,
                    "submitted": len(submitted),
                    "riders": [f"{r.gender}{r.height}" for r in riders],
                }
            )

        return riders
