"""Server-side price recomputation and quote validation."""

import logging
from decimal import Decimal, InvalidOperation

from ..core.exceptions import PricingMismatchError, ValidationError

logger = logging.getLogger(__name__)

MINOR_UNITS_PER_MAJOR = 100
# Quotes of a trillion or more are not prices
MAX_QUOTE_EXPONENT = 12
_HALF = Decimal("0.5")


def to_minor_units(amount: Decimal) -> int:
    """
    Convert a major-unit amount to integer minor units.

    Adds half a minor unit then truncates, e.g. 13.57 -> 1357.
    """
    return int(amount * MINOR_UNITS_PER_MAJOR + _HALF)


def parse_quoted_total(quoted: str) -> Decimal:
    """
    Parse the client-displayed total, tolerating a currency symbol and separators.

    Raises:
        ValidationError: If the value is not a non-negative amount
    """
    cleaned = quoted.strip().lstrip("$").replace(",", "").strip()
    try:
        value = Decimal(cleaned)
    except InvalidOperation:
        raise ValidationError(
            detail="Invalid quoted total",
            internal_detail=f"quoted_total={quoted!r}",
        ) from None
    if not value.is_finite() or value < 0 or value.adjusted() >= MAX_QUOTE_EXPONENT:
        raise ValidationError(
            detail="Invalid quoted total",
            internal_detail=f"quoted_total={quoted!r}",
        )
    return value


def format_minor_units(amount_minor_units: int, symbol: str = "$") -> str:
    """Render minor units for display, e.g. 2714 -> '$27.14'."""
    major, minor = divmod(amount_minor_units, MINOR_UNITS_PER_MAJOR)
    return f"{symbol}{major}.{minor:02d}"


class PricingValidator:
    """Recomputes the authoritative total and checks it against the client's quote."""

    def compute_total(self, price: Decimal, num_riders: int) -> int:
        """Authoritative total in minor units."""
        return to_minor_units(Decimal(price) * num_riders)

    def validate(self, price: Decimal, num_riders: int, quoted_total: str) -> int:
        """
        Validate the client quote and return the total to persist and charge.

        Args:
            price: Current price per rider in major units
            num_riders: Requested rider count
            quoted_total: Total the client displayed

        Returns:
            Total in minor units

        Raises:
            ValidationError: If the quote cannot be parsed
            PricingMismatchError: If the quote differs from the computed total
        """
        actual_total = self.compute_total(price, num_riders)
        quoted_minor_units = to_minor_units(parse_quoted_total(quoted_total))

        if actual_total != quoted_minor_units:
            logger.warning(
                "Quoted total does not match computed total",
                extra={
                    "quoted_total": quoted_minor_units,
                    "actual_total": actual_total,
                    "price": str(price),
                    "num_riders": num_riders,
                }
            )
            raise PricingMismatchError(quoted_total=quoted_minor_units, actual_total=actual_total)

        return actual_total
