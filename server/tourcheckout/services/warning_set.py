"""Warning taxonomy and the per-request warning set."""

from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from enum import Enum
from typing import Optional


class WarningKind(str, Enum):
    """Non-fatal conditions observed while confirming a checkout."""

    # Advisory: tour state
    TOUR_PAST = "tour:past"
    TOUR_FULL = "tour:full"
    TOUR_CANCELLED = "tour:cancelled"
    TOUR_DELETED = "tour:deleted"
    UNKNOWN_CONF_CODE = "tour:unknownconfcode"

    # Advisory: request contents
    OVERSUBSCRIBED = "riders:oversubscribed"
    INVALID_HEIGHTS = "riders:badheights"
    UNKNOWN_HEIGHTS = "riders:unknownheights"
    NO_NAME = "contact:noname"
    NO_EMAIL = "contact:noemail"

    # Post-payment degradations
    PAYMENT_RECORD_FAILED = "updateorder:paymentrecorded"
    CONFIRMATION_RECORD_FAILED = "updateorder:confirmationsent"
    EMAIL_TEMPLATE_FAILED = "email:template"
    CUSTOMER_EMAIL_FAILED = "email:customer"
    OPERATOR_EMAIL_FAILED = "email:operator"
    TEAMS_LOOKUP_FAILED = "catalog:teams"
    PAGE_TEMPLATE_FAILED = "page:template"

    @property
    def blocks_customer_email(self) -> bool:
        return self in BLOCKING_KINDS


# Any of these means an operator must look at the order before the
# customer hears back.
BLOCKING_KINDS = frozenset({
    WarningKind.TOUR_PAST,
    WarningKind.TOUR_FULL,
    WarningKind.TOUR_CANCELLED,
    WarningKind.TOUR_DELETED,
    WarningKind.OVERSUBSCRIBED,
    WarningKind.INVALID_HEIGHTS,
    WarningKind.NO_NAME,
    WarningKind.NO_EMAIL,
})


@dataclass(frozen=True)
class CheckoutWarning:
    """One recorded warning with an optional diagnostic payload."""

    kind: WarningKind
    detail: Optional[str] = None

    def __str__(self) -> str:
        if self.detail:
            return f"{self.kind.value}:{self.detail}"
        return self.kind.value


class WarningSet:
    """
    Duplicate-free collection of warnings keyed by kind.

    Re-adding a kind keeps the first detail recorded for it.
    """

    def __init__(self, warnings: Iterable[CheckoutWarning] = ()):
        self._by_kind: dict[WarningKind, CheckoutWarning] = {}
        for warning in warnings:
            self._by_kind.setdefault(warning.kind, warning)

    def add(self, kind: WarningKind, detail: Optional[str] = None) -> CheckoutWarning:
        return self._by_kind.setdefault(kind, CheckoutWarning(kind, detail))

    def get(self, kind: WarningKind) -> Optional[CheckoutWarning]:
        return self._by_kind.get(kind)

    def has_blocking(self) -> bool:
        return any(kind in self._by_kind for kind in BLOCKING_KINDS)

    def blocking(self) -> list[CheckoutWarning]:
        return [w for w in self if w.kind in BLOCKING_KINDS]

    def kinds(self) -> frozenset[WarningKind]:
        return frozenset(self._by_kind)

    def codes(self) -> list[str]:
        """Stable, sorted rendering for logs, headers and emails."""
        return sorted(str(w) for w in self)

    def __contains__(self, kind: object) -> bool:
        return kind in self._by_kind

    def __iter__(self) -> Iterator[CheckoutWarning]:
        return iter(self._by_kind.values())

    def __len__(self) -> int:
        return len(self._by_kind)

    def __bool__(self) -> bool:
        return bool(self._by_kind)

    def __repr__(self) -> str:
        return f"WarningSet({self.codes()!r})"
