"""Unit tests for the warning set."""

from tourcheckout.services.warning_set import BLOCKING_KINDS, CheckoutWarning, WarningKind, WarningSet


def test_empty_warning_set():
    warnings = WarningSet()

    assert not warnings
    assert len(warnings) == 0
    assert warnings.codes() == []
    assert not warnings.has_blocking()


def test_add_is_duplicate_free_and_keeps_first_detail():
    """Re-adding a kind neither duplicates it nor replaces its detail."""
    warnings = WarningSet()

    warnings.add(WarningKind.OVERSUBSCRIBED, "riders(3)>spots(2)")
    warnings.add(WarningKind.OVERSUBSCRIBED, "riders(4)>spots(2)")

    assert len(warnings) == 1
    assert warnings.get(WarningKind.OVERSUBSCRIBED).detail == "riders(3)>spots(2)"


def test_codes_are_sorted_and_include_detail():
    warnings = WarningSet()
    warnings.add(WarningKind.TOUR_PAST, "2024/05/01")
    warnings.add(WarningKind.NO_NAME)
    warnings.add(WarningKind.INVALID_HEIGHTS)

    assert warnings.codes() == ["contact:noname", "riders:badheights", "tour:past:2024/05/01"]


def test_blocking_classification():
    """Tour state, capacity and missing contact block the customer email; post-payment issues do not."""
    advisory = WarningSet()
    advisory.add(WarningKind.UNKNOWN_HEIGHTS)
    advisory.add(WarningKind.UNKNOWN_CONF_CODE, "X1")
    advisory.add(WarningKind.CUSTOMER_EMAIL_FAILED)
    assert not advisory.has_blocking()
    assert advisory.blocking() == []

    blocking = WarningSet()
    blocking.add(WarningKind.TOUR_CANCELLED)
    assert blocking.has_blocking()
    assert blocking.blocking() == [CheckoutWarning(WarningKind.TOUR_CANCELLED)]


def test_blocks_customer_email_property():
    for kind in WarningKind:
        assert kind.blocks_customer_email == (kind in BLOCKING_KINDS)


def test_membership_and_iteration():
    warnings = WarningSet([CheckoutWarning(WarningKind.TOUR_FULL), CheckoutWarning(WarningKind.TOUR_FULL, "again")])

    assert WarningKind.TOUR_FULL in warnings
    assert WarningKind.TOUR_DELETED not in warnings
    assert [str(w) for w in warnings] == ["tour:full"]
    assert warnings.kinds() == frozenset({WarningKind.TOUR_FULL})
