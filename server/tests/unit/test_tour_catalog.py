"""Unit tests for the tour catalog."""

from decimal import Decimal

import pytest

from tourcheckout.services.tour_catalog import TourCatalog


@pytest.mark.asyncio
async def test_lookup_unknown_tour_returns_none(test_session):
    catalog = TourCatalog(test_session)

    assert await catalog.lookup_tour_detail(999, default_capacity=25) is None


@pytest.mark.asyncio
async def test_lookup_tour_detail(test_session, make_tour):
    tour = await make_tour(code="ALC", price=Decimal("13.57"), capacity=12, riders_require_height=True)
    catalog = TourCatalog(test_session)

    detail = await catalog.lookup_tour_detail(tour.id, default_capacity=25)

    assert detail.id == tour.id
    assert detail.code == "ALC"
    assert detail.price == Decimal("13.57")
    assert detail.riders_require_height is True
    assert detail.spots_remaining == 12


@pytest.mark.asyncio
async def test_spots_remaining_counts_only_paid_orders(test_session, make_tour, make_paid_order):
    """Unpaid orders, e.g. after a declined charge, do not hold spots."""
    tour = await make_tour(capacity=10)
    await make_paid_order(tour.id, riders=3)
    await make_paid_order(tour.id, riders=2)
    await make_paid_order(tour.id, riders=4, paid=False)
    catalog = TourCatalog(test_session)

    detail = await catalog.lookup_tour_detail(tour.id, default_capacity=25)

    assert detail.spots_remaining == 5


@pytest.mark.asyncio
async def test_default_capacity_applies_when_unset(test_session, make_tour, make_paid_order):
    tour = await make_tour(capacity=None)
    await make_paid_order(tour.id, riders=1)
    catalog = TourCatalog(test_session)

    detail = await catalog.lookup_tour_detail(tour.id, default_capacity=25)

    assert detail.capacity is None
    assert detail.spots_remaining == 24


@pytest.mark.asyncio
async def test_spots_remaining_may_go_negative(test_session, make_tour, make_paid_order):
    tour = await make_tour(capacity=2)
    await make_paid_order(tour.id, riders=3)
    catalog = TourCatalog(test_session)

    detail = await catalog.lookup_tour_detail(tour.id, default_capacity=25)

    assert detail.spots_remaining == -1


@pytest.mark.asyncio
async def test_other_tours_do_not_affect_capacity(test_session, make_tour, make_paid_order):
    tour = await make_tour(capacity=10)
    other = await make_tour(code="OTHER", capacity=10)
    await make_paid_order(other.id, riders=6)
    catalog = TourCatalog(test_session)

    assert await catalog.count_booked_riders(tour.id) == 0
    assert await catalog.count_booked_riders(other.id) == 6


@pytest.mark.asyncio
async def test_teams_returns_latest_version_only(test_session, make_tour, add_team):
    tour = await make_tour()
    await add_team(tour.id, version=1, guide="Old Guide", sweep="Old Sweep")
    await add_team(tour.id, version=2, guide="Sam", sweep="Lee")
    await add_team(tour.id, version=2, guide="Kim")
    catalog = TourCatalog(test_session)

    teams = await catalog.list_teams_for_tour(tour.id)

    assert [(t.version, t.guide, t.sweep) for t in teams] == [(2, "Sam", "Lee"), (2, "Kim", "")]


@pytest.mark.asyncio
async def test_teams_empty_when_unassigned(test_session, make_tour):
    tour = await make_tour()
    catalog = TourCatalog(test_session)

    assert await catalog.list_teams_for_tour(tour.id) == []
