"""Tests for per-candidate scoring components."""

import math

import pytest

from foodshare.matching.config import MatchingConfig
from foodshare.matching.geo import EARTH_RADIUS_KM, haversine_km
from foodshare.matching.models import Candidate, ClaimHistorySample, Listing
from foodshare.matching.scoring import (
    capacity_points,
    expiry_points,
    location_points,
    reliability_points,
    round_half_up,
    score_candidate,
)


def _north_of(lat: float, km: float) -> float:
    """Latitude ``km`` kilometres due north of ``lat``."""
    return lat + math.degrees(km / EARTH_RADIUS_KM)


def _history(fulfilled: int, other: int, status: str = "rejected"):
    return [ClaimHistorySample("fulfilled")] * fulfilled + [
        ClaimHistorySample(status)
    ] * other


# ── geo ──


def test_haversine_same_point_is_zero():
    assert haversine_km(12.97, 77.59, 12.97, 77.59) == 0.0


def test_haversine_along_meridian():
    """Distance along a meridian equals the arc length."""
    lat2 = _north_of(12.0, 10.0)
    assert haversine_km(12.0, 77.0, lat2, 77.0) == pytest.approx(10.0)


def test_haversine_known_city_pair():
    """Bangalore → Chennai is roughly 290 km."""
    d = haversine_km(12.9716, 77.5946, 13.0827, 80.2707)
    assert 285 < d < 295


# ── location ──


def test_location_points_at_zero_distance():
    assert location_points(0.0) == 40


def test_location_points_at_midpoint():
    assert location_points(10.0) == 20


def test_location_points_beyond_max():
    assert location_points(20.0) == 0
    assert location_points(55.0) == 0


# ── expiry ──


@pytest.mark.parametrize(
    "hours, points",
    [
        (2, 30),
        (2.01, 20),
        (6, 20),
        (6.01, 10),
        (24, 10),
        (24.01, 0),
        (0, 30),
        (-5, 30),
    ],
)
def test_expiry_brackets(hours, points):
    assert expiry_points(hours) == points


# ── capacity ──


def test_capacity_exactly_enough():
    assert capacity_points(10, 100) == 15


def test_capacity_not_enough():
    assert capacity_points(10, 101) == 0


def test_capacity_defaults_missing_radius():
    """A candidate without a pickup radius is treated as 10 km."""
    assert capacity_points(None, 100) == 15
    assert capacity_points(None, 101) == 0


# ── reliability ──


def test_reliability_new_candidate():
    assert reliability_points([]) == 10


def test_reliability_half_rounds_up():
    """10 successes out of 20 → 7.5 → 8."""
    assert reliability_points(_history(10, 10)) == 8


def test_reliability_counts_approved_as_success():
    history = [ClaimHistorySample("approved")] * 4
    assert reliability_points(history) == 15


def test_reliability_ignores_unknown_statuses():
    history = [ClaimHistorySample("requested"), ClaimHistorySample("picked_up")]
    assert reliability_points(history) == 0


def test_reliability_only_samples_recent_claims():
    """Claims beyond the 20 most recent are not considered."""
    history = _history(0, 20) + _history(20, 0)
    assert reliability_points(history) == 0


def test_round_half_up():
    assert round_half_up(7.5) == 8
    assert round_half_up(2.5) == 3
    assert round_half_up(2.49) == 2


# ── score_candidate ──


def test_score_without_coordinates():
    """No coordinates on either side → location omitted, not penalized."""
    listing = Listing(food_name="Rice", quantity=50, hours_to_expiry=4)
    candidate = Candidate(id="ngo-1", name="Helping Hands")

    result = score_candidate(listing, candidate, [])

    assert result.breakdown.location_score == 0
    assert result.breakdown.distance_km is None
    assert result.breakdown.expiry_score == 20
    assert result.breakdown.capacity_score == 15
    assert result.breakdown.reliability_score == 10
    assert result.total_score == 45


def test_score_with_one_side_missing_coordinates():
    listing = Listing(
        food_name="Rice", quantity=50, hours_to_expiry=4, latitude=12.0, longitude=77.0
    )
    candidate = Candidate(id="ngo-1")

    result = score_candidate(listing, candidate, [])
    assert result.breakdown.distance_km is None
    assert result.total_score == 45


def test_score_full_marks_at_same_location():
    listing = Listing(
        food_name="Curry", quantity=20, hours_to_expiry=1, latitude=12.0, longitude=77.0
    )
    candidate = Candidate(id="ngo-1", latitude=12.0, longitude=77.0, pickup_radius_km=5)
    history = [ClaimHistorySample("fulfilled")] * 3

    result = score_candidate(listing, candidate, history)

    assert result.breakdown.location_score == 40
    assert result.breakdown.distance_km == 0.0
    assert result.total_score == 100


def test_score_total_rounds_unrounded_location():
    """Total uses the raw location points, the breakdown shows them rounded."""
    lat2 = _north_of(12.0, 3.0)  # 40 * (1 - 3/20) = 34
    listing = Listing(
        food_name="Bread", quantity=200, hours_to_expiry=48, latitude=12.0, longitude=77.0
    )
    candidate = Candidate(id="ngo-1", latitude=lat2, longitude=77.0)

    result = score_candidate(listing, candidate, [])

    assert result.breakdown.distance_km == pytest.approx(3.0)
    assert result.breakdown.location_score == 34
    assert result.breakdown.capacity_score == 0
    assert result.total_score == 44


def test_score_respects_settings():
    settings = MatchingConfig(max_distance_km=50.0, new_candidate_reliability=0)
    lat2 = _north_of(12.0, 25.0)
    listing = Listing(
        food_name="Dal", quantity=10, hours_to_expiry=30, latitude=12.0, longitude=77.0
    )
    candidate = Candidate(id="ngo-1", latitude=lat2, longitude=77.0)

    result = score_candidate(listing, candidate, [], settings)

    assert result.breakdown.location_score == 20
    assert result.breakdown.reliability_score == 0


def test_score_invalid_candidate_coordinates_raise():
    listing = Listing(
        food_name="Dal", quantity=10, hours_to_expiry=3, latitude=12.0, longitude=77.0
    )
    candidate = Candidate(id="ngo-1", latitude="north", longitude=77.0)

    with pytest.raises(ValueError):
        score_candidate(listing, candidate, [])
