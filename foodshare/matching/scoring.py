"""Per-candidate scoring: location, expiry urgency, capacity and reliability.

The four components have fixed maxima that add up to 100:

    location 40 + expiry 30 + capacity 15 + reliability 15
"""

from __future__ import annotations

import math
from collections.abc import Sequence

from .config import MatchingConfig
from .geo import haversine_km
from .models import Candidate, ClaimHistorySample, Listing, MatchResult, ScoreBreakdown

LOCATION_MAX = 40
EXPIRY_MAX = 30
CAPACITY_MAX = 15
RELIABILITY_MAX = 15

# (upper bound in hours, points); a value equal to the bound gets the points
_EXPIRY_BRACKETS: list[tuple[float, int]] = [
    (2, 30),
    (6, 20),
    (24, 10),
]

# Quantity units one km of pickup radius is assumed to handle
_CAPACITY_DIVISOR = 10


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves going up (7.5 → 8, 2.5 → 3).

    Python's ``round`` rounds halves to even, which would turn 2.5 into 2.
    """
    return math.floor(value + 0.5)


def location_points(distance_km: float, max_distance_km: float = 20.0) -> float:
    """Linear falloff from 40 at 0 km to 0 at ``max_distance_km`` and beyond."""
    return LOCATION_MAX * (1 - min(distance_km / max_distance_km, 1))


def expiry_points(hours_to_expiry: float) -> int:
    """Urgency step function. Already-expired listings stay in the top bracket."""
    for upper, points in _EXPIRY_BRACKETS:
        if hours_to_expiry <= upper:
            return points
    return 0


def capacity_points(
    pickup_radius_km: float | None,
    quantity: float,
    default_radius_km: float = 10.0,
) -> int:
    """Binary capacity check using the pickup radius as a handling proxy."""
    capacity = default_radius_km if pickup_radius_km is None else pickup_radius_km
    return CAPACITY_MAX if capacity >= quantity / _CAPACITY_DIVISOR else 0


def reliability_points(
    history: Sequence[ClaimHistorySample],
    limit: int = 20,
    new_candidate_points: int = 10,
) -> int:
    """Share of fulfilled/approved claims among the most recent ``limit``.

    Candidates without any claim get ``new_candidate_points``.
    """
    sampled = list(history)[:limit]
    if not sampled:
        return new_candidate_points
    successes = sum(1 for claim in sampled if claim.succeeded)
    return round_half_up(successes / len(sampled) * RELIABILITY_MAX)


def score_candidate(
    listing: Listing,
    candidate: Candidate,
    history: Sequence[ClaimHistorySample],
    settings: MatchingConfig | None = None,
) -> MatchResult:
    """Score one candidate against a validated listing."""
    settings = settings or MatchingConfig()

    location = 0.0
    distance_km: float | None = None
    if listing.has_location and candidate.has_location:
        distance_km = haversine_km(
            float(listing.latitude),
            float(listing.longitude),
            float(candidate.latitude),
            float(candidate.longitude),
        )
        location = location_points(distance_km, settings.max_distance_km)

    expiry = expiry_points(listing.hours_to_expiry)
    capacity = capacity_points(
        candidate.pickup_radius_km,
        listing.quantity,
        settings.default_pickup_radius_km,
    )
    reliability = reliability_points(
        history,
        limit=settings.history_limit,
        new_candidate_points=settings.new_candidate_reliability,
    )

    total = round_half_up(location + expiry + capacity + reliability)

    return MatchResult(
        candidate_id=candidate.id,
        candidate_name=candidate.name,
        total_score=total,
        breakdown=ScoreBreakdown(
            location_score=round_half_up(location),
            distance_km=round(distance_km, 2) if distance_km is not None else None,
            expiry_score=expiry,
            capacity_score=capacity,
            reliability_score=reliability,
        ),
    )
