"""Rank open listings for one recipient organization.

The reverse of candidate matching: a recipient's dashboard orders the
available listings by how well each suits it. Each component is a fit in
[0, 1] weighted to these points, for a 0-100 score:

    food type 25 + freshness 25 + distance 20 + quantity 15
    + verified donor 10 + urgency 5

Expired listings and listings of the wrong veg / non-veg type are dropped
before scoring.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime

from .geo import haversine_km
from .models import hours_until

FOOD_TYPE_MAX = 25
FRESHNESS_MAX = 25
DISTANCE_MAX = 20
QUANTITY_MAX = 15
VERIFIED_MAX = 10
URGENCY_MAX = 5

MAX_DISTANCE_KM = 50.0
DEFAULT_CAPACITY = 100.0
UNKNOWN_EXPIRY_HOURS = 24.0

# Neutral fit for a component whose inputs are missing
NEUTRAL_FIT = 0.5
UNKNOWN_FOOD_TYPE_FIT = 0.6

_VEG_WORDS = ("vegetable", "fruit", "rice", "dal", "roti", "bread")
_NON_VEG_WORDS = (
    "non-veg",
    "nonveg",
    "non_veg",
    "non veg",
    "chicken",
    "meat",
    "fish",
    "egg",
)

# (upper bound in hours, fit); expired listings get 0
_URGENCY_BRACKETS: list[tuple[float, float]] = [
    (2, 1.0),
    (6, 0.8),
    (12, 0.6),
    (24, 0.4),
]
_LOW_URGENCY_FIT = 0.2

# Score adjustments from a recipient's learned behaviour
PREFERRED_DONOR_BONUS = 5
AVOIDED_DONOR_PENALTY = 10


def normalize_food_type(food_type: str | None) -> str:
    """Classify a free-text food type as ``veg``, ``non-veg`` or ``unknown``."""
    if not food_type:
        return "unknown"
    text = food_type.lower().strip()
    if ("veg" in text and "non" not in text) or any(w in text for w in _VEG_WORDS):
        return "veg"
    if any(w in text for w in _NON_VEG_WORDS):
        return "non-veg"
    return "unknown"


def _parse_time(value: str | datetime | None) -> datetime | None:
    if value is None or isinstance(value, datetime):
        return value
    return datetime.fromisoformat(value)


@dataclass(frozen=True)
class RecipientProfile:
    """What a recipient accepts and where it operates."""

    food_preference: str = "both"  # veg | non-veg | both
    capacity: float | None = None  # default applied at scoring time
    latitude: float | None = None
    longitude: float | None = None

    @property
    def has_location(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    @classmethod
    def from_row(cls, row: Mapping) -> RecipientProfile:
        return cls(
            food_preference=row["food_preference"] or "both",
            capacity=row["capacity"],
            latitude=row["latitude"],
            longitude=row["longitude"],
        )


@dataclass(frozen=True)
class AvailableListing:
    """An open listing as shown on a recipient's dashboard."""

    id: int | None = None
    food_name: str = ""
    food_type: str = ""
    quantity: float | None = None
    donor_id: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    expiry_time: datetime | None = None
    prepared_time: datetime | None = None
    verified: bool = False

    @property
    def has_location(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    @classmethod
    def from_row(cls, row: Mapping) -> AvailableListing:
        """Build from a ``food_listings`` row."""
        return cls(
            id=row["id"],
            food_name=row["food_name"],
            food_type=row["food_type"] or "",
            quantity=row["quantity"],
            donor_id=row["donor_id"],
            latitude=row["latitude"],
            longitude=row["longitude"],
            expiry_time=_parse_time(row["expiry_time"]),
            prepared_time=_parse_time(row["prepared_time"]),
            verified=bool(row["verified"]),
        )


@dataclass(frozen=True)
class LearningProfile:
    """Adjustments learned from a recipient's past accepts and rejects.

    Boosts are fractions of the 100-point scale and may be negative.
    """

    preferred_donors: frozenset[str] = frozenset()
    avoided_donors: frozenset[str] = frozenset()
    distance_boost: float = 0.0
    quantity_boost: float = 0.0
    freshness_boost: float = 0.0
    verified_boost: float = 0.0

    def adjust(self, listing: AvailableListing, score: float) -> float:
        """Apply donor preferences and pattern boosts, capped to 0-100."""
        if listing.donor_id in self.preferred_donors:
            score += PREFERRED_DONOR_BONUS
        if listing.donor_id in self.avoided_donors:
            score -= AVOIDED_DONOR_PENALTY
        score += (
            self.distance_boost
            + self.quantity_boost
            + self.freshness_boost
            + self.verified_boost
        ) * 100
        return max(0.0, min(100.0, score))


@dataclass
class RelevanceBreakdown:
    """Per-component fits, each in [0, 1]."""

    food_type: float = 0.0
    freshness: float = 0.0
    quantity: float = 0.0
    distance: float = 0.0
    verified: float = 0.0
    urgency: float = 0.0

    def points(self) -> float:
        return (
            self.food_type * FOOD_TYPE_MAX
            + self.freshness * FRESHNESS_MAX
            + self.quantity * QUANTITY_MAX
            + self.distance * DISTANCE_MAX
            + self.verified * VERIFIED_MAX
            + self.urgency * URGENCY_MAX
        )

    def to_dict(self) -> dict:
        return {
            "foodTypeScore": self.food_type,
            "freshnessScore": self.freshness,
            "quantityScore": self.quantity,
            "distanceScore": self.distance,
            "verifiedScore": self.verified,
            "urgencyScore": self.urgency,
        }


@dataclass
class ListingMatch:
    listing: AvailableListing
    score: float  # after learning adjustments
    base_score: float
    expiry_hours: float
    breakdown: RelevanceBreakdown = field(default_factory=RelevanceBreakdown)
    distance_km: float | None = None
    freshness_percent: float | None = None

    @property
    def adjusted(self) -> bool:
        return self.score != self.base_score

    def to_dict(self) -> dict:
        return {
            "listingId": self.listing.id,
            "foodName": self.listing.food_name,
            "donorId": self.listing.donor_id,
            "matchScore": self.score,
            "baseScore": self.base_score,
            "scoreBreakdown": self.breakdown.to_dict(),
            "distanceKm": self.distance_km,
            "expiryHours": self.expiry_hours,
            "freshnessPercent": self.freshness_percent,
            "adjusted": self.adjusted,
        }


def food_type_fit(food_type: str | None, preference: str) -> float:
    if preference == "both":
        return 1.0
    listing_type = normalize_food_type(food_type)
    if listing_type == "unknown":
        return UNKNOWN_FOOD_TYPE_FIT
    return 1.0 if listing_type == preference else 0.0


def freshness_fit(
    expiry_time: datetime | None,
    prepared_time: datetime | None,
    now: datetime | None = None,
) -> tuple[float, float | None]:
    """Share of the food's shelf life that remains.

    Returns:
        ``(fit, freshness_percent)``. The percent is only known when both
        the prepared and expiry times are set and the food has not expired.
    """
    if expiry_time is None:
        return NEUTRAL_FIT, None

    remaining = hours_until(expiry_time, now)
    if prepared_time is not None and prepared_time < expiry_time:
        if remaining <= 0:
            return 0.0, None
        lifespan = (expiry_time - prepared_time).total_seconds() / 3600
        percent = remaining / lifespan
        return max(0.0, min(1.0, percent)), percent

    # Without a prepared time, a day or more of shelf life counts as fresh
    if remaining <= 0:
        return 0.0, None
    return min(remaining / UNKNOWN_EXPIRY_HOURS, 1.0), None


def quantity_fit(quantity: float | None, capacity: float | None) -> float:
    """How much of the recipient's capacity the donation fills.

    A missing or zero capacity is treated as ``DEFAULT_CAPACITY``.
    """
    capacity = capacity or DEFAULT_CAPACITY
    if not quantity or quantity <= 0 or capacity <= 0:
        return NEUTRAL_FIT
    return min(1.0, quantity / capacity)


def distance_fit(distance_km: float | None) -> float:
    if distance_km is None:
        return NEUTRAL_FIT
    return max(0.0, 1 - distance_km / MAX_DISTANCE_KM)


def expiry_hours(expiry_time: datetime | None, now: datetime | None = None) -> float:
    """Hours left before expiry, never negative. Unknown expiry counts as a day."""
    if expiry_time is None:
        return UNKNOWN_EXPIRY_HOURS
    return max(0.0, hours_until(expiry_time, now))


def urgency_fit(hours: float) -> float:
    if hours <= 0:
        return 0.0
    for upper, fit in _URGENCY_BRACKETS:
        if hours <= upper:
            return fit
    return _LOW_URGENCY_FIT


def is_eligible(
    listing: AvailableListing,
    profile: RecipientProfile,
    now: datetime | None = None,
) -> bool:
    """False for expired listings and for a veg / non-veg mismatch.

    Listings of unknown food type are always kept.
    """
    if listing.expiry_time is not None and hours_until(listing.expiry_time, now) < 0:
        return False
    if profile.food_preference != "both":
        listing_type = normalize_food_type(listing.food_type)
        if listing_type != "unknown" and listing_type != profile.food_preference:
            return False
    return True


def score_listing(
    listing: AvailableListing,
    profile: RecipientProfile,
    now: datetime | None = None,
) -> ListingMatch:
    """Score one listing for a recipient, without learning adjustments."""
    distance_km: float | None = None
    if listing.has_location and profile.has_location:
        distance_km = haversine_km(
            profile.latitude, profile.longitude, listing.latitude, listing.longitude
        )

    freshness, freshness_percent = freshness_fit(
        listing.expiry_time, listing.prepared_time, now
    )
    hours = expiry_hours(listing.expiry_time, now)
    breakdown = RelevanceBreakdown(
        food_type=food_type_fit(listing.food_type, profile.food_preference),
        freshness=freshness,
        quantity=quantity_fit(listing.quantity, profile.capacity),
        distance=distance_fit(distance_km),
        verified=1.0 if listing.verified else 0.0,
        urgency=urgency_fit(hours),
    )
    score = breakdown.points()
    return ListingMatch(
        listing=listing,
        score=score,
        base_score=score,
        expiry_hours=hours,
        breakdown=breakdown,
        distance_km=distance_km,
        freshness_percent=freshness_percent,
    )


def rank_listings_for_recipient(
    listings: Iterable[AvailableListing],
    profile: RecipientProfile,
    *,
    learning: LearningProfile | None = None,
    now: datetime | None = None,
) -> list[ListingMatch]:
    """Filter, score and sort listings for one recipient.

    Sorted by score, then soonest expiry, then nearest. Listings without
    a distance sort after those with one when the rest is equal.
    """
    matches: list[ListingMatch] = []
    for listing in listings:
        if not is_eligible(listing, profile, now):
            continue
        match = score_listing(listing, profile, now)
        if learning is not None:
            match.score = learning.adjust(listing, match.base_score)
        matches.append(match)

    matches.sort(
        key=lambda m: (
            -m.score,
            m.expiry_hours,
            m.distance_km if m.distance_km is not None else math.inf,
        )
    )
    return matches
