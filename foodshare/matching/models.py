"""Data models for listings, recipient candidates and match results."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime

DEFAULT_CANDIDATE_NAME = "Unnamed NGO"

# Claim statuses that count towards a candidate's reliability
SUCCESS_STATUSES: frozenset[str] = frozenset({"fulfilled", "approved"})


@dataclass(frozen=True)
class Listing:
    """A donor's surplus-food offer being matched.

    Values are kept as supplied; the engine validates ``quantity`` and
    ``hours_to_expiry`` before scoring.
    """

    food_name: str = ""
    quantity: float | None = None
    hours_to_expiry: float | None = None
    latitude: float | None = None
    longitude: float | None = None
    food_type: str = ""

    @property
    def has_location(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    @classmethod
    def from_dict(cls, data: dict) -> Listing:
        """Build a listing from a callable payload (camelCase keys)."""
        return cls(
            food_name=data.get("foodName") or "",
            quantity=data.get("quantity"),
            hours_to_expiry=data.get("hoursToExpiry"),
            latitude=data.get("latitude"),
            longitude=data.get("longitude"),
            food_type=data.get("foodType") or "",
        )


@dataclass(frozen=True)
class Candidate:
    """A recipient organization eligible to receive a listing."""

    id: str
    name: str = DEFAULT_CANDIDATE_NAME
    latitude: float | None = None
    longitude: float | None = None
    pickup_radius_km: float | None = None  # default applied at scoring time

    @property
    def has_location(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    @classmethod
    def from_row(cls, row: Mapping) -> Candidate:
        """Build a candidate from a stored recipient profile."""
        return cls(
            id=row["uid"],
            name=row["name"] or DEFAULT_CANDIDATE_NAME,
            latitude=row["latitude"],
            longitude=row["longitude"],
            pickup_radius_km=row["pickup_radius_km"],
        )


@dataclass(frozen=True)
class ClaimHistorySample:
    """One past claim of a candidate, only its status is inspected."""

    status: str

    @property
    def succeeded(self) -> bool:
        return self.status in SUCCESS_STATUSES

    @classmethod
    def from_dict(cls, data: dict) -> ClaimHistorySample:
        return cls(status=str(data.get("status") or ""))


@dataclass
class ScoreBreakdown:
    """Per-component scores, each rounded for display."""

    location_score: int = 0
    distance_km: float | None = None
    expiry_score: int = 0
    capacity_score: int = 0
    reliability_score: int = 0

    def to_dict(self) -> dict:
        return {
            "locationScore": self.location_score,
            "distanceKm": self.distance_km,
            "expiryScore": self.expiry_score,
            "capacityScore": self.capacity_score,
            "reliabilityScore": self.reliability_score,
        }


@dataclass
class MatchResult:
    candidate_id: str
    candidate_name: str
    total_score: int  # 0-100
    breakdown: ScoreBreakdown = field(default_factory=ScoreBreakdown)

    def to_dict(self) -> dict:
        """Serialize for the caller.

        ``ngoId``/``ngoName``/``score`` are the keys the donor dashboard reads.
        """
        return {
            "ngoId": self.candidate_id,
            "ngoName": self.candidate_name,
            "score": self.total_score,
            "candidateId": self.candidate_id,
            "candidateName": self.candidate_name,
            "totalScore": self.total_score,
            "breakdown": self.breakdown.to_dict(),
        }


@dataclass
class MatchResponse:
    """Result of one matching invocation."""

    success: bool
    matched_ngos: list[MatchResult] = field(default_factory=list)
    total_ngos: int = 0
    message: str = ""

    def to_dict(self) -> dict:
        data: dict = {
            "success": self.success,
            "matchedNGOs": [m.to_dict() for m in self.matched_ngos],
            "totalNGOs": self.total_ngos,
        }
        if self.message:
            data["message"] = self.message
        return data


def hours_until(expiry: datetime, now: datetime | None = None) -> float:
    """Fractional hours from ``now`` until ``expiry`` (negative once past)."""
    if now is None:
        now = datetime.now(expiry.tzinfo)
    return (expiry - now).total_seconds() / 3600
