"""Formatting helpers for presenting match results."""

from __future__ import annotations

from dataclasses import dataclass

from .scoring import round_half_up


@dataclass(frozen=True)
class MatchQuality:
    label: str
    color: str
    emoji: str


# (minimum score, quality), checked top-down
_QUALITY_LEVELS: list[tuple[int, MatchQuality]] = [
    (85, MatchQuality("Excellent Match", "green", "🎯")),
    (70, MatchQuality("Great Match", "blue", "⭐")),
    (55, MatchQuality("Good Match", "cyan", "✓")),
    (40, MatchQuality("Fair Match", "amber", "○")),
]

_LOW_MATCH = MatchQuality("Low Match", "slate", "·")


def match_quality(score: float) -> MatchQuality:
    for threshold, quality in _QUALITY_LEVELS:
        if score >= threshold:
            return quality
    return _LOW_MATCH


def format_distance(km: float | None) -> str:
    if km is None:
        return "—"
    if km < 1:
        return f"{round_half_up(km * 1000)}m"
    return f"{km:.1f}km"


def format_expiry_time(hours: float) -> str:
    if hours < 0:
        return "Expired"
    if hours < 1:
        return f"{round_half_up(hours * 60)}min"
    if hours < 24:
        return f"{round_half_up(hours)}h"
    return f"{round_half_up(hours / 24)}d"


def estimate_eta_minutes(distance_km: float | None) -> int | None:
    """Rough pickup ETA: 3 minutes per km plus 15 minutes of handling."""
    if distance_km is None:
        return None
    return round_half_up(distance_km * 3 + 15)
