"""Rank recipient candidates for a listing."""

from __future__ import annotations

import asyncio
import inspect
import logging
import math
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass, field

from .config import MatchingConfig
from .errors import InternalError, InvalidArgumentError
from .models import Candidate, ClaimHistorySample, Listing, MatchResult
from .scoring import score_candidate

logger = logging.getLogger(__name__)

HistoryLookup = Callable[
    [str],
    Iterable[ClaimHistorySample] | Awaitable[Iterable[ClaimHistorySample]],
]


@dataclass
class RankingOutcome:
    matches: list[MatchResult] = field(default_factory=list)
    total_scored: int = 0  # before truncation to top N


def _is_finite_number(value: object) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def validate_listing(listing: Listing) -> None:
    """Reject listings that cannot be scored.

    Raises:
        InvalidArgumentError: If quantity or hours_to_expiry is missing
            or not a finite number, or a supplied coordinate is not one.
    """
    if not _is_finite_number(listing.quantity):
        raise InvalidArgumentError(
            f"quantity must be a finite number, got {listing.quantity!r}"
        )
    if not _is_finite_number(listing.hours_to_expiry):
        raise InvalidArgumentError(
            f"hoursToExpiry must be a finite number, got {listing.hours_to_expiry!r}"
        )
    # Coordinates are optional, but one that is supplied must be usable
    for key, value in (("latitude", listing.latitude), ("longitude", listing.longitude)):
        if value is not None and not _is_finite_number(value):
            raise InvalidArgumentError(f"{key} must be a finite number, got {value!r}")


def _as_sample(item: ClaimHistorySample | dict) -> ClaimHistorySample:
    if isinstance(item, ClaimHistorySample):
        return item
    return ClaimHistorySample.from_dict(item)


async def _fetch_history(
    lookup: HistoryLookup, candidate_id: str, limit: int
) -> list[ClaimHistorySample]:
    """Fetch a candidate's recent claims; a failing lookup yields no history.

    Coroutine lookups run on the loop. Anything else is treated as blocking
    and runs in a worker thread so the lookups overlap.
    """
    try:
        if inspect.iscoroutinefunction(lookup):
            result = await lookup(candidate_id)
        else:
            result = await asyncio.to_thread(lookup, candidate_id)
            if inspect.isawaitable(result):
                result = await result
        return [_as_sample(item) for item in list(result)[:limit]]
    except Exception:
        logger.warning(
            "History lookup failed for candidate %s, scoring as new candidate",
            candidate_id,
            exc_info=True,
        )
        return []


async def rank_candidates(
    listing: Listing,
    candidates: Iterable[Candidate],
    history_lookup: HistoryLookup,
    *,
    settings: MatchingConfig | None = None,
) -> RankingOutcome:
    """Score every candidate and return the best ``settings.top_n``.

    History lookups run concurrently; scores are collected in candidate
    order and sorted once, so equal scores keep their input order.

    Raises:
        InvalidArgumentError: If the listing cannot be scored.
        InternalError: If candidates were given but none could be scored.
    """
    settings = settings or MatchingConfig()
    validate_listing(listing)

    candidates = list(candidates)
    if not candidates:
        return RankingOutcome()

    histories = await asyncio.gather(
        *(
            _fetch_history(history_lookup, c.id, settings.history_limit)
            for c in candidates
        )
    )

    results: list[MatchResult] = []
    for candidate, history in zip(candidates, histories):
        try:
            results.append(score_candidate(listing, candidate, history, settings))
        except (TypeError, ValueError):
            logger.warning(
                "Skipping candidate %s: invalid location or capacity data",
                candidate.id,
                exc_info=True,
            )

    if not results:
        raise InternalError(
            f"None of the {len(candidates)} candidates could be scored"
        )

    ranked = sorted(results, key=lambda r: r.total_score, reverse=True)
    return RankingOutcome(matches=ranked[: settings.top_n], total_scored=len(results))
