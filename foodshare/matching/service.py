"""Backend entry point: fetch candidates and history, then rank them."""

from __future__ import annotations

import asyncio
import functools
import inspect
import logging

from .config import MatchingConfig
from .engine import HistoryLookup, rank_candidates, validate_listing
from .errors import InternalError, InvalidArgumentError
from .models import Candidate, Listing, MatchResponse
from .sources import CandidateSource, HistorySource

logger = logging.getLogger(__name__)

NO_CANDIDATES_MESSAGE = "No NGOs available for matching"


class MatchingService:
    """Matches a newly submitted listing against all recipient organizations.

    The candidate and history sources are injected so the service can run
    against any store; ``foodshare.matching.db`` provides SQLite versions.
    """

    def __init__(
        self,
        candidates: CandidateSource,
        history: HistorySource,
        settings: MatchingConfig | None = None,
    ) -> None:
        self._candidates = candidates
        self._history = history
        self._settings = settings or MatchingConfig()

    async def trigger_matching(self, payload: dict) -> dict:
        """Handle a callable request and return the serialized response.

        Raises:
            InvalidArgumentError: If the payload is not a valid listing.
            InternalError: If candidates could not be loaded or ranked.
        """
        if not isinstance(payload, dict):
            raise InvalidArgumentError("Listing payload must be an object")
        response = await self.match_listing(Listing.from_dict(payload))
        return response.to_dict()

    async def match_listing(self, listing: Listing) -> MatchResponse:
        if not isinstance(listing.food_name, str) or not listing.food_name.strip():
            raise InvalidArgumentError("foodName is required")
        validate_listing(listing)

        candidates = await self._load_candidates()
        if not candidates:
            logger.info("No recipients available for %r", listing.food_name)
            return MatchResponse(success=True, message=NO_CANDIDATES_MESSAGE)

        ranking = rank_candidates(
            listing,
            candidates,
            self._history_lookup(),
            settings=self._settings,
        )
        timeout = self._settings.lookup_timeout_seconds
        try:
            if timeout is not None:
                outcome = await asyncio.wait_for(ranking, timeout)
            else:
                outcome = await ranking
        except asyncio.TimeoutError as e:
            logger.error(
                "Matching for %r timed out after %ss", listing.food_name, timeout
            )
            raise InternalError(
                f"Matching timed out after {timeout}s", code="deadline-exceeded"
            ) from e

        if outcome.matches:
            best = outcome.matches[0]
            logger.info(
                "Matched %r against %d NGOs, best %s (%d)",
                listing.food_name,
                outcome.total_scored,
                best.candidate_id,
                best.total_score,
            )

        return MatchResponse(
            success=True,
            matched_ngos=outcome.matches,
            total_ngos=outcome.total_scored,
        )

    async def _load_candidates(self) -> list[Candidate]:
        try:
            result = self._candidates.list_recipients()
            if inspect.isawaitable(result):
                result = await result
            return list(result)
        except Exception as e:
            logger.exception("Failed to load recipient candidates")
            raise InternalError("Failed to load recipient candidates") from e

    def _history_lookup(self) -> HistoryLookup:
        # partial keeps recent_claims recognizable as a coroutine function
        return functools.partial(
            self._history.recent_claims, limit=self._settings.history_limit
        )
