"""NGO matching and ranking for surplus-food listings."""

from .config import (
    DatabaseConfig,
    FoodShareConfig,
    LoggingConfig,
    MatchingConfig,
    SchedulerConfig,
    load_config,
)
from .engine import RankingOutcome, rank_candidates, validate_listing
from .errors import InternalError, InvalidArgumentError, MatchingError
from .models import (
    Candidate,
    ClaimHistorySample,
    Listing,
    MatchResponse,
    MatchResult,
    ScoreBreakdown,
)
from .relevance import (
    AvailableListing,
    LearningProfile,
    ListingMatch,
    RecipientProfile,
    rank_listings_for_recipient,
)
from .scoring import score_candidate
from .service import MatchingService
from .sources import CandidateSource, HistorySource

__all__ = [
    "Listing",
    "Candidate",
    "ClaimHistorySample",
    "ScoreBreakdown",
    "MatchResult",
    "MatchResponse",
    "RankingOutcome",
    "rank_candidates",
    "validate_listing",
    "score_candidate",
    "AvailableListing",
    "RecipientProfile",
    "LearningProfile",
    "ListingMatch",
    "rank_listings_for_recipient",
    "MatchingService",
    "CandidateSource",
    "HistorySource",
    "MatchingError",
    "InvalidArgumentError",
    "InternalError",
    "FoodShareConfig",
    "MatchingConfig",
    "DatabaseConfig",
    "SchedulerConfig",
    "LoggingConfig",
    "load_config",
]
