"""Store interfaces the matching service reads candidates and history from."""

from __future__ import annotations

from abc import ABC, abstractmethod

from .models import Candidate, ClaimHistorySample


class CandidateSource(ABC):
    """Lists every user with the recipient role."""

    @abstractmethod
    def list_recipients(self) -> list[Candidate]:
        ...


class HistorySource(ABC):
    """Lists a recipient's most recent claims, newest first."""

    @abstractmethod
    def recent_claims(
        self, recipient_id: str, limit: int = 20
    ) -> list[ClaimHistorySample]:
        ...
