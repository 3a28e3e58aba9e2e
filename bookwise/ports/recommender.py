"""Recommender port: abstract interface for the remote AI recommender."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from uuid import UUID

from bookwise.domain.ranking import RankedBook


@dataclass
class RecommendationRequest:
    """Personalized recommendation request sent to the remote provider."""

    user_id: UUID
    limit: int = 10
    context: str | None = None


@dataclass
class SimilarBooksRequest:
    """Request for books similar to a reference book."""

    book_id: UUID
    limit: int = 5


@dataclass
class RecommendationResponse:
    """Books suggested by the provider, with its own explanation."""

    books: list[RankedBook] = field(default_factory=list)
    explanation: str = ""


class RecommenderPort(ABC):
    """Abstraction for the remote (AI) book recommender."""

    @abstractmethod
    async def generate_recommendations(
        self, request: RecommendationRequest
    ) -> RecommendationResponse:
        """Return personalized suggestions for a user."""
        ...

    @abstractmethod
    async def find_similar_books(
        self, request: SimilarBooksRequest
    ) -> RecommendationResponse:
        """Return books similar to the requested one."""
        ...
