"""
Recommendation engine: the public entry point.

Personalized and similar-book requests go to the remote recommender first
and fall back to the local signals when it fails. Catalog views never call
the remote recommender.
"""

import logging
import math
from collections.abc import Callable
from datetime import datetime
from uuid import UUID

from bookwise.domain.exceptions import InvalidRequestError
from bookwise.domain.models import utcnow
from bookwise.domain.ranking import RankedBook, RankedList
from bookwise.ports.recommender import (
    RecommendationRequest,
    RecommenderPort,
    SimilarBooksRequest,
)
from bookwise.ports.store import BookStorePort
from bookwise.services.catalog import CatalogViews
from bookwise.services.collaborative import CollaborativeRecommender
from bookwise.services.content_based import ContentBasedRecommender

logger = logging.getLogger(__name__)

DEFAULT_AI_SHARE = 0.6


def split_limit(limit: int, ai_share_ratio: float) -> tuple[int, int]:
    """Return (ai_share, fallback_share); the AI share is rounded half up."""
    ai_share = math.floor(limit * ai_share_ratio + 0.5)
    return ai_share, limit - ai_share


class RecommendationService:
    """Blends the remote recommender with collaborative, content and catalog signals."""

    def __init__(
        self,
        store: BookStorePort,
        recommender: RecommenderPort,
        ai_share_ratio: float = DEFAULT_AI_SHARE,
        trending_window_days: int = 30,
        new_release_window_years: int = 1,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        _check_ratio(ai_share_ratio)
        self._recommender = recommender
        self._ai_share_ratio = ai_share_ratio
        self.catalog = CatalogViews(
            store,
            trending_window_days=trending_window_days,
            new_release_window_years=new_release_window_years,
            clock=clock,
        )
        self.collaborative = CollaborativeRecommender(store, clock=clock)
        self.content_based = ContentBasedRecommender(store)

    async def generate_recommendations(
        self,
        user_id: UUID,
        limit: int = 10,
        ai_share_ratio: float | None = None,
    ) -> list[RankedBook]:
        """
        Personalized recommendations for a user.

        The AI provider fills its share of `limit` and collaborative
        filtering fills the rest, AI results first. If the provider fails,
        the whole request is served by the trending view instead.
        """
        _check_limit(limit)
        ratio = self._ai_share_ratio if ai_share_ratio is None else ai_share_ratio
        _check_ratio(ratio)
        ai_share, fallback_share = split_limit(limit, ratio)

        ai_books = []
        if ai_share > 0:
            try:
                response = await self._recommender.generate_recommendations(
                    RecommendationRequest(user_id=user_id, limit=ai_share)
                )
                ai_books = list(response.books)
            except Exception as exc:
                logger.error("Recommendation generation failed: %s", exc)
                return await self.get_trending_books(limit)

        collaborative_books = []
        if fallback_share > 0:
            collaborative_books = await self.collaborative.recommend(user_id, fallback_share)

        blended = RankedList(limit=limit)
        blended.extend(ai_books)
        blended.extend(collaborative_books)
        logger.info(
            "Recommendations for %s: %d from AI, %d collaborative",
            user_id,
            len(ai_books),
            len(collaborative_books),
        )
        return blended.books

    async def get_similar_books(self, book_id: UUID, limit: int = 5) -> list[RankedBook]:
        """AI similarity, or content-based similarity when the provider fails."""
        _check_limit(limit)
        try:
            response = await self._recommender.find_similar_books(
                SimilarBooksRequest(book_id=book_id, limit=limit)
            )
            return response.books
        except Exception as exc:
            logger.error("Similar books generation failed: %s", exc)
            return await self.content_based.similar_books(book_id, limit)

    async def get_trending_books(self, limit: int = 10) -> list[RankedBook]:
        _check_limit(limit)
        return await self.catalog.trending(limit)

    async def get_genre_recommendations(self, genre_id: UUID, limit: int = 10) -> list[RankedBook]:
        _check_limit(limit)
        return await self.catalog.by_genre(genre_id, limit)

    async def get_new_releases(self, limit: int = 10) -> list[RankedBook]:
        _check_limit(limit)
        return await self.catalog.new_releases(limit)


def _check_limit(limit: int) -> None:
    if isinstance(limit, bool) or not isinstance(limit, int) or limit <= 0:
        raise InvalidRequestError(f"limit must be a positive integer, got {limit!r}")


def _check_ratio(ratio: float) -> None:
    if not 0.0 <= ratio <= 1.0:
        raise InvalidRequestError(f"ai_share_ratio must be within [0, 1], got {ratio!r}")
