"""Heuristic catalog views: trending, popular in a genre, new releases."""

import logging
from collections.abc import Callable
from datetime import datetime, timedelta
from uuid import UUID

from bookwise.domain.models import Book, utcnow
from bookwise.domain.ranking import RankedBook
from bookwise.ports.store import BookFilter, BookOrdering, BookStorePort
from bookwise.services import scoring

logger = logging.getLogger(__name__)

TRENDING_REASON = "Trending based on recent reviews"
GENRE_REASON = "Popular in this genre"
NEW_RELEASE_REASON = "Recently published"

TRENDING_CONFIDENCE = 0.8
GENRE_CONFIDENCE = 0.7
NEW_RELEASE_CONFIDENCE = 0.6


class CatalogViews:
    """Store-only rankings. A failed query yields an empty list, never an error."""

    def __init__(
        self,
        store: BookStorePort,
        trending_window_days: int = 30,
        new_release_window_years: int = 1,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._store = store
        self._trending_window_days = trending_window_days
        self._new_release_window_years = new_release_window_years
        self._clock = clock

    async def trending(self, limit: int) -> list[RankedBook]:
        now = self._clock()
        since = now - timedelta(days=self._trending_window_days)
        try:
            books = await self._store.find_books(
                BookFilter(reviewed_since=since), BookOrdering.REVIEW_COUNT, limit
            )
            ranked = []
            for book in books[:limit]:
                item = _annotate(book, TRENDING_REASON, TRENDING_CONFIDENCE)
                item.trending_score = scoring.trending_score(
                    [r.created_at for r in book.reviews], now, self._trending_window_days
                )
                ranked.append(item)
            return ranked
        except Exception as exc:
            logger.error("Trending books generation failed: %s", exc)
            return []

    async def by_genre(self, genre_id: UUID, limit: int) -> list[RankedBook]:
        try:
            books = await self._store.find_books(
                BookFilter(genre_ids=(genre_id,)), BookOrdering.REVIEW_COUNT, limit
            )
            return [_annotate(b, GENRE_REASON, GENRE_CONFIDENCE) for b in books[:limit]]
        except Exception as exc:
            logger.error("Genre recommendations failed: %s", exc)
            return []

    async def new_releases(self, limit: int) -> list[RankedBook]:
        since_year = self._clock().year - self._new_release_window_years
        try:
            books = await self._store.find_books(
                BookFilter(published_since=since_year), BookOrdering.PUBLISHED_YEAR, limit
            )
            return [_annotate(b, NEW_RELEASE_REASON, NEW_RELEASE_CONFIDENCE) for b in books[:limit]]
        except Exception as exc:
            logger.error("New releases recommendations failed: %s", exc)
            return []


def _annotate(book: Book, reason: str, confidence: float) -> RankedBook:
    avg, total = scoring.rate_book(book)
    return RankedBook.from_book(
        book,
        reason=reason,
        confidence=confidence,
        average_rating=avg,
        total_reviews=total,
    )
