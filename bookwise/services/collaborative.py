"""Collaborative filtering from the review behaviour of like-minded users."""

import logging
from collections import defaultdict
from collections.abc import Callable
from datetime import datetime
from uuid import UUID

from bookwise.domain.models import Book, utcnow
from bookwise.domain.ranking import RankedBook
from bookwise.ports.store import BookStorePort, ReviewFilter
from bookwise.services import scoring

logger = logging.getLogger(__name__)

REASON = "Recommended by users with similar taste"
RELIABILITY = 0.7
POSITIVE_RATING = 4
MAX_SHARED_BOOKS_REQUIRED = 3
RATING_SPAN = 4  # 1..5
ENDORSEMENT_HALF_LIFE_DAYS = 180.0


class CollaborativeRecommender:
    """
    User-user collaborative filtering over co-reviewed books.

    A neighbour is any other user who reviewed at least
    min(3, own review count) of the same books. Their taste similarity is
    one minus the normalised mean rating gap on those books. Books they
    rated 4+ and the requesting user has not reviewed are scored by the
    similarity-weighted, recency-decayed endorsements, scaled by the
    book's average rating.
    """

    def __init__(
        self,
        store: BookStorePort,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._store = store
        self._clock = clock

    async def recommend(self, user_id: UUID, limit: int) -> list[RankedBook]:
        if limit <= 0:
            return []
        try:
            return await self._recommend(user_id, limit)
        except Exception as exc:
            logger.error("Collaborative filtering failed: %s", exc)
            return []

    async def _recommend(self, user_id: UUID, limit: int) -> list[RankedBook]:
        own_reviews = await self._store.find_reviews(ReviewFilter(user_id=user_id))
        if not own_reviews:
            return []
        own_ratings = {r.book_id: r.rating for r in own_reviews}
        own_book_ids = tuple(own_ratings)

        overlapping = await self._store.find_reviews(
            ReviewFilter(book_ids=own_book_ids, exclude_user_id=user_id)
        )
        neighbours = _neighbour_similarities(own_ratings, overlapping)
        if not neighbours:
            return []

        endorsements = await self._store.find_reviews(
            ReviewFilter(
                user_ids=tuple(neighbours),
                min_rating=POSITIVE_RATING,
                exclude_book_ids=own_book_ids,
            )
        )

        now = self._clock()
        books: dict[UUID, Book] = {}
        affinity: dict[UUID, float] = defaultdict(float)
        support: dict[UUID, int] = defaultdict(int)
        for review in endorsements:
            books[review.book_id] = review.book
            weight = scoring.recency_weight(review.created_at, now, ENDORSEMENT_HALF_LIFE_DAYS)
            affinity[review.book_id] += neighbours[review.user_id] * review.rating / 5 * weight
            support[review.book_id] += 1

        ranked = []
        for book_id, book in books.items():
            avg, total = scoring.rate_book(book)
            ranked.append(
                RankedBook.from_book(
                    book,
                    reason=REASON,
                    confidence=scoring.confidence(support[book_id], RELIABILITY),
                    average_rating=avg,
                    total_reviews=total,
                    score=affinity[book_id] * avg / 5,
                )
            )
        ranked.sort(key=lambda b: (-b.score, -b.average_rating, -b.total_reviews))
        return ranked[:limit]


def _neighbour_similarities(own_ratings: dict, overlapping: list) -> dict[UUID, float]:
    gaps: dict[UUID, list[int]] = defaultdict(list)
    for review in overlapping:
        if review.book_id in own_ratings:
            gaps[review.user_id].append(abs(own_ratings[review.book_id] - review.rating))

    required = min(MAX_SHARED_BOOKS_REQUIRED, len(own_ratings))
    neighbours = {}
    for other_id, user_gaps in gaps.items():
        if len(user_gaps) < required:
            continue
        similarity = 1 - (sum(user_gaps) / len(user_gaps)) / RATING_SPAN
        if similarity > 0:
            neighbours[other_id] = similarity
    return neighbours
