"""Content-based similarity: genre and author overlap with a reference book."""

import logging
from uuid import UUID

from bookwise.domain.models import Book
from bookwise.domain.ranking import RankedBook
from bookwise.ports.store import BookFilter, BookStorePort
from bookwise.services import scoring

logger = logging.getLogger(__name__)

AUTHOR_BONUS = 0.5
RELIABILITY = 0.6


class ContentBasedRecommender:
    """Ranks books sharing genres or an author with the reference book."""

    def __init__(self, store: BookStorePort) -> None:
        self._store = store

    async def similar_books(self, book_id: UUID, limit: int) -> list[RankedBook]:
        try:
            return await self._similar_books(book_id, limit)
        except Exception as exc:
            logger.error("Content-based filtering failed: %s", exc)
            return []

    async def _similar_books(self, book_id: UUID, limit: int) -> list[RankedBook]:
        reference = await self._store.get_book(book_id)
        if reference is None:
            logger.info("Content-based: book %s not found", book_id)
            return []

        genre_ids = tuple(g.id for g in reference.genres)
        candidates: dict[UUID, Book] = {}
        if genre_ids:
            for book in await self._store.find_books(
                BookFilter(genre_ids=genre_ids, exclude_ids=(book_id,))
            ):
                candidates[book.id] = book
        for book in await self._store.find_books(
            BookFilter(author=reference.author, exclude_ids=(book_id,))
        ):
            candidates.setdefault(book.id, book)

        ref_genres = {g.id for g in reference.genres}
        ranked: list[RankedBook] = []
        for book in candidates.values():
            if book.id == book_id:
                continue
            genres = {g.id for g in book.genres}
            union = ref_genres | genres
            genre_overlap = len(ref_genres & genres) / len(union) if union else 0.0
            same_author = book.author.lower() == reference.author.lower()
            score = genre_overlap + (AUTHOR_BONUS if same_author else 0.0)
            if score <= 0:
                continue

            avg, total = scoring.rate_book(book)
            ranked.append(
                RankedBook.from_book(
                    book,
                    reason=_reason(genre_overlap, same_author),
                    confidence=scoring.clamp_confidence(RELIABILITY * score),
                    average_rating=avg,
                    total_reviews=total,
                    score=score,
                )
            )

        ranked.sort(key=lambda b: (-b.score, -b.average_rating, -b.total_reviews))
        return ranked[:limit]


def _reason(genre_overlap: float, same_author: bool) -> str:
    if same_author and genre_overlap > 0:
        return "Same author and similar genres"
    if same_author:
        return "By the same author"
    return "Similar genre and themes"
