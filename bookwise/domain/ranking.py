"""Ranked output values produced by the engine (never persisted)."""

from dataclasses import asdict, dataclass, field
from typing import Any
from uuid import UUID

from bookwise.domain.models import Book


@dataclass
class RankedBook:
    """A book annotated with the signal that put it in a ranked list."""

    id: UUID
    title: str
    author: str
    reason: str
    confidence: float
    average_rating: float = 0.0
    total_reviews: int = 0
    cover_image_url: str | None = None
    published_year: int | None = None
    genres: list[str] | None = None
    trending_score: float | None = None
    score: float | None = None

    @classmethod
    def from_book(
        cls,
        book: Book,
        *,
        reason: str,
        confidence: float,
        average_rating: float = 0.0,
        total_reviews: int = 0,
        **extra: Any,
    ) -> "RankedBook":
        """Copy a book's public fields and attach the derived attributes."""
        return cls(
            id=book.id,
            title=book.title,
            author=book.author,
            cover_image_url=book.cover_image_url,
            published_year=book.published_year,
            genres=book.genre_names,
            reason=reason,
            confidence=confidence,
            average_rating=average_rating,
            total_reviews=total_reviews,
            **extra,
        )

    def as_dict(self) -> dict[str, Any]:
        """Render without the optional fields that were never set."""
        data = asdict(self)
        for key in ("genres", "trending_score", "score"):
            if data[key] is None:
                del data[key]
        return data


@dataclass
class RankedList:
    """Internal accumulator that keeps first occurrences and a size cap."""

    limit: int
    books: list[RankedBook] = field(default_factory=list)

    def extend(self, candidates: list[RankedBook]) -> None:
        seen = {b.id for b in self.books}
        for book in candidates:
            if len(self.books) >= self.limit:
                return
            if book.id in seen:
                continue
            seen.add(book.id)
            self.books.append(book)
