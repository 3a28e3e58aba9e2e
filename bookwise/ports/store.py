"""Store port: read-only finders over books and reviews."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from uuid import UUID

from bookwise.domain.models import Book, Review


class BookOrdering(str, Enum):
    REVIEW_COUNT = "review_count"
    PUBLISHED_YEAR = "published_year"
    NEWEST = "newest"


@dataclass(frozen=True)
class BookFilter:
    """
    Conjunctive filter for book queries. Unset fields do not constrain.

    Attributes:
        reviewed_since:  At least one review created at or after this time.
        genre_ids:       Associated with any of these genres.
        author:          Case-insensitive exact author match.
        published_since: Published in this year or later.
        exclude_ids:     Never return these books.
    """

    reviewed_since: datetime | None = None
    genre_ids: tuple[UUID, ...] = ()
    author: str | None = None
    published_since: int | None = None
    exclude_ids: tuple[UUID, ...] = ()


@dataclass(frozen=True)
class ReviewFilter:
    """Conjunctive filter for review queries. Unset fields do not constrain."""

    user_id: UUID | None = None
    user_ids: tuple[UUID, ...] | None = None
    book_ids: tuple[UUID, ...] | None = None
    exclude_user_id: UUID | None = None
    exclude_book_ids: tuple[UUID, ...] = ()
    min_rating: int | None = None


class BookStorePort(ABC):
    """
    Read-only access to the catalog.

    Books are returned with genres and reviews loaded; reviews with their
    book (and that book's genres and reviews) loaded.
    """

    @abstractmethod
    async def find_books(
        self,
        book_filter: BookFilter,
        ordering: BookOrdering = BookOrdering.REVIEW_COUNT,
        limit: int | None = None,
    ) -> list[Book]:
        ...

    @abstractmethod
    async def get_book(self, book_id: UUID) -> Book | None:
        ...

    @abstractmethod
    async def find_books_by_titles(self, titles: list[str]) -> list[Book]:
        """Case-insensitive exact match on any of the titles."""
        ...

    @abstractmethod
    async def find_reviews(self, review_filter: ReviewFilter) -> list[Review]:
        """Reviews matching the filter, newest first."""
        ...
