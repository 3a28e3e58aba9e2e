"""Relational store adapter backed by async SQLAlchemy."""

import logging
from uuid import UUID

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import selectinload

from bookwise.domain.models import Book, Genre, Review
from bookwise.ports.store import BookFilter, BookOrdering, BookStorePort, ReviewFilter

logger = logging.getLogger(__name__)


class SQLAlchemyBookStore(BookStorePort):
    """Read-only finders; each call runs in its own short-lived session."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def find_books(
        self,
        book_filter: BookFilter,
        ordering: BookOrdering = BookOrdering.REVIEW_COUNT,
        limit: int | None = None,
    ) -> list[Book]:
        stmt = self._apply_ordering(self._filtered_books(book_filter), ordering)
        if limit is not None:
            stmt = stmt.limit(limit)
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            books = list(result.scalars().unique().all())
        logger.debug("find_books(%s, %s, limit=%s) -> %d", book_filter, ordering.value, limit, len(books))
        return books

    async def get_book(self, book_id: UUID) -> Book | None:
        async with self._session_factory() as session:
            return await session.get(Book, book_id)

    async def find_books_by_titles(self, titles: list[str]) -> list[Book]:
        if not titles:
            return []
        stmt = (
            select(Book)
            .where(func.lower(Book.title).in_([t.lower() for t in titles]))
            .order_by(Book.title, Book.created_at)
        )
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return list(result.scalars().unique().all())

    async def find_reviews(self, review_filter: ReviewFilter) -> list[Review]:
        f = review_filter
        # Books reached through a review are read after the session closes.
        stmt = select(Review).options(
            selectinload(Review.book).selectinload(Book.reviews),
            selectinload(Review.book).selectinload(Book.genres),
        )
        if f.user_id is not None:
            stmt = stmt.where(Review.user_id == f.user_id)
        if f.user_ids is not None:
            stmt = stmt.where(Review.user_id.in_(f.user_ids))
        if f.book_ids is not None:
            stmt = stmt.where(Review.book_id.in_(f.book_ids))
        if f.exclude_user_id is not None:
            stmt = stmt.where(Review.user_id != f.exclude_user_id)
        if f.exclude_book_ids:
            stmt = stmt.where(Review.book_id.not_in(f.exclude_book_ids))
        if f.min_rating is not None:
            stmt = stmt.where(Review.rating >= f.min_rating)
        stmt = stmt.order_by(Review.created_at.desc())

        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return list(result.scalars().all())

    # ── Query building ─────────────────────────────

    @staticmethod
    def _filtered_books(f: BookFilter) -> Select:
        stmt = select(Book)
        if f.reviewed_since is not None:
            stmt = stmt.where(Book.reviews.any(Review.created_at >= f.reviewed_since))
        if f.genre_ids:
            stmt = stmt.where(Book.genres.any(Genre.id.in_(f.genre_ids)))
        if f.author is not None:
            stmt = stmt.where(func.lower(Book.author) == f.author.lower())
        if f.published_since is not None:
            stmt = stmt.where(Book.published_year >= f.published_since)
        if f.exclude_ids:
            stmt = stmt.where(Book.id.not_in(f.exclude_ids))
        return stmt

    @staticmethod
    def _apply_ordering(stmt: Select, ordering: BookOrdering) -> Select:
        if ordering is BookOrdering.REVIEW_COUNT:
            review_count = (
                select(func.count(Review.id))
                .where(Review.book_id == Book.id)
                .correlate(Book)
                .scalar_subquery()
            )
            return stmt.order_by(review_count.desc(), Book.title)
        if ordering is BookOrdering.PUBLISHED_YEAR:
            return stmt.order_by(Book.published_year.desc(), Book.title)
        return stmt.order_by(Book.created_at.desc(), Book.title)
