import uuid
from datetime import datetime, timedelta

import pytest
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from bookwise.adapters.store.sqlalchemy_store import SQLAlchemyBookStore
from bookwise.domain.models import Base, Book, Genre, Review, User

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

# Fixed "now" shared by the seeded data and the engine clocks.
NOW = datetime(2026, 6, 15, 12, 0, 0)


def clock() -> datetime:
    return NOW


@pytest.fixture
async def engine():
    """Fresh in-memory database per test."""
    engine = create_async_engine(TEST_DATABASE_URL, poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest.fixture
def store(session_factory) -> SQLAlchemyBookStore:
    return SQLAlchemyBookStore(session_factory)


class CatalogBuilder:
    """Collects users, genres, books and reviews, then saves them in one commit."""

    def __init__(self, session_factory) -> None:
        self._session_factory = session_factory
        self._pending: list = []

    def genre(self, name: str) -> Genre:
        genre = Genre(id=uuid.uuid4(), name=name)
        self._pending.append(genre)
        return genre

    def user(self, username: str) -> User:
        user = User(id=uuid.uuid4(), email=f"{username}@example.com", username=username)
        self._pending.append(user)
        return user

    def book(
        self,
        title: str,
        author: str = "Some Author",
        genres: tuple[Genre, ...] = (),
        published_year: int | None = None,
        description: str | None = None,
        created_days_ago: float = 0,
    ) -> Book:
        book = Book(
            id=uuid.uuid4(),
            title=title,
            author=author,
            published_year=published_year,
            description=description,
            created_at=NOW - timedelta(days=created_days_ago),
            cover_image_url=f"https://covers.example.com/{title.lower().replace(' ', '-')}.jpg",
        )
        book.genres = list(genres)
        self._pending.append(book)
        return book

    def review(
        self,
        user: User,
        book: Book,
        rating: int,
        days_ago: float = 1,
        text: str | None = "Enjoyed it.",
    ) -> Review:
        review = Review(
            id=uuid.uuid4(),
            user_id=user.id,
            book_id=book.id,
            rating=rating,
            text=text,
            created_at=NOW - timedelta(days=days_ago),
        )
        self._pending.append(review)
        return review

    async def save(self) -> None:
        async with self._session_factory() as session:
            session.add_all(self._pending)
            await session.commit()
        self._pending = []


@pytest.fixture
def catalog(session_factory) -> CatalogBuilder:
    return CatalogBuilder(session_factory)
