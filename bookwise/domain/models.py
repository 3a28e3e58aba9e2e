"""SQLAlchemy ORM models."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Table,
    Text,
    Uuid,
)
from sqlalchemy.orm import DeclarativeBase, relationship


def utcnow() -> datetime:
    """Naive UTC timestamp, matching how the store persists datetimes."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Base(DeclarativeBase):
    pass


book_genres = Table(
    "book_genres",
    Base.metadata,
    Column("book_id", Uuid, ForeignKey("books.id", ondelete="CASCADE"), primary_key=True),
    Column("genre_id", Uuid, ForeignKey("genres.id", ondelete="CASCADE"), primary_key=True),
)


class User(Base):
    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    email = Column(String(255), unique=True, nullable=False, index=True)
    username = Column(String(100), unique=True, nullable=False)
    created_at = Column(DateTime, default=utcnow)

    reviews = relationship("Review", back_populates="user", lazy="selectin")


class Genre(Base):
    __tablename__ = "genres"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(100), unique=True, nullable=False)

    books = relationship("Book", secondary=book_genres, back_populates="genres")


class Book(Base):
    __tablename__ = "books"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    title = Column(String(500), nullable=False, index=True)
    author = Column(String(300), nullable=False, index=True)
    cover_image_url = Column(String(1000), nullable=True)
    published_year = Column(Integer, nullable=True, index=True)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow)

    genres = relationship(
        "Genre", secondary=book_genres, back_populates="books", lazy="selectin"
    )
    reviews = relationship("Review", back_populates="book", lazy="selectin")

    @property
    def genre_names(self) -> list[str]:
        return [g.name for g in self.genres]


class Review(Base):
    __tablename__ = "reviews"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    book_id = Column(Uuid, ForeignKey("books.id", ondelete="CASCADE"), nullable=False, index=True)
    rating = Column(Integer, nullable=False)
    text = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow)

    user = relationship("User", back_populates="reviews")
    book = relationship("Book", back_populates="reviews")
