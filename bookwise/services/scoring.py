"""
Pure scoring helpers shared by the catalog views and the fallbacks.

Nothing here touches the store or the network: every function takes its
inputs explicitly and returns a number.
"""

import math
from collections.abc import Iterable, Sequence
from datetime import datetime

from bookwise.domain.models import Book

SECONDS_PER_DAY = 86400


def average_rating(ratings: Sequence[int | float]) -> float:
    """Arithmetic mean of the ratings; 0.0 when there are none."""
    if not ratings:
        return 0.0
    return sum(ratings) / len(ratings)


def total_reviews(ratings: Sequence[int | float]) -> int:
    return len(ratings)


def rate_book(book: Book) -> tuple[float, int]:
    """(average_rating, total_reviews) over the reviews loaded on a book."""
    ratings = [r.rating for r in book.reviews]
    return average_rating(ratings), total_reviews(ratings)


def age_in_days(created_at: datetime, now: datetime) -> float:
    return max((now - created_at).total_seconds() / SECONDS_PER_DAY, 0.0)


def recency_weight(created_at: datetime, now: datetime, half_life_days: float = 14.0) -> float:
    """Exponential decay: 1.0 now, 0.5 after one half-life."""
    if half_life_days <= 0:
        raise ValueError("half_life_days must be positive")
    return math.exp(-math.log(2) * age_in_days(created_at, now) / half_life_days)


def recency_weighted_popularity(
    timestamps: Iterable[datetime], now: datetime, half_life_days: float = 14.0
) -> float:
    return sum(recency_weight(ts, now, half_life_days) for ts in timestamps)


def trending_score(timestamps: Sequence[datetime], now: datetime, window_days: int = 30) -> float:
    """Recent activity counted twice against lifetime volume."""
    total = len(timestamps)
    recent = sum(1 for ts in timestamps if age_in_days(ts, now) <= window_days)
    return (recent * 2 + total) / (total + 1)


def clamp_confidence(value: float) -> float:
    if math.isnan(value):
        return 0.0
    return min(max(value, 0.0), 1.0)


def confidence(sample_size: int, reliability: float = 1.0, pivot: int = 3) -> float:
    """
    Advisory trust in a ranking signal.

    Grows with the number of observations backing it and saturates at the
    source's reliability. Callers use it as metadata, never as a filter.
    """
    if sample_size <= 0:
        return 0.0
    return clamp_confidence(reliability * sample_size / (sample_size + pivot))
