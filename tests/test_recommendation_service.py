"""Orchestration: AI-first blending, fallbacks and argument checks."""

import logging
import uuid
from unittest.mock import AsyncMock

import pytest

from bookwise.domain.exceptions import InvalidRequestError
from bookwise.domain.ranking import RankedBook
from bookwise.ports.recommender import (
    RecommendationRequest,
    RecommendationResponse,
    RecommenderPort,
    SimilarBooksRequest,
)
from bookwise.ports.store import BookStorePort
from bookwise.services.recommendation import RecommendationService, split_limit
from conftest import clock


def ranked(title: str) -> RankedBook:
    return RankedBook(
        id=uuid.uuid4(), title=title, author="Author", reason="test", confidence=0.5
    )


def error_messages(caplog) -> list[str]:
    return [r.getMessage() for r in caplog.records if r.levelno >= logging.ERROR]


@pytest.fixture
def recommender():
    return AsyncMock(spec=RecommenderPort)


@pytest.fixture
def service(recommender):
    service = RecommendationService(AsyncMock(spec=BookStorePort), recommender, clock=clock)
    service.collaborative.recommend = AsyncMock(return_value=[])
    service.content_based.similar_books = AsyncMock(return_value=[])
    service.catalog.trending = AsyncMock(return_value=[])
    return service


# ── Personalized ───────────────────────────────────


@pytest.mark.parametrize(
    "limit, expected",
    [(10, (6, 4)), (5, (3, 2)), (1, (1, 0)), (3, (2, 1)), (4, (2, 2)), (7, (4, 3)), (20, (12, 8))],
)
def test_split_limit_rounds_ai_share(limit, expected):
    assert split_limit(limit, 0.6) == expected


@pytest.mark.asyncio
async def test_blends_ai_books_first_then_collaborative(service, recommender):
    ai_books = [ranked("AI 1"), ranked("AI 2")]
    cf_books = [ranked("CF 1"), ranked("CF 2")]
    recommender.generate_recommendations.return_value = RecommendationResponse(books=ai_books)
    service.collaborative.recommend.return_value = cf_books

    result = await service.generate_recommendations("user-1", 10)

    assert [b.title for b in result] == ["AI 1", "AI 2", "CF 1", "CF 2"]
    recommender.generate_recommendations.assert_awaited_once_with(
        RecommendationRequest(user_id="user-1", limit=6)
    )
    service.collaborative.recommend.assert_awaited_once_with("user-1", 4)


@pytest.mark.asyncio
async def test_custom_ratio_changes_the_split(service, recommender):
    recommender.generate_recommendations.return_value = RecommendationResponse()

    await service.generate_recommendations("user-1", 10, ai_share_ratio=0.25)

    request = recommender.generate_recommendations.await_args.args[0]
    assert request.limit == 3
    service.collaborative.recommend.assert_awaited_once_with("user-1", 7)


@pytest.mark.asyncio
async def test_no_fallback_call_when_ai_takes_the_whole_limit(service, recommender):
    recommender.generate_recommendations.return_value = RecommendationResponse(books=[ranked("Only")])

    result = await service.generate_recommendations("user-1", 1)

    assert [b.title for b in result] == ["Only"]
    service.collaborative.recommend.assert_not_called()


@pytest.mark.asyncio
async def test_zero_ratio_skips_the_ai_provider(service, recommender):
    service.collaborative.recommend.return_value = [ranked("CF")]

    result = await service.generate_recommendations("user-1", 5, ai_share_ratio=0.0)

    assert [b.title for b in result] == ["CF"]
    recommender.generate_recommendations.assert_not_called()
    service.collaborative.recommend.assert_awaited_once_with("user-1", 5)


@pytest.mark.asyncio
async def test_duplicate_books_keep_the_ai_copy(service, recommender):
    shared = ranked("Shared")
    duplicate = RankedBook(
        id=shared.id, title="Shared", author="Author", reason="collab", confidence=0.7
    )
    recommender.generate_recommendations.return_value = RecommendationResponse(books=[shared])
    service.collaborative.recommend.return_value = [duplicate, ranked("Other")]

    result = await service.generate_recommendations("user-1", 10)

    assert [b.title for b in result] == ["Shared", "Other"]
    assert result[0].reason == "test"


@pytest.mark.asyncio
async def test_ai_failure_substitutes_trending_for_full_limit(service, recommender, caplog):
    trending = [ranked("Trending 1")]
    recommender.generate_recommendations.side_effect = RuntimeError("AI service error")
    service.catalog.trending.return_value = trending

    with caplog.at_level(logging.ERROR):
        result = await service.generate_recommendations("user-1", 10)

    assert result == trending
    service.catalog.trending.assert_awaited_once_with(10)
    service.collaborative.recommend.assert_not_called()
    messages = error_messages(caplog)
    assert len(messages) == 1
    assert messages[0].startswith("Recommendation generation failed")


@pytest.mark.asyncio
async def test_malformed_ai_response_also_falls_back(service, recommender):
    recommender.generate_recommendations.return_value = None
    service.catalog.trending.return_value = [ranked("Trending")]

    result = await service.generate_recommendations("user-1", 3)

    assert [b.title for b in result] == ["Trending"]


# ── Similar books ──────────────────────────────────


@pytest.mark.asyncio
async def test_similar_books_returns_ai_books_unmodified(service, recommender):
    books = [ranked("Similar 1"), ranked("Similar 2")]
    recommender.find_similar_books.return_value = RecommendationResponse(books=books)

    result = await service.get_similar_books("book-123", 5)

    assert result is books
    recommender.find_similar_books.assert_awaited_once_with(
        SimilarBooksRequest(book_id="book-123", limit=5)
    )
    service.content_based.similar_books.assert_not_called()


@pytest.mark.asyncio
async def test_similar_books_fall_back_to_content_based(service, recommender, caplog):
    fallback = [ranked("Content 1")]
    recommender.find_similar_books.side_effect = RuntimeError("AI service error")
    service.content_based.similar_books.return_value = fallback

    with caplog.at_level(logging.ERROR):
        result = await service.get_similar_books("book-123", 5)

    assert result == fallback
    service.content_based.similar_books.assert_awaited_once_with("book-123", 5)
    messages = error_messages(caplog)
    assert len(messages) == 1
    assert messages[0].startswith("Similar books generation failed")


# ── Catalog delegation ─────────────────────────────


@pytest.mark.asyncio
async def test_catalog_views_never_call_the_ai(service, recommender):
    service.catalog.by_genre = AsyncMock(return_value=[])
    service.catalog.new_releases = AsyncMock(return_value=[])
    genre_id = uuid.uuid4()

    await service.get_trending_books(7)
    await service.get_genre_recommendations(genre_id, 8)
    await service.get_new_releases(9)

    service.catalog.trending.assert_awaited_once_with(7)
    service.catalog.by_genre.assert_awaited_once_with(genre_id, 8)
    service.catalog.new_releases.assert_awaited_once_with(9)
    assert recommender.method_calls == []


# ── Argument checks ────────────────────────────────


@pytest.mark.parametrize("limit", [0, -3, 2.5, True, "10", None])
@pytest.mark.asyncio
async def test_invalid_limit_fails_fast(service, limit):
    calls = [
        service.generate_recommendations("user-1", limit),
        service.get_similar_books("book-1", limit),
        service.get_trending_books(limit),
        service.get_genre_recommendations(uuid.uuid4(), limit),
        service.get_new_releases(limit),
    ]
    for call in calls:
        with pytest.raises(InvalidRequestError):
            await call


@pytest.mark.asyncio
async def test_invalid_ratio_fails_fast(service):
    with pytest.raises(InvalidRequestError):
        await service.generate_recommendations("user-1", 10, ai_share_ratio=1.5)


def test_invalid_default_ratio_rejected_at_construction(recommender):
    with pytest.raises(InvalidRequestError):
        RecommendationService(AsyncMock(spec=BookStorePort), recommender, ai_share_ratio=-0.1)


# ── End to end against the store ───────────────────


@pytest.mark.asyncio
async def test_ai_outage_serves_trending_from_the_store(store, catalog, recommender):
    ann, ben = catalog.user("ann"), catalog.user("ben")
    book_a, book_b = catalog.book("Book A"), catalog.book("Book B")
    catalog.review(ann, book_a, 4)
    catalog.review(ben, book_a, 5)
    catalog.review(ann, book_b, 3)
    await catalog.save()
    recommender.generate_recommendations.side_effect = TimeoutError()
    service = RecommendationService(store, recommender, clock=clock)

    result = await service.generate_recommendations(ann.id, 10)

    assert result == await service.get_trending_books(10)
    assert [(b.title, b.average_rating, b.total_reviews) for b in result] == [
        ("Book A", 4.5, 2),
        ("Book B", 3.0, 1),
    ]


@pytest.mark.asyncio
async def test_total_outage_still_returns_a_list(recommender, caplog):
    store = AsyncMock(spec=BookStorePort)
    store.find_books.side_effect = RuntimeError("db down")
    store.get_book.side_effect = RuntimeError("db down")
    recommender.generate_recommendations.side_effect = RuntimeError("AI down")
    recommender.find_similar_books.side_effect = RuntimeError("AI down")
    service = RecommendationService(store, recommender, clock=clock)

    with caplog.at_level(logging.ERROR):
        assert await service.generate_recommendations(uuid.uuid4(), 10) == []
        assert await service.get_similar_books(uuid.uuid4(), 5) == []

    assert len(error_messages(caplog)) == 4
