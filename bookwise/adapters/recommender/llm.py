"""Remote recommender backed by an LLM and resolved against the catalog."""

import json
import logging
import math
import re
from collections import Counter
from collections.abc import Callable

from bookwise.domain.exceptions import RecommenderError
from bookwise.domain.models import Book, Review
from bookwise.domain.ranking import RankedBook
from bookwise.ports.llm import LLMPort
from bookwise.ports.recommender import (
    RecommendationRequest,
    RecommendationResponse,
    RecommenderPort,
    SimilarBooksRequest,
)
from bookwise.ports.store import BookFilter, BookOrdering, BookStorePort, ReviewFilter
from bookwise.prompts.templates import (
    FIND_SIMILAR_BOOKS,
    RECOMMEND_BOOKS,
    render_recommendation_prompt,
    render_similar_books_prompt,
)
from bookwise.services import scoring

logger = logging.getLogger(__name__)

JSON_OBJECT = re.compile(r"\{[\s\S]*\}")

HISTORY_SIZE = 20
RECENT_BOOKS = 10
REVIEW_SAMPLE = 10
DEFAULT_CONFIDENCE = 0.5


class LLMRecommenderAdapter(RecommenderPort):
    """
    Asks an LLM for titles, then keeps only the suggestions that exist in
    the catalog. Raises RecommenderError when the model's answer is unusable.
    """

    def __init__(self, llm: LLMPort, store: BookStorePort) -> None:
        self._llm = llm
        self._store = store

    async def generate_recommendations(
        self, request: RecommendationRequest
    ) -> RecommendationResponse:
        reviews = await self._store.find_reviews(ReviewFilter(user_id=request.user_id))
        if not reviews:
            raise RecommenderError(f"User {request.user_id} has no reading history")

        profile = build_reading_profile(reviews[:HISTORY_SIZE])
        prompt = render_recommendation_prompt(profile, request.limit, request.context)
        raw = await self._llm.complete(prompt["system"], prompt["user"], RECOMMEND_BOOKS.max_tokens)
        data = parse_json_object(raw)

        books = await self._resolve(
            _suggestions(data, "recommendations"),
            limit=request.limit,
            exclude={r.book_id for r in reviews},
            default_reason="Recommended for you by AI",
            confidence_of=lambda s: _as_float(s.get("estimatedRating"), DEFAULT_CONFIDENCE * 5) / 5,
        )
        explanation = data.get("explanation") or (
            f"Based on your reading history of {profile['review_count']} books "
            f"and preferences for {', '.join(profile['favorite_genres']) or 'varied genres'}."
        )
        logger.info("AI recommendations for %s: %d resolved", request.user_id, len(books))
        return RecommendationResponse(books=books, explanation=explanation)

    async def find_similar_books(
        self, request: SimilarBooksRequest
    ) -> RecommendationResponse:
        book = await self._store.get_book(request.book_id)
        if book is None:
            raise RecommenderError(f"Book {request.book_id} not found")

        sample = [r.text for r in book.reviews if r.text][:REVIEW_SAMPLE]
        prompt = render_similar_books_prompt(
            title=book.title,
            author=book.author,
            genres=book.genre_names,
            description=book.description,
            reviews=sample,
            limit=request.limit,
        )
        raw = await self._llm.complete(prompt["system"], prompt["user"], FIND_SIMILAR_BOOKS.max_tokens)
        data = parse_json_object(raw)

        books = await self._resolve(
            _suggestions(data, "similarBooks"),
            limit=request.limit,
            exclude={book.id},
            default_reason="Similar according to AI analysis",
            confidence_of=lambda s: _as_float(s.get("similarityScore"), DEFAULT_CONFIDENCE),
        )
        explanation = data.get("explanation") or (
            f'Books similar to "{book.title}" based on genre, themes, and style.'
        )
        return RecommendationResponse(books=books, explanation=explanation)

    async def _resolve(
        self,
        suggestions: list[dict],
        limit: int,
        exclude: set,
        default_reason: str,
        confidence_of: Callable[[dict], float],
    ) -> list[RankedBook]:
        """
        Map suggestions onto catalog books. Exact title matches are claimed
        first; a suggestion without one falls back to another book by its
        author.
        """
        if not suggestions or limit <= 0:
            return []

        by_title: dict[str, list[Book]] = {}
        for book in await self._store.find_books_by_titles(
            [s["title"].strip() for s in suggestions]
        ):
            by_title.setdefault(book.title.lower(), []).append(book)

        used = set(exclude)
        picks: list[Book | None] = []
        for suggestion in suggestions:
            title = suggestion["title"].strip().lower()
            book = next((b for b in by_title.get(title, []) if b.id not in used), None)
            if book is not None:
                used.add(book.id)
            picks.append(book)

        for i, suggestion in enumerate(suggestions):
            if sum(p is not None for p in picks[:i]) >= limit:
                break
            author = str(suggestion.get("author") or "").strip()
            if picks[i] is not None or not author:
                continue
            found = await self._store.find_books(
                BookFilter(author=author, exclude_ids=tuple(used)), BookOrdering.REVIEW_COUNT, 1
            )
            if found:
                picks[i] = found[0]
                used.add(found[0].id)

        resolved: list[RankedBook] = []
        for suggestion, book in zip(suggestions, picks):
            if book is None:
                logger.debug("AI suggestion not in catalog: %s", suggestion.get("title"))
                continue
            avg, total = scoring.rate_book(book)
            resolved.append(
                RankedBook.from_book(
                    book,
                    reason=str(suggestion.get("reason") or default_reason),
                    confidence=scoring.clamp_confidence(confidence_of(suggestion)),
                    average_rating=avg,
                    total_reviews=total,
                )
            )
            if len(resolved) >= limit:
                break
        return resolved


def build_reading_profile(reviews: list[Review]) -> dict:
    """Summarise a user's reviews (newest first, book loaded) for the prompt."""
    genre_counts: Counter[str] = Counter()
    for review in reviews:
        genre_counts.update(review.book.genre_names)
    return {
        "review_count": len(reviews),
        "favorite_genres": [name for name, _ in genre_counts.most_common()],
        "average_rating": scoring.average_rating([r.rating for r in reviews]),
        "recent_books": [
            {
                "title": r.book.title,
                "author": r.book.author,
                "genres": r.book.genre_names,
                "rating": r.rating,
            }
            for r in reviews[:RECENT_BOOKS]
        ],
    }


def parse_json_object(raw: str) -> dict:
    """Extract the first JSON object from a model reply."""
    match = JSON_OBJECT.search(raw or "")
    if not match:
        raise RecommenderError("No valid JSON found in response")
    try:
        data = json.loads(match.group(0))
    except json.JSONDecodeError as exc:
        raise RecommenderError(f"Malformed JSON in response: {exc}") from exc
    if not isinstance(data, dict):
        raise RecommenderError("Expected a JSON object in response")
    return data


def _suggestions(data: dict, key: str) -> list[dict]:
    items = data.get(key)
    if not isinstance(items, list):
        raise RecommenderError(f"Response is missing the '{key}' list")
    return [
        item
        for item in items
        if isinstance(item, dict) and isinstance(item.get("title"), str) and item["title"].strip()
    ]


def _as_float(value, default: float) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    return number if math.isfinite(number) else default
