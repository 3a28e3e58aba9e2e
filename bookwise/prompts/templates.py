"""
Versioned prompt templates for the AI recommender.

Templates are immutable and backend-agnostic: the same rendered messages go
to Ollama, OpenAI or the mock adapter. Long inputs (reading history, review
samples) are truncated here, never in the adapters.
"""

from dataclasses import dataclass, field


# ── Token Estimation ─────────────────────────────────────────────
# 1 token ≈ 4 characters of English text.

CHARS_PER_TOKEN = 4


def estimate_tokens(text: str) -> int:
    """Estimate token count from character length."""
    return len(text) // CHARS_PER_TOKEN


def truncate_to_tokens(text: str, max_tokens: int) -> str:
    """Truncate text to approximately max_tokens, preferring a line boundary."""
    max_chars = max_tokens * CHARS_PER_TOKEN
    if len(text) <= max_chars:
        return text
    truncated = text[:max_chars]
    last_newline = truncated.rfind("\n")
    if last_newline > max_chars * 0.8:
        truncated = truncated[:last_newline]
    return truncated + "\n[List truncated]"


# ── Prompt Template ──────────────────────────────────────────────

@dataclass(frozen=True)
class PromptTemplate:
    """
    Immutable prompt template with system persona and user message.

    Attributes:
        name:              Unique identifier for logging and tracking.
        version:           Semantic version for prompt iteration tracking.
        system:            System message defining the LLM persona and output contract.
        user_template:     User message template with {variable} placeholders.
        max_tokens:        Maximum output tokens requested from the LLM.
        input_token_limit: Maximum tokens for the truncatable input field.
        tags:              Metadata tags for categorization.
    """

    name: str
    version: str
    system: str
    user_template: str
    max_tokens: int = 1024
    input_token_limit: int = 2000
    tags: tuple[str, ...] = field(default_factory=tuple)

    def render(self, **kwargs: str) -> dict[str, str]:
        """Render template with variables, returning system + user messages."""
        return {
            "system": self.system,
            "user": self.user_template.format(**kwargs),
        }

    def render_with_truncation(self, content_key: str, **kwargs: str) -> dict[str, str]:
        """Render template, truncating the specified field to fit the input limit."""
        if content_key in kwargs:
            kwargs[content_key] = truncate_to_tokens(
                kwargs[content_key], self.input_token_limit
            )
        return self.render(**kwargs)


# ── Personalized Recommendations ─────────────────────────────────

RECOMMEND_BOOKS = PromptTemplate(
    name="recommend_books",
    version="1.0.0",
    system=(
        "You are a book recommendation expert for an online book review "
        "community. You suggest real, published books.\n\n"
        "Guidelines:\n"
        "- Match the reader's favourite genres and reading patterns.\n"
        "- Take their rating habits into account.\n"
        "- Suggest diverse but relevant options, popular and lesser known.\n"
        "- Never suggest a book the reader has already reviewed.\n"
        "- Respond with a single JSON object and nothing else."
    ),
    user_template=(
        "Suggest {limit} books for this reader.\n\n"
        "Reader profile:\n"
        "- Books reviewed: {review_count}\n"
        "- Favourite genres: {favorite_genres}\n"
        "- Average rating given: {average_rating}/5 (rates {rating_habit})\n\n"
        "--- RECENT READING (START) ---\n"
        "{reading_history}\n"
        "--- RECENT READING (END) ---\n\n"
        "{context_section}"
        "Respond with JSON:\n"
        '{{"recommendations": [{{"title": "Book Title", "author": "Author Name", '
        '"reason": "Why it matches", "genres": ["Genre"], "estimatedRating": 4.5}}], '
        '"explanation": "Brief explanation of the strategy"}}'
    ),
    max_tokens=1024,
    input_token_limit=1500,
    tags=("recommendation", "personalized"),
)


# ── Similar Books ────────────────────────────────────────────────

FIND_SIMILAR_BOOKS = PromptTemplate(
    name="find_similar_books",
    version="1.0.0",
    system=(
        "You are a literary analyst who finds books similar to a given one. "
        "Similarity means shared themes or genres, comparable style or tone, "
        "a similar audience, or related subject matter.\n"
        "Respond with a single JSON object and nothing else."
    ),
    user_template=(
        'Find {limit} books similar to "{title}" by {author}.\n\n'
        "Genres: {genres}\n"
        "Description: {description}\n\n"
        "--- SAMPLE REVIEWS (START) ---\n"
        "{reviews_text}\n"
        "--- SAMPLE REVIEWS (END) ---\n\n"
        "Respond with JSON:\n"
        '{{"similarBooks": [{{"title": "Book Title", "author": "Author Name", '
        '"reason": "Why it is similar", "similarityScore": 0.9}}], '
        '"explanation": "Brief explanation of the similarity criteria"}}'
    ),
    max_tokens=768,
    input_token_limit=2000,
    tags=("recommendation", "similarity"),
)


# ── Rendering Helpers ────────────────────────────────────────────

def _rating_habit(average: float) -> str:
    if average >= 4:
        return "highly"
    if average >= 3:
        return "moderately"
    return "variably"


def render_recommendation_prompt(
    profile: dict,
    limit: int,
    context: str | None = None,
) -> dict[str, str]:
    """
    Render the personalized recommendation prompt.

    Args:
        profile: Dict with 'review_count' (int), 'favorite_genres' (list[str]),
                 'average_rating' (float) and 'recent_books' (list of dicts with
                 'title', 'author', 'genres', 'rating').
        limit:   Number of suggestions to ask for.
        context: Optional free-text hint from the caller.
    """
    history = "\n".join(
        f'- "{b["title"]}" by {b["author"]} ({", ".join(b["genres"]) or "no genres"})'
        f' - Rating: {b["rating"]}/5'
        for b in profile["recent_books"]
    )
    context_section = f"Additional context: {context}\n\n" if context else ""

    return RECOMMEND_BOOKS.render_with_truncation(
        content_key="reading_history",
        reading_history=history,
        limit=str(limit),
        review_count=str(profile["review_count"]),
        favorite_genres=", ".join(profile["favorite_genres"]) or "unknown",
        average_rating=f"{profile['average_rating']:.1f}",
        rating_habit=_rating_habit(profile["average_rating"]),
        context_section=context_section,
    )


def render_similar_books_prompt(
    title: str,
    author: str,
    genres: list[str],
    description: str | None,
    reviews: list[str],
    limit: int,
) -> dict[str, str]:
    """Render the similar-books prompt with the review sample truncated."""
    return FIND_SIMILAR_BOOKS.render_with_truncation(
        content_key="reviews_text",
        reviews_text="\n".join(f"- {r}" for r in reviews) or "(no reviews yet)",
        limit=str(limit),
        title=title,
        author=author,
        genres=", ".join(genres) or "unknown",
        description=description or "No description available",
    )
