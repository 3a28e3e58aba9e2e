"""Composition root: builds the recommendation engine from settings."""

import logging

from bookwise.adapters.llm.mock import MockLLMAdapter
from bookwise.adapters.llm.ollama import OllamaLLMAdapter
from bookwise.adapters.llm.openai_adapter import OpenAILLMAdapter
from bookwise.adapters.recommender.llm import LLMRecommenderAdapter
from bookwise.adapters.store.sqlalchemy_store import SQLAlchemyBookStore
from bookwise.config import LLMProvider, Settings, settings as default_settings
from bookwise.database import build_engine, build_session_factory
from bookwise.ports.llm import LLMPort
from bookwise.services.recommendation import RecommendationService

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)


def build_llm(settings: Settings) -> LLMPort:
    """Pick the LLM backend named by `settings.llm_provider`."""
    if settings.llm_provider is LLMProvider.OLLAMA:
        return OllamaLLMAdapter(settings.ollama_base_url, settings.ollama_model)
    if settings.llm_provider is LLMProvider.OPENAI:
        return OpenAILLMAdapter(settings.openai_api_key, settings.openai_model)
    return MockLLMAdapter()


def create_recommendation_service(settings: Settings | None = None) -> RecommendationService:
    """Wire store, AI recommender and fallbacks into a RecommendationService."""
    settings = settings or default_settings
    configure_logging(settings.log_level)

    session_factory = build_session_factory(build_engine(settings))
    store = SQLAlchemyBookStore(session_factory)
    recommender = LLMRecommenderAdapter(build_llm(settings), store)

    logger.info("LLM provider: %s", settings.llm_provider.value)
    logger.info("Recommendation AI share: %.2f", settings.recommendation_ai_share)
    return RecommendationService(
        store,
        recommender,
        ai_share_ratio=settings.recommendation_ai_share,
        trending_window_days=settings.trending_window_days,
        new_release_window_years=settings.new_release_window_years,
    )
