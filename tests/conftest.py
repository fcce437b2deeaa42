"""Pytest configuration and fixtures."""

import os
from collections.abc import Generator
from unittest.mock import AsyncMock, MagicMock

import pytest

from videomind.config import Settings
from videomind.core.analysis.schemas import WebAnalysis
from videomind.db.models import KnowledgeItem

TEST_PROXY_TEMPLATES = [
    "https://relay-one.test/raw?url={encoded}",
    "https://relay-two.test/?{encoded}",
    "https://relay-three.test/fetch/{url}",
    "https://relay-four.test/{url}",
]


@pytest.fixture
def test_settings() -> Generator[Settings, None, None]:
    """
    Provide test configuration with overrides.

    Yields:
        Settings instance for testing
    """
    # Save original environment
    original_env = os.environ.copy()

    # Set test environment variables
    os.environ["OPENAI_API_KEY"] = "sk-test-key"
    os.environ["DATABASE_URL"] = "postgresql+asyncpg://postgres@localhost/videomind_test"
    os.environ["PROXY_TEMPLATES"] = ",".join(TEST_PROXY_TEMPLATES)
    os.environ["LOG_LEVEL"] = "debug"

    settings = Settings()

    yield settings

    # Restore original environment
    os.environ.clear()
    os.environ.update(original_env)


class InMemoryStore:
    """KnowledgeStore keeping items in a dict, recording save order."""

    def __init__(self) -> None:
        self.items: dict[str, KnowledgeItem] = {}
        self.saved: list[KnowledgeItem] = []

    async def save(self, item: KnowledgeItem) -> None:
        self.items[item.id] = item
        self.saved.append(item)

    async def get(self, item_id: str) -> KnowledgeItem | None:
        return self.items.get(item_id)

    async def get_all(self, user_id: str) -> list[KnowledgeItem]:
        owned = [item for item in self.items.values() if item.user_id == user_id]
        return sorted(owned, key=lambda item: item.upload_date, reverse=True)

    async def delete(self, item_id: str) -> bool:
        return self.items.pop(item_id, None) is not None


@pytest.fixture
def store() -> InMemoryStore:
    """Empty in-memory knowledge store."""
    return InMemoryStore()


@pytest.fixture
def web_analysis() -> WebAnalysis:
    """Typical analysis result for a scraped article."""
    return WebAnalysis(
        title="Understanding Async IO",
        transcription="Async IO lets a single thread interleave many network calls.",
        summary="An introduction to asyncio. Covers event loops and tasks.",
        keywords=["python", "asyncio", "concurrency", "event loop", "tasks"],
        scraped_data="Key APIs: asyncio.run, asyncio.gather",
    )


@pytest.fixture
def mock_analysis(web_analysis: WebAnalysis) -> MagicMock:
    """Mock AnalysisClient with every operation stubbed."""
    analysis = MagicMock()
    analysis.analyze_web_content = AsyncMock(return_value=web_analysis)
    analysis.analyze_external_media = AsyncMock(return_value=web_analysis)
    analysis.analyze_video = AsyncMock(return_value=web_analysis)
    analysis.discover_site_links = AsyncMock(return_value=[])
    analysis.predict_common_links = AsyncMock(return_value=[])
    analysis.filter_and_title_links = AsyncMock(return_value=[])
    analysis.ask_library = AsyncMock(return_value="An answer.")
    analysis.ask_item = AsyncMock(return_value="An item answer.")
    return analysis


def article_html(body_chars: int = 1200, title: str = "Async IO") -> str:
    """HTML page whose <main> holds exactly ``body_chars`` characters of text."""
    return (
        "<html><head><title>{title}</title><script>var tracking = 1;</script></head>"
        "<body><nav><a href='/'>Home</a></nav>"
        "<main><p>{text}</p></main>"
        "<footer>Copyright</footer></body></html>"
    ).format(title=title, text="x" * body_chars)


@pytest.fixture
def make_article_html():
    """Factory building article pages of a given text length."""
    return article_html


@pytest.fixture
def sample_article_html() -> str:
    """Article page comfortably above every size threshold."""
    return article_html()
