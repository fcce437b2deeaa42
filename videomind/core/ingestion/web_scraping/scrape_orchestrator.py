"""Scrape orchestrator - single-URL pipeline: fetch, extract, analyze, persist."""

from datetime import datetime
from typing import TYPE_CHECKING

import structlog

from videomind.config import settings
from videomind.core.ingestion.web_scraping.content_extractor import ContentExtractor
from videomind.core.ingestion.web_scraping.proxy_fetcher import ProxyFetcher
from videomind.core.ingestion.web_scraping.url_utils import bare_host, normalize_url
from videomind.db.models import ItemType, KnowledgeItem, generate_item_id
from videomind.db.repositories import KnowledgeStore
from videomind.utils.exceptions import AnalysisError, EmptyContentError, FetchBlockedError

if TYPE_CHECKING:
    from videomind.core.analysis.analysis_client import AnalysisClient

logger = structlog.get_logger(__name__)


class ScrapeOrchestrator:
    """Coordinate the single-page scraping pipeline.

    Used standalone for one URL and as the unit of work inside BatchIngestor.
    Fails with FetchBlockedError, EmptyContentError or AnalysisError; nothing
    is persisted unless every step succeeded.
    """

    def __init__(
        self,
        fetcher: ProxyFetcher,
        extractor: ContentExtractor,
        analysis: "AnalysisClient",
        store: KnowledgeStore,
        user_id: str | None = None,
        min_content_chars: int | None = None,
    ) -> None:
        """
        Initialize orchestrator with its collaborators.

        Args:
            fetcher: Proxy fetcher for raw page content
            extractor: HTML-to-text extractor
            analysis: Analysis client providing analyze_web_content
            store: Persistence collaborator receiving finished items
            user_id: Owner recorded on created items (default: settings.default_user_id)
            min_content_chars: Usable content threshold (default: settings.min_content_chars)
        """
        self.fetcher = fetcher
        self.extractor = extractor
        self.analysis = analysis
        self.store = store
        self.user_id = user_id or settings.default_user_id
        self.min_content_chars = (
            min_content_chars if min_content_chars is not None else settings.min_content_chars
        )

    async def scrape_one(
        self, url: str, instruction: str = "", selector: str | None = None
    ) -> KnowledgeItem:
        """
        Scrape, analyze and persist a single page.

        Args:
            url: Page URL (scheme optional)
            instruction: Extraction instruction forwarded to the analysis call
            selector: Optional CSS selector scoping text extraction

        Returns:
            The persisted KnowledgeItem

        Raises:
            FetchBlockedError: If no proxy returned acceptable content
            EmptyContentError: If the extracted text is too short
            AnalysisError: If the analysis call failed
        """
        normalized = normalize_url(url)
        log = logger.bind(url=normalized)
        log.info("scrape_started", selector=selector)

        raw_html = await self.fetcher.fetch(normalized)
        if raw_html is None:
            log.warning("scrape_fetch_blocked")
            raise FetchBlockedError(
                f"Crawl blocked: no proxy returned usable content for {normalized}"
            )

        text = self.extractor.extract(raw_html, selector)
        if len(text) < self.min_content_chars:
            log.warning("scrape_empty_content", chars=len(text), threshold=self.min_content_chars)
            raise EmptyContentError(
                f"Extracted only {len(text)} characters from {normalized} "
                f"(minimum {self.min_content_chars})"
            )

        try:
            analysis = await self.analysis.analyze_web_content(text, instruction, normalized)
        except AnalysisError:
            raise
        except Exception as e:
            raise AnalysisError(f"Analysis failed for {normalized}: {e}") from e

        if analysis is None:
            raise AnalysisError(f"Analysis returned no result for {normalized}")

        item = KnowledgeItem(
            id=generate_item_id(),
            user_id=self.user_id,
            title=analysis.title or bare_host(normalized) or normalized,
            file_name=normalized,
            size=len(text),
            type=ItemType.WEB_SCRAPE.value,
            upload_date=datetime.utcnow(),
            transcription=analysis.transcription,
            summary=analysis.summary,
            keywords=list(analysis.keywords),
            external_url=normalized,
            is_external=True,
            scraped_content=analysis.scraped_data,
        )
        await self.store.save(item)

        log.info("scrape_complete", item_id=item.id, chars=len(text))
        return item
