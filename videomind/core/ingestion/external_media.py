"""External media ingestion - social-media and hosted video URLs."""

from datetime import datetime
from typing import TYPE_CHECKING

import structlog

from videomind.config import settings
from videomind.core.ingestion.web_scraping.url_utils import normalize_url
from videomind.db.models import ItemType, KnowledgeItem, generate_item_id
from videomind.db.repositories import KnowledgeStore

if TYPE_CHECKING:
    from videomind.core.analysis.analysis_client import AnalysisClient

logger = structlog.get_logger(__name__)


class ExternalMediaIngestor:
    """Ingest a remote media URL from search-grounded analysis, without downloading it."""

    def __init__(
        self,
        analysis: "AnalysisClient",
        store: KnowledgeStore,
        user_id: str | None = None,
    ) -> None:
        self.analysis = analysis
        self.store = store
        self.user_id = user_id or settings.default_user_id

    async def ingest(self, url: str) -> KnowledgeItem:
        """
        Analyze and persist an external media URL.

        Args:
            url: Social-media or video page URL

        Returns:
            The persisted KnowledgeItem (type external/url)

        Raises:
            AnalysisError: If the media could not be analyzed
        """
        normalized = normalize_url(url)
        analysis = await self.analysis.analyze_external_media(normalized)

        item = KnowledgeItem(
            id=generate_item_id(),
            user_id=self.user_id,
            title=analysis.title or "External Content",
            file_name=normalized,
            size=0,
            type=ItemType.EXTERNAL_URL.value,
            upload_date=datetime.utcnow(),
            transcription=analysis.transcription,
            summary=analysis.summary,
            keywords=list(analysis.keywords),
            external_url=normalized,
            is_external=True,
        )
        await self.store.save(item)

        logger.info("external_media_ingested", url=normalized, item_id=item.id)
        return item
