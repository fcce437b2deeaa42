"""Batch ingestion - sequential scrape of a selected link set with failure accounting."""

from collections.abc import Callable, Iterable

import structlog

from videomind.core.ingestion.web_scraping.models import (
    BatchStatus,
    BatchSummary,
    IngestOutcome,
)
from videomind.core.ingestion.web_scraping.scrape_orchestrator import ScrapeOrchestrator
from videomind.utils.exceptions import ErrorKind, VideoMindError

logger = structlog.get_logger(__name__)

ProgressCallback = Callable[[int, int], None]


class BatchIngestor:
    """Drive ScrapeOrchestrator over user-selected URLs, one at a time.

    URLs are processed strictly sequentially to stay within the rate limits of
    the public proxies and the analysis backend. A failing URL never aborts
    the run; its outcome is counted and the next URL is processed.

    ``state`` moves IDLE -> RUNNING -> COMPLETED | COMPLETED_WITH_FAILURES | ALL_FAILED.
    """

    def __init__(self, orchestrator: ScrapeOrchestrator) -> None:
        """Initialize batch ingestor around a single-URL orchestrator."""
        self.orchestrator = orchestrator
        self.state = BatchStatus.IDLE

    async def ingest_all(
        self,
        selected_urls: Iterable[str],
        instruction: str = "",
        selector: str | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> BatchSummary:
        """
        Scrape every selected URL and summarize the run.

        Args:
            selected_urls: URLs to ingest (duplicates are processed once, in first-seen order)
            instruction: Extraction instruction applied to every page
            selector: Optional CSS selector applied to every page
            on_progress: Called as (completed, total) after each URL

        Returns:
            BatchSummary with succeeded + failed == total and a terminal status
        """
        urls = list(dict.fromkeys(selected_urls))
        summary = BatchSummary(total=len(urls))
        self.state = BatchStatus.RUNNING
        logger.info("batch_started", total=summary.total, selector=selector)

        for url in urls:
            summary.record(await self._ingest_one(url, instruction, selector))
            if on_progress is not None:
                on_progress(summary.completed, summary.total)

        self.state = summary.status
        logger.info(
            "batch_complete",
            status=self.state.value,
            succeeded=summary.succeeded,
            failed=summary.failed,
            total=summary.total,
        )
        return summary

    async def _ingest_one(self, url: str, instruction: str, selector: str | None) -> IngestOutcome:
        try:
            item = await self.orchestrator.scrape_one(url, instruction, selector)
        except VideoMindError as e:
            logger.warning("batch_item_failed", url=url, error_kind=e.kind.value, error=str(e))
            return IngestOutcome(url=url, ok=False, error=e.kind)
        except Exception as e:
            logger.warning(
                "batch_item_failed",
                url=url,
                error_kind=ErrorKind.UNEXPECTED.value,
                error=str(e),
                exc_info=True,
            )
            return IngestOutcome(url=url, ok=False, error=ErrorKind.UNEXPECTED)

        return IngestOutcome(url=url, ok=True, item_id=item.id)
