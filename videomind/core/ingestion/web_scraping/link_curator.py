"""Link curation - semantic filtering and titling of raw crawl candidates."""

from collections.abc import Sequence
from typing import TYPE_CHECKING

import structlog

from videomind.config import settings
from videomind.core.ingestion.web_scraping.models import DiscoveredLink
from videomind.core.ingestion.web_scraping.url_utils import dedup_links, domain_of, same_domain

if TYPE_CHECKING:
    from videomind.core.analysis.analysis_client import AnalysisClient

logger = structlog.get_logger(__name__)


class LinkCurator:
    """Reduce untitled crawl candidates to a bounded, ranked, titled link set.

    Curation is best-effort enrichment: any failure of the ranking call
    yields an empty list instead of an error.
    """

    def __init__(self, analysis: "AnalysisClient", max_links: int | None = None) -> None:
        """
        Initialize link curator.

        Args:
            analysis: Analysis client providing filter_and_title_links
            max_links: Upper bound on returned links (default: settings.curation_max_links)
        """
        self.analysis = analysis
        self.max_links = max_links if max_links is not None else settings.curation_max_links

    async def curate(self, raw_urls: Sequence[str], context_url: str) -> list[DiscoveredLink]:
        """
        Filter and title raw candidate URLs.

        Args:
            raw_urls: Untitled candidate URLs (e.g. homepage anchors)
            context_url: Site the candidates were collected from

        Returns:
            Titled in-domain links, at most max_links, in ranked order
        """
        if not raw_urls:
            return []

        domain = domain_of(context_url)
        try:
            ranked = await self.analysis.filter_and_title_links(
                list(raw_urls), domain or context_url, max_links=self.max_links
            )
        except Exception as e:
            logger.warning(
                "link_curation_failed",
                context_url=context_url,
                candidates=len(raw_urls),
                error=str(e),
            )
            return []

        curated = [
            link
            for link in ranked
            if link.url
            and not link.url.startswith("#")
            and (not domain or same_domain(link.url, domain))
        ]
        curated = dedup_links(curated)[: self.max_links]

        logger.info(
            "links_curated",
            context_url=context_url,
            candidates=len(raw_urls),
            returned=len(ranked),
            kept=len(curated),
        )
        return curated
