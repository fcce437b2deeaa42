"""Link discovery module - three-phase cascade for finding in-domain content URLs."""

from collections.abc import Awaitable
from typing import TYPE_CHECKING
from urllib.parse import urljoin, urlparse

import structlog
from bs4 import BeautifulSoup

from videomind.config import settings
from videomind.core.ingestion.web_scraping.link_curator import LinkCurator
from videomind.core.ingestion.web_scraping.models import (
    DiscoveredLink,
    DiscoveryPhase,
    DiscoveryResult,
)
from videomind.core.ingestion.web_scraping.proxy_fetcher import ProxyFetcher
from videomind.core.ingestion.web_scraping.url_utils import (
    dedup_key,
    dedup_links,
    domain_of,
    normalize_url,
    same_domain,
    title_from_url,
)
from videomind.utils.exceptions import ErrorKind, FetchBlockedError

if TYPE_CHECKING:
    from videomind.core.analysis.analysis_client import AnalysisClient

logger = structlog.get_logger(__name__)

_SKIPPED_HREF_PREFIXES = ("#", "javascript:", "mailto:", "tel:", "data:")


def extract_anchor_urls(html: str, base_url: str, domain: str, cap: int) -> list[str]:
    """
    Collect absolute in-domain anchor URLs from a page.

    Args:
        html: Raw HTML of the page
        base_url: URL the page was fetched from (used to resolve relative hrefs)
        domain: Target domain (``www.`` ignored)
        cap: Maximum number of URLs returned

    Returns:
        Unique URLs in document order, fragments removed, excluding links that
        are no longer than the base URL
    """
    soup = BeautifulSoup(html, "html.parser")
    base_length = len(base_url.rstrip("/"))
    seen: set[str] = set()
    urls: list[str] = []

    for anchor in soup.find_all("a", href=True):
        href = anchor["href"].strip()
        if not href or href.lower().startswith(_SKIPPED_HREF_PREFIXES):
            continue

        try:
            absolute = urljoin(base_url, href).split("#", 1)[0]
            scheme = urlparse(absolute).scheme
        except ValueError:
            continue

        if scheme not in ("http", "https") or not same_domain(absolute, domain):
            continue
        if len(absolute.rstrip("/")) <= base_length:
            continue

        key = dedup_key(absolute)
        if key in seen:
            continue
        seen.add(key)
        urls.append(absolute)

        if len(urls) >= cap:
            break

    return urls


class LinkDiscoverer:
    """Discover candidate content URLs for a domain.

    Cascade, each phase strictly more speculative than the last:
    1. Search-grounded discovery through the analysis backend
    2. Homepage anchor crawl through the proxy fetcher, curated by LinkCurator
    3. Path prediction from domain conventions (no network access)

    Phase 2 runs when phase 1 yields fewer than ``min_links`` links; phase 3
    runs only when nothing was found at all. Discovery never raises.
    """

    def __init__(
        self,
        analysis: "AnalysisClient",
        fetcher: ProxyFetcher,
        curator: LinkCurator | None = None,
        min_links: int | None = None,
        candidate_cap: int | None = None,
        fallback_max_links: int | None = None,
    ) -> None:
        """
        Initialize link discoverer.

        Args:
            analysis: Analysis client for search-grounded discovery and prediction
            fetcher: Proxy fetcher used for the homepage crawl
            curator: Link curator for crawl candidates (defaults to one over ``analysis``)
            min_links: Phase sufficiency threshold (default: settings.discovery_min_links)
            candidate_cap: Raw crawl candidate cap (default: settings.crawl_candidate_cap)
            fallback_max_links: Uncurated candidates kept when curation returns nothing
        """
        self.analysis = analysis
        self.fetcher = fetcher
        self.curator = curator or LinkCurator(analysis)
        self.min_links = min_links if min_links is not None else settings.discovery_min_links
        self.candidate_cap = (
            candidate_cap if candidate_cap is not None else settings.crawl_candidate_cap
        )
        self.fallback_max_links = (
            fallback_max_links if fallback_max_links is not None else settings.curation_max_links
        )

    async def discover(self, domain_url: str) -> list[DiscoveredLink]:
        """
        Discover content links for a domain.

        Args:
            domain_url: Domain URL or bare domain

        Returns:
            De-duplicated links; empty when every phase failed
        """
        result = await self.run(domain_url)
        return result.links

    async def run(self, domain_url: str) -> DiscoveryResult:
        """Run the cascade and report which phases ran and how they failed."""
        base_url = normalize_url(domain_url)
        domain = domain_of(base_url)
        result = DiscoveryResult()
        log = logger.bind(domain=domain or domain_url)

        if not domain:
            log.warning("discovery_invalid_domain", domain_url=domain_url)
            result.error = ErrorKind.DISCOVERY_FAILURE
            return result

        links = await self._run_phase(
            result, DiscoveryPhase.SEARCH, self._search_phase(domain)
        )

        if len(dedup_links(links)) < self.min_links:
            links += await self._run_phase(
                result, DiscoveryPhase.CRAWL, self._crawl_phase(base_url, domain)
            )

        if not links:
            links = await self._run_phase(
                result, DiscoveryPhase.PREDICTION, self._prediction_phase(base_url, domain)
            )

        result.links = dedup_links(links)
        if not result.links:
            result.error = ErrorKind.DISCOVERY_FAILURE
            log.warning(
                "discovery_found_nothing",
                phases=[phase.value for phase in result.phases_run],
                phase_errors={phase.value: err for phase, err in result.phase_errors.items()},
            )
        else:
            log.info(
                "discovery_complete",
                links=len(result.links),
                phases=[phase.value for phase in result.phases_run],
            )
        return result

    async def _run_phase(
        self,
        result: DiscoveryResult,
        phase: DiscoveryPhase,
        work: Awaitable[list[DiscoveredLink]],
    ) -> list[DiscoveredLink]:
        result.phases_run.append(phase)
        try:
            links = await work
        except Exception as e:
            result.phase_errors[phase] = str(e) or type(e).__name__
            logger.warning("discovery_phase_failed", phase=phase.value, error=str(e))
            return []

        logger.info("discovery_phase_complete", phase=phase.value, links=len(links))
        return links

    async def _search_phase(self, domain: str) -> list[DiscoveredLink]:
        links = await self.analysis.discover_site_links(domain)
        return [link for link in links if same_domain(link.url, domain)]

    async def _crawl_phase(self, base_url: str, domain: str) -> list[DiscoveredLink]:
        html = await self.fetcher.fetch(base_url)
        if html is None:
            raise FetchBlockedError(f"Homepage fetch blocked for {base_url}")

        candidates = extract_anchor_urls(html, base_url, domain, self.candidate_cap)
        logger.debug("crawl_candidates_collected", base_url=base_url, candidates=len(candidates))
        if not candidates:
            return []

        curated = await self.curator.curate(candidates, base_url)
        if curated:
            return curated

        return [
            DiscoveredLink(url=url, title=title_from_url(url))
            for url in candidates[: self.fallback_max_links]
        ]

    async def _prediction_phase(self, base_url: str, domain: str) -> list[DiscoveredLink]:
        links = await self.analysis.predict_common_links(base_url)
        return [link for link in links if same_domain(link.url, domain)]
