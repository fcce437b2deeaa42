"""Website ingestion module for VideoMind.

This module provides the web ingestion pipeline:
- Page retrieval through rotating public CORS relays
- Clean text extraction with selector, main-content and full-body fallbacks
- Link discovery via search grounding, homepage crawl or path prediction
- Semantic link curation and de-duplication
- Sequential batch ingestion with partial-failure accounting
"""

from videomind.core.ingestion.web_scraping.batch_ingestor import BatchIngestor
from videomind.core.ingestion.web_scraping.content_extractor import (
    ContentExtractor,
    ExtractionConfig,
)
from videomind.core.ingestion.web_scraping.link_curator import LinkCurator
from videomind.core.ingestion.web_scraping.link_discovery import LinkDiscoverer
from videomind.core.ingestion.web_scraping.models import (
    BatchStatus,
    BatchSummary,
    DiscoveredLink,
    DiscoveryPhase,
    DiscoveryResult,
    DiscoverySession,
    IngestOutcome,
)
from videomind.core.ingestion.web_scraping.proxy_fetcher import ProxyFetcher
from videomind.core.ingestion.web_scraping.scrape_orchestrator import ScrapeOrchestrator

__all__ = [
    "BatchIngestor",
    "BatchStatus",
    "BatchSummary",
    "ContentExtractor",
    "DiscoveredLink",
    "DiscoveryPhase",
    "DiscoveryResult",
    "DiscoverySession",
    "ExtractionConfig",
    "IngestOutcome",
    "LinkCurator",
    "LinkDiscoverer",
    "ProxyFetcher",
    "ScrapeOrchestrator",
]
