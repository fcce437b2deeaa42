"""Unit tests for link curation."""

from unittest.mock import AsyncMock

import pytest

from videomind.core.ingestion.web_scraping.link_curator import LinkCurator
from videomind.core.ingestion.web_scraping.models import DiscoveredLink
from videomind.utils.exceptions import AnalysisError

RAW_URLS = [
    "https://example.com/blog/first-post",
    "https://example.com/blog/second-post",
    "https://example.com/privacy",
    "https://example.com/login",
]


@pytest.mark.asyncio
async def test_returns_titled_in_domain_links(mock_analysis):
    """Ranked links come back titled, in ranked order."""
    mock_analysis.filter_and_title_links = AsyncMock(
        return_value=[
            DiscoveredLink(url="https://example.com/blog/second-post", title="Second Post"),
            DiscoveredLink(url="https://example.com/blog/first-post", title="First Post"),
        ]
    )
    curator = LinkCurator(mock_analysis, max_links=40)

    links = await curator.curate(RAW_URLS, "https://example.com")

    assert [link.title for link in links] == ["Second Post", "First Post"]
    mock_analysis.filter_and_title_links.assert_awaited_once_with(
        RAW_URLS, "example.com", max_links=40
    )


@pytest.mark.asyncio
async def test_drops_foreign_fragment_and_duplicate_links(mock_analysis):
    mock_analysis.filter_and_title_links = AsyncMock(
        return_value=[
            DiscoveredLink(url="https://example.com/guide", title="Guide"),
            DiscoveredLink(url="https://twitter.com/example", title="Twitter"),
            DiscoveredLink(url="#section", title="Anchor"),
            DiscoveredLink(url="https://example.com/guide?ref=nav", title="Guide again"),
            DiscoveredLink(url="https://www.example.com/docs", title="Docs"),
        ]
    )
    curator = LinkCurator(mock_analysis)

    links = await curator.curate(RAW_URLS, "https://example.com")

    assert [link.url for link in links] == [
        "https://example.com/guide",
        "https://www.example.com/docs",
    ]


@pytest.mark.asyncio
async def test_bounded_by_max_links(mock_analysis):
    mock_analysis.filter_and_title_links = AsyncMock(
        return_value=[
            DiscoveredLink(url=f"https://example.com/p/{i}", title=f"Page {i}") for i in range(10)
        ]
    )
    curator = LinkCurator(mock_analysis, max_links=3)

    links = await curator.curate(RAW_URLS, "example.com")

    assert len(links) == 3


@pytest.mark.asyncio
async def test_empty_input_skips_analysis(mock_analysis):
    curator = LinkCurator(mock_analysis)

    assert await curator.curate([], "https://example.com") == []
    mock_analysis.filter_and_title_links.assert_not_awaited()


@pytest.mark.asyncio
@pytest.mark.parametrize("error", [AnalysisError("timed out"), ValueError("bad payload")])
async def test_analysis_failure_yields_empty_list(mock_analysis, error):
    """Curation failures are absorbed, never raised."""
    mock_analysis.filter_and_title_links = AsyncMock(side_effect=error)
    curator = LinkCurator(mock_analysis)

    assert await curator.curate(RAW_URLS, "https://example.com") == []
