"""Unit tests for external media ingestion."""

from unittest.mock import AsyncMock

import pytest

from videomind.core.analysis.schemas import WebAnalysis
from videomind.core.ingestion.external_media import ExternalMediaIngestor
from videomind.db.models import ItemType
from videomind.utils.exceptions import AnalysisError


@pytest.mark.asyncio
async def test_ingest_creates_external_item(mock_analysis, store):
    ingestor = ExternalMediaIngestor(mock_analysis, store, user_id="user-1")

    item = await ingestor.ingest(" youtu.be/abc123 ")

    mock_analysis.analyze_external_media.assert_awaited_once_with("https://youtu.be/abc123")
    assert store.saved == [item]
    assert item.type == ItemType.EXTERNAL_URL.value
    assert item.size == 0
    assert item.is_external is True
    assert item.external_url == "https://youtu.be/abc123"
    assert item.scraped_content is None


@pytest.mark.asyncio
async def test_untitled_media_gets_placeholder_title(mock_analysis, store):
    mock_analysis.analyze_external_media = AsyncMock(
        return_value=WebAnalysis(transcription="Scene 1", summary="A clip.")
    )

    item = await ExternalMediaIngestor(mock_analysis, store).ingest("https://vimeo.com/1")

    assert item.title == "External Content"


@pytest.mark.asyncio
async def test_analysis_failure_persists_nothing(mock_analysis, store):
    mock_analysis.analyze_external_media = AsyncMock(side_effect=AnalysisError("no results"))

    with pytest.raises(AnalysisError):
        await ExternalMediaIngestor(mock_analysis, store).ingest("https://vimeo.com/1")

    assert store.saved == []
