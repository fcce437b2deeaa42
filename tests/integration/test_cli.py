"""Integration tests for the Typer CLI with a mocked pipeline."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
from pydantic import SecretStr
from typer.testing import CliRunner

from videomind import __version__
from videomind.cli import app as cli
from videomind.core.ingestion.web_scraping.models import (
    BatchSummary,
    DiscoveredLink,
    DiscoveryResult,
    IngestOutcome,
)
from videomind.utils.exceptions import ErrorKind, FetchBlockedError, MediaValidationError

runner = CliRunner()

LINKS = [
    DiscoveredLink(url="https://example.com/a", title="Post A"),
    DiscoveredLink(url="https://example.com/b", title="Post B"),
]


@pytest.fixture(autouse=True)
def keep_logging_config(monkeypatch):
    """Keep structlog writing to the real stderr rather than the runner's buffer."""
    monkeypatch.setattr(cli, "configure_logging", lambda **kwargs: None)


@pytest.fixture
def pipeline(monkeypatch):
    """Patch database access and pipeline wiring used by CLI commands."""
    monkeypatch.setattr(cli.settings, "openai_api_key", SecretStr("sk-test"))
    monkeypatch.setattr(cli, "AsyncSessionLocal", MagicMock())
    monkeypatch.setattr(cli, "close_db", AsyncMock())

    discoverer = MagicMock()
    discoverer.run = AsyncMock(return_value=DiscoveryResult(links=list(LINKS)))
    orchestrator = MagicMock()
    orchestrator.scrape_one = AsyncMock()
    video = MagicMock()
    video.ingest = AsyncMock()
    store = MagicMock()
    store.get = AsyncMock(return_value=None)
    store.get_all = AsyncMock(return_value=[])
    analysis = MagicMock()
    analysis.ask_item = AsyncMock(return_value="The action items are listed at 02:10.")
    analysis.ask_library = AsyncMock(return_value="Library answer.")
    wired = SimpleNamespace(
        discoverer=discoverer,
        orchestrator=orchestrator,
        video=video,
        store=store,
        analysis=analysis,
    )
    monkeypatch.setattr(cli, "build_pipeline", lambda session, user_id: wired)
    return wired


def test_version():
    result = runner.invoke(cli.app, ["--version"])

    assert result.exit_code == 0
    assert __version__ in result.stdout


def test_missing_api_key_rejected(monkeypatch):
    monkeypatch.setattr(cli.settings, "openai_api_key", None)

    result = runner.invoke(cli.app, ["scrape", "example.com"])

    assert result.exit_code == 1
    assert "OPENAI_API_KEY not set" in result.stdout


def test_discover_lists_links_without_ingesting(pipeline):
    result = runner.invoke(cli.app, ["discover", "example.com"])

    assert result.exit_code == 0
    assert "Post A" in result.stdout
    assert "--ingest" in result.stdout
    pipeline.orchestrator.scrape_one.assert_not_awaited()


def test_discover_zero_links_exits_nonzero(pipeline):
    pipeline.discoverer.run = AsyncMock(
        return_value=DiscoveryResult(error=ErrorKind.DISCOVERY_FAILURE)
    )

    result = runner.invoke(cli.app, ["discover", "example.com"])

    assert result.exit_code == 1
    assert "Zero paths found" in result.stdout


def test_discover_ingest_reports_partial_success(pipeline):
    async def scrape_one(url, instruction="", selector=None):
        if url.endswith("/b"):
            raise FetchBlockedError("blocked")
        return SimpleNamespace(id="item-1")

    pipeline.orchestrator.scrape_one = AsyncMock(side_effect=scrape_one)

    result = runner.invoke(cli.app, ["discover", "example.com", "--ingest"])

    assert result.exit_code == 0
    assert "Partial success" in result.stdout


def test_discover_ingest_all_failed_exits_nonzero(pipeline):
    pipeline.orchestrator.scrape_one = AsyncMock(side_effect=FetchBlockedError("blocked"))

    result = runner.invoke(cli.app, ["discover", "example.com", "--ingest", "--limit", "1"])

    assert result.exit_code == 1
    assert "All nodes blocked" in result.stdout
    assert pipeline.orchestrator.scrape_one.await_count == 1


def test_describe_batch_success():
    summary = BatchSummary(total=1)
    summary.record(IngestOutcome(url="https://example.com/a", ok=True, item_id="1"))

    message, style = cli.describe_batch(summary)

    assert "Batch complete" in message
    assert style == "green"


def test_upload_reports_video_item(pipeline, tmp_path):
    path = tmp_path / "standup.mp4"
    path.write_bytes(b"v" * 64)
    pipeline.video.ingest = AsyncMock(
        return_value=SimpleNamespace(
            id="vid-1", title="standup", type="video/mp4", size=64, keywords=["standup"]
        )
    )

    result = runner.invoke(cli.app, ["upload", str(path), "--type", "video/mp4"])

    assert result.exit_code == 0
    assert "Video ingested" in result.stdout
    assert "vid-1" in result.stdout
    pipeline.video.ingest.assert_awaited_once_with(path, "video/mp4")


def test_upload_rejected_file_exits_nonzero(pipeline, tmp_path):
    path = tmp_path / "notes.txt"
    path.write_text("hello")
    pipeline.video.ingest = AsyncMock(side_effect=MediaValidationError("Not a video file"))

    result = runner.invoke(cli.app, ["upload", str(path)])

    assert result.exit_code == 1
    assert "Upload Failed" in result.stdout
    assert "Not a video file" in result.stdout


def test_ask_item_answers_from_single_item(pipeline):
    item = SimpleNamespace(id="vid-1", title="standup", transcription="[02:10] Action items")
    pipeline.store.get = AsyncMock(return_value=item)

    result = runner.invoke(cli.app, ["ask", "What are the action items?", "--item", "vid-1"])

    assert result.exit_code == 0
    assert "02:10" in result.stdout
    pipeline.analysis.ask_item.assert_awaited_once_with("What are the action items?", item)
    pipeline.analysis.ask_library.assert_not_awaited()


def test_ask_unknown_item_exits_nonzero(pipeline):
    result = runner.invoke(cli.app, ["ask", "Anything?", "--item", "missing"])

    assert result.exit_code == 1
    assert "Item not found" in result.stdout
    pipeline.analysis.ask_item.assert_not_awaited()


def test_ask_library_empty_exits_nonzero(pipeline):
    result = runner.invoke(cli.app, ["ask", "Anything?"])

    assert result.exit_code == 1
    assert "Library empty" in result.stdout
