"""Local video upload - transcribe, analyze and store a video file."""

import mimetypes
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING

import structlog

from videomind.config import settings
from videomind.db.models import KnowledgeItem, generate_item_id
from videomind.db.repositories import KnowledgeStore
from videomind.utils.exceptions import MediaValidationError

if TYPE_CHECKING:
    from videomind.core.analysis.analysis_client import AnalysisClient

logger = structlog.get_logger(__name__)

# Video containers the transcription endpoint accepts
SUPPORTED_VIDEO_TYPES = frozenset({"video/mp4", "video/mpeg", "video/webm"})


def detect_video_type(path: Path, mime_type: str | None = None) -> str:
    """Resolve and check the MIME type of a video file."""
    resolved = mime_type or mimetypes.guess_type(path.name)[0]
    if not resolved or not resolved.startswith("video/"):
        raise MediaValidationError(f"Not a video file: {path.name} ({resolved or 'unknown type'})")
    if resolved not in SUPPORTED_VIDEO_TYPES:
        raise MediaValidationError(
            f"Unsupported video type {resolved}. "
            f"Supported: {', '.join(sorted(SUPPORTED_VIDEO_TYPES))}"
        )
    return resolved


class VideoIngestor:
    """Ingest a local video file as a knowledge item."""

    def __init__(
        self,
        analysis: "AnalysisClient",
        store: KnowledgeStore,
        user_id: str | None = None,
        max_bytes: int | None = None,
    ) -> None:
        self.analysis = analysis
        self.store = store
        self.user_id = user_id or settings.default_user_id
        self.max_bytes = max_bytes if max_bytes is not None else settings.max_video_bytes

    async def ingest(self, path: str | Path, mime_type: str | None = None) -> KnowledgeItem:
        """
        Analyze and persist a local video.

        Args:
            path: Video file on disk
            mime_type: MIME type override (guessed from the extension otherwise)

        Returns:
            The persisted KnowledgeItem; its type is the video MIME type

        Raises:
            MediaValidationError: If the file is missing, empty, too large or not a video
            AnalysisError: If transcription or summary fails
        """
        path = Path(path)
        if not path.is_file():
            raise MediaValidationError(f"File not found: {path}")

        resolved_type = detect_video_type(path, mime_type)
        size = path.stat().st_size
        if size == 0:
            raise MediaValidationError(f"File is empty: {path.name}")
        if size > self.max_bytes:
            raise MediaValidationError(
                f"File too large: {path.name} is {size} bytes, limit is {self.max_bytes}"
            )

        logger.info(
            "video_upload_started", file_name=path.name, mime_type=resolved_type, size=size
        )
        analysis = await self.analysis.analyze_video(path, resolved_type)

        item = KnowledgeItem(
            id=generate_item_id(),
            user_id=self.user_id,
            title=path.stem,
            file_name=path.name,
            size=size,
            type=resolved_type,
            upload_date=datetime.utcnow(),
            transcription=analysis.transcription,
            summary=analysis.summary,
            keywords=list(analysis.keywords),
            is_external=False,
        )
        await self.store.save(item)

        logger.info("video_ingested", file_name=path.name, item_id=item.id)
        return item
