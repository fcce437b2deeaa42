"""Knowledge item model - one ingested video, external media URL or scraped page."""

from datetime import datetime
from enum import Enum
from uuid import uuid4

from sqlalchemy import JSON, Column, Text
from sqlmodel import Field, SQLModel


class ItemType(str, Enum):
    """Discriminator for knowledge item variants.

    Local uploads store their MIME type (``video/*``) directly in ``type``.
    """

    EXTERNAL_URL = "external/url"
    WEB_SCRAPE = "web/scrape"


def generate_item_id() -> str:
    """Globally unique, immutable item identifier."""
    return uuid4().hex


class KnowledgeItem(SQLModel, table=True):
    """Knowledge item stored in a user's library.

    Items are written once and never updated in place; ingesting the same
    URL again creates a new item.
    Field usage varies by type:
    - web/scrape: file_name and external_url hold the page URL, size is the extracted text length
    - external/url: external_url holds the media URL, size is 0
    - video/*: file_name is the uploaded file name, size is its byte count
    """

    __tablename__ = "knowledge_items"

    id: str = Field(
        default_factory=generate_item_id,
        primary_key=True,
        nullable=False,
    )
    user_id: str = Field(nullable=False, index=True)
    title: str = Field(nullable=False)
    file_name: str = Field(nullable=False)
    size: int = Field(default=0, nullable=False)
    type: str = Field(nullable=False, index=True)
    upload_date: datetime = Field(
        default_factory=datetime.utcnow,
        nullable=False,
        index=True,
    )

    transcription: str = Field(default="", sa_column=Column(Text, nullable=False))
    summary: str = Field(default="", sa_column=Column(Text, nullable=False))
    keywords: list[str] = Field(
        default_factory=list,
        sa_column=Column(JSON, nullable=False),
    )

    external_url: str | None = Field(default=None)
    is_external: bool = Field(default=False, nullable=False)
    scraped_content: str | None = Field(default=None, sa_column=Column(Text, nullable=True))
