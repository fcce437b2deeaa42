"""Response models validating analysis call payloads."""

from pydantic import BaseModel, ConfigDict, Field, field_validator


class MediaSummary(BaseModel):
    """Title, summary and keywords for content whose text is already known."""

    model_config = ConfigDict(populate_by_name=True)

    title: str | None = None
    summary: str
    keywords: list[str] = Field(default_factory=list)

    @field_validator("keywords", mode="before")
    @classmethod
    def split_keyword_string(cls, v: str | list[str] | None) -> list[str]:
        """Accept a comma-separated keyword string as well as a list."""
        if v is None:
            return []
        if isinstance(v, str):
            return [keyword.strip() for keyword in v.split(",") if keyword.strip()]
        return v


class WebAnalysis(MediaSummary):
    """Structured analysis of a page, video or external media item."""

    transcription: str
    scraped_data: str | None = Field(default=None, alias="scrapedData")

    @field_validator("scraped_data", mode="before")
    @classmethod
    def stringify_scraped_data(cls, v: object) -> str | None:
        """Models sometimes return structured data here; keep it as text."""
        if v is None or isinstance(v, str):
            return v
        if isinstance(v, list):
            return "\n".join(str(item) for item in v)
        return str(v)


class LinkPayload(BaseModel):
    url: str
    title: str = ""


class LinkListPayload(BaseModel):
    links: list[LinkPayload] = Field(default_factory=list)
