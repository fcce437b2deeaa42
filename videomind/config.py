"""Configuration management for VideoMind using Pydantic Settings."""

import re
from typing import Annotated

from pydantic import Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

DEFAULT_PROXY_TEMPLATES = [
    "https://api.allorigins.win/raw?url={encoded}",
    "https://corsproxy.io/?{encoded}",
    "https://api.codetabs.com/v1/proxy?quest={encoded}",
    "https://thingproxy.freeboard.io/fetch/{url}",
    "https://proxy.cors.sh/{url}",
]

MIN_PROXY_TEMPLATES = 4

PROXY_PLACEHOLDERS = {"url", "encoded"}
PLACEHOLDER_RE = re.compile(r"\{([^{}]*)\}")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # OpenAI settings
    openai_api_key: SecretStr | None = Field(
        default=None,
        description="OpenAI API key for content analysis and link discovery",
    )
    analysis_model: str = Field(
        default="gpt-4o-mini",
        description="Model used for page analysis, link curation and prediction",
    )
    search_model: str = Field(
        default="gpt-4o",
        description="Model used for search-grounded discovery (web_search tool)",
    )
    analysis_timeout_seconds: float = Field(
        default=60.0,
        description="Timeout applied to every analysis call",
    )
    analysis_max_input_chars: int = Field(
        default=100_000,
        description="Extracted text is truncated to this many characters before analysis",
    )
    transcription_model: str = Field(
        default="whisper-1",
        description="Speech-to-text model used for uploaded videos",
    )
    video_timeout_seconds: float = Field(
        default=300.0,
        description="Timeout applied to video transcription calls",
    )
    max_video_bytes: int = Field(
        default=25 * 1024 * 1024,
        description="Largest video file accepted for upload (transcription API limit)",
    )

    # Database settings
    database_url: str = Field(
        default="postgresql+asyncpg://postgres@localhost/videomind",
        description="PostgreSQL database URL with asyncpg driver",
    )
    database_echo: bool = Field(
        default=False,
        description="Echo SQL queries to console",
    )

    # Proxy fetch settings
    proxy_templates: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: list(DEFAULT_PROXY_TEMPLATES),
        description="Ordered CORS relay templates with a {url} or {encoded} placeholder",
    )
    proxy_timeout_seconds: float = Field(
        default=7.0,
        description="Per-proxy request timeout",
    )
    proxy_min_body_chars: int = Field(
        default=500,
        description="Proxy responses must be longer than this to be accepted",
    )

    # Pipeline thresholds
    min_content_chars: int = Field(
        default=100,
        description="Extracted text shorter than this is not a usable scrape",
    )
    discovery_min_links: int = Field(
        default=5,
        description="A discovery phase yielding fewer links triggers the next phase",
    )
    crawl_candidate_cap: int = Field(
        default=200,
        description="Maximum raw anchors kept from the homepage crawl",
    )
    curation_max_links: int = Field(
        default=40,
        description="Maximum links returned by link curation",
    )
    prediction_count: int = Field(
        default=25,
        description="Number of links requested from path prediction",
    )

    default_user_id: str = Field(
        default="local",
        description="Owner recorded on items ingested from the CLI",
    )

    # Logging settings
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )
    environment: str = Field(
        default="development",
        description="Environment (development or production)",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    @field_validator("proxy_templates", mode="before")
    @classmethod
    def parse_proxy_templates(cls, v: str | list[str]) -> list[str]:
        """Parse proxy templates from comma-separated string or list."""
        if isinstance(v, str):
            return [template.strip() for template in v.split(",") if template.strip()]
        return v

    @field_validator("proxy_templates")
    @classmethod
    def validate_proxy_templates(cls, v: list[str]) -> list[str]:
        """Validate every template carries a URL placeholder."""
        if len(v) < MIN_PROXY_TEMPLATES:
            raise ValueError(
                f"At least {MIN_PROXY_TEMPLATES} proxy_templates are required, got {len(v)}"
            )
        for template in v:
            if "{url}" not in template and "{encoded}" not in template:
                raise ValueError(
                    f"Invalid proxy template: {template}. "
                    "Expected a {url} or {encoded} placeholder"
                )
            unknown = set(PLACEHOLDER_RE.findall(template)) - PROXY_PLACEHOLDERS
            if unknown:
                raise ValueError(
                    f"Invalid proxy template: {template}. Unknown placeholder(s): "
                    f"{', '.join(sorted(unknown))}"
                )
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is a known logging level."""
        allowed_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in allowed_levels:
            raise ValueError(
                f"Invalid log_level: {v}. Allowed values: {', '.join(sorted(allowed_levels))}"
            )
        return v.upper()

    @model_validator(mode="after")
    def validate_thresholds(self) -> "Settings":
        """Validate pipeline thresholds are positive."""
        thresholds = {
            "proxy_timeout_seconds": self.proxy_timeout_seconds,
            "analysis_timeout_seconds": self.analysis_timeout_seconds,
            "video_timeout_seconds": self.video_timeout_seconds,
            "max_video_bytes": self.max_video_bytes,
            "min_content_chars": self.min_content_chars,
            "discovery_min_links": self.discovery_min_links,
            "crawl_candidate_cap": self.crawl_candidate_cap,
            "curation_max_links": self.curation_max_links,
            "prediction_count": self.prediction_count,
        }
        for name, value in thresholds.items():
            if value <= 0:
                raise ValueError(f"{name} must be positive, got {value}")
        return self


# Global settings instance
settings = Settings()
