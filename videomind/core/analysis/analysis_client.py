"""Analysis boundary - OpenAI calls producing page analyses and link lists."""

import asyncio
import json
import re
from collections.abc import Awaitable, Callable, Sequence
from pathlib import Path
from typing import Any, TypeVar

import structlog
from openai import AsyncOpenAI, OpenAIError, RateLimitError
from pydantic import BaseModel, ValidationError

from videomind.config import settings
from videomind.core.analysis.schemas import LinkListPayload, MediaSummary, WebAnalysis
from videomind.core.ingestion.web_scraping.models import DiscoveredLink
from videomind.core.ingestion.web_scraping.url_utils import same_domain
from videomind.db.models.knowledge_item import KnowledgeItem
from videomind.utils.exceptions import AnalysisError
from videomind.utils.openai_client import get_openai_client
from videomind.utils.retry import retry_with_exponential_backoff

logger = structlog.get_logger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

DEFAULT_INSTRUCTION = "Provide a full-text transcription and a detailed technical summary."

_FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)

WEB_ANALYSIS_PROMPT = """You are an expert web content analyst. URL: {url}
Extraction instruction: {instruction}

CONTENT TO ANALYZE:
{content}

Return a JSON object with:
- "title": the page title.
- "transcription": the full text content of the page (articles, body, details).
- "summary": a concise 2-sentence overview.
- "keywords": a list of 5-8 relevant tags.
- "scrapedData": specific technical data or key points requested by the instruction."""

EXTERNAL_MEDIA_PROMPT = """Deeply analyze the media URL: "{url}".
Use web search to find its title, description and content details.
Provide a "transcription" that is a detailed scene-by-scene description or transcript.
Return only a JSON object: {{"title": "...", "transcription": "...", "summary": "...", "keywords": ["..."]}}"""

DISCOVERY_PROMPT = """Perform a deep content audit of the website "{domain}".
Find as many deep content URLs hosted on {domain} as possible (blog posts, articles,
documentation pages, guides, individual entries), including paginated listings.
Search queries to use: "site:{domain}", "site:{domain} articles", "site:{domain} index",
"site:{domain} documentation", "{domain} sitemap".
Return only a JSON object: {{"links": [{{"url": "...", "title": "..."}}]}}"""

PREDICTION_PROMPT = """Predict {count} likely deep content URLs for the website "{base_url}".
Use common site conventions such as /blog, /articles, /docs, /documentation, /guides, /about.
Every URL must be absolute and hosted on the same site.
Return a JSON object: {{"links": [{{"url": "...", "title": "..."}}]}}"""

CURATION_PROMPT = """Select at most {max_links} of the most content-heavy pages from this list for "{domain}".
Discard external domains, social widgets, login/signup/account pages, legal pages
(privacy, terms, cookies) and fragment-only anchors. Give each kept URL a short descriptive title.
Only return URLs that appear in the list.

LIST:
{urls}

Return a JSON object: {{"links": [{{"url": "...", "title": "..."}}]}}"""

LIBRARY_PROMPT = """Answer the question using only the knowledge base below: "{question}"

Context:
{context}"""

ITEM_PROMPT = """Analyze item "{title}".
Content:
{content}

Question: {question}"""

VIDEO_SUMMARY_PROMPT = """You are analyzing an uploaded video file "{file_name}" ({mime_type}).
Timestamped transcript of its audio track:
{transcript}

Return a JSON object with:
- "title": a short descriptive title for the video.
- "summary": a concise 2-sentence overview.
- "keywords": a list of 5-8 relevant tags."""


class AnalysisClient:
    """
    Call the generative-AI backend for content analysis and link discovery.

    Every call:
    - runs under an explicit timeout
    - retries rate-limit errors with exponential backoff
    - validates the JSON payload with pydantic models
    - raises AnalysisError on any failure (SDK error, timeout, malformed data)
    """

    def __init__(
        self,
        client: AsyncOpenAI | None = None,
        analysis_model: str | None = None,
        search_model: str | None = None,
        timeout: float | None = None,
        max_input_chars: int | None = None,
        max_retries: int = 2,
        transcription_model: str | None = None,
        video_timeout: float | None = None,
    ) -> None:
        """
        Initialize the analysis client.

        Args:
            client: Optional AsyncOpenAI client (defaults to new client from settings)
            analysis_model: Chat model for analysis, curation and prediction
            search_model: Model used with the web_search tool
            timeout: Seconds allowed per call (default: settings.analysis_timeout_seconds)
            max_input_chars: Page text beyond this is truncated before analysis
            max_retries: Rate-limit retries per call
            transcription_model: Speech-to-text model for uploaded videos
            video_timeout: Seconds allowed for a transcription call
                (default: settings.video_timeout_seconds)
        """
        self.client = client or get_openai_client()
        self.analysis_model = analysis_model or settings.analysis_model
        self.search_model = search_model or settings.search_model
        self.timeout = timeout if timeout is not None else settings.analysis_timeout_seconds
        self.max_input_chars = (
            max_input_chars if max_input_chars is not None else settings.analysis_max_input_chars
        )
        self.max_retries = max_retries
        self.transcription_model = transcription_model or settings.transcription_model
        self.video_timeout = (
            video_timeout if video_timeout is not None else settings.video_timeout_seconds
        )

    async def analyze_web_content(self, text: str, instruction: str, url: str) -> WebAnalysis:
        """
        Analyze extracted page text.

        Args:
            text: Extracted plain text of the page
            instruction: User extraction instruction (may be empty)
            url: Normalized page URL

        Returns:
            Validated WebAnalysis

        Raises:
            AnalysisError: If the call fails or returns malformed data
        """
        prompt = WEB_ANALYSIS_PROMPT.format(
            url=url,
            instruction=instruction.strip() or DEFAULT_INSTRUCTION,
            content=text[: self.max_input_chars],
        )
        payload = await self._complete_json(prompt, operation="analyze_web_content")
        analysis = self._parse(payload, WebAnalysis, operation="analyze_web_content")
        logger.info(
            "web_content_analyzed",
            url=url,
            input_chars=min(len(text), self.max_input_chars),
            keywords=len(analysis.keywords),
        )
        return analysis

    async def analyze_external_media(self, url: str) -> WebAnalysis:
        """Search-grounded analysis of a social-media or hosted video URL."""
        response = await self._search(
            EXTERNAL_MEDIA_PROMPT.format(url=url), operation="analyze_external_media"
        )
        return self._parse(
            getattr(response, "output_text", "") or "",
            WebAnalysis,
            operation="analyze_external_media",
        )

    async def analyze_video(self, path: Path, mime_type: str) -> WebAnalysis:
        """
        Transcribe an uploaded video's audio track and summarize it.

        Args:
            path: Local video file
            mime_type: Video MIME type, e.g. video/mp4

        Returns:
            WebAnalysis whose transcription is the timestamped transcript

        Raises:
            AnalysisError: If transcription fails, finds no speech, or the
                summary call returns malformed data
        """
        path = Path(path)
        response = await self._call(
            "analyze_video",
            self.client.audio.transcriptions.create,
            call_timeout=self.video_timeout,
            model=self.transcription_model,
            file=(path.name, path.read_bytes(), mime_type),
            response_format="verbose_json",
            timeout=self.video_timeout,
        )
        transcript = self.format_transcript(response)
        if not transcript:
            raise AnalysisError(f"analyze_video found no speech in {path.name}")

        prompt = VIDEO_SUMMARY_PROMPT.format(
            file_name=path.name,
            mime_type=mime_type,
            transcript=transcript[: self.max_input_chars],
        )
        payload = await self._complete_json(prompt, operation="analyze_video")
        summary = self._parse(payload, MediaSummary, operation="analyze_video")
        logger.info(
            "video_analyzed",
            file_name=path.name,
            transcript_chars=len(transcript),
            keywords=len(summary.keywords),
        )
        return WebAnalysis(
            title=summary.title,
            transcription=transcript,
            summary=summary.summary,
            keywords=summary.keywords,
        )

    async def discover_site_links(self, domain: str) -> list[DiscoveredLink]:
        """
        Search-grounded discovery of deep content URLs for a domain.

        Links from the JSON payload come first; grounding citations hosted on
        the domain and not already listed are appended after them.
        """
        response = await self._search(
            DISCOVERY_PROMPT.format(domain=domain), operation="discover_site_links"
        )

        links: list[DiscoveredLink] = []
        output_text = getattr(response, "output_text", "") or ""
        if output_text.strip():
            try:
                payload = self._parse(output_text, LinkListPayload, operation="discover_site_links")
                links = [DiscoveredLink(url=l.url, title=l.title or l.url) for l in payload.links]
            except AnalysisError as e:
                # Citations below can still yield links
                logger.warning("discovery_payload_unparseable", domain=domain, error=str(e))

        known = {link.url for link in links}
        for url, title in self._citations(response):
            if url in known or not same_domain(url, domain):
                continue
            known.add(url)
            links.append(DiscoveredLink(url=url, title=title or url))

        logger.info("site_links_discovered", domain=domain, links=len(links))
        return links

    async def predict_common_links(
        self, base_url: str, count: int | None = None
    ) -> list[DiscoveredLink]:
        """Predict likely content paths from site conventions, without network access."""
        if count is None:
            count = settings.prediction_count
        prompt = PREDICTION_PROMPT.format(base_url=base_url.rstrip("/"), count=count)
        payload = await self._complete_json(prompt, operation="predict_common_links")
        result = self._parse(payload, LinkListPayload, operation="predict_common_links")
        return [DiscoveredLink(url=l.url, title=l.title or l.url) for l in result.links]

    async def filter_and_title_links(
        self, urls: Sequence[str], domain: str, max_links: int | None = None
    ) -> list[DiscoveredLink]:
        """Rank raw URLs, drop non-content ones and title the rest."""
        if not urls:
            return []
        max_links = max_links if max_links is not None else settings.curation_max_links
        prompt = CURATION_PROMPT.format(
            max_links=max_links, domain=domain, urls="\n".join(urls)
        )
        payload = await self._complete_json(prompt, operation="filter_and_title_links")
        result = self._parse(payload, LinkListPayload, operation="filter_and_title_links")
        return [
            DiscoveredLink(url=l.url, title=l.title or l.url) for l in result.links[:max_links]
        ]

    async def ask_library(self, question: str, items: Sequence[KnowledgeItem]) -> str:
        """Answer a question grounded on stored knowledge items."""
        context = "\n---\n".join(
            f"Title: {item.title}\nSummary: {item.summary}\nContent: {item.transcription[:500]}"
            for item in items
        )
        response = await self._call(
            "ask_library",
            self.client.chat.completions.create,
            model=self.analysis_model,
            messages=[
                {
                    "role": "user",
                    "content": LIBRARY_PROMPT.format(question=question, context=context),
                }
            ],
        )
        answer = self._message_content(response)
        if not answer:
            raise AnalysisError("ask_library returned an empty answer")
        return answer

    async def ask_item(self, question: str, item: KnowledgeItem) -> str:
        """Answer a question about a single item using its full transcription."""
        prompt = ITEM_PROMPT.format(
            title=item.title,
            content=item.transcription[: self.max_input_chars],
            question=question,
        )
        response = await self._call(
            "ask_item",
            self.client.chat.completions.create,
            model=self.analysis_model,
            messages=[{"role": "user", "content": prompt}],
        )
        answer = self._message_content(response)
        if not answer:
            raise AnalysisError("ask_item returned an empty answer")
        return answer

    async def _complete_json(self, prompt: str, operation: str) -> str:
        response = await self._call(
            operation,
            self.client.chat.completions.create,
            model=self.analysis_model,
            messages=[{"role": "user", "content": prompt}],
            response_format={"type": "json_object"},
        )
        content = self._message_content(response)
        if not content:
            raise AnalysisError(f"{operation} returned an empty response")
        return content

    async def _search(self, prompt: str, operation: str) -> Any:
        return await self._call(
            operation,
            self.client.responses.create,
            model=self.search_model,
            tools=[{"type": "web_search"}],
            input=prompt,
        )

    async def _call(
        self,
        operation: str,
        func: Callable[..., Awaitable[Any]],
        *,
        call_timeout: float | None = None,
        **kwargs: Any,
    ) -> Any:
        """Run an SDK call under the timeout, retrying rate limits, mapping errors."""
        timeout = call_timeout if call_timeout is not None else self.timeout
        try:
            return await retry_with_exponential_backoff(
                self._with_timeout,
                func,
                timeout,
                max_retries=self.max_retries,
                retry_on_exceptions=(RateLimitError,),
                **kwargs,
            )
        except asyncio.TimeoutError as e:
            logger.error("analysis_call_timeout", operation=operation, timeout=timeout)
            raise AnalysisError(f"{operation} timed out after {timeout}s") from e
        except OpenAIError as e:
            logger.error("analysis_call_failed", operation=operation, error=str(e))
            raise AnalysisError(f"{operation} failed: {e}") from e

    @staticmethod
    async def _with_timeout(
        func: Callable[..., Awaitable[Any]], timeout: float, **kwargs: Any
    ) -> Any:
        return await asyncio.wait_for(func(**kwargs), timeout=timeout)

    @staticmethod
    def format_transcript(response: Any) -> str:
        """Render transcription segments as "[MM:SS] text" lines, or the plain text."""
        lines = []
        for segment in getattr(response, "segments", None) or []:
            text = (getattr(segment, "text", "") or "").strip()
            if not text:
                continue
            minutes, seconds = divmod(int(getattr(segment, "start", 0) or 0), 60)
            lines.append(f"[{minutes:02d}:{seconds:02d}] {text}")
        if lines:
            return "\n".join(lines)
        return (getattr(response, "text", "") or "").strip()

    @staticmethod
    def _message_content(response: Any) -> str:
        try:
            return response.choices[0].message.content or ""
        except (AttributeError, IndexError, TypeError):
            return ""

    @staticmethod
    def _citations(response: Any) -> list[tuple[str, str]]:
        """Collect (url, title) pairs from url_citation annotations."""
        citations: list[tuple[str, str]] = []
        for item in getattr(response, "output", None) or []:
            if getattr(item, "type", None) != "message":
                continue
            for part in getattr(item, "content", None) or []:
                for annotation in getattr(part, "annotations", None) or []:
                    if getattr(annotation, "type", None) != "url_citation":
                        continue
                    url = getattr(annotation, "url", None)
                    if url:
                        citations.append((url, getattr(annotation, "title", "") or ""))
        return citations

    @staticmethod
    def _parse(payload: str, model: type[ModelT], operation: str) -> ModelT:
        """Validate a JSON payload, tolerating code fences and surrounding prose."""
        text = _FENCE_RE.sub("", payload.strip())
        try:
            data = json.loads(text)
        except json.JSONDecodeError:
            start, end = text.find("{"), text.rfind("}")
            if start == -1 or end <= start:
                raise AnalysisError(f"{operation} returned non-JSON output") from None
            try:
                data = json.loads(text[start : end + 1])
            except json.JSONDecodeError as e:
                raise AnalysisError(f"{operation} returned malformed JSON: {e}") from e

        try:
            return model.model_validate(data)
        except ValidationError as e:
            raise AnalysisError(f"{operation} returned an unexpected shape: {e}") from e
