"""Content extraction module - convert raw HTML into clean plain text."""

import re
from dataclasses import dataclass, field

import structlog
import trafilatura
from bs4 import BeautifulSoup
from soupsieve import SelectorSyntaxError

logger = structlog.get_logger(__name__)

# Removed before any text extraction
NON_CONTENT_SELECTORS = [
    "script",
    "style",
    "svg",
    "noscript",
    "iframe",
    "link",
    "meta",
    "head",
    "nav",
    "footer",
    "button",
    "select",
    "input",
    "textarea",
    "aside",
    ".ad",
    ".ads",
    ".advert",
    ".social",
    ".share",
]

# Ranked "main content" containers
MAIN_CONTENT_SELECTORS = [
    "main",
    "article",
    "[role=main]",
    "#content",
    ".content",
    ".post-content",
    ".entry-content",
    ".article-content",
    ".post",
    ".markdown-body",
]


@dataclass
class ExtractionConfig:
    """Configuration for content extraction."""

    remove_selectors: list[str] = field(default_factory=lambda: list(NON_CONTENT_SELECTORS))
    main_content_selectors: list[str] = field(
        default_factory=lambda: list(MAIN_CONTENT_SELECTORS)
    )
    use_trafilatura: bool = True


class ContentExtractor:
    """Extract clean text from HTML pages.

    Uses a priority cascade approach:
    1. Explicit CSS selector (user intent overrides heuristics)
    2. Ranked main-content containers (main, article, common class names)
    3. Trafilatura main-text extraction
    4. Full visible body text
    """

    def __init__(self, config: ExtractionConfig | None = None) -> None:
        """Initialize content extractor with configuration."""
        self.config = config or ExtractionConfig()

    def extract(self, raw_html: str, selector: str | None = None) -> str:
        """
        Extract plain text from raw HTML.

        Args:
            raw_html: Raw HTML document
            selector: Optional CSS selector scoping the extraction

        Returns:
            Extracted text, or an empty string when nothing usable was found
        """
        if not raw_html or not raw_html.strip():
            return ""

        soup = self._clean_soup(raw_html)

        if selector and selector.strip():
            text = self._extract_with_selector(soup, selector.strip())
            if text:
                logger.debug("selector_extraction_used", selector=selector, chars=len(text))
                return text
            logger.debug("selector_missed", selector=selector)

        text = self._extract_main_content(soup)
        if text:
            return text

        if self.config.use_trafilatura:
            text = self._extract_with_trafilatura(str(soup))
            if text:
                logger.debug("trafilatura_extraction_used", chars=len(text))
                return text

        return self._extract_body(soup)

    def _clean_soup(self, raw_html: str) -> BeautifulSoup:
        """Parse HTML and strip non-content elements."""
        soup = BeautifulSoup(raw_html, "html.parser")
        for css in self.config.remove_selectors:
            for element in soup.select(css):
                element.decompose()
        return soup

    def _extract_with_selector(self, soup: BeautifulSoup, selector: str) -> str:
        try:
            elements = soup.select(selector)
        except SelectorSyntaxError as e:
            logger.warning("invalid_selector", selector=selector, error=str(e))
            return ""

        texts = [self._element_text(element) for element in elements]
        return "\n\n".join(text for text in texts if text)

    def _extract_main_content(self, soup: BeautifulSoup) -> str:
        for css in self.config.main_content_selectors:
            element = soup.select_one(css)
            if element is None:
                continue
            text = self._element_text(element)
            if text:
                logger.debug("main_content_container_used", selector=css, chars=len(text))
                return text
        return ""

    def _extract_with_trafilatura(self, html: str) -> str:
        """Extract main content using Trafilatura library."""
        try:
            text = trafilatura.extract(
                html,
                include_comments=False,
                include_tables=True,
                favor_precision=True,
            )
        except Exception as e:
            logger.debug("trafilatura_extraction_failed", error=str(e))
            return ""
        return self._normalize_whitespace(text or "")

    def _extract_body(self, soup: BeautifulSoup) -> str:
        root = soup.body or soup
        return self._element_text(root)

    def _element_text(self, element) -> str:
        return self._normalize_whitespace(element.get_text(separator="\n", strip=True))

    @staticmethod
    def _normalize_whitespace(text: str) -> str:
        text = re.sub(r"[ \t]+", " ", text)
        text = re.sub(r"\n\s*\n+", "\n\n", text)
        return text.strip()
