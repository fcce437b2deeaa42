"""Proxy fetcher - retrieve remote pages through rotating public CORS relays."""

import asyncio
from collections.abc import Sequence
from urllib.parse import quote

import httpx
import structlog

from videomind.config import settings

logger = structlog.get_logger(__name__)

# Relays that fail upstream often answer 200 with an interstitial page instead
DENIAL_MARKERS = (
    "access denied",
    "bot check",
    "please enable javascript",
    "verify you are human",
)

DEFAULT_HEADERS = {
    "User-Agent": "Mozilla/5.0 (compatible; VideoMindBot/0.1)",
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
}


class ProxyFetcher:
    """Fetch raw page content through an ordered list of proxy endpoints.

    Each call makes a single pass over the templates and returns the first
    response body that passes the acceptance check, or None. Fetch failure is
    an expected outcome and is never raised to the caller.
    """

    def __init__(
        self,
        templates: Sequence[str] | None = None,
        timeout: float | None = None,
        min_body_chars: int | None = None,
        denial_markers: Sequence[str] = DENIAL_MARKERS,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """
        Initialize proxy fetcher.

        Args:
            templates: Proxy URL templates with {url} (raw) or {encoded} placeholders
            timeout: Per-attempt timeout in seconds (default: settings.proxy_timeout_seconds)
            min_body_chars: Bodies must be longer than this (default: settings.proxy_min_body_chars)
            denial_markers: Case-insensitive phrases that mark a body as an error page
            client: Optional shared httpx client (a short-lived client is used otherwise)
        """
        self.templates = list(templates if templates is not None else settings.proxy_templates)
        self.timeout = timeout if timeout is not None else settings.proxy_timeout_seconds
        self.min_body_chars = (
            min_body_chars if min_body_chars is not None else settings.proxy_min_body_chars
        )
        self.denial_markers = tuple(marker.lower() for marker in denial_markers)
        self.client = client

    def build_proxy_urls(self, url: str) -> list[str]:
        """Wrap a target URL in every proxy template, preserving order.

        Only the {url} and {encoded} placeholders are substituted; any other
        brace text in a template is left as is.
        """
        encoded = quote(url, safe="")
        return [
            template.replace("{encoded}", encoded).replace("{url}", url)
            for template in self.templates
        ]

    def is_acceptable(self, body: str) -> bool:
        """Acceptance check for a 2xx body: long enough and not a denial page."""
        if len(body) <= self.min_body_chars:
            return False
        lowered = body.lower()
        return not any(marker in lowered for marker in self.denial_markers)

    async def fetch(self, url: str) -> str | None:
        """
        Fetch a URL's raw content through the proxy list.

        Args:
            url: Absolute URL to retrieve

        Returns:
            First accepted response body, or None if every proxy was exhausted
        """
        if self.client is not None:
            return await self._fetch_with(self.client, url)

        async with httpx.AsyncClient(
            headers=DEFAULT_HEADERS,
            timeout=self.timeout,
            follow_redirects=True,
        ) as client:
            return await self._fetch_with(client, url)

    async def _fetch_with(self, client: httpx.AsyncClient, url: str) -> str | None:
        for attempt, proxy_url in enumerate(self.build_proxy_urls(url), start=1):
            body = await self._attempt(client, proxy_url)
            if body is None:
                continue

            if self.is_acceptable(body):
                logger.info(
                    "proxy_fetch_succeeded",
                    url=url,
                    attempt=attempt,
                    proxy=proxy_url,
                    body_chars=len(body),
                )
                return body

            logger.debug(
                "proxy_response_rejected",
                url=url,
                proxy=proxy_url,
                body_chars=len(body),
            )

        logger.warning("proxy_fetch_exhausted", url=url, proxies=len(self.templates))
        return None

    async def _attempt(self, client: httpx.AsyncClient, proxy_url: str) -> str | None:
        """Single GET through one proxy; None on timeout, transport error or non-2xx.

        The timeout bounds the whole attempt, body included, not each read.
        """
        try:
            response = await asyncio.wait_for(
                client.get(proxy_url, timeout=self.timeout), timeout=self.timeout
            )
        except (asyncio.TimeoutError, httpx.TimeoutException):
            logger.debug("proxy_attempt_timeout", proxy=proxy_url, timeout=self.timeout)
            return None
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.debug("proxy_attempt_failed", proxy=proxy_url, error=str(e))
            return None

        if not response.is_success:
            logger.debug(
                "proxy_attempt_bad_status",
                proxy=proxy_url,
                status_code=response.status_code,
            )
            return None

        return response.text
