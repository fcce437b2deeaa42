"""URL normalization and link de-duplication helpers."""

import re
from collections.abc import Iterable
from urllib.parse import urlparse, urlunparse

from videomind.core.ingestion.web_scraping.models import DiscoveredLink

_SCHEME_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.\-]*://")

_SOCIAL_RE = re.compile(
    r"(youtube|youtu\.be|tiktok|instagram|vimeo|facebook|x\.com|twitter|linkedin)",
    re.IGNORECASE,
)


def normalize_url(url: str) -> str:
    """Normalize a user-supplied URL for fetching.

    - Trim whitespace
    - Default to https:// when no scheme is present
    - Lowercase scheme and host
    - Fall back to the trimmed input when it cannot be parsed

    The result is stable: normalizing an already normalized URL returns it unchanged.
    """
    raw = url.strip()
    if not raw:
        return raw

    candidate = raw if _SCHEME_RE.match(raw) else f"https://{raw}"
    try:
        parsed = urlparse(candidate)
        # Port access validates the netloc (raises ValueError on garbage)
        parsed.port
    except ValueError:
        return raw

    if not parsed.netloc:
        return raw

    # An empty query or fragment is dropped on rebuild and can expose trailing whitespace
    return urlunparse(
        parsed._replace(scheme=parsed.scheme.lower(), netloc=parsed.netloc.lower())
    ).strip()


def dedup_key(url: str) -> str:
    """Key used for link de-duplication: the URL without query string or fragment."""
    return url.split("#", 1)[0].split("?", 1)[0]


def dedup_links(links: Iterable[DiscoveredLink]) -> list[DiscoveredLink]:
    """Remove links sharing a dedup key, keeping the first-seen entry (and its title)."""
    seen: set[str] = set()
    unique: list[DiscoveredLink] = []
    for link in links:
        key = dedup_key(link.url)
        if key in seen:
            continue
        seen.add(key)
        unique.append(link)
    return unique


def bare_host(url: str) -> str:
    """Hostname of a URL without a leading ``www.``; empty when unparseable."""
    try:
        host = urlparse(url).hostname or ""
    except ValueError:
        return ""
    return host[4:] if host.startswith("www.") else host


def domain_of(url: str) -> str:
    """Target domain for a domain URL or bare domain string (``www.`` ignored)."""
    return bare_host(normalize_url(url))


def same_domain(url: str, domain: str) -> bool:
    """Whether ``url`` is hosted on ``domain``, ignoring the ``www.`` prefix."""
    domain = domain.lower()
    if domain.startswith("www."):
        domain = domain[4:]
    return bool(domain) and bare_host(url) == domain


def is_social_url(url: str) -> bool:
    """Whether a URL points at a social-media or video platform."""
    return bool(_SOCIAL_RE.search(url))


def title_from_url(url: str) -> str:
    """Readable fallback title derived from the last path segment."""
    try:
        parsed = urlparse(url)
    except ValueError:
        return url
    segments = [segment for segment in parsed.path.split("/") if segment]
    if not segments:
        return parsed.netloc or url
    words = re.sub(r"\.[a-z0-9]{2,5}$", "", segments[-1], flags=re.IGNORECASE)
    words = re.sub(r"[-_+]+", " ", words).strip()
    return words.capitalize() if words else url
