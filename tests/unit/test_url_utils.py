"""Unit tests for URL normalization and link de-duplication."""

import pytest

from videomind.core.ingestion.web_scraping.models import DiscoveredLink
from videomind.core.ingestion.web_scraping.url_utils import (
    bare_host,
    dedup_key,
    dedup_links,
    domain_of,
    is_social_url,
    normalize_url,
    same_domain,
    title_from_url,
)


class TestNormalizeUrl:
    """Tests for normalize_url."""

    def test_adds_https_scheme(self):
        """Bare hosts default to https."""
        assert normalize_url("example.com/blog") == "https://example.com/blog"

    def test_trims_whitespace(self):
        assert normalize_url("  https://example.com/a  ") == "https://example.com/a"

    def test_keeps_existing_scheme(self):
        assert normalize_url("http://example.com/a") == "http://example.com/a"

    def test_lowercases_scheme_and_host(self):
        """Host is case-insensitive, path is preserved."""
        assert normalize_url("HTTPS://Example.COM/Docs/Intro") == "https://example.com/Docs/Intro"

    @pytest.mark.parametrize(
        "url",
        [
            "example.com",
            " Example.com/path?q=1#frag ",
            "http://sub.example.org:8080/a/b",
            "https://example.com/",
            "example.com/docs #",
            "example.com ?",
            "f #",
        ],
    )
    def test_idempotent(self, url):
        """Normalizing a normalized URL returns it unchanged."""
        once = normalize_url(url)
        assert normalize_url(once) == once

    def test_empty_fragment_or_query_leaves_no_trailing_space(self):
        """Dropping an empty fragment or query does not expose inner whitespace."""
        assert normalize_url("example.com/docs #") == "https://example.com/docs"
        assert normalize_url("example.com ?") == "https://example.com"

    def test_unparseable_falls_back_to_trimmed_input(self):
        """Invalid ports make the URL unparseable; the trimmed string is returned."""
        assert normalize_url(" https://example.com:notaport/x ") == "https://example.com:notaport/x"

    def test_empty_input(self):
        assert normalize_url("   ") == ""


class TestDedup:
    """Tests for dedup_key and dedup_links."""

    def test_dedup_key_strips_query_and_fragment(self):
        assert dedup_key("https://a.com/post?page=2#top") == "https://a.com/post"

    def test_first_seen_title_kept(self):
        """Links differing only in query or fragment collapse onto the first one."""
        links = [
            DiscoveredLink(url="https://a.com/post?utm=1", title="First"),
            DiscoveredLink(url="https://a.com/other", title="Other"),
            DiscoveredLink(url="https://a.com/post#comments", title="Second"),
            DiscoveredLink(url="https://a.com/post", title="Third"),
        ]

        result = dedup_links(links)

        assert [link.title for link in result] == ["First", "Other"]
        assert result[0].url == "https://a.com/post?utm=1"

    def test_preserves_order(self):
        links = [DiscoveredLink(url=f"https://a.com/{i}", title=str(i)) for i in range(5)]
        assert dedup_links(links) == links


class TestDomains:
    """Tests for host and domain helpers."""

    def test_bare_host_strips_www(self):
        assert bare_host("https://www.example.com/a") == "example.com"

    def test_domain_of_bare_domain(self):
        assert domain_of("WWW.Example.com") == "example.com"

    @pytest.mark.parametrize(
        "url,domain,expected",
        [
            ("https://example.com/a", "example.com", True),
            ("https://www.example.com/a", "example.com", True),
            ("https://example.com/a", "www.example.com", True),
            ("https://blog.example.com/a", "example.com", False),
            ("https://example.com.evil.net/a", "example.com", False),
            ("https://other.com/a", "example.com", False),
            ("https://example.com/a", "", False),
        ],
    )
    def test_same_domain(self, url, domain, expected):
        assert same_domain(url, domain) is expected


class TestSocialAndTitles:
    """Tests for is_social_url and title_from_url."""

    @pytest.mark.parametrize(
        "url",
        [
            "https://www.youtube.com/watch?v=abc",
            "https://youtu.be/abc",
            "https://www.tiktok.com/@user/video/1",
            "https://vimeo.com/12345",
            "https://x.com/user/status/1",
        ],
    )
    def test_social_urls(self, url):
        assert is_social_url(url)

    def test_regular_page_is_not_social(self):
        assert not is_social_url("https://docs.python.org/3/library/asyncio.html")

    def test_title_from_last_segment(self):
        assert title_from_url("https://a.com/blog/getting-started.html") == "Getting started"

    def test_title_falls_back_to_host(self):
        assert title_from_url("https://a.com/") == "a.com"
