"""HTML -> bounded, denoised text plus the page's link inventory."""

from __future__ import annotations

import re
from urllib.parse import urljoin, urlsplit

from bs4 import BeautifulSoup, Comment, Tag

from src.enrichment.errors import EmptyContent
from src.enrichment.models import ExtractedContent

MAX_BODY_CHARS = 8000
MIN_CONTENT_CHARS = 50
MAX_LINKS = 50

# Subtrees that never carry readable content
_REMOVE_TAGS = ["script", "style", "noscript", "template", "svg", "iframe"]

# Site chrome stripped from the main region before reading its text
_CHROME_TAGS = ["nav", "header", "footer", "aside", "form"]

# Main-content landmarks, highest priority first
_MAIN_SELECTORS = ("main", "article", '[role="main"]', "#content", "#main")

_SKIP_HREF_PREFIXES = ("#", "javascript:", "mailto:", "tel:", "data:")

_WHITESPACE_RE = re.compile(r"\s+")
_SENTENCE_END_RE = re.compile(r"[.!?](?=\s)")


def _collapse(text: str) -> str:
    return _WHITESPACE_RE.sub(" ", text).strip()


def _meta_content(soup: BeautifulSoup, **attrs: str) -> str:
    tag = soup.find("meta", attrs=attrs)
    if tag and tag.get("content"):
        return _collapse(str(tag["content"]))
    return ""


def _extract_title(soup: BeautifulSoup) -> str:
    if soup.title:
        title = _collapse(soup.title.get_text())
        if title:
            return title
    return _meta_content(soup, property="og:title")


def _extract_description(soup: BeautifulSoup) -> str:
    return _meta_content(soup, name="description") or _meta_content(soup, property="og:description")


def _region_text(node: Tag) -> str:
    """Visible text of *node* with navigation chrome removed.

    Works on a re-parsed copy so the caller's tree keeps its links.
    """
    region = BeautifulSoup(str(node), "lxml")
    for tag in region.find_all(_CHROME_TAGS):
        tag.decompose()
    return _collapse(region.get_text(separator=" "))


def _main_text(soup: BeautifulSoup, min_chars: int) -> str:
    """Text of the first landmark region long enough to matter, else the whole body."""
    for selector in _MAIN_SELECTORS:
        node = soup.select_one(selector)
        if node is None:
            continue
        text = _region_text(node)
        if len(text) >= min_chars:
            return text
    body = soup.body or soup
    return _region_text(body)


def _same_site(host: str, base_host: str) -> bool:
    return host.removeprefix("www.") == base_host.removeprefix("www.")


def _collect_links(soup: BeautifulSoup, base_url: str, max_links: int) -> tuple[tuple[str, ...], tuple[str, ...]]:
    """Return ``(internal_paths, external_hosts)`` in document order, deduplicated and capped."""
    base_host = (urlsplit(base_url).hostname or "").lower()
    internal: list[str] = []
    external: list[str] = []
    seen_paths: set[str] = set()
    seen_hosts: set[str] = set()

    for anchor in soup.find_all("a", href=True):
        href = str(anchor["href"]).strip()
        if not href or href.lower().startswith(_SKIP_HREF_PREFIXES):
            continue
        try:
            parts = urlsplit(urljoin(base_url, href))
            host = (parts.hostname or "").lower()
        except ValueError:
            continue
        if parts.scheme not in ("http", "https") or not host:
            continue

        if _same_site(host, base_host):
            path = parts.path.rstrip("/")
            if path and path not in seen_paths and len(internal) < max_links:
                seen_paths.add(path)
                internal.append(path)
        elif host not in seen_hosts and len(external) < max_links:
            seen_hosts.add(host)
            external.append(host)

    return tuple(internal), tuple(external)


def truncate_text(text: str, limit: int) -> str:
    """Cut *text* to at most *limit* characters, preferring sentence then word boundaries."""
    if len(text) <= limit:
        return text

    window = text[: limit + 1]
    floor = int(limit * 0.6)

    sentence_ends = [m.end() for m in _SENTENCE_END_RE.finditer(window) if m.end() <= limit]
    if sentence_ends and sentence_ends[-1] >= floor:
        return window[: sentence_ends[-1]]

    space = window.rfind(" ")
    if space > 0:
        return window[:space].rstrip()
    return text[:limit]


def extract(
    html: str,
    base_url: str,
    *,
    max_chars: int = MAX_BODY_CHARS,
    min_chars: int = MIN_CONTENT_CHARS,
    max_links: int = MAX_LINKS,
) -> ExtractedContent:
    """Parse *html* fetched from *base_url* into :class:`ExtractedContent`.

    Raises:
        EmptyContent: fewer than *min_chars* characters of readable text remain
            after scripts, styles and site chrome are removed.
    """
    soup = BeautifulSoup(html, "lxml")

    for tag in soup.find_all(_REMOVE_TAGS):
        tag.decompose()
    for comment in soup.find_all(string=lambda text: isinstance(text, Comment)):
        comment.extract()

    title = _extract_title(soup)
    description = _extract_description(soup)
    body_text = _main_text(soup, min_chars)

    if len(body_text) < min_chars:
        raise EmptyContent()

    internal_links, external_hosts = _collect_links(soup, base_url, max_links)

    return ExtractedContent(
        title=title,
        meta_description=description,
        body_text=truncate_text(body_text, max_chars),
        internal_links=internal_links,
        external_hosts=external_hosts,
    )


def merge_content(
    primary: ExtractedContent,
    extra: ExtractedContent,
    *,
    max_chars: int = MAX_BODY_CHARS,
    max_links: int = MAX_LINKS,
) -> ExtractedContent:
    """Fold a supplementary page into *primary*; the seed page's title and description win.

    The seed body is never cut to make room: *extra* only fills whatever is
    left under *max_chars*, and is dropped when that is less than
    ``MIN_CONTENT_CHARS``.
    """
    links = tuple(dict.fromkeys(primary.internal_links + extra.internal_links))[:max_links]
    hosts = tuple(dict.fromkeys(primary.external_hosts + extra.external_hosts))[:max_links]
    body = primary.body_text
    room = max_chars - len(body) - 2
    if room >= MIN_CONTENT_CHARS and extra.body_text:
        body = f"{body}\n\n{truncate_text(extra.body_text, room)}"
    return ExtractedContent(
        title=primary.title or extra.title,
        meta_description=primary.meta_description or extra.meta_description,
        body_text=body,
        internal_links=links,
        external_hosts=hosts,
    )
