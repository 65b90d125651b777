"""Page fetching and SEO metadata extraction."""
from __future__ import annotations

import logging
import re
import time

import requests
from bs4 import BeautifulSoup, Tag

from .config import get_settings
from .schemas import ImageInfo, OpenGraphTags, PageMetadata, TwitterTags

logger = logging.getLogger(__name__)

NON_VISIBLE_TAGS = ("script", "style", "noscript", "template")
HEAD_ONLY_TAGS = ("head", "title", "meta", "link", "base")


class PageFetchError(RuntimeError):
    """Raised when a page cannot be downloaded."""


def normalise_url(url: str) -> str:
    """Strip whitespace and default to https when no scheme is given."""

    value = (url or "").strip()
    if value and not re.match(r"^https?://", value, re.IGNORECASE):
        value = f"https://{value}"
    return value


def fetch_page(url: str, timeout: int | None = None) -> tuple[str, str]:
    """Download ``url`` and return the final URL with the response body."""

    settings = get_settings()
    try:
        response = requests.get(
            url,
            headers={"User-Agent": settings.user_agent},
            timeout=timeout or settings.request_timeout,
            allow_redirects=True,
        )
    except requests.RequestException as exc:
        logger.warning("Failed to fetch %s: %s", url, exc)
        raise PageFetchError(f"Failed to fetch {url}: {exc}") from exc

    if not response.ok:
        reason = response.reason or "HTTP error"
        logger.info("Fetch of %s returned status %s", url, response.status_code)
        raise PageFetchError(f"Failed to fetch {url}: {response.status_code} {reason}")

    return str(response.url), response.text


def _attr_pattern(value: str) -> re.Pattern[str]:
    return re.compile(rf"^{re.escape(value)}$", re.IGNORECASE)


def _meta_content(soup: BeautifulSoup, *lookups: tuple[str, str]) -> str:
    """Return the first non-empty ``content`` among ``(attribute, key)`` lookups."""

    for attribute, key in lookups:
        for tag in soup.find_all("meta", attrs={attribute: _attr_pattern(key)}):
            content = (tag.get("content") or "").strip()
            if content:
                return content
    return ""


def _twitter_content(soup: BeautifulSoup, key: str) -> str:
    name = f"twitter:{key}"
    return _meta_content(soup, ("name", name), ("property", name))


def _heading_texts(soup: BeautifulSoup, name: str) -> list[str]:
    return [tag.get_text().strip() for tag in soup.find_all(name)]


def _visible_word_count(soup: BeautifulSoup) -> int:
    container: Tag | BeautifulSoup | None = soup.body
    hidden = list(NON_VISIBLE_TAGS)
    if container is None:
        # html.parser does not imply <head>/<body>, so head content can sit
        # at the top level of the document.
        container = soup
        hidden.extend(HEAD_ONLY_TAGS)
    for tag in container(hidden):
        if not tag.decomposed:
            tag.decompose()
    return len(container.get_text(separator=" ").split())


def extract_metadata(html: str, url: str) -> PageMetadata:
    """Parse raw HTML into a :class:`PageMetadata` record.

    Parsing is lenient: absent or malformed markup falls back to empty values
    rather than raising.
    """
    soup = BeautifulSoup(html or "", "html.parser")

    title_tag = soup.find("title")
    title = title_tag.get_text().strip() if title_tag else ""
    description = _meta_content(soup, ("name", "description"))
    robots = _meta_content(soup, ("name", "robots"))

    canonical = ""
    canonical_tag = soup.find("link", rel=_attr_pattern("canonical"))
    if canonical_tag and canonical_tag.get("href"):
        canonical = canonical_tag["href"].strip()

    images = [
        ImageInfo(src=tag.get("src"), alt=tag.get("alt") or "")
        for tag in soup.find_all("img")
    ]

    og = OpenGraphTags(
        title=_meta_content(soup, ("property", "og:title")),
        description=_meta_content(soup, ("property", "og:description")),
        image=_meta_content(soup, ("property", "og:image"), ("property", "og:image:secure_url")),
        url=_meta_content(soup, ("property", "og:url")),
    )
    twitter = TwitterTags(
        card=_twitter_content(soup, "card"),
        title=_twitter_content(soup, "title"),
        description=_twitter_content(soup, "description"),
        image=_twitter_content(soup, "image"),
    )
    json_ld = soup.find("script", attrs={"type": _attr_pattern("application/ld+json")}) is not None

    h1 = _heading_texts(soup, "h1")
    h2 = _heading_texts(soup, "h2")
    # Must run last: counting words strips non-visible elements from the tree.
    word_count = _visible_word_count(soup)

    return PageMetadata(
        url=url,
        title=title,
        description=description,
        h1=h1,
        h2=h2,
        images=images,
        canonical=canonical,
        robots=robots,
        og=og,
        twitter=twitter,
        json_ld=json_ld,
        word_count=word_count,
    )


def fetch_metadata(url: str) -> PageMetadata:
    """Fetch ``url`` and extract its metadata, raising :class:`PageFetchError`."""

    target = normalise_url(url)
    if not target:
        raise PageFetchError("URL is empty")
    start = time.perf_counter()
    final_url, html = fetch_page(target)
    if final_url != target:
        logger.debug("Fetch of %s redirected to %s", target, final_url)
    metadata = extract_metadata(html, target)
    logger.info(
        "Extracted metadata for %s (%d words, %d images) in %.2fs",
        target,
        metadata.word_count,
        len(metadata.images),
        time.perf_counter() - start,
    )
    return metadata
