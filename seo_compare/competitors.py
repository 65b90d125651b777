"""Best-effort competitor discovery by scraping search result pages."""
from __future__ import annotations

import logging
import re
from typing import Iterable, Sequence
from urllib.parse import unquote, urlparse

import requests
from bs4 import BeautifulSoup

from .config import get_settings
from .schemas import CompetitorCandidate
from .scrape import normalise_url

logger = logging.getLogger(__name__)

GOOGLE_SEARCH_URL = "https://www.google.com/search"
DUCKDUCKGO_SEARCH_URL = "https://html.duckduckgo.com/html/"
SEARCH_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)
MIN_GOOGLE_RESULTS = 3
_UDDG_PATTERN = re.compile(r"uddg=([^&]+)")


class CompetitorSearchError(RuntimeError):
    """Raised when competitor discovery cannot run for the given URL."""


def domain_of(url: str) -> str:
    """Return the hostname of ``url`` without a leading ``www.``."""

    try:
        host = (urlparse(url).hostname or "").lower()
    except ValueError:
        return ""
    if host.startswith("www."):
        host = host[4:]
    return host


def _search(url: str, query: str) -> str | None:
    try:
        response = requests.get(
            url,
            params={"q": query},
            headers={"User-Agent": SEARCH_USER_AGENT},
            timeout=get_settings().request_timeout,
        )
    except requests.RequestException as exc:
        logger.warning("Search request to %s failed: %s", url, exc)
        return None
    if not response.ok:
        logger.info("Search request to %s returned status %s", url, response.status_code)
        return None
    return response.text


def parse_google_results(html: str) -> list[CompetitorCandidate]:
    soup = BeautifulSoup(html, "html.parser")
    results: list[CompetitorCandidate] = []
    for block in soup.select("div.g"):
        link = block.find("a", href=True)
        heading = block.find("h3")
        if not link or not heading:
            continue
        href = link["href"]
        title = heading.get_text().strip()
        if title and href.startswith("http"):
            results.append(CompetitorCandidate(url=href, title=title))
    return results


def parse_duckduckgo_results(html: str) -> list[CompetitorCandidate]:
    """Parse the HTML-only DuckDuckGo results page.

    Result links are wrapped in ``//duckduckgo.com/l/?uddg=<target>``
    redirects; the target is decoded when present.
    """
    soup = BeautifulSoup(html, "html.parser")
    results: list[CompetitorCandidate] = []
    for anchor in soup.select(".result__a"):
        href = anchor.get("href")
        if not href:
            continue
        if href.startswith("//duckduckgo.com/l/"):
            match = _UDDG_PATTERN.search(href)
            if match:
                href = unquote(match.group(1))
        results.append(CompetitorCandidate(url=href, title=anchor.get_text().strip()))
    return results


def search_google(query: str) -> list[CompetitorCandidate]:
    html = _search(GOOGLE_SEARCH_URL, query)
    return parse_google_results(html) if html else []


def search_duckduckgo(query: str) -> list[CompetitorCandidate]:
    html = _search(DUCKDUCKGO_SEARCH_URL, query)
    return parse_duckduckgo_results(html) if html else []


def filter_candidates(
    candidates: Iterable[CompetitorCandidate],
    own_domain: str,
    excluded_domains: Sequence[str],
    limit: int,
) -> list[CompetitorCandidate]:
    """Keep the first result per domain, skipping our own and excluded domains."""

    seen = {own_domain, *(domain.lower() for domain in excluded_domains)}
    unique: list[CompetitorCandidate] = []
    for candidate in candidates:
        if len(unique) >= limit:
            break
        candidate_domain = domain_of(candidate.url)
        if not candidate_domain or candidate_domain in seen:
            continue
        seen.add(candidate_domain)
        unique.append(candidate)
    return unique


def find_competitors(
    url: str,
    excluded_domains: Sequence[str] | None = None,
    limit: int | None = None,
) -> list[CompetitorCandidate]:
    """Suggest up to ``limit`` competitor sites for ``url``.

    Google is queried first and DuckDuckGo fills in when Google returns fewer
    than three results (it frequently serves a consent or captcha page).
    """

    settings = get_settings()
    if excluded_domains is None:
        excluded_domains = settings.excluded_domains
    if limit is None:
        limit = settings.competitor_limit

    domain = domain_of(normalise_url(url))
    if not domain:
        raise CompetitorSearchError(f"Could not determine a domain for {url!r}")

    query = f"{domain} competitors"
    candidates = search_google(query)
    logger.info("Google returned %d results for %r", len(candidates), query)
    if len(candidates) < MIN_GOOGLE_RESULTS:
        logger.info("Google returned few results, falling back to DuckDuckGo")
        candidates = candidates + search_duckduckgo(query)

    competitors = filter_candidates(candidates, domain, excluded_domains, limit)
    logger.info("Discovered %d competitors for %s", len(competitors), domain)
    return competitors
