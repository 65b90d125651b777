"""Google PageSpeed Insights (Lighthouse) category scores."""
from __future__ import annotations

import logging
import time
from typing import Any

import requests
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from .analyzer import round_half_up
from .config import get_settings
from .schemas import PerformanceScores

logger = logging.getLogger(__name__)

PAGESPEED_ENDPOINT = "https://www.googleapis.com/pagespeedonline/v5/runPagespeed"
CATEGORIES = ("performance", "accessibility", "best-practices", "seo")


def _pagespeed_retry():
    return retry(
        reraise=True,
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=8),
        retry=retry_if_exception_type((requests.ConnectionError, requests.Timeout)),
    )


@_pagespeed_retry()
def _request_pagespeed(url: str) -> requests.Response:
    settings = get_settings()
    params: list[tuple[str, str]] = [("url", url), ("strategy", settings.pagespeed_strategy)]
    params.extend(("category", category) for category in CATEGORIES)
    if settings.pagespeed_api_key:
        params.append(("key", settings.pagespeed_api_key))
    return requests.get(PAGESPEED_ENDPOINT, params=params, timeout=settings.pagespeed_timeout)


def _category_score(categories: dict[str, Any], name: str) -> int:
    entry = categories.get(name) or {}
    value = entry.get("score") or 0
    return round_half_up(float(value) * 100)


def parse_pagespeed_payload(payload: dict[str, Any]) -> PerformanceScores | None:
    """Pull the four category scores out of a PageSpeed API response body."""

    if not isinstance(payload, dict):
        return None
    lighthouse = payload.get("lighthouseResult")
    if not isinstance(lighthouse, dict):
        return None
    categories = lighthouse.get("categories") or {}
    return PerformanceScores(
        performance=_category_score(categories, "performance"),
        accessibility=_category_score(categories, "accessibility"),
        best_practices=_category_score(categories, "best-practices"),
        seo=_category_score(categories, "seo"),
    )


def fetch_performance_scores(url: str) -> PerformanceScores | None:
    """Return Lighthouse scores for ``url`` or ``None`` when unavailable.

    Unavailability covers a disabled lookup, rate limiting, error responses
    and transport failures; callers treat ``None`` as "no data".
    """

    if not get_settings().pagespeed_enabled:
        logger.debug("PageSpeed lookup disabled; skipping %s", url)
        return None

    start = time.perf_counter()
    try:
        response = _request_pagespeed(url)
    except requests.RequestException as exc:
        logger.warning("PageSpeed request for %s failed: %s", url, exc)
        return None

    if response.status_code == 429:
        logger.warning("PageSpeed API rate limited for %s", url)
        return None
    if not response.ok:
        logger.warning(
            "PageSpeed API failed for %s: %s %s", url, response.status_code, response.reason
        )
        return None

    try:
        payload = response.json()
    except ValueError as exc:
        logger.warning("PageSpeed returned invalid JSON for %s: %s", url, exc)
        return None

    scores = parse_pagespeed_payload(payload)
    logger.info(
        "Fetched PageSpeed scores for %s in %.2fs", url, time.perf_counter() - start
    )
    return scores
