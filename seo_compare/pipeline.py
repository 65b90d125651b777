"""Fetch, score and compare a target site against its competitors."""
from __future__ import annotations

import logging
import time
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from typing import Sequence

from .analyzer import calculate_score, compare_pages
from .config import get_settings
from .pagespeed import fetch_performance_scores
from .schemas import (
    AnalysisReport,
    CompetitorAnalysis,
    CompetitorFailure,
    CompetitorResult,
    PageMetadata,
    PerformanceScores,
    SiteAnalysis,
)
from .scrape import PageFetchError, fetch_metadata, normalise_url

logger = logging.getLogger(__name__)


class PrimarySiteError(RuntimeError):
    """Raised when the site being analysed cannot be fetched."""


def _performance_result(future: Future, url: str) -> PerformanceScores | None:
    try:
        return future.result()
    except Exception as exc:
        logger.error("PageSpeed lookup for %s raised: %s", url, exc, exc_info=True)
        return None


def _competitor_result(
    url: str,
    meta_future: Future,
    perf_future: Future,
    mine: PageMetadata,
) -> CompetitorResult:
    try:
        data: PageMetadata = meta_future.result()
    except PageFetchError as exc:
        return CompetitorFailure(url=url, error=str(exc))
    except Exception as exc:
        logger.error("Failed to analyse competitor %s: %s", url, exc, exc_info=True)
        return CompetitorFailure(url=url, error=str(exc) or exc.__class__.__name__)

    return CompetitorAnalysis(
        url=url,
        data=data,
        score=calculate_score(data),
        comparison=compare_pages(mine, data),
        lighthouse=_performance_result(perf_future, url),
    )


def run_analysis(my_url: str, competitor_urls: Sequence[str]) -> AnalysisReport:
    """Analyse ``my_url`` and each competitor concurrently.

    Page fetches and PageSpeed lookups for every site are submitted at once.
    A failure to fetch ``my_url`` raises :class:`PrimarySiteError`; a failed
    competitor becomes a :class:`CompetitorFailure` entry and the rest carry
    on. Competitor results keep the order they were given in.
    """

    start = time.perf_counter()
    urls = [url.strip() for url in competitor_urls if url and url.strip()]
    settings = get_settings()
    max_workers = max(1, min(settings.max_workers, 2 * (len(urls) + 1)))
    logger.info(
        "Starting analysis of %s against %d competitors with %d workers",
        my_url,
        len(urls),
        max_workers,
    )

    executor = ThreadPoolExecutor(max_workers=max_workers)
    completed = False
    try:
        my_meta_future = executor.submit(fetch_metadata, my_url)
        my_perf_future = executor.submit(fetch_performance_scores, normalise_url(my_url))
        future_to_index: dict[Future, int] = {}
        perf_futures: list[Future] = []
        for index, url in enumerate(urls):
            future_to_index[executor.submit(fetch_metadata, url)] = index
            perf_futures.append(executor.submit(fetch_performance_scores, normalise_url(url)))

        try:
            mine = my_meta_future.result()
        except PageFetchError as exc:
            raise PrimarySiteError(str(exc)) from exc

        my_analysis = SiteAnalysis(
            metadata=mine,
            score=calculate_score(mine),
            lighthouse=_performance_result(my_perf_future, my_url),
        )

        results: dict[int, CompetitorResult] = {}
        for future in as_completed(future_to_index):
            index = future_to_index[future]
            url = urls[index]
            results[index] = _competitor_result(url, future, perf_futures[index], mine)
            if isinstance(results[index], CompetitorFailure):
                logger.warning("Competitor %s failed: %s", url, results[index].error)
            else:
                logger.info("Analysed competitor %s (%d/%d)", url, len(results), len(urls))
        completed = True
    finally:
        # On failure, queued work is cancelled and running fetches are left to
        # finish in the background rather than delaying the error.
        executor.shutdown(wait=completed, cancel_futures=not completed)

    logger.info("Analysis of %s completed in %.2fs", my_url, time.perf_counter() - start)
    return AnalysisReport(
        my_data=my_analysis,
        competitors=[results[index] for index in range(len(urls))],
    )
