"""Tests for the concurrent analysis pipeline."""

import threading
import time

import pytest

from seo_compare import pipeline
from seo_compare.schemas import (
    CompetitorAnalysis,
    CompetitorFailure,
    OpenGraphTags,
    PageMetadata,
    PerformanceScores,
)
from seo_compare.scrape import PageFetchError


def _meta(url: str, **overrides) -> PageMetadata:
    values = dict(
        url=url,
        title="A reasonably descriptive page title here",
        description="A meta description long enough to sit inside the recommended range.",
        h1=["Heading"],
        og=OpenGraphTags(title="OG", image="https://img.example/og.png"),
        word_count=400,
    )
    values.update(overrides)
    return PageMetadata(**values)


@pytest.fixture
def fake_network(monkeypatch):
    pages: dict[str, PageMetadata | Exception] = {}
    perf: dict[str, PerformanceScores | None] = {}
    calls: list[str] = []
    lock = threading.Lock()

    def fake_fetch_metadata(url: str) -> PageMetadata:
        with lock:
            calls.append(url)
        outcome = pages[url]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    def fake_perf(url: str):
        return perf.get(url)

    monkeypatch.setattr(pipeline, "fetch_metadata", fake_fetch_metadata)
    monkeypatch.setattr(pipeline, "fetch_performance_scores", fake_perf)
    return pages, perf, calls


def test_run_analysis_scores_and_compares_each_competitor(fake_network):
    pages, perf, _calls = fake_network
    pages["https://mine.example"] = _meta("https://mine.example", word_count=400)
    pages["https://one.example"] = _meta("https://one.example", title="", word_count=100)
    pages["https://two.example"] = _meta("https://two.example", word_count=900)
    perf["https://mine.example"] = PerformanceScores(90, 80, 70, 60)

    report = pipeline.run_analysis(
        "https://mine.example", ["https://one.example", "https://two.example"]
    )

    assert report.my_data.metadata.url == "https://mine.example"
    assert report.my_data.score.score == 100
    assert report.my_data.lighthouse == PerformanceScores(90, 80, 70, 60)
    assert [item.url for item in report.competitors] == [
        "https://one.example",
        "https://two.example",
    ]
    first, second = report.competitors
    assert isinstance(first, CompetitorAnalysis)
    assert first.score.deductions == ["Missing Title Tag", "Low word count (<300 words)"]
    assert first.comparison.title.missing2 is True
    assert first.comparison.word_count.diff == 300
    assert first.lighthouse is None
    assert second.comparison.word_count.count2 == 900


def test_failed_competitor_does_not_affect_others(fake_network):
    pages, _perf, _calls = fake_network
    pages["https://mine.example"] = _meta("https://mine.example")
    pages["https://down.example"] = PageFetchError("Failed to fetch https://down.example: 503 Service Unavailable")
    pages["https://up.example"] = _meta("https://up.example")

    report = pipeline.run_analysis(
        "https://mine.example", ["https://down.example", "https://up.example"]
    )

    failure, success = report.competitors
    assert isinstance(failure, CompetitorFailure)
    assert failure.url == "https://down.example"
    assert "503" in failure.error
    assert isinstance(success, CompetitorAnalysis)
    assert success.score.score == 100


def test_unexpected_competitor_error_is_captured(fake_network):
    pages, _perf, _calls = fake_network
    pages["https://mine.example"] = _meta("https://mine.example")
    pages["https://odd.example"] = ValueError("boom")

    report = pipeline.run_analysis("https://mine.example", ["https://odd.example"])

    assert report.competitors == [CompetitorFailure(url="https://odd.example", error="boom")]


def test_primary_site_failure_raises(fake_network):
    pages, _perf, _calls = fake_network
    pages["https://mine.example"] = PageFetchError("Failed to fetch https://mine.example: 404 Not Found")
    pages["https://one.example"] = _meta("https://one.example")

    with pytest.raises(pipeline.PrimarySiteError) as excinfo:
        pipeline.run_analysis("https://mine.example", ["https://one.example"])

    assert "404 Not Found" in str(excinfo.value)


def test_blank_competitors_are_skipped(fake_network):
    pages, _perf, calls = fake_network
    pages["https://mine.example"] = _meta("https://mine.example")
    pages["https://one.example"] = _meta("https://one.example")

    report = pipeline.run_analysis("https://mine.example", ["", "  ", "https://one.example"])

    assert [item.url for item in report.competitors] == ["https://one.example"]
    assert sorted(calls) == ["https://mine.example", "https://one.example"]


def test_failing_performance_lookup_degrades_to_none(fake_network, monkeypatch):
    pages, _perf, _calls = fake_network
    pages["https://mine.example"] = _meta("https://mine.example")

    def broken_perf(url):
        raise RuntimeError("unexpected")

    monkeypatch.setattr(pipeline, "fetch_performance_scores", broken_perf)

    report = pipeline.run_analysis("https://mine.example", [])

    assert report.my_data.lighthouse is None
    assert report.competitors == []


def test_primary_failure_does_not_wait_for_slow_competitors(monkeypatch):
    release = threading.Event()

    def fake_fetch_metadata(url: str) -> PageMetadata:
        if url == "https://mine.example":
            raise PageFetchError("Failed to fetch https://mine.example: 500 Server Error")
        release.wait(timeout=5)
        return _meta(url)

    monkeypatch.setattr(pipeline, "fetch_metadata", fake_fetch_metadata)
    monkeypatch.setattr(pipeline, "fetch_performance_scores", lambda url: None)

    start = time.perf_counter()
    try:
        with pytest.raises(pipeline.PrimarySiteError):
            pipeline.run_analysis("https://mine.example", ["https://slow.example"])
        elapsed = time.perf_counter() - start
    finally:
        release.set()

    assert elapsed < 1
