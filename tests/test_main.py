"""API tests for ``seo_compare.main``."""

import pytest
from fastapi.testclient import TestClient

import seo_compare.main as main_module
from seo_compare.competitors import CompetitorSearchError
from seo_compare.pipeline import PrimarySiteError
from seo_compare.schemas import (
    AnalysisReport,
    CompetitorAnalysis,
    CompetitorCandidate,
    CompetitorFailure,
    OpenGraphTags,
    PageMetadata,
    PerformanceScores,
    SiteAnalysis,
)
from seo_compare.analyzer import calculate_score, compare_pages


@pytest.fixture
def client():
    return TestClient(main_module.app)


def _report() -> AnalysisReport:
    mine = PageMetadata(
        url="https://mine.example",
        title="Mine",
        h1=["Welcome"],
        og=OpenGraphTags(title="Mine", image="https://mine.example/og.png"),
        json_ld=True,
        word_count=320,
    )
    rival = PageMetadata(url="https://rival.example", title="Rival", word_count=20)
    return AnalysisReport(
        my_data=SiteAnalysis(
            metadata=mine,
            score=calculate_score(mine),
            lighthouse=PerformanceScores(performance=91, accessibility=88, best_practices=100, seo=97),
        ),
        competitors=[
            CompetitorAnalysis(
                url="rival.example",
                data=rival,
                score=calculate_score(rival),
                comparison=compare_pages(mine, rival),
            ),
            CompetitorFailure(url="down.example", error="Failed to fetch https://down.example: timeout"),
        ],
    )


def test_analyze_returns_report_envelope(client, monkeypatch):
    captured = {}

    def fake_run(my_url, competitor_urls):
        captured["args"] = (my_url, competitor_urls)
        return _report()

    monkeypatch.setattr(main_module, "run_analysis", fake_run)

    response = client.post(
        "/analyze",
        json={"myUrl": " mine.example ", "competitors": ["rival.example", None, "down.example"]},
    )

    assert response.status_code == 200
    assert captured["args"] == ("mine.example", ["rival.example", "", "down.example"])
    body = response.json()
    my_data = body["myData"]
    assert my_data["url"] == "https://mine.example"
    assert my_data["jsonLd"] is True
    assert my_data["wordCount"] == 320
    assert my_data["score"]["deductions"][0] == "Title length not optimal (30-60 chars)"
    assert my_data["lighthouse"] == {
        "performance": 91,
        "accessibility": 88,
        "bestPractices": 100,
        "seo": 97,
    }

    rival, down = body["competitors"]
    assert rival["url"] == "rival.example"
    assert rival["data"]["title"] == "Rival"
    assert rival["lighthouse"] is None
    assert rival["comparison"]["wordCount"] == {"count1": 320, "count2": 20, "diff": 300}
    assert rival["comparison"]["images"] == {
        "count1": 0,
        "count2": 0,
        "missingAlt1": 0,
        "missingAlt2": 0,
    }
    assert rival["comparison"]["og"]["title"] == {"val1": "Mine", "val2": "", "match": False}
    assert "similarity" in rival["comparison"]["description"]
    assert down == {"url": "down.example", "error": "Failed to fetch https://down.example: timeout"}


@pytest.mark.parametrize(
    "payload",
    [
        {},
        {"myUrl": "mine.example"},
        {"myUrl": "mine.example", "competitors": []},
        {"myUrl": "", "competitors": ["a.example"]},
        {"myUrl": "   ", "competitors": ["a.example"]},
        {"myUrl": "mine.example", "competitors": "a.example"},
    ],
)
def test_analyze_rejects_invalid_payloads(client, payload):
    response = client.post("/analyze", json=payload)
    assert response.status_code == 400
    assert response.json() == {"error": "Missing URL or competitors"}


def test_analyze_limits_competitor_count(client):
    response = client.post(
        "/analyze",
        json={"myUrl": "mine.example", "competitors": ["a.com", "b.com", "c.com", "d.com"]},
    )
    assert response.status_code == 400
    assert "At most 3" in response.json()["error"]


def test_analyze_reports_primary_fetch_failure(client, monkeypatch):
    def fake_run(my_url, competitor_urls):
        raise PrimarySiteError("Failed to fetch https://mine.example: 404 Not Found")

    monkeypatch.setattr(main_module, "run_analysis", fake_run)

    response = client.post("/analyze", json={"myUrl": "mine.example", "competitors": ["a.com"]})

    assert response.status_code == 422
    assert response.json() == {
        "error": "Failed to fetch your URL: Failed to fetch https://mine.example: 404 Not Found"
    }


def test_analyze_hides_unexpected_errors(client, monkeypatch):
    def fake_run(my_url, competitor_urls):
        raise KeyError("surprise")

    monkeypatch.setattr(main_module, "run_analysis", fake_run)

    response = client.post("/analyze", json={"myUrl": "mine.example", "competitors": ["a.com"]})

    assert response.status_code == 500
    assert response.json() == {"error": "Internal server error"}


def test_competitors_endpoint_returns_candidates(client, monkeypatch):
    monkeypatch.setattr(
        main_module,
        "find_competitors",
        lambda url: [CompetitorCandidate(url="https://rival.com", title="Rival")],
    )

    response = client.post("/competitors", json={"url": "mine.com"})

    assert response.status_code == 200
    assert response.json() == {"competitors": [{"url": "https://rival.com", "title": "Rival"}]}


def test_competitors_endpoint_requires_url(client):
    response = client.post("/competitors", json={})
    assert response.status_code == 400
    assert response.json() == {"error": "URL is required"}


def test_competitors_endpoint_maps_search_errors(client, monkeypatch):
    def fake_find(url):
        raise CompetitorSearchError("Could not determine a domain for 'https://'")

    monkeypatch.setattr(main_module, "find_competitors", fake_find)

    response = client.post("/competitors", json={"url": "https://"})

    assert response.status_code == 422
    assert "Could not determine a domain" in response.json()["error"]


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}
