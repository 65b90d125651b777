"""Shared data structures used across modules."""
from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from typing import Any, List, Union


@dataclass(frozen=True, slots=True)
class ImageInfo:
    src: str | None
    alt: str = ""


@dataclass(frozen=True, slots=True)
class OpenGraphTags:
    title: str = ""
    description: str = ""
    image: str = ""
    url: str = ""


@dataclass(frozen=True, slots=True)
class TwitterTags:
    card: str = ""
    title: str = ""
    description: str = ""
    image: str = ""


@dataclass(frozen=True, slots=True)
class PageMetadata:
    """Canonical SEO record extracted from a single HTML page.

    Every string field defaults to an empty string and every sequence to an
    empty list, so consumers only ever check for emptiness.
    """

    url: str
    title: str = ""
    description: str = ""
    h1: List[str] = field(default_factory=list)
    h2: List[str] = field(default_factory=list)
    images: List[ImageInfo] = field(default_factory=list)
    canonical: str = ""
    robots: str = ""
    og: OpenGraphTags = field(default_factory=OpenGraphTags)
    twitter: TwitterTags = field(default_factory=TwitterTags)
    json_ld: bool = False
    word_count: int = 0

    @property
    def missing_alt_count(self) -> int:
        return sum(1 for image in self.images if not image.alt)


@dataclass(frozen=True, slots=True)
class ScoreResult:
    score: int
    deductions: List[str] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class TextFieldDiff:
    diff: bool
    missing1: bool
    missing2: bool
    length1: int
    length2: int


@dataclass(frozen=True, slots=True)
class DescriptionDiff:
    diff: bool
    missing1: bool
    missing2: bool
    length1: int
    length2: int
    similarity: int


@dataclass(frozen=True, slots=True)
class HeadingDiff:
    count1: int
    count2: int
    missing1: bool
    missing2: bool


@dataclass(frozen=True, slots=True)
class ImageDiff:
    count1: int
    count2: int
    missing_alt1: int
    missing_alt2: int


@dataclass(frozen=True, slots=True)
class FieldMatch:
    val1: str
    val2: str
    match: bool


@dataclass(frozen=True, slots=True)
class OpenGraphDiff:
    missing1: bool
    missing2: bool
    title: FieldMatch
    description: FieldMatch
    image: FieldMatch
    url: FieldMatch


@dataclass(frozen=True, slots=True)
class TwitterDiff:
    card: FieldMatch
    title: FieldMatch
    description: FieldMatch
    image: FieldMatch


@dataclass(frozen=True, slots=True)
class WordCountDiff:
    count1: int
    count2: int
    diff: int


@dataclass(frozen=True, slots=True)
class ComparisonResult:
    title: TextFieldDiff
    description: DescriptionDiff
    h1: HeadingDiff
    images: ImageDiff
    og: OpenGraphDiff
    twitter: TwitterDiff
    word_count: WordCountDiff


@dataclass(frozen=True, slots=True)
class PerformanceScores:
    """Lighthouse category scores on a 0-100 scale."""

    performance: int
    accessibility: int
    best_practices: int
    seo: int


@dataclass(frozen=True, slots=True)
class CompetitorCandidate:
    url: str
    title: str


@dataclass(frozen=True, slots=True)
class SiteAnalysis:
    metadata: PageMetadata
    score: ScoreResult
    lighthouse: PerformanceScores | None = None


@dataclass(frozen=True, slots=True)
class CompetitorAnalysis:
    url: str
    data: PageMetadata
    score: ScoreResult
    comparison: ComparisonResult
    lighthouse: PerformanceScores | None = None


@dataclass(frozen=True, slots=True)
class CompetitorFailure:
    url: str
    error: str


CompetitorResult = Union[CompetitorAnalysis, CompetitorFailure]


@dataclass(frozen=True, slots=True)
class AnalysisReport:
    my_data: SiteAnalysis
    competitors: List[CompetitorResult] = field(default_factory=list)


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


def to_json(value: Any) -> Any:
    """Convert dataclasses into JSON-ready structures with camelCase keys."""

    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {
            _camel(f.name): to_json(getattr(value, f.name))
            for f in dataclasses.fields(value)
        }
    if isinstance(value, (list, tuple)):
        return [to_json(item) for item in value]
    if isinstance(value, dict):
        return {key: to_json(item) for key, item in value.items()}
    return value


def report_to_json(report: AnalysisReport) -> dict[str, Any]:
    """Build the ``/analyze`` response envelope.

    The target site is flattened so its metadata fields sit next to
    ``score`` and ``lighthouse``; competitors keep their metadata under
    ``data`` and failed competitors only carry ``url`` and ``error``.
    """

    my_data = to_json(report.my_data.metadata)
    my_data["score"] = to_json(report.my_data.score)
    my_data["lighthouse"] = to_json(report.my_data.lighthouse)
    return {
        "myData": my_data,
        "competitors": [to_json(item) for item in report.competitors],
    }
