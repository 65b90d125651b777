"""Rubric scoring and pairwise comparison of extracted page metadata."""
from __future__ import annotations

import math

from .schemas import (
    ComparisonResult,
    DescriptionDiff,
    FieldMatch,
    HeadingDiff,
    ImageDiff,
    OpenGraphDiff,
    PageMetadata,
    ScoreResult,
    TextFieldDiff,
    TwitterDiff,
    WordCountDiff,
)

TITLE_LENGTH_RANGE = (30, 60)
DESCRIPTION_LENGTH_RANGE = (50, 160)
MIN_WORD_COUNT = 300
MAX_IMAGE_PENALTY = 10


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves going up (12.5 -> 13)."""

    return math.floor(value + 0.5)


def similarity(text1: str | None, text2: str | None) -> int:
    """Return the Jaccard similarity of two texts' word sets as a 0-100 score."""

    if not text1 or not text2:
        return 0
    tokens1 = set(text1.lower().split())
    tokens2 = set(text2.lower().split())
    union = tokens1 | tokens2
    if not union:
        # Both inputs were whitespace only, which tokenises identically.
        return 100
    return round_half_up(len(tokens1 & tokens2) / len(union) * 100)


def _outside(length: int, bounds: tuple[int, int]) -> bool:
    low, high = bounds
    return length < low or length > high


def image_alt_penalty(total: int, missing: int) -> int:
    """Penalty for images without alt text, proportional to the missing share.

    The ceiling of ``missing / total * 10`` is taken in exact integer
    arithmetic. A floating point evaluation gives 8 for 7 of 10 images
    (``7 / 10 * 10`` is 7.000000000000001), so results differ from a
    float-based implementation for shares like that one.
    """

    if total <= 0 or missing <= 0:
        return 0
    return min(MAX_IMAGE_PENALTY, -(-missing * 10 // total))


def calculate_score(meta: PageMetadata) -> ScoreResult:
    """Score a page out of 100 against the on-page SEO rubric.

    Checks run in a fixed order (title, description, h1, images, Open Graph,
    word count) and the deduction messages are returned in that same order.
    """

    score = 100
    deductions: list[str] = []

    if not meta.title:
        score -= 20
        deductions.append("Missing Title Tag")
    elif _outside(len(meta.title), TITLE_LENGTH_RANGE):
        score -= 5
        deductions.append("Title length not optimal (30-60 chars)")

    if not meta.description:
        score -= 20
        deductions.append("Missing Meta Description")
    elif _outside(len(meta.description), DESCRIPTION_LENGTH_RANGE):
        score -= 5
        deductions.append("Description length not optimal (50-160 chars)")

    if not meta.h1:
        score -= 15
        deductions.append("Missing H1 Tag")
    elif len(meta.h1) > 1:
        score -= 5
        deductions.append("Multiple H1 Tags")

    missing_alt = meta.missing_alt_count
    penalty = image_alt_penalty(len(meta.images), missing_alt)
    if penalty:
        score -= penalty
        deductions.append(f"{missing_alt} images missing Alt text")

    if not meta.og.title or not meta.og.image:
        score -= 10
        deductions.append("Incomplete Open Graph Tags")

    if meta.word_count < MIN_WORD_COUNT:
        score -= 10
        deductions.append("Low word count (<300 words)")

    return ScoreResult(score=max(0, score), deductions=deductions)


def _field_match(value1: str, value2: str) -> FieldMatch:
    return FieldMatch(val1=value1, val2=value2, match=value1 == value2)


def compare_pages(page1: PageMetadata, page2: PageMetadata) -> ComparisonResult:
    """Diff two pages field by field; ``1`` refers to ``page1`` and ``2`` to ``page2``."""

    return ComparisonResult(
        title=TextFieldDiff(
            diff=page1.title != page2.title,
            missing1=not page1.title,
            missing2=not page2.title,
            length1=len(page1.title),
            length2=len(page2.title),
        ),
        description=DescriptionDiff(
            diff=page1.description != page2.description,
            missing1=not page1.description,
            missing2=not page2.description,
            length1=len(page1.description),
            length2=len(page2.description),
            similarity=similarity(page1.description, page2.description),
        ),
        h1=HeadingDiff(
            count1=len(page1.h1),
            count2=len(page2.h1),
            missing1=not page1.h1,
            missing2=not page2.h1,
        ),
        images=ImageDiff(
            count1=len(page1.images),
            count2=len(page2.images),
            missing_alt1=page1.missing_alt_count,
            missing_alt2=page2.missing_alt_count,
        ),
        og=OpenGraphDiff(
            missing1=not page1.og.title or not page1.og.image,
            missing2=not page2.og.title or not page2.og.image,
            title=_field_match(page1.og.title, page2.og.title),
            description=_field_match(page1.og.description, page2.og.description),
            image=_field_match(page1.og.image, page2.og.image),
            url=_field_match(page1.og.url, page2.og.url),
        ),
        twitter=TwitterDiff(
            card=_field_match(page1.twitter.card, page2.twitter.card),
            title=_field_match(page1.twitter.title, page2.twitter.title),
            description=_field_match(page1.twitter.description, page2.twitter.description),
            image=_field_match(page1.twitter.image, page2.twitter.image),
        ),
        word_count=WordCountDiff(
            count1=page1.word_count,
            count2=page2.word_count,
            diff=abs(page1.word_count - page2.word_count),
        ),
    )
