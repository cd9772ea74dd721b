# core/rating.py

"""
Rating classification, bucket statistics, and score histograms.

Buckets are always evaluated highest threshold first: a score belongs to the first bucket
whose `min_score` it reaches. A score below every threshold is left unclassified (None);
there is no implicit catch-all bucket.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from models.rating_bucket import RatingBucket


@dataclass(frozen=True)
class RatingStats:
    label: str
    min_score: int
    count: int
    ratio: float


def sort_buckets(buckets: Iterable[RatingBucket]) -> list[RatingBucket]:
    """
    Returns the buckets ordered by `min_score`, highest first.

    Notes:
        - The sort is stable, so buckets sharing a threshold keep their relative order.
    """
    return sorted(buckets, key=lambda b: b.min_score, reverse=True)


def classify(score: float | None, buckets: Sequence[RatingBucket]) -> RatingBucket | None:
    """
    Finds the bucket a final score falls into.

    Args:
        score (float | None): A final percentage. None (undefined) is never classified.
        buckets (Sequence[RatingBucket]): Buckets already sorted descending by `min_score`.

    Returns:
        The first bucket with `min_score <= score`, or None if the score is below every threshold.
    """
    if score is None:
        return None

    for bucket in buckets:
        if bucket.min_score <= score:
            return bucket

    return None


def compute_stats(
    scores: Iterable[float | None],
    buckets: Sequence[RatingBucket],
) -> list[RatingStats]:
    """
    Counts how many scores fall into each bucket.

    Args:
        scores (Iterable[float | None]): Final percentages. Undefined (None) entries are ignored entirely.
        buckets (Sequence[RatingBucket]): Buckets already sorted descending by `min_score`.

    Returns:
        One `RatingStats` per bucket, in bucket order. Each ratio is `count / max(total, 1)`, where
        total is the number of defined scores, including unclassified ones.
    """
    defined = [s for s in scores if s is not None]
    counts = [0] * len(buckets)

    for score in defined:
        for i, bucket in enumerate(buckets):
            if bucket.min_score <= score:
                counts[i] += 1
                break

    total = max(len(defined), 1)

    return [
        RatingStats(
            label=bucket.label,
            min_score=bucket.min_score,
            count=counts[i],
            ratio=counts[i] / total,
        )
        for i, bucket in enumerate(buckets)
    ]


def histogram_bin_count(bin_width: int) -> int:
    return 100 // bin_width + 1


def histogram(scores: Iterable[float | None], bin_width: int) -> list[int]:
    """
    Bins final percentages into fixed-width buckets.

    Args:
        scores (Iterable[float | None]): Final percentages. Undefined (None) entries are skipped.
        bin_width (int): The bin width, between 1 and 100 inclusive.

    Returns:
        A list of `100 // bin_width + 1` counts. A score `s` lands in bin
        `min(floor(s / bin_width), bin_count - 1)`, so the last bin absorbs 100.

    Raises:
        ValueError: If `bin_width` is outside 1 to 100.
    """
    if isinstance(bin_width, bool) or not isinstance(bin_width, int):
        raise ValueError("Histogram bin width must be an integer.")

    if bin_width < 1 or bin_width > 100:
        raise ValueError("Histogram bin width must be between 1 and 100.")

    bin_count = histogram_bin_count(bin_width)
    bins = [0] * bin_count

    for score in scores:
        if score is None:
            continue

        index = math.floor(score / bin_width)
        index = max(0, min(index, bin_count - 1))
        bins[index] += 1

    return bins
