"""Rating color scale for heatmap cells.

TMDb ratings run 1-10 (10 = best). The scale partitions that domain into
fixed, non-overlapping buckets whose lower bounds are inclusive, so a
rating of exactly 7.0 is "Good" and 6.99 is "Regular". Anything without a
rating or without votes lands in the NO_RATING bucket.
"""

from __future__ import annotations

from enum import Enum


class ColorBucket(Enum):
    """Heatmap bucket: (lower bound, label, display color)."""

    AWESOME = (9.0, "Awesome", "green-500")
    GREAT = (8.0, "Great", "green-400")
    GOOD = (7.0, "Good", "yellow-400")
    REGULAR = (6.0, "Regular", "orange-400")
    MEDIOCRE = (5.0, "Regular", "orange-500")
    BAD = (4.0, "Bad", "red-500")
    POOR = (3.0, "Bad", "red-600")
    GARBAGE = (0.0, "Garbage", "purple-600")
    NO_RATING = (None, "No rating", "gray-300")

    @property
    def lower_bound(self) -> float | None:
        return self.value[0]

    @property
    def label(self) -> str:
        return self.value[1]

    @property
    def color(self) -> str:
        return self.value[2]


# Descending by lower bound; the first bound <= rating wins.
_RATED_BUCKETS = (
    ColorBucket.AWESOME,
    ColorBucket.GREAT,
    ColorBucket.GOOD,
    ColorBucket.REGULAR,
    ColorBucket.MEDIOCRE,
    ColorBucket.BAD,
    ColorBucket.POOR,
)


def color_bucket(rating: float, vote_count: int) -> ColorBucket:
    """Pick the bucket for an episode rating.

    Args:
        rating: Average rating, 0 when unrated.
        vote_count: Number of votes behind the rating.

    Returns:
        The matching ColorBucket. NO_RATING when rating or vote_count is 0.
    """
    if not rating or not vote_count:
        return ColorBucket.NO_RATING
    for bucket in _RATED_BUCKETS:
        if rating >= bucket.lower_bound:
            return bucket
    return ColorBucket.GARBAGE


def color_legend() -> tuple[tuple[str, str, str], ...]:
    """Legend rows as (color, range, label), best bucket first."""
    return (
        (ColorBucket.AWESOME.color, "9.0 - 10", "Awesome"),
        (ColorBucket.GREAT.color, "8.0 - 8.9", "Great"),
        (ColorBucket.GOOD.color, "7.0 - 7.9", "Good"),
        (ColorBucket.REGULAR.color, "6.0 - 6.9", "Regular"),
        (ColorBucket.MEDIOCRE.color, "5.0 - 5.9", "Regular"),
        (ColorBucket.BAD.color, "4.0 - 4.9", "Bad"),
        (ColorBucket.POOR.color, "3.0 - 3.9", "Bad"),
        (ColorBucket.GARBAGE.color, "0.0 - 2.9", "Garbage"),
        (ColorBucket.NO_RATING.color, "-", "No rating"),
    )
