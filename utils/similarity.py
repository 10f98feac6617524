"""
String similarity for product title matching.

Ratings are the Dice coefficient over character bigrams of the normalized
strings, in [0, 1].
"""

from collections import Counter
from dataclasses import dataclass
from typing import Generic, Optional, Sequence, TypeVar

from utils.text_utils import normalize_product_name

DEFAULT_THRESHOLD = 0.5

T = TypeVar("T")


@dataclass(frozen=True)
class BestMatch(Generic[T]):
    """Best scoring candidate and its rating."""
    entry: T
    rating: float


def _bigrams(text: str) -> Counter:
    return Counter(text[i:i + 2] for i in range(len(text) - 1))


def dice_coefficient(first: str, second: str) -> float:
    """
    Dice coefficient of two already-normalized strings.

    Equal non-empty strings rate 1.0. Anything shorter than two characters
    has no bigrams and rates 0.0 unless equal. Two empty strings are the
    exception and rate 0.0, so titles that normalize to nothing never match.
    """
    if not first or not second:
        return 0.0
    if first == second:
        return 1.0
    if len(first) < 2 or len(second) < 2:
        return 0.0

    first_bigrams = _bigrams(first)
    second_bigrams = _bigrams(second)
    overlap = sum((first_bigrams & second_bigrams).values())

    return 2.0 * overlap / (len(first) - 1 + len(second) - 1)


def score_best(query: str, candidates: Sequence[T]) -> Optional[BestMatch[T]]:
    """
    Best candidate for a query regardless of threshold.

    Candidates need a ``name`` attribute. Ties keep the earliest candidate.

    Returns:
        BestMatch, or None if there are no candidates
    """
    if not candidates:
        return None

    normalized_query = normalize_product_name(query)
    best: Optional[BestMatch[T]] = None

    for candidate in candidates:
        rating = dice_coefficient(
            normalized_query,
            normalize_product_name(candidate.name)
        )
        if best is None or rating > best.rating:
            best = BestMatch(entry=candidate, rating=rating)
            if rating == 1.0:
                break

    return best


def find_best_match(
    query: str,
    candidates: Sequence[T],
    threshold: float = DEFAULT_THRESHOLD,
) -> Optional[BestMatch[T]]:
    """
    Best candidate for a query if it clears the acceptance threshold.

    Args:
        query: Raw channel title
        candidates: Catalog entries with a ``name`` attribute
        threshold: Minimum accepted rating

    Returns:
        BestMatch, or None for an empty candidate list or a best rating
        below the threshold
    """
    best = score_best(query, candidates)
    if best is None or best.rating < threshold:
        return None
    return best
