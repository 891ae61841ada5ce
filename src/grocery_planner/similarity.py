"""Edit-distance string similarity shared by categorization and dedup."""

from rapidfuzz.distance import Levenshtein


def similarity(a: str, b: str) -> float:
    """Return 1 - normalized Levenshtein distance of two case-folded strings.

    Both-empty inputs are identical and score 1.0.
    """
    left = a.lower()
    right = b.lower()
    if not left and not right:
        return 1.0
    return Levenshtein.normalized_similarity(left, right)


def best_match(name: str, candidates, threshold: float = 0.0) -> tuple[str | None, float]:
    """Find the most similar candidate scoring strictly above threshold.

    The earliest candidate wins ties.

    Returns:
        Tuple of (candidate or None, score)
    """
    best: str | None = None
    best_score = 0.0
    for candidate in candidates:
        score = similarity(name, candidate)
        if score > threshold and score > best_score:
            best = candidate
            best_score = score
    return best, best_score
