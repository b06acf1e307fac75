"""
Similarity matcher.

Jaccard index over normalized word sets, expressed as an integer
percentage. Order and repetition of words do not affect the score.
"""

import re
from collections.abc import Iterable

from phasegate.core.models import ArtifactRecord, SimilarArtifact

MATCH_THRESHOLD = 30
STRONG_MATCH_THRESHOLD = 70
MIN_TOKEN_LENGTH = 3

_WHITESPACE = re.compile(r"\s+")
_DISALLOWED = re.compile(r"[^a-z0-9 ]")


def tokenize(text: str | None) -> frozenset[str]:
    """Lowercase, strip to ``[a-z0-9 ]``, split, and drop tokens of length <= 2."""
    if not text:
        return frozenset()
    normalized = _DISALLOWED.sub("", _WHITESPACE.sub(" ", text.lower()))
    return frozenset(t for t in normalized.split() if len(t) >= MIN_TOKEN_LENGTH)


def jaccard(left: frozenset[str], right: frozenset[str]) -> int:
    if not left or not right:
        return 0
    return round(100 * len(left & right) / len(left | right))


def similarity(text_a: str | None, text_b: str | None) -> int:
    """Similarity of two texts in [0, 100]."""
    return jaccard(tokenize(text_a), tokenize(text_b))


def find_similar(
    candidate_text: str,
    records: Iterable[ArtifactRecord],
    exclude_id: str | None = None,
    threshold: int = MATCH_THRESHOLD,
) -> list[SimilarArtifact]:
    """
    Rank stored records against a candidate.

    Args:
        candidate_text: Query text (name plus content of the candidate)
        records: Stored records in store order
        exclude_id: Record id to skip, so an artifact is never matched with itself
        threshold: Minimum score to include

    Returns:
        Matches with score >= threshold, highest first. The sort is stable,
        so equal scores keep store order.
    """
    candidate = tokenize(candidate_text)
    if not candidate:
        return []

    matches = []
    for record in records:
        if exclude_id is not None and record.id == exclude_id:
            continue
        score = jaccard(candidate, tokenize(record.match_text()))
        if score >= threshold:
            matches.append(
                SimilarArtifact(
                    id=record.id,
                    name=record.name,
                    phase=record.phase,
                    similarity=score,
                )
            )

    matches.sort(key=lambda m: m.similarity, reverse=True)
    return matches
