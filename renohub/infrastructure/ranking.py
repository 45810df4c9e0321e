"""
Personalized ranking of inspiration feed rows
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Mapping, Tuple

from .mappers import parse_tags, parse_timestamp, to_float, to_int

COLLECT_CAP = 50
PINNED_BOOST = 5.0
FEATURED_BOOST = 3.0
COLLECT_WEIGHT = 0.4
LIKE_WEIGHT = 0.2
RATING_WEIGHT = 0.8
PROVIDER_AFFINITY_WEIGHT = 2.0
TYPE_AFFINITY_WEIGHT = 1.5

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


@dataclass
class CollectVectors:
    """How often a viewer collected each tag, provider and project type"""
    tags: Dict[str, int] = field(default_factory=dict)
    providers: Dict[str, int] = field(default_factory=dict)
    project_types: Dict[str, int] = field(default_factory=dict)

    @classmethod
    def from_collect_rows(cls, rows: Iterable[Mapping[str, Any]]) -> "CollectVectors":
        """Build vectors from collect rows joined with their portfolio"""
        vectors = cls()
        for row in rows:
            portfolio = row.get("portfolio")
            if not isinstance(portfolio, dict):
                continue

            for tag in parse_tags(portfolio.get("tags")):
                key = tag.lower()
                vectors.tags[key] = vectors.tags.get(key, 0) + 1

            provider_id = portfolio.get("provider_id")
            if provider_id:
                vectors.providers[provider_id] = vectors.providers.get(provider_id, 0) + 1

            project_type = portfolio.get("project_type")
            if project_type:
                key = project_type.lower()
                vectors.project_types[key] = vectors.project_types.get(key, 0) + 1
        return vectors


def score_row(row: Mapping[str, Any], vectors: CollectVectors) -> float:
    score = 0.0
    if row.get("pinned"):
        score += PINNED_BOOST
    if row.get("is_featured"):
        score += FEATURED_BOOST

    score += min(to_int(row.get("collect_count")), COLLECT_CAP) * COLLECT_WEIGHT
    score += min(to_int(row.get("like_count")), COLLECT_CAP) * LIKE_WEIGHT
    score += to_float(row.get("overall_rating")) * RATING_WEIGHT

    score += vectors.providers.get(row.get("provider_id"), 0) * PROVIDER_AFFINITY_WEIGHT
    project_type = row.get("project_type")
    if project_type:
        score += vectors.project_types.get(project_type.lower(), 0) * TYPE_AFFINITY_WEIGHT

    for tag in parse_tags(row.get("tags")):
        score += vectors.tags.get(tag.lower(), 0)
    return score


def rank_rows(
    rows: List[Mapping[str, Any]],
    vectors: CollectVectors,
    limit: int,
) -> List[Tuple[Mapping[str, Any], float]]:
    """
    Score rows, order by score then recency, and keep the first ``limit``.

    Returns (row, score) pairs.
    """
    scored = [(row, score_row(row, vectors)) for row in rows]
    scored.sort(
        key=lambda pair: (pair[1], parse_timestamp(pair[0].get("created_at")) or _EPOCH),
        reverse=True,
    )
    return scored[:limit]
