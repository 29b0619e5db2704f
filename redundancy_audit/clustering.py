"""Single-linkage clustering of services over the similarity matrix."""

from __future__ import annotations

import logging
from collections import Counter
from typing import List, Sequence

from .models import (
    ClusterType,
    ConsolidationRecommendation,
    ServiceCluster,
    ServiceInfo,
    SimilarityMatrix,
)

logger = logging.getLogger(__name__)

CLUSTER_THRESHOLD = 0.6
RECOMMENDATION_THRESHOLD = 0.5
HIGH_PRIORITY_THRESHOLD = 0.8

_CATEGORY_CLUSTER_TYPES = {
    "openai": ClusterType.OPENAI_SERVICES,
    "market-analysis": ClusterType.MARKET_ANALYSIS,
    "location": ClusterType.LOCATION_SERVICES,
}

BENEFITS = [
    "Eliminate duplicate code",
    "Reduce maintenance overhead",
    "Improve consistency",
    "Simplify testing",
]
RISKS = [
    "Potential breaking changes",
    "Increased coupling",
    "Migration complexity",
]


def consolidation_potential(members: Sequence[ServiceInfo], average_similarity: float) -> float:
    """Blend of similarity, total size and average complexity, each in [0, 1]."""
    total_loc = sum(s.lines_of_code for s in members)
    avg_complexity = sum(s.complexity for s in members) / len(members)
    return (
        average_similarity * 0.4
        + min(1.0, total_loc / 1000) * 0.3
        + min(1.0, avg_complexity / 50) * 0.3
    )


def dominant_cluster_type(members: Sequence[ServiceInfo]) -> ClusterType:
    counts = Counter(
        _CATEGORY_CLUSTER_TYPES.get(s.category, ClusterType.UTILITY_SERVICES) for s in members
    )
    # most_common keeps first-seen order among ties
    return counts.most_common(1)[0][0]


class ClusterEngine:
    """Groups services whose similarity to a seed exceeds the threshold."""

    def __init__(self, threshold: float = CLUSTER_THRESHOLD) -> None:
        self.threshold = threshold

    def cluster(
        self, services: Sequence[ServiceInfo], matrix: Sequence[Sequence[float]]
    ) -> List[ServiceCluster]:
        processed = set()
        clusters: List[ServiceCluster] = []
        for i in range(len(services)):
            if i in processed:
                continue
            members = [i]
            processed.add(i)
            for j in range(len(services)):
                if j not in processed and matrix[i][j] > self.threshold:
                    members.append(j)
                    processed.add(j)
            if len(members) < 2:
                continue
            clusters.append(self._to_cluster([services[k] for k in members], members, matrix))
        clusters.sort(key=lambda c: -c.consolidation_potential)
        logger.debug("Formed %d cluster(s)", len(clusters))
        return clusters

    @staticmethod
    def _to_cluster(
        members: List[ServiceInfo], indices: List[int], matrix: Sequence[Sequence[float]]
    ) -> ServiceCluster:
        pairs = [
            matrix[a][b] for pos, a in enumerate(indices) for b in indices[pos + 1:]
        ]
        average = sum(pairs) / len(pairs)
        return ServiceCluster(
            services=[s.path for s in members],
            average_similarity=average,
            cluster_type=dominant_cluster_type(members),
            consolidation_potential=consolidation_potential(members, average),
        )

    @staticmethod
    def recommend(clusters: Sequence[ServiceCluster]) -> List[ConsolidationRecommendation]:
        recommendations: List[ConsolidationRecommendation] = []
        for cluster in clusters:
            if cluster.consolidation_potential <= RECOMMENDATION_THRESHOLD:
                continue
            recommendations.append(
                ConsolidationRecommendation(
                    type="merge",
                    services=list(cluster.services),
                    description=(
                        f"Merge {cluster.cluster_type.value} services with "
                        f"{cluster.average_similarity * 100:.1f}% similarity"
                    ),
                    priority="high" if cluster.consolidation_potential > HIGH_PRIORITY_THRESHOLD else "medium",
                    effort="high" if len(cluster.services) > 3 else "medium",
                    benefits=list(BENEFITS),
                    risks=list(RISKS),
                )
            )
        return recommendations

    def build(
        self, services: Sequence[ServiceInfo], matrix: List[List[float]]
    ) -> SimilarityMatrix:
        clusters = self.cluster(services, matrix)
        return SimilarityMatrix(
            services=[s.name for s in services],
            paths=[s.path for s in services],
            matrix=[list(row) for row in matrix],
            clusters=clusters,
            recommendations=self.recommend(clusters),
        )
