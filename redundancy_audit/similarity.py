"""Pairwise service similarity and duplicate-service detection."""

from __future__ import annotations

import logging
import math
from typing import Iterable, List, Optional, Sequence, Set, Tuple

from .deadline import Deadline
from .models import (
    EstimatedSavings,
    Level,
    MethodInfo,
    ServiceDuplicate,
    ServiceInfo,
    SimilarityResult,
)

logger = logging.getLogger(__name__)

METHOD_WEIGHT = 0.4
STRUCTURAL_WEIGHT = 0.3
IMPORT_WEIGHT = 0.2
INTERFACE_WEIGHT = 0.1

SIGNATURE_MATCH_THRESHOLD = 0.8
DUPLICATE_THRESHOLD = 0.7


def jaccard(first: Iterable[str], second: Iterable[str]) -> Optional[float]:
    """Jaccard overlap, or ``None`` when both sides are empty."""
    a: Set[str] = set(first)
    b: Set[str] = set(second)
    union = a | b
    if not union:
        return None
    return len(a & b) / len(union)


def compare_signatures(first: MethodInfo, second: MethodInfo) -> float:
    """Score two same-named methods on parameter types, return type and async-ness."""
    if len(first.parameters) != len(second.parameters):
        return 0.0
    if first.parameters:
        matching = sum(
            1 for p1, p2 in zip(first.parameters, second.parameters) if p1.type == p2.type
        )
        param_score = matching / len(first.parameters)
    else:
        param_score = 1.0
    return_score = 1.0 if first.return_type == second.return_type else 0.0
    async_score = 1.0 if first.is_async == second.is_async else 0.0
    return param_score * 0.5 + return_score * 0.3 + async_score * 0.2


def structural_similarity(first: ServiceInfo, second: ServiceInfo) -> float:
    comparisons = 0
    matches = 0
    for m1 in first.methods:
        for m2 in second.methods:
            if m1.name != m2.name:
                continue
            comparisons += 1
            if compare_signatures(m1, m2) >= SIGNATURE_MATCH_THRESHOLD:
                matches += 1
    return matches / comparisons if comparisons else 0.0


def migration_risk(first: ServiceInfo, second: ServiceInfo) -> Level:
    complexity = first.complexity + second.complexity
    loc = first.lines_of_code + second.lines_of_code
    if complexity > 50 or loc > 1000:
        return "high"
    if complexity > 20 or loc > 500:
        return "medium"
    return "low"


def consolidation_strategy(first: ServiceInfo, second: ServiceInfo) -> str:
    if first.group and second.group and first.group != second.group:
        return (
            f"Create shared package and import in both {first.group} "
            f"and {second.group} applications"
        )
    if first.group == second.group and first.group:
        return "Merge services within the same application"
    return "Extract common functionality to shared utility"


class SimilarityEngine:
    """Weighted blend of method, structural, import and interface overlap.

    A factor with nothing to compare on either side (for example neither
    service declares an interface) is left out and the remaining weights
    are rescaled, so identical services always score ``1.0``.
    """

    def __init__(self, duplicate_threshold: float = DUPLICATE_THRESHOLD) -> None:
        self.duplicate_threshold = duplicate_threshold

    def compare(self, first: ServiceInfo, second: ServiceInfo) -> SimilarityResult:
        methods1, methods2 = set(first.method_names), set(second.method_names)
        ifaces1 = {i.name for i in first.interfaces}
        ifaces2 = {i.name for i in second.interfaces}
        imports1, imports2 = set(first.imports), set(second.imports)

        method_score = jaccard(methods1, methods2)
        interface_score = jaccard(ifaces1, ifaces2)
        import_score = jaccard(imports1, imports2)
        structural_score = (
            structural_similarity(first, second) if method_score is not None else None
        )

        factors: List[Tuple[Optional[float], float]] = [
            (method_score, METHOD_WEIGHT),
            (structural_score, STRUCTURAL_WEIGHT),
            (import_score, IMPORT_WEIGHT),
            (interface_score, INTERFACE_WEIGHT),
        ]
        defined = [(value, weight) for value, weight in factors if value is not None]
        total_weight = sum(weight for _, weight in defined)
        if total_weight:
            score = sum(value * weight for value, weight in defined) / total_weight
        else:
            score = 0.0

        return SimilarityResult(
            score=max(0.0, min(1.0, score)),
            method_similarity=method_score or 0.0,
            interface_similarity=interface_score or 0.0,
            import_similarity=import_score or 0.0,
            structural_similarity=structural_score or 0.0,
            common_methods=sorted(methods1 & methods2),
            common_interfaces=sorted(ifaces1 & ifaces2),
            common_imports=sorted(imports1 & imports2),
        )

    def build_matrix(
        self,
        services: Sequence[ServiceInfo],
        deadline: Optional[Deadline] = None,
    ) -> List[List[float]]:
        """Symmetric N x N score matrix with ``1.0`` on the diagonal."""
        deadline = deadline or Deadline()
        size = len(services)
        matrix = [[0.0] * size for _ in range(size)]
        for i in range(size):
            deadline.check("similarity")
            matrix[i][i] = 1.0
            for j in range(i + 1, size):
                score = self.compare(services[i], services[j]).score
                matrix[i][j] = matrix[j][i] = score
        return matrix

    def find_duplicates(
        self,
        services: Sequence[ServiceInfo],
        deadline: Optional[Deadline] = None,
    ) -> List[ServiceDuplicate]:
        """Every unordered pair scoring above the duplicate threshold."""
        deadline = deadline or Deadline()
        duplicates: List[ServiceDuplicate] = []
        for i, first in enumerate(services):
            deadline.check("duplicates")
            for second in services[i + 1:]:
                result = self.compare(first, second)
                if result.score > self.duplicate_threshold:
                    duplicates.append(self._to_duplicate(first, second, result))
        logger.debug("Found %d duplicate service pair(s)", len(duplicates))
        return sorted(duplicates, key=lambda d: -d.similarity_score)

    @staticmethod
    def _to_duplicate(
        first: ServiceInfo, second: ServiceInfo, result: SimilarityResult
    ) -> ServiceDuplicate:
        return ServiceDuplicate(
            primary_service=first.path,
            duplicate_services=[second.path],
            similarity_score=round(result.score, 4),
            duplicated_methods=result.common_methods,
            consolidation_strategy=consolidation_strategy(first, second),
            estimated_savings=EstimatedSavings(
                lines_of_code=math.floor(second.lines_of_code * result.score),
                files=1,
                complexity=math.floor(second.complexity * result.score),
            ),
            migration_risk=migration_risk(first, second),
        )
