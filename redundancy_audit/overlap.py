"""Method-level overlap within a category and duplication across groups."""

from __future__ import annotations

import logging
import re
from collections import defaultdict
from itertools import combinations
from typing import Dict, List, Optional, Sequence

from .deadline import Deadline
from .models import (
    CodeOccurrence,
    CrossGroupDuplication,
    DuplicatedElement,
    FunctionalityOverlap,
    Level,
    MethodInfo,
    MethodOverlap,
    ServiceInfo,
)
from .similarity import compare_signatures

logger = logging.getLogger(__name__)

CROSS_GROUP_METHOD_THRESHOLD = 0.7
INTERFACE_MATCH_SIMILARITY = 0.9


def method_differences(methods: Sequence[MethodInfo]) -> List[str]:
    differences: List[str] = []
    if len({len(m.parameters) for m in methods}) > 1:
        differences.append("Different parameter counts")
    if len({m.return_type for m in methods}) > 1:
        differences.append("Different return types")
    if len({m.is_async for m in methods}) > 1:
        differences.append("Mixed async/sync implementations")
    return differences


def kebab(name: str) -> str:
    return re.sub(r"(?<!^)(?=[A-Z])", "-", name).lower()


def impact_assessment(services: Sequence[ServiceInfo]) -> str:
    total_loc = sum(s.lines_of_code for s in services)
    avg_complexity = sum(s.complexity for s in services) / len(services)
    if total_loc > 1000 and avg_complexity > 10:
        return "High impact: Significant code reduction and complexity improvement expected"
    if total_loc > 500 or avg_complexity > 5:
        return "Medium impact: Moderate code reduction and maintainability improvement"
    return "Low impact: Minor code reduction but improved organization"


class FunctionalityOverlapAnalyzer:
    """Finds method names shared by several services of the same category."""

    def analyze(
        self,
        services: Sequence[ServiceInfo],
        deadline: Optional[Deadline] = None,
    ) -> List[FunctionalityOverlap]:
        deadline = deadline or Deadline()
        by_category: Dict[str, List[ServiceInfo]] = defaultdict(list)
        for service in services:
            by_category[service.category].append(service)

        overlaps: List[FunctionalityOverlap] = []
        for category in sorted(by_category):
            members = by_category[category]
            if len(members) < 2:
                continue
            deadline.check("overlap")
            overlap = self._analyze_category(category, members)
            if overlap is not None:
                overlaps.append(overlap)
        return overlaps

    def _analyze_category(
        self, category: str, members: List[ServiceInfo]
    ) -> Optional[FunctionalityOverlap]:
        by_name: Dict[str, List[tuple]] = defaultdict(list)
        for service in members:
            seen = set()
            for method in service.methods:
                if method.name in seen:
                    continue
                seen.add(method.name)
                by_name[method.name].append((service, method))

        overlapping: List[MethodOverlap] = []
        occurrences = 0
        for name in sorted(by_name):
            entries = by_name[name]
            if len(entries) < 2:
                continue
            occurrences += len(entries)
            methods = [m for _, m in entries]
            scores = [compare_signatures(a, b) for a, b in combinations(methods, 2)]
            overlapping.append(
                MethodOverlap(
                    method_name=name,
                    services=[s.path for s, _ in entries],
                    similarity_score=round(sum(scores) / len(scores), 4),
                    differences=method_differences(methods),
                )
            )
        if not overlapping:
            return None

        total_methods = sum(len(s.methods) for s in members)
        groups = sorted({s.group for s in members if s.group})
        if len(groups) > 1:
            suggestion = (
                f"Create shared {category} package and remove duplicates from "
                + " and ".join(groups)
            )
        else:
            suggestion = f"Merge {len(members)} {category} services into single optimized service"

        return FunctionalityOverlap(
            category=category,
            services=[s.path for s in members],
            overlapping_methods=overlapping,
            overlap_percentage=round(100 * occurrences / total_methods, 2) if total_methods else 0.0,
            suggested_consolidation=suggestion,
            impact_assessment=impact_assessment(members),
            extraction_target=f"packages/shared-{category}/",
        )


class CrossGroupDuplicationAnalyzer:
    """Compares every pair of services that come from different groups."""

    def __init__(self, service_suffix: str = "Service") -> None:
        self.service_suffix = service_suffix

    def analyze(
        self,
        services: Sequence[ServiceInfo],
        deadline: Optional[Deadline] = None,
    ) -> List[CrossGroupDuplication]:
        deadline = deadline or Deadline()
        results: List[CrossGroupDuplication] = []
        for first, second in combinations(services, 2):
            if first.group == second.group:
                continue
            deadline.check("cross-group")
            elements = self.duplicated_elements(first, second)
            if elements:
                results.append(self._to_duplication(first, second, elements))
        return results

    @staticmethod
    def duplicated_elements(first: ServiceInfo, second: ServiceInfo) -> List[DuplicatedElement]:
        elements: List[DuplicatedElement] = []
        second_methods = {m.name: m for m in second.methods}
        for method in first.methods:
            other = second_methods.get(method.name)
            if other is None:
                continue
            score = compare_signatures(method, other)
            if score <= CROSS_GROUP_METHOD_THRESHOLD:
                continue
            elements.append(
                DuplicatedElement(
                    type="method",
                    name=method.name,
                    first_location=CodeOccurrence(
                        file=first.path, start_line=method.start_line,
                        end_line=method.end_line, code=method.body,
                    ),
                    second_location=CodeOccurrence(
                        file=second.path, start_line=other.start_line,
                        end_line=other.end_line, code=other.body,
                    ),
                    similarity=round(score, 4),
                    differences=method_differences([method, other]),
                )
            )

        second_ifaces = {i.name: i for i in second.interfaces}
        for iface in first.interfaces:
            other_iface = second_ifaces.get(iface.name)
            if other_iface is None:
                continue
            elements.append(
                DuplicatedElement(
                    type="interface",
                    name=iface.name,
                    first_location=CodeOccurrence(
                        file=first.path, start_line=iface.line,
                        end_line=iface.line, code=iface.body,
                    ),
                    second_location=CodeOccurrence(
                        file=second.path, start_line=other_iface.line,
                        end_line=other_iface.line, code=other_iface.body,
                    ),
                    similarity=INTERFACE_MATCH_SIMILARITY,
                )
            )
        return elements

    def _to_duplication(
        self, first: ServiceInfo, second: ServiceInfo, elements: List[DuplicatedElement]
    ) -> CrossGroupDuplication:
        count = len(elements)
        effort: Level
        if count > 5:
            approach, effort = "shared_package", "high"
            rationale = "High duplication warrants shared package creation"
        elif count > 2:
            approach, effort = "shared_package", "medium"
            rationale = "Moderate duplication can be consolidated"
        else:
            approach, effort = "split_responsibility", "low"
            rationale = "Low duplication, consider splitting responsibilities"

        stem = first.name
        if self.service_suffix and stem.endswith(self.service_suffix) and stem != self.service_suffix:
            stem = stem[: -len(self.service_suffix)]
        return CrossGroupDuplication(
            first_service=first.path,
            second_service=second.path,
            duplicated_elements=elements,
            approach=approach,
            rationale=rationale,
            estimated_effort=effort,
            shared_package_name=f"shared-{kebab(stem)}",
            shared_dependencies=sorted(set(first.imports) & set(second.imports)),
        )
