"""Consolidation opportunities and the ordered migration plan."""

from __future__ import annotations

import math
from pathlib import Path
from typing import Dict, List, Sequence

from .models import (
    ConsolidationOpportunity,
    EstimatedSavings,
    FunctionalityOverlap,
    Level,
    MigrationStep,
    ServiceDuplicate,
    ServiceInfo,
)

_PRIORITY_ORDER = {"high": 0, "medium": 1, "low": 2}
_COMPLEXITY_ORDER = {"low": 0, "medium": 1, "high": 2}


def migration_complexity(service_count: int) -> Level:
    if service_count <= 2:
        return "low"
    if service_count <= 4:
        return "medium"
    return "high"


def package_stem(path: str) -> str:
    name = Path(path).name
    for suffix in (".service.ts", ".ts", ".tsx"):
        if name.endswith(suffix):
            return name[: -len(suffix)]
    return name


class ConsolidationPlanner:
    """Turns duplicates and overlaps into prioritised opportunities and steps."""

    def __init__(self, services: Sequence[ServiceInfo]) -> None:
        self._by_path: Dict[str, ServiceInfo] = {s.path: s for s in services}

    def opportunities(
        self,
        duplicates: Sequence[ServiceDuplicate],
        overlaps: Sequence[FunctionalityOverlap],
    ) -> List[ConsolidationOpportunity]:
        found: List[ConsolidationOpportunity] = []
        for duplicate in duplicates:
            removed = [self._by_path[p] for p in duplicate.duplicate_services if p in self._by_path]
            names = ", ".join(Path(p).name for p in duplicate.duplicate_services)
            found.append(
                ConsolidationOpportunity(
                    type="merge_services",
                    description=(
                        f"Merge duplicate services: {Path(duplicate.primary_service).name} and {names}"
                    ),
                    affected_services=[duplicate.primary_service, *duplicate.duplicate_services],
                    estimated_savings=EstimatedSavings(
                        lines_of_code=sum(s.lines_of_code for s in removed),
                        files=len(removed),
                        complexity=sum(s.complexity for s in removed),
                    ),
                    migration_complexity=migration_complexity(len(duplicate.duplicate_services)),
                    priority="high" if duplicate.similarity_score > 0.9 else "medium",
                )
            )

        for overlap in overlaps:
            count = len(overlap.overlapping_methods)
            if count <= 2:
                continue
            members = [self._by_path[p] for p in overlap.services if p in self._by_path]
            widest = max((len(s.methods) for s in members), default=0)
            ratio = count / widest if widest else 0.0
            found.append(
                ConsolidationOpportunity(
                    type="extract_common",
                    description=(
                        f"Extract common functionality from {len(overlap.services)} services "
                        f"with {count} overlapping methods"
                    ),
                    affected_services=list(overlap.services),
                    estimated_savings=EstimatedSavings(
                        lines_of_code=math.floor(sum(s.lines_of_code for s in members) * ratio * 0.5),
                        files=0,
                        complexity=math.floor(sum(s.complexity for s in members) * ratio * 0.3),
                    ),
                    migration_complexity="medium",
                    priority="high" if count > 5 else "medium",
                )
            )

        return sorted(
            found,
            key=lambda o: (_PRIORITY_ORDER[o.priority], _COMPLEXITY_ORDER[o.migration_complexity]),
        )

    @staticmethod
    def migration_steps(opportunities: Sequence[ConsolidationOpportunity]) -> List[MigrationStep]:
        """Ordered steps; each step depends on the one before it in its opportunity."""
        steps: List[MigrationStep] = []

        def add(description: str, kind: str, files: List[str], effort: Level, first: bool) -> None:
            order = len(steps) + 1
            steps.append(
                MigrationStep(
                    order=order,
                    description=description,
                    type=kind,
                    affected_files=files,
                    estimated_effort=effort,
                    dependencies=[] if first else [order - 1],
                )
            )

        for opp in opportunities:
            effort = opp.migration_complexity
            if opp.type == "merge_services":
                primary = opp.affected_services[0]
                add(
                    f"Create shared package for {opp.description}", "create",
                    [f"packages/shared-{package_stem(primary)}/"], effort, True,
                )
                add("Migrate primary service to shared package", "move", [primary], effort, False)
                add(
                    "Update imports and remove duplicate services", "delete",
                    list(opp.affected_services[1:]), "medium", False,
                )
            else:
                add(
                    f"Extract common functionality: {opp.description}", "create",
                    ["packages/shared-utilities/"], effort, True,
                )
                add(
                    "Update services to use extracted common functionality", "modify",
                    list(opp.affected_services), effort, False,
                )
        return steps
