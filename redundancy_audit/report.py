"""Aggregation of stage outputs into one immutable result."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional, Sequence

from . import __version__
from .models import (
    AnalysisMetadata,
    AnalysisSummary,
    CodeDuplication,
    ComplexityMetric,
    ConsolidationOpportunity,
    CrossGroupDuplication,
    DependencyGraph,
    FunctionalityOverlap,
    MigrationStep,
    RedundancyAnalysisResult,
    ServiceDuplicate,
    ServiceInfo,
    ServiceSummary,
    SimilarityMatrix,
    UnusedInterface,
)


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


def duplication_lines_saved(duplication: CodeDuplication) -> int:
    """Lines removed by keeping one copy of a duplicated block."""
    return (len(duplication.occurrences) - 1) * duplication.occurrences[0].line_count


def estimated_code_reduction(
    duplicates: Sequence[ServiceDuplicate], duplications: Sequence[CodeDuplication]
) -> int:
    """Lines saved by removing duplicate services plus duplicated blocks.

    ``CodeDuplication.estimated_savings`` is measured in characters, so the
    block term is converted to lines here.
    """
    return sum(d.estimated_savings.lines_of_code for d in duplicates) + sum(
        duplication_lines_saved(d) for d in duplications
    )


class ReportAssembler:
    """Pure aggregation; performs no analysis of its own."""

    def __init__(self, workspace_root: str, version: str = __version__) -> None:
        self.workspace_root = workspace_root
        self.version = version

    def assemble(
        self,
        services: Sequence[ServiceInfo],
        files_analyzed: int,
        skipped_files: int,
        duplicates: Sequence[ServiceDuplicate],
        duplications: Sequence[CodeDuplication],
        similarity_matrix: SimilarityMatrix,
        graph: DependencyGraph,
        overlaps: Sequence[FunctionalityOverlap] = (),
        cross_group: Sequence[CrossGroupDuplication] = (),
        unused_interfaces: Sequence[UnusedInterface] = (),
        complexity_metrics: Sequence[ComplexityMetric] = (),
        opportunities: Sequence[ConsolidationOpportunity] = (),
        migration: Sequence[MigrationStep] = (),
        generated_at: Optional[str] = None,
        duration_seconds: float = 0.0,
    ) -> RedundancyAnalysisResult:
        summary = AnalysisSummary(
            total_files_analyzed=files_analyzed,
            total_services_analyzed=len(services),
            skipped_files=skipped_files,
            duplicate_services_found=len(duplicates),
            overlapping_functionality_count=len(overlaps),
            code_duplication_instances=len(duplications),
            unused_interfaces_count=len(unused_interfaces),
            circular_dependency_count=len(graph.circular_dependencies),
            unused_services_count=len(graph.unused_dependencies),
            consolidation_opportunities=len(opportunities),
            estimated_code_reduction=estimated_code_reduction(duplicates, duplications),
        )
        summaries: List[ServiceSummary] = [
            ServiceSummary(
                name=s.name,
                path=s.path,
                group=s.group,
                category=s.category,
                methods=len(s.methods),
                lines_of_code=s.lines_of_code,
                complexity=s.complexity,
            )
            for s in services
        ]
        return RedundancyAnalysisResult(
            metadata=AnalysisMetadata(
                generated_at=generated_at or utc_timestamp(),
                workspace_root=self.workspace_root,
                version=self.version,
                duration_seconds=round(duration_seconds, 3),
            ),
            summary=summary,
            services=summaries,
            duplicate_services=list(duplicates),
            functionality_overlaps=list(overlaps),
            unused_interfaces=list(unused_interfaces),
            code_duplications=list(duplications),
            similarity_matrix=similarity_matrix,
            cross_group_duplications=list(cross_group),
            dependency_graph=graph,
            complexity_metrics=list(complexity_metrics),
            consolidation_opportunities=list(opportunities),
            migration_strategy=list(migration),
            recommendations=list(similarity_matrix.recommendations),
        )

    def empty(self, error: Optional[str] = None) -> RedundancyAnalysisResult:
        return RedundancyAnalysisResult.empty(
            workspace_root=self.workspace_root,
            version=self.version,
            generated_at=utc_timestamp(),
            error=error,
        )
