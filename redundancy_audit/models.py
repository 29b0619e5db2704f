"""Core data models produced by the extraction, analysis, and reporting stages.

Every model is a frozen dataclass: the pipeline builds each entity once and
later stages only read from the completed set.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Literal, Optional

Level = Literal["low", "medium", "high"]


class DuplicationType(str, Enum):
    EXACT_MATCH = "exact_match"
    SIMILAR_LOGIC = "similar_logic"


class ClusterType(str, Enum):
    OPENAI_SERVICES = "openai_services"
    MARKET_ANALYSIS = "market_analysis"
    LOCATION_SERVICES = "location_services"
    UTILITY_SERVICES = "utility_services"


# ---------------------------------------------------------------------------
# Structural model
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Parameter:
    name: str
    type: str
    optional: bool = False
    default_value: Optional[str] = None


@dataclass(frozen=True)
class MethodInfo:
    name: str
    signature: str
    parameters: List[Parameter]
    return_type: str
    is_async: bool
    start_line: int
    end_line: int
    body: str


@dataclass(frozen=True)
class InterfaceInfo:
    name: str
    body: str
    line: int


@dataclass(frozen=True)
class ServiceInfo:
    """One class-like service declaration; ``path`` is its identity."""

    name: str
    path: str
    group: str
    category: str
    methods: List[MethodInfo]
    interfaces: List[InterfaceInfo]
    imports: List[str]
    exports: List[str]
    lines_of_code: int
    complexity: int
    injected_dependencies: List[str] = field(default_factory=list)

    @property
    def method_names(self) -> List[str]:
        return [m.name for m in self.methods]


@dataclass(frozen=True)
class ServiceSummary:
    name: str
    path: str
    group: str
    category: str
    methods: int
    lines_of_code: int
    complexity: int


# ---------------------------------------------------------------------------
# Similarity
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SimilarityResult:
    score: float
    method_similarity: float
    interface_similarity: float
    import_similarity: float
    structural_similarity: float
    common_methods: List[str] = field(default_factory=list)
    common_interfaces: List[str] = field(default_factory=list)
    common_imports: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class EstimatedSavings:
    lines_of_code: int = 0
    files: int = 0
    complexity: int = 0


@dataclass(frozen=True)
class ServiceDuplicate:
    primary_service: str
    duplicate_services: List[str]
    similarity_score: float
    duplicated_methods: List[str]
    consolidation_strategy: str
    estimated_savings: EstimatedSavings
    migration_risk: Level


# ---------------------------------------------------------------------------
# Code duplication
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class CodeOccurrence:
    file: str
    start_line: int
    end_line: int
    code: str
    context: str = ""
    hash: str = ""

    @property
    def line_count(self) -> int:
        return self.code.count("\n") + 1 if self.code else 0


@dataclass(frozen=True)
class CodeDuplication:
    pattern: str
    occurrences: List[CodeOccurrence]
    extraction_opportunity: str
    estimated_savings: int
    complexity: int
    type: DuplicationType


# ---------------------------------------------------------------------------
# Dependency graph
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class GraphNode:
    id: str
    name: str
    path: str
    group: str = ""
    category: str = ""


@dataclass(frozen=True)
class GraphEdge:
    source: str
    target: str
    kind: Literal["import", "injection"] = "import"
    strength: int = 1


@dataclass(frozen=True)
class CircularDependency:
    cycle: List[str]
    names: List[str]
    severity: Literal["medium", "high"]
    suggestion: str

    @property
    def edge_count(self) -> int:
        return len(self.cycle)


@dataclass(frozen=True)
class UnusedDependency:
    service: str
    path: str
    reason: str


@dataclass(frozen=True)
class DependencyGraph:
    nodes: List[GraphNode] = field(default_factory=list)
    edges: List[GraphEdge] = field(default_factory=list)
    circular_dependencies: List[CircularDependency] = field(default_factory=list)
    unused_dependencies: List[UnusedDependency] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Clustering
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ServiceCluster:
    services: List[str]
    average_similarity: float
    cluster_type: ClusterType
    consolidation_potential: float


@dataclass(frozen=True)
class ConsolidationRecommendation:
    type: str
    services: List[str]
    description: str
    priority: Level
    effort: Level
    benefits: List[str] = field(default_factory=list)
    risks: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class SimilarityMatrix:
    services: List[str] = field(default_factory=list)
    paths: List[str] = field(default_factory=list)
    matrix: List[List[float]] = field(default_factory=list)
    clusters: List[ServiceCluster] = field(default_factory=list)
    recommendations: List[ConsolidationRecommendation] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Overlap, cross-group duplication, interfaces, metrics
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class MethodOverlap:
    method_name: str
    services: List[str]
    similarity_score: float
    differences: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class FunctionalityOverlap:
    category: str
    services: List[str]
    overlapping_methods: List[MethodOverlap]
    overlap_percentage: float
    suggested_consolidation: str
    impact_assessment: str
    extraction_target: str


@dataclass(frozen=True)
class DuplicatedElement:
    type: Literal["method", "interface"]
    name: str
    first_location: CodeOccurrence
    second_location: CodeOccurrence
    similarity: float
    differences: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class CrossGroupDuplication:
    first_service: str
    second_service: str
    duplicated_elements: List[DuplicatedElement]
    approach: Literal["shared_package", "split_responsibility"]
    rationale: str
    estimated_effort: Level
    shared_package_name: str
    shared_dependencies: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class UnusedInterface:
    name: str
    file: str
    defined_at: int
    reason: str
    potential_usages: List[str] = field(default_factory=list)
    removal_safety: Literal["safe", "risky"] = "safe"


@dataclass(frozen=True)
class ComplexityMetric:
    file: str
    cyclomatic_complexity: int
    cognitive_complexity: int
    maintainability_index: float
    lines_of_code: int


# ---------------------------------------------------------------------------
# Consolidation planning
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ConsolidationOpportunity:
    type: Literal["merge_services", "extract_common"]
    description: str
    affected_services: List[str]
    estimated_savings: EstimatedSavings
    migration_complexity: Level
    priority: Level


@dataclass(frozen=True)
class MigrationStep:
    order: int
    description: str
    type: Literal["create", "move", "modify", "delete"]
    affected_files: List[str]
    estimated_effort: Level
    dependencies: List[int] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Aggregate result
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class AnalysisMetadata:
    generated_at: str
    workspace_root: str
    version: str
    duration_seconds: float = 0.0
    error: Optional[str] = None


@dataclass(frozen=True)
class AnalysisSummary:
    total_files_analyzed: int = 0
    total_services_analyzed: int = 0
    skipped_files: int = 0
    duplicate_services_found: int = 0
    overlapping_functionality_count: int = 0
    code_duplication_instances: int = 0
    unused_interfaces_count: int = 0
    circular_dependency_count: int = 0
    unused_services_count: int = 0
    consolidation_opportunities: int = 0
    estimated_code_reduction: int = 0


@dataclass(frozen=True)
class RedundancyAnalysisResult:
    metadata: AnalysisMetadata
    summary: AnalysisSummary = field(default_factory=AnalysisSummary)
    services: List[ServiceSummary] = field(default_factory=list)
    duplicate_services: List[ServiceDuplicate] = field(default_factory=list)
    functionality_overlaps: List[FunctionalityOverlap] = field(default_factory=list)
    unused_interfaces: List[UnusedInterface] = field(default_factory=list)
    code_duplications: List[CodeDuplication] = field(default_factory=list)
    similarity_matrix: SimilarityMatrix = field(default_factory=SimilarityMatrix)
    cross_group_duplications: List[CrossGroupDuplication] = field(default_factory=list)
    dependency_graph: DependencyGraph = field(default_factory=DependencyGraph)
    complexity_metrics: List[ComplexityMetric] = field(default_factory=list)
    consolidation_opportunities: List[ConsolidationOpportunity] = field(default_factory=list)
    migration_strategy: List[MigrationStep] = field(default_factory=list)
    recommendations: List[ConsolidationRecommendation] = field(default_factory=list)

    @classmethod
    def empty(
        cls,
        workspace_root: str,
        version: str,
        generated_at: str,
        error: Optional[str] = None,
    ) -> "RedundancyAnalysisResult":
        """Well-formed result with no findings, used when the pipeline fails."""
        return cls(
            metadata=AnalysisMetadata(
                generated_at=generated_at,
                workspace_root=workspace_root,
                version=version,
                error=error,
            )
        )

    @property
    def ok(self) -> bool:
        return self.metadata.error is None

    def top_recommendations(self, limit: int = 5) -> List[Dict[str, Any]]:
        """Merge cluster recommendations and opportunities, high priority first."""
        rank = {"high": 0, "medium": 1, "low": 2}
        items: List[Dict[str, Any]] = [
            {"priority": r.priority, "description": r.description, "services": r.services}
            for r in self.recommendations
        ]
        items.extend(
            {"priority": o.priority, "description": o.description, "services": o.affected_services}
            for o in self.consolidation_opportunities
        )
        items.sort(key=lambda item: rank.get(item["priority"], 3))
        return items[:limit]
