"""Pipeline driver coordinating every audit stage."""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Callable, Optional

from .clustering import ClusterEngine
from .config import AuditConfig
from .consolidation import ConsolidationPlanner
from .deadline import Deadline
from .duplication import DuplicationDetector
from .errors import AnalysisCancelled
from .extractor import PatternServiceExtractor, ServiceModelExtractor
from .graph import DependencyGraphBuilder
from .interfaces import UnusedInterfaceDetector
from .metrics import measure, rank_by_complexity
from .models import RedundancyAnalysisResult
from .overlap import CrossGroupDuplicationAnalyzer, FunctionalityOverlapAnalyzer
from .report import ReportAssembler
from .scanner import SourceScanner
from .similarity import SimilarityEngine

logger = logging.getLogger(__name__)

STAGES = (
    "scan", "extract", "similarity", "duplication", "graph",
    "cluster", "overlap", "interfaces", "consolidation", "assemble",
)

StageCallback = Callable[[str], None]


class AuditOrchestrator:
    """Runs scan -> extract -> analyse -> assemble, one stage at a time.

    Per-file problems are handled inside the stages. Anything escaping a
    stage, including :class:`AnalysisCancelled`, is caught here once and
    turned into an empty result carrying the error in its metadata.
    """

    def __init__(
        self,
        config: AuditConfig,
        extractor: Optional[ServiceModelExtractor] = None,
        on_stage: Optional[StageCallback] = None,
    ) -> None:
        self.config = config
        self.extractor = extractor or PatternServiceExtractor(config.service_suffix)
        self.on_stage = on_stage
        self.assembler = ReportAssembler(str(config.workspace_root))

    def _stage(self, name: str, deadline: Deadline) -> None:
        deadline.check(name)
        logger.debug("Stage: %s", name)
        if self.on_stage is not None:
            self.on_stage(name)

    def run(self, deadline: Optional[Deadline] = None) -> RedundancyAnalysisResult:
        deadline = deadline or Deadline(self.config.timeout_seconds)
        try:
            return self._run(deadline)
        except AnalysisCancelled as exc:
            logger.warning("%s", exc)
            return self.assembler.empty(error=str(exc))
        except Exception as exc:
            logger.exception("Audit failed")
            return self.assembler.empty(error=f"{type(exc).__name__}: {exc}")

    def _run(self, deadline: Deadline) -> RedundancyAnalysisResult:
        started = time.monotonic()
        config = self.config

        self._stage("scan", deadline)
        files = SourceScanner(config, deadline).scan()

        self._stage("extract", deadline)
        outcome = self.extractor.extract_all(files, deadline)
        services = outcome.services
        logger.info(
            "Extracted %d service(s) from %d file(s), %d skipped",
            len(services), outcome.files_analyzed, outcome.skipped_files,
        )

        self._stage("similarity", deadline)
        engine = SimilarityEngine()
        matrix = engine.build_matrix(services, deadline)
        duplicates = engine.find_duplicates(services, deadline)

        self._stage("duplication", deadline)
        duplications = DuplicationDetector(config.min_block_chars).detect(services, deadline)

        self._stage("graph", deadline)
        graph = DependencyGraphBuilder(entry_point_files=config.entry_point_files).build(
            services, deadline
        )

        self._stage("cluster", deadline)
        similarity_matrix = ClusterEngine().build(services, matrix)

        self._stage("overlap", deadline)
        overlaps = FunctionalityOverlapAnalyzer().analyze(services, deadline)
        cross_group = CrossGroupDuplicationAnalyzer(config.service_suffix).analyze(
            services, deadline
        )

        self._stage("interfaces", deadline)
        unused_interfaces = UnusedInterfaceDetector(config, deadline).detect()

        self._stage("consolidation", deadline)
        planner = ConsolidationPlanner(services)
        opportunities = planner.opportunities(duplicates, overlaps)
        migration = planner.migration_steps(opportunities)
        metrics = rank_by_complexity(
            [measure(path, text) for path, text in outcome.texts.items()]
        )

        self._stage("assemble", deadline)
        return self.assembler.assemble(
            services=services,
            files_analyzed=outcome.files_analyzed,
            skipped_files=outcome.skipped_files,
            duplicates=duplicates,
            duplications=duplications,
            similarity_matrix=similarity_matrix,
            graph=graph,
            overlaps=overlaps,
            cross_group=cross_group,
            unused_interfaces=unused_interfaces,
            complexity_metrics=metrics,
            opportunities=opportunities,
            migration=migration,
            duration_seconds=time.monotonic() - started,
        )


def compare_files(first: Path, second: Path, service_suffix: str = "Service"):
    """Similarity breakdown of two service files, or ``None`` if either has no service."""
    extractor = PatternServiceExtractor(service_suffix)
    _, a = extractor.extract_file(first, group="")
    _, b = extractor.extract_file(second, group="")
    if a is None or b is None:
        return None
    return a, b, SimilarityEngine().compare(a, b)
