"""Service dependency graph: edges, cycles and orphaned services."""

from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Sequence, Set

from .deadline import Deadline
from .models import (
    CircularDependency,
    DependencyGraph,
    GraphEdge,
    GraphNode,
    ServiceInfo,
    UnusedDependency,
)

logger = logging.getLogger(__name__)

CYCLE_SUGGESTION = (
    "Break circular dependency by extracting common interface or using dependency injection"
)
UNUSED_REASON = "Service appears to be unused (no incoming dependencies)"
EXEMPT_SUFFIXES = ("Controller", "Module")

_EXTENSION_RE = re.compile(r"\.(?:ts|tsx|js|jsx|mjs|cjs)$")


def normalize_specifier(spec: str) -> str:
    """Strip leading ``./``/``../`` segments and a script extension."""
    spec = spec.replace("\\", "/")
    while spec.startswith("./") or spec.startswith("../"):
        spec = spec[spec.index("/") + 1:]
    return _EXTENSION_RE.sub("", spec)


class ImportResolver(ABC):
    """Maps an import specifier or injected class name to a node id."""

    @abstractmethod
    def resolve(self, reference: str, source: ServiceInfo) -> Optional[str]:
        ...


class HeuristicImportResolver(ImportResolver):
    """Best-effort matching; not a module-resolution algorithm.

    A reference resolves to a service when it is a substring or suffix of
    the service path, equals the file basename or stem, or equals the
    service class name. Among several candidates a service from the
    source's own group wins, then input order.
    """

    def __init__(self, services: Sequence[ServiceInfo]) -> None:
        self.services = list(services)

    def resolve(self, reference: str, source: ServiceInfo) -> Optional[str]:
        spec = normalize_specifier(reference)
        if not spec:
            return None
        candidates = [
            s for s in self.services if s.path != source.path and self._matches(spec, s)
        ]
        if not candidates:
            return None
        same_group = [s for s in candidates if s.group == source.group]
        return (same_group or candidates)[0].path

    @staticmethod
    def _matches(spec: str, service: ServiceInfo) -> bool:
        path = Path(service.path)
        posix = path.as_posix()
        stem = _EXTENSION_RE.sub("", path.name)
        if spec == service.name or spec in (path.name, stem):
            return True
        if "/" in spec:
            return spec in posix or _EXTENSION_RE.sub("", posix).endswith(spec)
        return False


class DependencyGraphBuilder:
    """Builds nodes and deduplicated ``import``/``injection`` edges."""

    def __init__(
        self,
        resolver_factory=HeuristicImportResolver,
        entry_point_files: Sequence[str] = ("main.ts",),
    ) -> None:
        self.resolver_factory = resolver_factory
        self.entry_point_files = list(entry_point_files)

    def build(
        self,
        services: Sequence[ServiceInfo],
        deadline: Optional[Deadline] = None,
    ) -> DependencyGraph:
        deadline = deadline or Deadline()
        resolver: ImportResolver = self.resolver_factory(services)
        nodes = [
            GraphNode(id=s.path, name=s.name, path=s.path, group=s.group, category=s.category)
            for s in services
        ]

        edges: List[GraphEdge] = []
        seen: Set[tuple] = set()
        for service in services:
            deadline.check("graph")
            references = [(spec, "import") for spec in service.imports]
            references += [(name, "injection") for name in service.injected_dependencies]
            for reference, kind in references:
                target = resolver.resolve(reference, service)
                if target is None or target == service.path:
                    continue
                key = (service.path, target, kind)
                if key in seen:
                    continue
                seen.add(key)
                edges.append(GraphEdge(source=service.path, target=target, kind=kind))

        cycles = CycleDetector().detect(nodes, edges)
        unused = UnusedNodeDetector(self.entry_point_files).detect(nodes, edges)
        logger.debug(
            "Dependency graph: %d nodes, %d edges, %d cycles",
            len(nodes), len(edges), len(cycles),
        )
        return DependencyGraph(
            nodes=nodes, edges=edges, circular_dependencies=cycles, unused_dependencies=unused
        )


class CycleDetector:
    """Iterative depth-first search over an explicit path stack.

    Reaching a node already on the stack records the stack slice from that
    node to the current one as a cycle. Severity is ``high`` when the cycle
    has more than three edges.
    """

    def detect(self, nodes: Sequence[GraphNode], edges: Sequence[GraphEdge]) -> List[CircularDependency]:
        names = {n.id: n.name for n in nodes}
        adjacency: Dict[str, List[str]] = {n.id: [] for n in nodes}
        for edge in edges:
            targets = adjacency.setdefault(edge.source, [])
            if edge.target not in targets:
                targets.append(edge.target)

        visited: Set[str] = set()
        on_stack: Set[str] = set()
        stack: List[str] = []
        cycles: List[CircularDependency] = []

        for node in nodes:
            if node.id in visited:
                continue
            visited.add(node.id)
            on_stack.add(node.id)
            stack.append(node.id)
            pending: List[Iterator[str]] = [iter(adjacency.get(node.id, []))]
            while pending:
                target = next(pending[-1], None)
                if target is None:
                    pending.pop()
                    on_stack.discard(stack.pop())
                elif target in on_stack:
                    cycle = stack[stack.index(target):]
                    cycles.append(
                        CircularDependency(
                            cycle=list(cycle),
                            names=[names.get(n, Path(n).name) for n in cycle],
                            severity="high" if len(cycle) > 3 else "medium",
                            suggestion=CYCLE_SUGGESTION,
                        )
                    )
                elif target not in visited:
                    visited.add(target)
                    on_stack.add(target)
                    stack.append(target)
                    pending.append(iter(adjacency.get(target, [])))
        return cycles


class UnusedNodeDetector:
    """Flags services nothing depends on, except framework entry points."""

    def __init__(self, entry_point_files: Sequence[str] = ("main.ts",)) -> None:
        self.entry_point_files = list(entry_point_files)

    def is_exempt(self, node: GraphNode) -> bool:
        if node.name.endswith(EXEMPT_SUFFIXES):
            return True
        return any(entry in node.path for entry in self.entry_point_files)

    def detect(self, nodes: Sequence[GraphNode], edges: Sequence[GraphEdge]) -> List[UnusedDependency]:
        targets = {edge.target for edge in edges}
        return [
            UnusedDependency(service=node.name, path=node.path, reason=UNUSED_REASON)
            for node in nodes
            if node.id not in targets and not self.is_exempt(node)
        ]
