"""Report export helpers for JSON, Markdown and DOT outputs."""

from __future__ import annotations

import dataclasses
import json
import logging
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from .errors import ReportWriteError
from .models import DependencyGraph, RedundancyAnalysisResult

logger = logging.getLogger(__name__)

REPORT_PREFIX = "redundancy-audit"
FLOAT_DIGITS = 4


def _plain(value: Any) -> Any:
    if isinstance(value, float):
        return round(value, FLOAT_DIGITS)
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Path):
        return str(value)
    if isinstance(value, dict):
        return {str(k): _plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [_plain(v) for v in value]
    return value


def to_dict(result: RedundancyAnalysisResult) -> Dict[str, Any]:
    """JSON-ready payload of *result*."""
    return _plain(dataclasses.asdict(result))


def report_timestamp(now: Optional[datetime] = None) -> str:
    return (now or datetime.now()).strftime("%Y%m%d-%H%M%S")


def write_reports(
    result: RedundancyAnalysisResult,
    reports_dir: Path,
    timestamp: Optional[str] = None,
) -> Tuple[Path, Path]:
    """Write ``<prefix>-<timestamp>.json`` and ``.md`` into *reports_dir*.

    Raises:
        ReportWriteError: the directory or either file could not be written.
    """
    stamp = timestamp or report_timestamp()
    json_path = reports_dir / f"{REPORT_PREFIX}-{stamp}.json"
    md_path = reports_dir / f"{REPORT_PREFIX}-{stamp}.md"
    payload = to_dict(result)

    try:
        reports_dir.mkdir(parents=True, exist_ok=True)
        json_path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
    except OSError as exc:
        raise ReportWriteError(json_path, exc) from exc
    try:
        md_path.write_text(render_markdown(payload), encoding="utf-8")
    except OSError as exc:
        raise ReportWriteError(md_path, exc) from exc

    logger.info("Reports written to %s", reports_dir)
    return json_path, md_path


def render_markdown(payload: Dict[str, Any]) -> str:
    """Format a :func:`to_dict` payload as Markdown."""
    meta = payload["metadata"]
    summary = payload["summary"]
    lines: List[str] = [
        "# Redundancy Audit Report",
        "",
        f"- Generated: {meta['generated_at']}",
        f"- Workspace: `{meta['workspace_root']}`",
        f"- Version: {meta['version']}",
    ]
    if meta.get("error"):
        lines.append(f"- **Error:** {meta['error']}")

    lines += ["", "## Summary", "", "| Metric | Value |", "|---|---|"]
    for key, value in summary.items():
        lines.append(f"| {key.replace('_', ' ').capitalize()} | {value} |")

    duplicates = payload["duplicate_services"]
    if duplicates:
        lines += ["", "## Duplicate Services", ""]
        for dup in duplicates:
            others = ", ".join(f"`{Path(p).name}`" for p in dup["duplicate_services"])
            lines.append(
                f"- `{Path(dup['primary_service']).name}` ~ {others}: "
                f"{dup['similarity_score'] * 100:.1f}% similar, risk {dup['migration_risk']}. "
                f"{dup['consolidation_strategy']}"
            )

    blocks = payload["code_duplications"]
    if blocks:
        lines += ["", "## Code Duplication", "", "| Occurrences | Type | Savings (chars) | Suggestion |", "|---|---|---|---|"]
        for block in blocks:
            lines.append(
                f"| {len(block['occurrences'])} | {block['type']} | "
                f"{block['estimated_savings']} | {block['extraction_opportunity']} |"
            )

    graph = payload["dependency_graph"]
    if graph["circular_dependencies"]:
        lines += ["", "## Circular Dependencies", ""]
        for cycle in graph["circular_dependencies"]:
            lines.append(f"- [{cycle['severity']}] {' -> '.join(cycle['names'])}")
    if graph["unused_dependencies"]:
        lines += ["", "## Unused Services", ""]
        lines += [f"- `{u['service']}` ({u['path']})" for u in graph["unused_dependencies"]]

    if payload["unused_interfaces"]:
        lines += ["", "## Unused Interfaces", ""]
        for iface in payload["unused_interfaces"]:
            lines.append(
                f"- `{iface['name']}` in {iface['file']}:{iface['defined_at']} "
                f"({iface['removal_safety']})"
            )

    recs = payload["recommendations"] + payload["consolidation_opportunities"]
    if recs:
        lines += ["", "## Recommendations", ""]
        for rec in recs:
            lines.append(f"- **{rec['priority']}**: {rec['description']}")

    steps = payload["migration_strategy"]
    if steps:
        lines += ["", "## Migration Plan", ""]
        for step in steps:
            lines.append(f"{step['order']}. [{step['type']}] {step['description']}")

    return "\n".join(lines) + "\n"


def export_dot(graph: DependencyGraph, output_file: Path, focus: str = "") -> None:
    selected_nodes, selected_edges = _focused_subgraph(graph, focus)
    names = {n.id: n for n in graph.nodes}

    lines = ["digraph ServiceDependencies {"]
    lines.append("  rankdir=LR;")
    for node_id in selected_nodes:
        node = names[node_id]
        label = f"{node.name}\\n{node.group or node.category}"
        lines.append(f'  "{_esc(node_id)}" [label="{_esc(label)}"];')
    for edge in selected_edges:
        lines.append(
            f'  "{_esc(edge.source)}" -> "{_esc(edge.target)}" [label="{edge.kind}"];'
        )
    lines.append("}")
    try:
        output_file.write_text("\n".join(lines), encoding="utf-8")
    except OSError as exc:
        raise ReportWriteError(output_file, exc) from exc


def _focused_subgraph(graph: DependencyGraph, focus: str):
    node_ids = [n.id for n in graph.nodes]
    if not focus:
        return node_ids, list(graph.edges)

    focus_ids = {n.id for n in graph.nodes if focus in n.id or focus in n.name}
    if not focus_ids:
        return node_ids, list(graph.edges)

    edges = [e for e in graph.edges if e.source in focus_ids or e.target in focus_ids]
    keep = set(focus_ids)
    for e in edges:
        keep.update((e.source, e.target))
    return [n for n in node_ids if n in keep], edges


def _esc(text: str) -> str:
    return text.replace('"', '\\"')
