"""Text-level complexity heuristics for TypeScript sources."""

from __future__ import annotations

import math
import re
from typing import List

from .models import ComplexityMetric

BRANCH_KEYWORDS = ("if", "else", "while", "for", "switch", "case", "catch", "try")
BRANCH_OPERATORS = ("&&", "||", "?")

_KEYWORD_RE = re.compile(r"\b(?:" + "|".join(BRANCH_KEYWORDS) + r")\b")
_NESTING_RE = re.compile(r"\b(?:if|while|for|switch|try)\b")
_LOGICAL_RE = re.compile(r"&&|\|\|")


def cyclomatic_complexity(text: str) -> int:
    """``1 + keywords + operators``; a decision-point count, not a CFG metric."""
    score = 1 + len(_KEYWORD_RE.findall(text))
    for op in BRANCH_OPERATORS:
        score += text.count(op)
    return score


def cognitive_complexity(text: str) -> int:
    """Nesting-weighted control-flow count plus logical operators.

    Each line opening a control structure adds ``1 + depth`` and increases
    the depth; a line holding only ``}`` closes one level.
    """
    score = 0
    depth = 0
    for line in text.splitlines():
        stripped = line.strip()
        if _NESTING_RE.search(stripped):
            score += 1 + depth
            depth += 1
        if stripped == "}":
            depth = max(0, depth - 1)
        score += len(_LOGICAL_RE.findall(stripped))
    return score


def count_loc(text: str) -> int:
    """Non-blank lines."""
    return sum(1 for line in text.splitlines() if line.strip())


def maintainability_index(cyclomatic: int, loc: int) -> float:
    cc = max(1, cyclomatic)
    lines = max(1, loc)
    value = 171 - 5.2 * math.log(cc) - 0.23 * cc - 16.2 * math.log(lines)
    return round(max(0.0, min(100.0, value)), 2)


def measure(path: str, text: str) -> ComplexityMetric:
    cc = cyclomatic_complexity(text)
    loc = count_loc(text)
    return ComplexityMetric(
        file=path,
        cyclomatic_complexity=cc,
        cognitive_complexity=cognitive_complexity(text),
        maintainability_index=maintainability_index(cc, loc),
        lines_of_code=loc,
    )


def rank_by_complexity(metrics: List[ComplexityMetric]) -> List[ComplexityMetric]:
    return sorted(metrics, key=lambda m: (-m.cyclomatic_complexity, m.file))
