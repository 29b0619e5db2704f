"""Content-addressed detection of duplicated method bodies."""

from __future__ import annotations

import hashlib
import logging
import re
from collections import defaultdict
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from .config import DEFAULT_MIN_BLOCK_CHARS
from .deadline import Deadline
from .metrics import cyclomatic_complexity
from .models import CodeDuplication, CodeOccurrence, DuplicationType, ServiceInfo

logger = logging.getLogger(__name__)

_BLOCK_COMMENT_RE = re.compile(r"/\*.*?\*/", re.DOTALL)
_LINE_COMMENT_RE = re.compile(r"//[^\n]*")
_STRING_RE = re.compile(r"'(?:\\.|[^'\\])*'|\"(?:\\.|[^\"\\])*\"|`(?:\\.|[^`\\])*`", re.DOTALL)
_NUMBER_RE = re.compile(r"\b\d+\b")
_WHITESPACE_RE = re.compile(r"\s+")


def normalize(code: str) -> str:
    """Canonical form of a block: comments removed, literals masked, whitespace collapsed.

    Comments go before whitespace is collapsed so a ``//`` comment cannot
    swallow the rest of the block.
    """
    text = _BLOCK_COMMENT_RE.sub("", code)
    text = _LINE_COMMENT_RE.sub("", text)
    text = _STRING_RE.sub("STRING", text)
    text = _NUMBER_RE.sub("NUMBER", text)
    return _WHITESPACE_RE.sub(" ", text).strip()


def content_hash(code: str) -> str:
    return hashlib.sha256(normalize(code).encode("utf-8")).hexdigest()


class DuplicationDetector:
    """Groups method bodies by the hash of their normalized text."""

    def __init__(self, min_block_chars: int = DEFAULT_MIN_BLOCK_CHARS) -> None:
        self.min_block_chars = min_block_chars

    def collect_blocks(self, services: Sequence[ServiceInfo]) -> List[CodeOccurrence]:
        blocks: List[CodeOccurrence] = []
        for service in services:
            for method in service.methods:
                if len(method.body) <= self.min_block_chars:
                    continue
                blocks.append(
                    CodeOccurrence(
                        file=service.path,
                        start_line=method.start_line,
                        end_line=method.end_line,
                        code=method.body,
                        context=f"{service.name}.{method.name}",
                        hash=content_hash(method.body),
                    )
                )
        return blocks

    def detect(
        self,
        services: Sequence[ServiceInfo],
        deadline: Optional[Deadline] = None,
    ) -> List[CodeDuplication]:
        deadline = deadline or Deadline()
        groups: Dict[str, List[CodeOccurrence]] = defaultdict(list)
        for block in self.collect_blocks(services):
            deadline.check("duplication")
            groups[block.hash].append(block)

        duplications = [
            self._to_duplication(occurrences)
            for occurrences in groups.values()
            if len(occurrences) > 1
        ]
        duplications.sort(key=lambda d: (-d.estimated_savings, d.pattern))
        logger.debug("Found %d duplicated block group(s)", len(duplications))
        return duplications

    @staticmethod
    def _to_duplication(occurrences: List[CodeOccurrence]) -> CodeDuplication:
        first = occurrences[0]
        files = {o.file for o in occurrences}
        if len(files) == 1:
            opportunity = f"Extract to private method within {Path(first.file).name}"
        else:
            opportunity = f"Extract to shared utility function (used in {len(files)} files)"
        exact = all(o.code == first.code for o in occurrences)
        return CodeDuplication(
            pattern=normalize(first.code),
            occurrences=list(occurrences),
            extraction_opportunity=opportunity,
            estimated_savings=(len(occurrences) - 1) * len(first.code),
            complexity=cyclomatic_complexity(first.code),
            type=DuplicationType.EXACT_MATCH if exact else DuplicationType.SIMILAR_LOGIC,
        )
