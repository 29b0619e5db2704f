"""Workspace scanning: locate service files under the configured roots."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from fnmatch import fnmatch
from pathlib import Path
from typing import Iterator, List, Optional, Set

from .config import AuditConfig
from .deadline import Deadline

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SourceFile:
    """A candidate file together with the service root (group) it came from."""

    path: Path
    group: str


def is_excluded(path: Path, exclude_dirs: Set[str]) -> bool:
    return any(part in exclude_dirs for part in path.parts)


class SourceScanner:
    """Walks each configured service root and yields matching files.

    Missing roots are logged and skipped. Results are sorted per root and a
    file reachable from two roots is reported once, under the first.
    """

    def __init__(self, config: AuditConfig, deadline: Optional[Deadline] = None) -> None:
        self.config = config
        self.deadline = deadline or Deadline()

    def scan(self) -> List[SourceFile]:
        seen: Set[Path] = set()
        found: List[SourceFile] = []
        for group, rel_root in self.config.service_roots.items():
            root = self.config.workspace_root / rel_root
            if not root.is_dir():
                logger.info("Service root for '%s' not found: %s", group, root)
                continue
            for path in self._walk(root):
                resolved = path.resolve()
                if resolved in seen:
                    continue
                seen.add(resolved)
                found.append(SourceFile(path=resolved, group=group))
        logger.debug("Scanner found %d service file(s)", len(found))
        return found

    def _walk(self, root: Path) -> Iterator[Path]:
        for path in sorted(root.rglob("*")):
            self.deadline.check("scan")
            if not path.is_file():
                continue
            if is_excluded(path.relative_to(root), self.config.exclude_dirs):
                continue
            if any(fnmatch(path.name, pattern) for pattern in self.config.include_patterns):
                yield path

    def iter_typescript_files(self, roots: List[str]) -> Iterator[Path]:
        """Every ``.ts``/``.tsx`` file under *roots* (relative to the workspace)."""
        for rel_root in roots:
            root = self.config.workspace_root / rel_root
            if not root.is_dir():
                continue
            for path in sorted(root.rglob("*")):
                self.deadline.check("scan")
                if path.suffix not in (".ts", ".tsx") or not path.is_file():
                    continue
                if is_excluded(path.relative_to(root), self.config.exclude_dirs):
                    continue
                yield path.resolve()
