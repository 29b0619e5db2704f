"""Detection of exported interfaces that nothing references."""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Dict, List, Optional

from .config import AuditConfig
from .deadline import Deadline
from .models import UnusedInterface
from .scanner import SourceScanner

logger = logging.getLogger(__name__)

EXPORTED_INTERFACE_RE = re.compile(r"export\s+interface\s+(\w+)")
UNUSED_REASON = "Interface not used in any other file"


class UnusedInterfaceDetector:
    """Counts word-boundary references to each exported interface."""

    def __init__(self, config: AuditConfig, deadline: Optional[Deadline] = None) -> None:
        self.config = config
        self.deadline = deadline or Deadline()
        self.scanner = SourceScanner(config, self.deadline)

    def _read_sources(self) -> Dict[Path, str]:
        sources: Dict[Path, str] = {}
        for path in self.scanner.iter_typescript_files(self.config.interface_roots):
            try:
                sources[path] = path.read_text(encoding="utf-8", errors="ignore")
            except OSError as exc:
                logger.warning("Failed to read %s: %s", path, exc)
        return sources

    def detect(self) -> List[UnusedInterface]:
        sources = self._read_sources()
        unused: List[UnusedInterface] = []
        for path, text in sources.items():
            if not path.name.endswith(self.config.interface_suffix):
                continue
            for match in EXPORTED_INTERFACE_RE.finditer(text):
                self.deadline.check("interfaces")
                name = match.group(1)
                finding = self._check(name, path, text.count("\n", 0, match.start()) + 1, sources)
                if finding is not None:
                    unused.append(finding)
        logger.debug("Found %d unused interface(s)", len(unused))
        return unused

    @staticmethod
    def _check(
        name: str, path: Path, line: int, sources: Dict[Path, str]
    ) -> Optional[UnusedInterface]:
        usage_re = re.compile(r"\b" + re.escape(name) + r"\b")
        loose = {name.lower()}
        if name.endswith("Interface") and name != "Interface":
            loose.add(name[: -len("Interface")])
        potential: List[str] = []
        for other, content in sources.items():
            if other == path:
                continue
            if usage_re.search(content):
                return None
            if any(token in content for token in loose):
                potential.append(str(other))
        return UnusedInterface(
            name=name,
            file=str(path),
            defined_at=line,
            reason=UNUSED_REASON,
            potential_usages=potential,
            removal_safety="risky" if potential else "safe",
        )
