"""Configuration defaults and paths for redundancy audits."""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, List, Optional, Set

BASE_DIR = Path(
    os.environ.get("REDUNDANCY_AUDIT_HOME", str(Path.home() / ".redundancy-audit"))
).expanduser()
CONFIG_FILE = BASE_DIR / "config.toml"
WORKSPACE_CONFIG_NAME = "redundancy-audit.toml"

DEFAULT_SERVICE_ROOTS: Dict[str, str] = {
    "admin": "apps/admin/lib/services",
    "bff": "apps/bff/src/services",
}
DEFAULT_INCLUDE_PATTERNS: List[str] = ["*.service.ts"]
DEFAULT_EXCLUDE_DIRS: Set[str] = {
    "node_modules", "dist", ".next", "build", "coverage", ".git", ".turbo",
}
DEFAULT_INTERFACE_ROOTS: List[str] = ["apps", "packages"]
DEFAULT_MIN_BLOCK_CHARS = 50


@dataclass
class AuditConfig:
    """Everything a run needs to know about the workspace it inspects."""

    workspace_root: Path = field(default_factory=Path.cwd)
    service_roots: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_SERVICE_ROOTS))
    include_patterns: List[str] = field(default_factory=lambda: list(DEFAULT_INCLUDE_PATTERNS))
    exclude_dirs: Set[str] = field(default_factory=lambda: set(DEFAULT_EXCLUDE_DIRS))
    interface_roots: List[str] = field(default_factory=lambda: list(DEFAULT_INTERFACE_ROOTS))
    interface_suffix: str = ".interface.ts"
    service_suffix: str = "Service"
    min_block_chars: int = DEFAULT_MIN_BLOCK_CHARS
    entry_point_files: List[str] = field(default_factory=lambda: ["main.ts"])
    reports_dir: str = "reports"
    timeout_seconds: Optional[float] = None

    @property
    def reports_path(self) -> Path:
        path = Path(self.reports_dir)
        return path if path.is_absolute() else self.workspace_root / path

    def with_overrides(self, **overrides: Any) -> "AuditConfig":
        """Return a copy with every non-``None`` override applied."""
        values = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **values)
