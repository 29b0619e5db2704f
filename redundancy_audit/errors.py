"""Exception types raised by the audit pipeline."""

from __future__ import annotations

from pathlib import Path
from typing import Optional


class AuditError(Exception):
    """Base class for every error raised by this package."""


class ConfigError(AuditError):
    """Invalid value in an audit configuration source."""

    def __init__(self, message: str, source: Optional[Path] = None) -> None:
        self.source = source
        if source is not None:
            message = f"{source}: {message}"
        super().__init__(message)


class AnalysisCancelled(AuditError):
    """The deadline expired or the run was cancelled mid-pipeline."""

    def __init__(self, stage: str, reason: str = "deadline exceeded") -> None:
        self.stage = stage
        self.reason = reason
        super().__init__(f"Analysis cancelled during '{stage}': {reason}")


class ReportWriteError(AuditError):
    """The final report could not be persisted."""

    def __init__(self, path: Path, cause: BaseException) -> None:
        self.path = path
        self.cause = cause
        super().__init__(f"Could not write report to {path}: {cause}")
