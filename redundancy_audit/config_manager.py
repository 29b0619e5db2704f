"""Configuration manager for redundancy audits using TOML files."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Optional

import toml

from .config import CONFIG_FILE, WORKSPACE_CONFIG_NAME, AuditConfig
from .errors import ConfigError

logger = logging.getLogger(__name__)

SECTION = "audit"

# Expected shape of each recognised key in the ``[audit]`` table.
_KEY_TYPES: Dict[str, str] = {
    "service_roots": "mapping",
    "include_patterns": "list",
    "exclude_dirs": "set",
    "interface_roots": "list",
    "interface_suffix": "str",
    "service_suffix": "str",
    "min_block_chars": "int",
    "entry_point_files": "list",
    "reports_dir": "str",
    "timeout_seconds": "number",
}


def load_full_config(path: Path) -> Dict[str, Any]:
    """Load an entire TOML file (all sections).

    Returns an empty dict when *path* does not exist.

    Raises:
        ConfigError: the file exists but is not valid TOML.
    """
    if not path.exists():
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            return toml.load(f)
    except (toml.TomlDecodeError, OSError) as exc:
        raise ConfigError(f"cannot read configuration: {exc}", source=path) from exc


def load_audit_section(path: Path) -> Dict[str, Any]:
    """Return the validated ``[audit]`` table of *path*."""
    section = load_full_config(path).get(SECTION, {})
    if not isinstance(section, dict):
        raise ConfigError(f"[{SECTION}] must be a table", source=path)
    return _validate(section, path)


def _validate(section: Dict[str, Any], source: Path) -> Dict[str, Any]:
    values: Dict[str, Any] = {}
    for key, raw in section.items():
        kind = _KEY_TYPES.get(key)
        if kind is None:
            logger.warning("Ignoring unknown configuration key '%s' in %s", key, source)
            continue
        values[key] = _coerce(key, raw, kind, source)
    return values


def _coerce(key: str, raw: Any, kind: str, source: Path) -> Any:
    if kind == "mapping":
        if not isinstance(raw, dict) or not all(isinstance(v, str) for v in raw.values()):
            raise ConfigError(f"'{key}' must be a table of strings", source=source)
        return {str(k): v for k, v in raw.items()}
    if kind in ("list", "set"):
        if not isinstance(raw, list) or not all(isinstance(v, str) for v in raw):
            raise ConfigError(f"'{key}' must be a list of strings", source=source)
        return set(raw) if kind == "set" else list(raw)
    if kind == "str":
        if not isinstance(raw, str):
            raise ConfigError(f"'{key}' must be a string", source=source)
        return raw
    if kind == "int":
        if isinstance(raw, bool) or not isinstance(raw, int) or raw < 0:
            raise ConfigError(f"'{key}' must be a non-negative integer", source=source)
        return raw
    # number
    if isinstance(raw, bool) or not isinstance(raw, (int, float)) or raw <= 0:
        raise ConfigError(f"'{key}' must be a positive number", source=source)
    return float(raw)


def load_audit_config(
    workspace_root: Path,
    overrides: Optional[Dict[str, Any]] = None,
    user_config: Optional[Path] = None,
) -> AuditConfig:
    """Build the effective configuration for *workspace_root*.

    Precedence, lowest first: built-in defaults, the user file, the
    workspace ``redundancy-audit.toml``, then *overrides* (CLI options;
    ``None`` values are ignored).
    """
    root = workspace_root.resolve()
    config = AuditConfig(workspace_root=root)

    user_config = user_config if user_config is not None else CONFIG_FILE
    for source in (user_config, root / WORKSPACE_CONFIG_NAME):
        values = load_audit_section(source)
        if values:
            logger.debug("Applying %d setting(s) from %s", len(values), source)
            config = config.with_overrides(**values)

    if overrides:
        config = config.with_overrides(**overrides)
    return config


def save_audit_config(values: Dict[str, Any], path: Path) -> None:
    """Write *values* into the ``[audit]`` table of *path*.

    Other sections already present in the file are preserved.
    """
    config = load_full_config(path)
    audit = config.setdefault(SECTION, {})
    for key, value in values.items():
        audit[key] = sorted(value) if isinstance(value, set) else value
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        toml.dump(config, f)
