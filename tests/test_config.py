"""Tests for configuration defaults and TOML loading."""

import logging
from pathlib import Path

import pytest
import toml

from redundancy_audit.config import AuditConfig, WORKSPACE_CONFIG_NAME
from redundancy_audit.config_manager import (
    load_audit_config,
    load_audit_section,
    save_audit_config,
)
from redundancy_audit.errors import ConfigError


def _write_toml(path: Path, data: dict) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(toml.dumps(data))
    return path


class TestAuditConfig:
    def test_defaults(self, temp_dir):
        config = AuditConfig(workspace_root=temp_dir)

        assert config.service_roots == {"admin": "apps/admin/lib/services", "bff": "apps/bff/src/services"}
        assert config.include_patterns == ["*.service.ts"]
        assert "node_modules" in config.exclude_dirs
        assert config.min_block_chars == 50
        assert config.timeout_seconds is None
        assert config.reports_path == temp_dir / "reports"

    def test_with_overrides_skips_none(self, temp_dir):
        config = AuditConfig(workspace_root=temp_dir).with_overrides(min_block_chars=None, reports_dir="/out")

        assert config.min_block_chars == 50
        assert config.reports_path == Path("/out")


class TestLoadAuditConfig:
    def test_no_files_gives_defaults(self, temp_dir):
        config = load_audit_config(temp_dir, user_config=temp_dir / "missing.toml")

        assert config.workspace_root == temp_dir.resolve()
        assert config.min_block_chars == 50

    def test_precedence(self, temp_dir):
        user = _write_toml(temp_dir / "home" / "config.toml", {"audit": {"min_block_chars": 10, "reports_dir": "user-reports"}})
        _write_toml(temp_dir / WORKSPACE_CONFIG_NAME, {"audit": {"min_block_chars": 20}})

        config = load_audit_config(temp_dir, user_config=user)
        assert config.min_block_chars == 20
        assert config.reports_dir == "user-reports"

        config = load_audit_config(temp_dir, overrides={"min_block_chars": 30}, user_config=user)
        assert config.min_block_chars == 30

    def test_collections_and_timeout(self, temp_dir):
        _write_toml(
            temp_dir / WORKSPACE_CONFIG_NAME,
            {"audit": {
                "service_roots": {"web": "apps/web/services"},
                "exclude_dirs": ["vendor"],
                "timeout_seconds": 5,
            }},
        )

        config = load_audit_config(temp_dir, user_config=temp_dir / "missing.toml")

        assert config.service_roots == {"web": "apps/web/services"}
        assert config.exclude_dirs == {"vendor"}
        assert config.timeout_seconds == 5.0

    def test_unknown_key_warns(self, temp_dir, caplog):
        path = _write_toml(temp_dir / "c.toml", {"audit": {"colour": "blue"}})

        with caplog.at_level(logging.WARNING):
            assert load_audit_section(path) == {}
        assert "colour" in caplog.text

    @pytest.mark.parametrize(
        "values",
        [
            {"min_block_chars": "many"},
            {"min_block_chars": -1},
            {"timeout_seconds": 0},
            {"include_patterns": "*.ts"},
            {"service_roots": {"admin": 3}},
        ],
    )
    def test_invalid_values(self, temp_dir, values):
        path = _write_toml(temp_dir / "c.toml", {"audit": values})

        with pytest.raises(ConfigError) as exc_info:
            load_audit_section(path)
        assert str(path) in str(exc_info.value)

    def test_malformed_toml(self, temp_dir):
        path = temp_dir / "c.toml"
        path.write_text("[audit\nmin_block_chars = ")

        with pytest.raises(ConfigError):
            load_audit_section(path)


class TestSaveAuditConfig:
    def test_preserves_other_sections(self, temp_dir):
        path = _write_toml(temp_dir / "c.toml", {"other": {"keep": True}})

        save_audit_config({"min_block_chars": 80, "exclude_dirs": {"b", "a"}}, path)

        data = toml.loads(path.read_text())
        assert data["other"] == {"keep": True}
        assert data["audit"] == {"min_block_chars": 80, "exclude_dirs": ["a", "b"]}
        assert load_audit_section(path)["exclude_dirs"] == {"a", "b"}
