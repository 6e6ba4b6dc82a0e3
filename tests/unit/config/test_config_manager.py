"""Tests for layered configuration loading."""
from __future__ import annotations

import textwrap
from pathlib import Path

import pytest


def write_yaml(path: Path, content: str) -> None:
    """Helper to write YAML content to a file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(textwrap.dedent(content), encoding="utf-8")


class TestConfigManager:
    def test_bundled_defaults(self, tmp_path: Path) -> None:
        from gitoverlay.core.config import ConfigManager

        cfg = ConfigManager(tmp_path).load_config()

        assert cfg["placement"]["copy"] is False
        assert cfg["overlay"]["state_dir"] == ".gitoverlay"
        assert cfg["logging"]["level"] == "WARNING"

    def test_user_file_deep_merged(self, tmp_path: Path) -> None:
        from gitoverlay.core.config import ConfigManager

        write_yaml(
            tmp_path / "config.yaml",
            """
            logging:
              level: DEBUG
            """,
        )

        cfg = ConfigManager(tmp_path).load_config()

        assert cfg["logging"]["level"] == "DEBUG"
        assert cfg["logging"]["file"] == ""

    def test_env_overrides_are_typed(self, tmp_path: Path, monkeypatch) -> None:
        from gitoverlay.core.config import ConfigManager

        monkeypatch.setenv("GITOVERLAY_PLACEMENT__COPY", "true")
        monkeypatch.setenv("GITOVERLAY_LOGGING__LEVEL", "info")

        cfg = ConfigManager(tmp_path).load_config()

        assert cfg["placement"]["copy"] is True
        assert cfg["logging"]["level"] == "info"

    def test_directory_overrides_are_not_config_keys(self, tmp_path: Path) -> None:
        from gitoverlay.core.config import ConfigManager

        cfg = ConfigManager(tmp_path).load_config()

        assert "config_dir" not in cfg
        assert "cache_dir" not in cfg

    def test_defaults_not_mutated_between_loads(self, tmp_path: Path, monkeypatch) -> None:
        from gitoverlay.core.config import ConfigManager

        monkeypatch.setenv("GITOVERLAY_PLACEMENT__COPY", "true")
        ConfigManager(tmp_path).load_config()
        monkeypatch.delenv("GITOVERLAY_PLACEMENT__COPY")

        assert ConfigManager(tmp_path).load_config()["placement"]["copy"] is False

    def test_non_mapping_file_rejected(self, tmp_path: Path) -> None:
        from gitoverlay.core.config import ConfigManager
        from gitoverlay.core.exceptions import SourceConfigError

        (tmp_path / "config.yaml").write_text("- just\n- a list\n")

        with pytest.raises(SourceConfigError):
            ConfigManager(tmp_path).load_config()


class TestUserDirs:
    def test_explicit_env_overrides_win(self, tmp_path: Path, monkeypatch) -> None:
        from gitoverlay.core.utils.paths import UserDirs

        monkeypatch.setenv("GITOVERLAY_CACHE_DIR", str(tmp_path / "c"))

        assert UserDirs.from_environment().cache_dir == tmp_path / "c"

    def test_xdg_fallback(self, tmp_path: Path, monkeypatch) -> None:
        from gitoverlay.core.utils.paths import get_user_data_dir

        monkeypatch.delenv("GITOVERLAY_DATA_DIR")
        monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "xdg"))

        assert get_user_data_dir() == tmp_path / "xdg" / "gitoverlay"

    def test_home_fallback(self, tmp_path: Path, monkeypatch) -> None:
        from gitoverlay.core.utils.paths import get_user_config_dir

        monkeypatch.delenv("GITOVERLAY_CONFIG_DIR")
        monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)
        monkeypatch.setenv("HOME", str(tmp_path))

        assert get_user_config_dir() == tmp_path / ".config" / "gitoverlay"
