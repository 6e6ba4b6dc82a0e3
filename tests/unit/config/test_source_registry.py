"""Tests for the ordered source registry."""
from __future__ import annotations

import textwrap
from pathlib import Path

import pytest
import yaml


def write_yaml(path: Path, content: str) -> None:
    """Helper to write YAML content to a file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(textwrap.dedent(content), encoding="utf-8")


class TestSourceRegistry:
    def test_empty_without_config(self, tmp_path: Path) -> None:
        from gitoverlay.core.config import SourceRegistry

        assert SourceRegistry(tmp_path).sources == []

    def test_add_move_remove_persist(self, tmp_path: Path) -> None:
        from gitoverlay.core.config import SourceRegistry

        registry = SourceRegistry(tmp_path)
        registry.add("team", "https://example.com/acme/team-overlays.git")
        registry.add("personal", "https://example.com/me/overlays.git", position=0)
        registry.add("community", "https://example.com/oss/overlays.git")
        registry.save()

        reloaded = SourceRegistry(tmp_path)
        assert reloaded.names() == ["personal", "team", "community"]

        reloaded.move("community", 0)
        reloaded.remove("team")
        reloaded.save()

        assert SourceRegistry(tmp_path).names() == ["community", "personal"]

    def test_save_preserves_other_keys(self, tmp_path: Path) -> None:
        from gitoverlay.core.config import SourceRegistry

        write_yaml(
            tmp_path / "config.yaml",
            """
            logging:
              level: DEBUG
            """,
        )
        registry = SourceRegistry(tmp_path)
        registry.add("team", "/srv/team.git")
        registry.save()

        data = yaml.safe_load((tmp_path / "config.yaml").read_text())
        assert data["logging"]["level"] == "DEBUG"
        assert data["sources"] == [{"name": "team", "url": "/srv/team.git"}]

    def test_duplicate_add_rejected(self, tmp_path: Path) -> None:
        from gitoverlay.core.config import SourceRegistry
        from gitoverlay.core.exceptions import SourceConfigError

        registry = SourceRegistry(tmp_path)
        registry.add("team", "/a")

        with pytest.raises(SourceConfigError):
            registry.add("team", "/b")

    @pytest.mark.parametrize("name", ["", "-bad", "has space", "a/b"])
    def test_invalid_names_rejected(self, tmp_path: Path, name: str) -> None:
        from gitoverlay.core.config import SourceRegistry
        from gitoverlay.core.exceptions import SourceConfigError

        with pytest.raises(SourceConfigError):
            SourceRegistry(tmp_path).add(name, "/a")

    def test_unknown_source(self, tmp_path: Path) -> None:
        from gitoverlay.core.config import SourceRegistry
        from gitoverlay.core.exceptions import SourceNotFound

        with pytest.raises(SourceNotFound):
            SourceRegistry(tmp_path).move("ghost", 0)

    def test_duplicate_names_in_file(self, tmp_path: Path) -> None:
        from gitoverlay.core.config import SourceRegistry
        from gitoverlay.core.exceptions import SourceConfigError

        write_yaml(
            tmp_path / "config.yaml",
            """
            sources:
              - {name: team, url: /a}
              - {name: team, url: /b}
            """,
        )

        with pytest.raises(SourceConfigError):
            SourceRegistry(tmp_path).sources

    def test_legacy_overlay_repo_migrated_once(self, tmp_path: Path) -> None:
        from gitoverlay.core.config import LEGACY_SOURCE_NAME, SourceRegistry

        write_yaml(
            tmp_path / "config.yaml",
            """
            overlay_repo:
              url: https://example.com/acme/overlays.git
            """,
        )

        sources = SourceRegistry(tmp_path).sources

        assert [(s.name, s.url) for s in sources] == [
            (LEGACY_SOURCE_NAME, "https://example.com/acme/overlays.git")
        ]
        data = yaml.safe_load((tmp_path / "config.yaml").read_text())
        assert "overlay_repo" not in data
        assert data["sources"][0]["name"] == LEGACY_SOURCE_NAME
