"""Tests for priority-ordered resolution across catalog sources."""
from __future__ import annotations

from pathlib import Path

import pytest


@pytest.fixture
def catalogs(tmp_path: Path, user_dirs):
    """Three sources in priority order: personal, team, community."""
    from gitoverlay.core.config import SourceEntry
    from gitoverlay.core.sources import CatalogSource
    from helpers.env import BareRemote

    remotes = tmp_path / "remotes"
    layouts = {
        "personal": {"acme/widgets/ai/CLAUDE.md": "personal\n"},
        "team": {
            "acme/widgets/ai/CLAUDE.md": "team\n",
            "acme/widgets/lint/.eslintrc": "{}\n",
        },
        "community": {"upstream-org/widgets/docs/NOTES.md": "community\n"},
    }
    result = []
    for name, files in layouts.items():
        bare = BareRemote(remotes, "sources", name, files)
        result.append(CatalogSource(SourceEntry(name, str(bare.path)), user_dirs.sources_dir))
    return result


@pytest.fixture
def fork(target_repo):
    target_repo.add_remote("origin", "git@github.com:acme/widgets.git")
    target_repo.add_remote("upstream", "https://github.com/upstream-org/widgets.git")
    return target_repo


class TestMultiSourceManager:
    def test_first_source_wins(self, catalogs, target_repo) -> None:
        from gitoverlay.core.overlay.models import ResolvedVia
        from gitoverlay.core.sources import MultiSourceManager, RemoteScopeDetector

        manager = MultiSourceManager(catalogs, RemoteScopeDetector())

        found = manager.resolve("acme/widgets", "ai", target=target_repo.repo_path)

        assert found.source == "personal"
        assert (found.path / "CLAUDE.md").read_text() == "personal\n"
        assert found.resolved_via is ResolvedVia.DIRECT
        assert len(found.commit) == 40

    def test_falls_through_to_lower_priority(self, catalogs, target_repo) -> None:
        from gitoverlay.core.sources import MultiSourceManager

        found = MultiSourceManager(catalogs).resolve("acme/widgets", "lint", target=target_repo.repo_path)

        assert found.source == "team"

    def test_source_override(self, catalogs, target_repo) -> None:
        from gitoverlay.core.sources import MultiSourceManager

        found = MultiSourceManager(catalogs).resolve(
            "acme/widgets", "ai", target=target_repo.repo_path, source_override="team"
        )

        assert found.source == "team"
        assert (found.path / "CLAUDE.md").read_text() == "team\n"

    def test_unknown_override(self, catalogs, target_repo) -> None:
        from gitoverlay.core.exceptions import SourceNotFound
        from gitoverlay.core.sources import MultiSourceManager

        with pytest.raises(SourceNotFound):
            MultiSourceManager(catalogs).resolve("acme/widgets", "ai", target=target_repo.repo_path, source_override="x")

    def test_upstream_fallback(self, catalogs, fork) -> None:
        from gitoverlay.core.overlay.models import ResolvedVia
        from gitoverlay.core.sources import MultiSourceManager, RemoteScopeDetector

        manager = MultiSourceManager(catalogs, RemoteScopeDetector())

        found = manager.resolve("acme/widgets", "docs", target=fork.repo_path)

        assert found.source == "community"
        assert found.scope == "upstream-org/widgets"
        assert found.resolved_via is ResolvedVia.UPSTREAM

    def test_direct_match_preferred_over_upstream(self, catalogs, fork) -> None:
        from gitoverlay.core.overlay.models import ResolvedVia
        from gitoverlay.core.sources import MultiSourceManager, RemoteScopeDetector

        found = MultiSourceManager(catalogs, RemoteScopeDetector()).resolve("acme/widgets", "ai", target=fork.repo_path)

        assert found.resolved_via is ResolvedVia.DIRECT

    def test_not_found_lists_every_search(self, catalogs, fork) -> None:
        from gitoverlay.core.exceptions import OverlayNotFound
        from gitoverlay.core.sources import MultiSourceManager, RemoteScopeDetector

        manager = MultiSourceManager(catalogs, RemoteScopeDetector())

        with pytest.raises(OverlayNotFound) as excinfo:
            manager.resolve("acme/widgets", "ghost", target=fork.repo_path)

        searched = excinfo.value.context["searched"]
        assert [s["source"] for s in searched] == ["personal", "team", "community"] * 2
        assert {s["scope"] for s in searched} == {"acme/widgets", "upstream-org/widgets"}
        assert "personal:acme/widgets" in str(excinfo.value)

    def test_list_overlays_in_priority_order(self, catalogs) -> None:
        from gitoverlay.core.sources import MultiSourceManager

        for catalog in catalogs:
            catalog.ensure_cloned()

        refs = [(o.source, o.reference) for o in MultiSourceManager(catalogs).list_overlays()]

        assert refs == [
            ("personal", "acme/widgets/ai"),
            ("team", "acme/widgets/ai"),
            ("team", "acme/widgets/lint"),
            ("community", "upstream-org/widgets/docs"),
        ]
