"""Catalog sources and remote overlays end to end: sync, create, update."""
from __future__ import annotations

from pathlib import Path

import pytest

from helpers.env import BareRemote, overlay_dir


@pytest.fixture
def team_source(tmp_path: Path, user_dirs) -> BareRemote:
    """A registered catalog source holding ``acme/widgets/ai``."""
    from gitoverlay.core.config import SourceRegistry

    bare = BareRemote(
        tmp_path / "remotes",
        "sources",
        "team",
        {
            "acme/widgets/ai/CLAUDE.md": "v1\n",
            "acme/widgets/ai/.cursor/rules.mdc": "rules\n",
        },
    )
    registry = SourceRegistry(user_dirs.config_dir)
    registry.add("team", str(bare.path))
    registry.save()
    return bare


@pytest.fixture
def widgets_repo(target_repo):
    target_repo.add_remote("origin", "git@github.com:acme/widgets.git")
    return target_repo


class TestCatalogApply:
    def test_bare_name_uses_origin_scope(self, team_source, widgets_repo, engine_factory) -> None:
        from gitoverlay.core.overlay.models import CataloguedSource

        engine = engine_factory(widgets_repo.repo_path)

        result = engine.apply("ai")

        assert isinstance(result.source, CataloguedSource)
        assert result.source.source == "team"
        assert result.source.scope == "acme/widgets"
        assert result.source.commit == team_source.work.head()
        assert (widgets_repo.repo_path / "CLAUDE.md").read_text() == "v1\n"
        assert widgets_repo.status_porcelain() == ""

    def test_unknown_overlay(self, team_source, widgets_repo, engine_factory) -> None:
        from gitoverlay.core.exceptions import OverlayNotFound

        with pytest.raises(OverlayNotFound) as excinfo:
            engine_factory(widgets_repo.repo_path).apply("acme/widgets/nope")

        assert excinfo.value.context["searched"] == [{"source": "team", "scope": "acme/widgets"}]


class TestSync:
    def test_copied_edits_are_committed_and_pushed(self, team_source, widgets_repo, engine_factory) -> None:
        engine = engine_factory(widgets_repo.repo_path)
        engine.apply("acme/widgets/ai", copy=True)
        (widgets_repo.repo_path / "CLAUDE.md").write_text("v2\n")

        result = engine.sync("ai", message="Tweak prompt")

        assert result.changed == ("CLAUDE.md",)
        assert result.committed is True
        assert result.pushed is True
        assert team_source.file_at_head("acme/widgets/ai/CLAUDE.md") == "v2"

    def test_symlinked_edits_are_committed(self, team_source, widgets_repo, engine_factory) -> None:
        """Edits through a symlink land in the clone and are picked up from there."""
        engine = engine_factory(widgets_repo.repo_path)
        engine.apply("acme/widgets/ai")
        (widgets_repo.repo_path / "CLAUDE.md").write_text("edited in place\n")

        preview = engine.sync("ai", dry_run=True)
        assert preview.changed == ("CLAUDE.md",)
        assert preview.committed is False

        result = engine.sync("ai", push=False)

        assert result.committed is True
        assert result.pushed is False
        assert team_source.file_at_head("acme/widgets/ai/CLAUDE.md") == "v1"

    def test_nothing_to_sync(self, team_source, widgets_repo, engine_factory) -> None:
        engine = engine_factory(widgets_repo.repo_path)
        engine.apply("acme/widgets/ai")

        result = engine.sync("ai")

        assert result.changed == ()
        assert result.committed is False

    def test_local_overlay_cannot_sync(self, tmp_path: Path, target_repo, engine_factory) -> None:
        from gitoverlay.core.exceptions import GitOverlayError

        src = overlay_dir(tmp_path / "local", {"a.txt": "a\n"})
        engine = engine_factory(target_repo.repo_path)
        engine.apply(str(src))

        with pytest.raises(GitOverlayError, match="only overlays from configured sources"):
            engine.sync("local")


class TestCreateInSource:
    def test_create_commits_into_source_and_applies(self, team_source, widgets_repo, engine_factory, user_dirs) -> None:
        from gitoverlay.core.config import SourceEntry
        from gitoverlay.core.sources import CatalogSource

        widgets_repo.write({"AGENTS.md": "agents\n"})
        engine = engine_factory(widgets_repo.repo_path)

        result = engine.create_overlay("mine", ["AGENTS.md"])

        assert result.location == "team:acme/widgets/mine"
        assert result.committed is True
        assert result.applied is not None and result.applied.name == "mine"
        assert (widgets_repo.repo_path / "AGENTS.md").is_symlink()
        assert widgets_repo.status_porcelain() == ""

        clone = CatalogSource(SourceEntry("team", str(team_source.path)), user_dirs.sources_dir)
        assert (clone.path / "acme" / "widgets" / "mine" / "AGENTS.md").read_text() == "agents\n"
        assert clone.has_unpushed() is True

    def test_create_without_origin_needs_scope(self, team_source, target_repo, engine_factory) -> None:
        from gitoverlay.core.exceptions import AmbiguousReference

        target_repo.write({"AGENTS.md": "agents\n"})

        with pytest.raises(AmbiguousReference):
            engine_factory(target_repo.repo_path).create_overlay("mine", ["AGENTS.md"])


class TestRemoteUpdate:
    @pytest.fixture
    def remote(self, tmp_path: Path) -> BareRemote:
        return BareRemote(tmp_path / "remotes", "acme", "overlays", {"CLAUDE.md": "v1\n"})

    def test_update_is_noop_at_latest_commit(self, remote, target_repo, engine_factory) -> None:
        engine = engine_factory(target_repo.repo_path)
        engine.apply(remote.url)
        record = target_repo.repo_path / ".gitoverlay" / "overlays" / "overlays.yaml"
        before = record.read_bytes()

        [result] = engine.update()

        assert result.action == "up-to-date"
        assert record.read_bytes() == before

    def test_update_moves_to_new_commit(self, remote, target_repo, engine_factory) -> None:
        engine = engine_factory(target_repo.repo_path)
        applied = engine.apply(remote.url)
        new_commit = remote.publish({"CLAUDE.md": "v2\n", "extra.md": "extra\n"})

        [preview] = engine.update(dry_run=True)
        assert preview.action == "would-update"
        assert preview.new_commit == new_commit
        assert (target_repo.repo_path / "CLAUDE.md").read_text() == "v1\n"

        [result] = engine.update("overlays")

        assert result.action == "updated"
        assert result.old_commit == applied.source.commit
        assert result.new_commit == new_commit
        assert (target_repo.repo_path / "CLAUDE.md").read_text() == "v2\n"
        assert (target_repo.repo_path / "extra.md").is_symlink()
        assert engine.store.load("overlays").source.commit == new_commit
        assert target_repo.status_porcelain() == ""

    def test_local_overlays_are_skipped(self, tmp_path: Path, target_repo, engine_factory) -> None:
        src = overlay_dir(tmp_path / "local", {"a.txt": "a\n"})
        engine = engine_factory(target_repo.repo_path)
        engine.apply(str(src))

        [result] = engine.update()

        assert result.action == "skipped"
        assert result.reason == "local source"
