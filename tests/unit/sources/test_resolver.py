"""Tests for reference resolution."""
from __future__ import annotations

from pathlib import Path

import pytest


def _resolver(user_dirs, catalogs=()):
    from gitoverlay.core.sources import MultiSourceManager, RemoteCache, RemoteScopeDetector, SourceResolver

    detector = RemoteScopeDetector()
    return SourceResolver(
        RemoteCache(user_dirs.remotes_dir),
        lambda: MultiSourceManager(list(catalogs), detector),
        detector,
    )


class TestParseCatalogReference:
    @pytest.mark.parametrize(
        "value,expected",
        [
            ("acme/widgets/ai", ("acme/widgets", "ai")),
            ("acme/widgets", None),
            ("a/b/c/d", None),
            ("acme//ai", None),
            ("./acme/widgets/ai", None),
            ("/acme/widgets/ai", None),
            ("https://x/y/z", None),
        ],
    )
    def test_shapes(self, value: str, expected) -> None:
        from gitoverlay.core.sources import parse_catalog_reference

        assert parse_catalog_reference(value) == expected


class TestSourceResolver:
    def test_local_directory(self, tmp_path: Path, user_dirs, target_repo) -> None:
        from gitoverlay.core.overlay.models import LocalSource

        src = tmp_path / "my-overlay"
        src.mkdir()

        resolution = _resolver(user_dirs).resolve(str(src), target=target_repo.repo_path)

        assert resolution.path == src.resolve()
        assert resolution.descriptor == LocalSource(str(src.resolve()))
        assert resolution.default_name == "my-overlay"

    def test_local_file_is_not_a_source(self, tmp_path: Path, user_dirs, target_repo) -> None:
        from gitoverlay.core.exceptions import SourceNotFound

        f = tmp_path / "file.txt"
        f.write_text("x\n")

        with pytest.raises(SourceNotFound):
            _resolver(user_dirs).resolve(str(f), target=target_repo.repo_path)

    @pytest.mark.parametrize("ref", ["./missing", "/definitely/not/here", "two/segments"])
    def test_missing_paths(self, ref: str, user_dirs, target_repo) -> None:
        from gitoverlay.core.exceptions import SourceNotFound

        with pytest.raises(SourceNotFound):
            _resolver(user_dirs).resolve(ref, target=target_repo.repo_path)

    def test_bare_name_without_sources_is_ambiguous(self, user_dirs, target_repo) -> None:
        from gitoverlay.core.exceptions import AmbiguousReference

        with pytest.raises(AmbiguousReference):
            _resolver(user_dirs).resolve("ai", target=target_repo.repo_path)

    def test_bare_name_without_origin_is_ambiguous(self, tmp_path: Path, user_dirs, target_repo) -> None:
        from gitoverlay.core.config import SourceEntry
        from gitoverlay.core.exceptions import AmbiguousReference
        from gitoverlay.core.sources import CatalogSource

        catalog = CatalogSource(SourceEntry("team", str(tmp_path / "nowhere.git")), user_dirs.sources_dir)

        with pytest.raises(AmbiguousReference):
            _resolver(user_dirs, [catalog]).resolve("ai", target=target_repo.repo_path)

    def test_bare_name_uses_origin_scope(self, tmp_path: Path, user_dirs, target_repo) -> None:
        from gitoverlay.core.config import SourceEntry
        from gitoverlay.core.overlay.models import CataloguedSource, ResolvedVia
        from gitoverlay.core.sources import CatalogSource
        from helpers.env import BareRemote

        bare = BareRemote(tmp_path / "remotes", "sources", "team", {"acme/widgets/ai/CLAUDE.md": "hi\n"})
        catalog = CatalogSource(SourceEntry("team", str(bare.path)), user_dirs.sources_dir)
        target_repo.add_remote("origin", "https://github.com/acme/widgets.git")

        resolution = _resolver(user_dirs, [catalog]).resolve("ai", target=target_repo.repo_path)

        assert isinstance(resolution.descriptor, CataloguedSource)
        assert resolution.descriptor.scope == "acme/widgets"
        assert resolution.descriptor.resolved_via is ResolvedVia.DIRECT
        assert resolution.default_name == "ai"

    def test_remote_subpath_must_exist(self, tmp_path: Path, user_dirs, target_repo) -> None:
        from gitoverlay.core.exceptions import SourceNotFound
        from helpers.env import BareRemote

        bare = BareRemote(tmp_path / "remotes", "acme", "overlays", {"claude/CLAUDE.md": "hi\n"})

        with pytest.raises(SourceNotFound):
            _resolver(user_dirs).resolve(f"{bare.url}/tree/main/cursor", target=target_repo.repo_path)

    def test_remote_with_subpath(self, tmp_path: Path, user_dirs, target_repo) -> None:
        from gitoverlay.core.overlay.models import RemoteSource
        from helpers.env import BareRemote

        bare = BareRemote(tmp_path / "remotes", "acme", "overlays", {"claude/CLAUDE.md": "hi\n"})

        resolution = _resolver(user_dirs).resolve(f"{bare.url}/tree/main/claude", target=target_repo.repo_path)

        assert isinstance(resolution.descriptor, RemoteSource)
        assert resolution.descriptor.commit == bare.work.head()
        assert resolution.descriptor.subpath == "claude"
        assert resolution.default_name == "claude"
        assert (resolution.path / "CLAUDE.md").read_text() == "hi\n"
