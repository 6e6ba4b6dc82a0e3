"""Tests for path safety and file placement."""
from __future__ import annotations

import os
from pathlib import Path

import pytest


class TestNormalizeRelative:
    @pytest.mark.parametrize("rel", ["", "/etc/passwd", "~/x", "..", "../outside", "a/../../b", "C:/x", "."])
    def test_rejects_escapes(self, rel: str) -> None:
        from gitoverlay.core.exceptions import UnsafePath
        from gitoverlay.core.overlay.placement import normalize_relative

        with pytest.raises(UnsafePath):
            normalize_relative(rel)

    @pytest.mark.parametrize(
        "rel,expected",
        [("a/b", "a/b"), ("a/./b", "a/b"), ("a/x/../b", "a/b"), ("a\\b", "a/b")],
    )
    def test_normalizes(self, rel: str, expected: str) -> None:
        from gitoverlay.core.overlay.placement import normalize_relative

        assert normalize_relative(rel) == expected


class TestResolveWithin:
    def test_symlinked_parent_leading_outside_rejected(self, tmp_path: Path) -> None:
        from gitoverlay.core.exceptions import UnsafePath
        from gitoverlay.core.overlay.placement import resolve_within

        root = tmp_path / "root"
        outside = tmp_path / "outside"
        root.mkdir()
        outside.mkdir()
        (root / "link").symlink_to(outside, target_is_directory=True)

        with pytest.raises(UnsafePath):
            resolve_within(root, "link/file.txt")

    def test_final_symlink_component_not_followed(self, tmp_path: Path) -> None:
        from gitoverlay.core.overlay.placement import resolve_within

        root = tmp_path / "root"
        root.mkdir()
        (root / "placed").symlink_to(tmp_path)

        assert resolve_within(root, "placed") == root.resolve() / "placed"


class TestFilePlacer:
    def _source(self, tmp_path: Path) -> Path:
        src = tmp_path / "src"
        (src / "dir").mkdir(parents=True)
        (src / "file.md").write_text("file\n")
        (src / "dir" / "inner.txt").write_text("inner\n")
        return src

    def test_symlink_placement(self, tmp_path: Path) -> None:
        from gitoverlay.core.overlay.models import FileEntry
        from gitoverlay.core.overlay.placement import FilePlacer

        src = self._source(tmp_path)
        target = tmp_path / "target"
        target.mkdir()

        placed = FilePlacer(target).place(src, FileEntry("file.md", "nested/file.md"))

        assert placed.is_symlink()
        assert Path(os.readlink(placed)) == (src / "file.md").resolve()

    def test_copy_placement_of_directory_unit(self, tmp_path: Path) -> None:
        from gitoverlay.core.overlay.models import EntryKind, FileEntry, PlacementKind
        from gitoverlay.core.overlay.placement import FilePlacer

        src = self._source(tmp_path)
        target = tmp_path / "target"
        target.mkdir()
        entry = FileEntry("dir", "dir", placement=PlacementKind.COPY, kind=EntryKind.DIRECTORY)

        placed = FilePlacer(target).place(src, entry)

        assert not placed.is_symlink()
        assert (placed / "inner.txt").read_text() == "inner\n"

    def test_existing_target_refused_without_replace(self, tmp_path: Path) -> None:
        from gitoverlay.core.overlay.models import FileEntry
        from gitoverlay.core.overlay.placement import FilePlacer

        src = self._source(tmp_path)
        target = tmp_path / "target"
        target.mkdir()
        (target / "file.md").write_text("mine\n")

        with pytest.raises(FileExistsError):
            FilePlacer(target).place(src, FileEntry("file.md", "file.md"))
        assert (target / "file.md").read_text() == "mine\n"

    def test_remove_prunes_empty_parents(self, tmp_path: Path) -> None:
        from gitoverlay.core.overlay.models import FileEntry
        from gitoverlay.core.overlay.placement import FilePlacer

        src = self._source(tmp_path)
        target = tmp_path / "target"
        target.mkdir()
        placer = FilePlacer(target)
        entry = FileEntry("file.md", "a/b/file.md")
        placer.place(src, entry)

        assert placer.remove(entry) is True
        assert not (target / "a").exists()
        assert target.is_dir()
        assert placer.remove(entry) is False

    def test_remove_leaves_non_empty_parent(self, tmp_path: Path) -> None:
        from gitoverlay.core.overlay.models import FileEntry
        from gitoverlay.core.overlay.placement import FilePlacer

        src = self._source(tmp_path)
        target = tmp_path / "target"
        (target / "a").mkdir(parents=True)
        (target / "a" / "keep.txt").write_text("keep\n")
        placer = FilePlacer(target)
        entry = FileEntry("file.md", "a/file.md")
        placer.place(src, entry)

        placer.remove(entry)

        assert (target / "a" / "keep.txt").exists()
