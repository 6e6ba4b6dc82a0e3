"""Overlay engine: apply, remove, status, restore, update, sync and friends.

Every operation validates first (resolution, enumeration, path safety,
conflicts) and only then touches the working tree. Once placement has
started nothing is rolled back: a failure is reported with the entries that
landed, and those are recorded so ``remove`` can clean them up.

Operations are not safe to run concurrently against the same working tree.
"""
from __future__ import annotations

import filecmp
import logging
import shutil
from pathlib import Path
from typing import Any, Iterable, Optional

from gitoverlay.core.config import ConfigManager, SourceRegistry
from gitoverlay.core.exceptions import (
    AmbiguousReference,
    GitOverlayError,
    NotAGitRepository,
    OverlayConflict,
    PathCollision,
    PlacementFailed,
    SourceNotFound,
)
from gitoverlay.core.git.client import GitClient
from gitoverlay.core.git.excludes import ExcludeLedger
from gitoverlay.core.overlay.conflicts import ConflictDetector
from gitoverlay.core.overlay.models import (
    CataloguedSource,
    EntryKind,
    FileEntry,
    OverlayState,
    PlacementKind,
    RemoteSource,
    normalize_overlay_name,
)
from gitoverlay.core.overlay.placement import (
    FilePlacer,
    effective_placement,
    normalize_relative,
    remove_path,
    resolve_within,
)
from gitoverlay.core.overlay.planner import DEFAULT_CONFIG_FILE, enumerate_entries, load_overlay_config
from gitoverlay.core.overlay.results import (
    AddFilesResult,
    ApplyResult,
    CreateResult,
    EntryStatus,
    OverlayStatus,
    RemoveResult,
    RestoreResult,
    SyncResult,
    UpdateResult,
)
from gitoverlay.core.overlay.state import OverlayStateStore
from gitoverlay.core.sources.cache import RemoteCache
from gitoverlay.core.sources.catalog import CatalogSource
from gitoverlay.core.sources.manager import MultiSourceManager
from gitoverlay.core.sources.resolver import Resolution, SourceResolver
from gitoverlay.core.sources.upstream import RemoteScopeDetector
from gitoverlay.core.utils.paths import UserDirs
from gitoverlay.core.utils.time import utc_timestamp

logger = logging.getLogger(__name__)


def _differs(live: Path, source: Path) -> bool:
    """True if ``live`` and ``source`` hold different content."""
    if not source.exists():
        return True
    if live.is_dir() != source.is_dir():
        return True
    if not live.is_dir():
        return not filecmp.cmp(live, source, shallow=False)
    cmp = filecmp.dircmp(live, source)
    return _dircmp_differs(cmp)


def _dircmp_differs(cmp: filecmp.dircmp) -> bool:
    if cmp.left_only or cmp.right_only or cmp.funny_files:
        return True
    _, mismatch, errors = filecmp.cmpfiles(cmp.left, cmp.right, cmp.common_files, shallow=False)
    if mismatch or errors:
        return True
    return any(_dircmp_differs(sub) for sub in cmp.subdirs.values())


class OverlayEngine:
    """Orchestrates overlay operations for one target working tree."""

    def __init__(
        self,
        target_root: Path,
        *,
        store: OverlayStateStore,
        resolver: SourceResolver,
        ledger: ExcludeLedger,
        git: Optional[GitClient] = None,
        copy: bool = False,
        config_file: str = DEFAULT_CONFIG_FILE,
    ) -> None:
        self.target_root = Path(target_root).resolve()
        self.store = store
        self.resolver = resolver
        self.ledger = ledger
        self.git = git or GitClient()
        self.copy = copy
        self.config_file = config_file
        self.placer = FilePlacer(self.target_root)
        self.detector = ConflictDetector(self.target_root, reserved=(".git", self.store.state_dir.name))

    @classmethod
    def create(
        cls,
        target_root: Path,
        *,
        dirs: Optional[UserDirs] = None,
        git: Optional[GitClient] = None,
        settings: Optional[dict[str, Any]] = None,
    ) -> OverlayEngine:
        """Build an engine wired to the per-machine stores under ``dirs``.

        Raises:
            NotAGitRepository: If ``target_root`` is not inside a git work tree.
        """
        dirs = dirs or UserDirs.from_environment()
        git = git or GitClient()
        target = Path(target_root).resolve()
        if not target.is_dir() or not git.is_work_tree(target):
            raise NotAGitRepository(f"Not a git repository: {target}", context={"path": str(target)})

        cfg = settings if settings is not None else ConfigManager(dirs.config_dir).load_config()
        overlay_cfg = cfg.get("overlay") or {}
        state_dir_name = str(overlay_cfg.get("state_dir") or ".gitoverlay")

        detector = RemoteScopeDetector(git)

        def _manager() -> MultiSourceManager:
            registry = SourceRegistry(dirs.config_dir)
            catalogs = [CatalogSource(entry, dirs.sources_dir, git) for entry in registry.sources]
            return MultiSourceManager(catalogs, detector)

        return cls(
            target,
            store=OverlayStateStore(target, dirs.applied_dir, state_dir_name=state_dir_name),
            resolver=SourceResolver(RemoteCache(dirs.remotes_dir, git), _manager, detector),
            ledger=ExcludeLedger(git.exclude_file(target), state_dir_name=state_dir_name),
            git=git,
            copy=bool((cfg.get("placement") or {}).get("copy", False)),
            config_file=str(overlay_cfg.get("config_file") or DEFAULT_CONFIG_FILE),
        )

    # ------------------------------------------------------------------ apply

    def apply(
        self,
        reference: str,
        *,
        name: Optional[str] = None,
        copy: bool = False,
        overwrite: bool = False,
        source_override: Optional[str] = None,
        dry_run: bool = False,
    ) -> ApplyResult:
        """Resolve ``reference`` and apply it.

        Raises:
            OverlayConflict: The overlay is already applied, or a path is
                owned by another overlay.
            PathCollision: A path is occupied by unmanaged content.
            UnsafePath: A path escapes its root, or targets ``.git`` or the state directory.
            PlacementFailed: Placement stopped partway (nothing rolled back).
        """
        resolution = self.resolver.resolve(reference, target=self.target_root, source_override=source_override)
        return self._apply_resolution(
            resolution,
            name=name,
            placement=effective_placement(copy or self.copy),
            overwrite=overwrite,
            dry_run=dry_run,
        )

    def _apply_resolution(
        self,
        resolution: Resolution,
        *,
        name: Optional[str],
        placement: PlacementKind,
        overwrite: bool,
        dry_run: bool = False,
    ) -> ApplyResult:
        config = load_overlay_config(resolution.path, self.config_file)
        overlay_name = normalize_overlay_name(name or config.name or resolution.default_name)

        if self.store.exists(overlay_name):
            raise OverlayConflict(
                f"Overlay '{overlay_name}' is already applied; use 'update' or remove it first",
                context={"overlay": overlay_name},
            )

        entries = enumerate_entries(resolution.path, config, placement, config_file=self.config_file)
        if not entries:
            raise SourceNotFound(
                f"Overlay source {resolution.path} contains no files",
                context={"overlay": overlay_name, "path": str(resolution.path)},
            )

        report = self.detector.check(overlay_name, entries, self.store.list(), overwrite=overwrite)
        if dry_run:
            return ApplyResult(overlay_name, resolution.descriptor, placement, tuple(entries), dry_run=True)

        state = OverlayState(
            name=overlay_name,
            source=resolution.descriptor,
            applied_at=utc_timestamp(),
            placement=placement,
            files=tuple(entries),
        )
        self._place_and_record(state, resolution.path, report.replace)
        logger.info("applied overlay '%s' (%d entries)", overlay_name, len(entries))
        return ApplyResult(overlay_name, resolution.descriptor, placement, tuple(entries))

    def _place_and_record(self, state: OverlayState, source_dir: Path, replace: set[str]) -> None:
        """Place every entry, then write the exclude section and state.

        On a placement error the entries placed so far are recorded (so
        ``remove`` can undo them) and :class:`PlacementFailed` is raised.
        """
        placed: list[FileEntry] = []
        for entry in state.files:
            try:
                self.placer.place(source_dir, entry, replace_existing=entry.target in replace)
            except OSError as exc:
                if placed:
                    partial = state.with_files(placed)
                    self.ledger.add(state.name, partial.exclude_patterns)
                    self.store.save(partial)
                raise PlacementFailed(
                    f"Failed to place '{entry.target}' for overlay '{state.name}': {exc}. "
                    f"{len(placed)} of {len(state.files)} entries were placed; "
                    f"run 'gitoverlay remove {state.name}' to clean up",
                    context={
                        "overlay": state.name,
                        "placed": [e.target for e in placed],
                        "failed": entry.target,
                    },
                ) from exc
            placed.append(entry)

        self.ledger.add(state.name, state.exclude_patterns)
        self.store.save(state)

    # ----------------------------------------------------------------- remove

    def remove(self, name: str) -> RemoveResult:
        """Remove an applied overlay's files, exclude section and state.

        Raises:
            OverlayNotApplied: If ``name`` has no state record.
        """
        state = self.store.load(name)
        removed: list[str] = []
        missing: list[str] = []
        for entry in state.files:
            (removed if self.placer.remove(entry) else missing).append(entry.target)
        self.ledger.remove(state.name)
        self.store.delete(state.name)
        logger.info("removed overlay '%s'", state.name)
        return RemoveResult(state.name, tuple(removed), tuple(missing))

    def remove_all(self) -> list[RemoveResult]:
        return [self.remove(n) for n in self.store.names()]

    # ----------------------------------------------------------------- status

    def status(self, name: Optional[str] = None) -> list[OverlayStatus]:
        states = [self.store.load(name)] if name else self.store.list()
        result: list[OverlayStatus] = []
        for state in states:
            entries = []
            for entry in state.files:
                path = self.target_root / entry.target
                # exists() follows links, so a link whose source is gone reads as missing
                entries.append(EntryStatus(entry, path.exists()))
            result.append(OverlayStatus(state, tuple(entries)))
        return result

    def pending_restore(self) -> list[str]:
        return self.store.pending_restore()

    # ---------------------------------------------------------------- restore

    def restore(self, *, dry_run: bool = False) -> list[RestoreResult]:
        """Re-apply overlays whose in-tree state is gone but whose backup survives.

        Failures are reported per overlay; one failing overlay does not stop
        the others.
        """
        results: list[RestoreResult] = []
        present = set(self.store.names())
        for name in sorted(present):
            results.append(RestoreResult(name, "present"))

        for name in self.store.pending_restore():
            state = self.store.load_external(name)
            if state is None:
                continue
            if dry_run:
                results.append(RestoreResult(name, "would-restore", tuple(state.targets)))
                continue
            try:
                resolution = self.resolver.resolve_descriptor(state.source)
                report = self.detector.check(name, list(state.files), self.store.list(), previous=state)
                self._place_and_record(state, resolution.path, report.replace)
            except GitOverlayError as exc:
                logger.warning("restore of '%s' failed: %s", name, exc)
                results.append(RestoreResult(name, "failed", error=str(exc)))
                continue
            logger.info("restored overlay '%s'", name)
            results.append(RestoreResult(name, "restored", tuple(state.targets)))
        return sorted(results, key=lambda r: r.name)

    # ----------------------------------------------------------------- update

    def update(self, name: Optional[str] = None, *, dry_run: bool = False) -> list[UpdateResult]:
        """Move remote overlays to the latest commit of their ref.

        An overlay already at the latest commit is left untouched (no writes).
        """
        states = [self.store.load(name)] if name else self.store.list()
        results: list[UpdateResult] = []
        for state in states:
            descriptor = state.source
            if not isinstance(descriptor, RemoteSource):
                results.append(UpdateResult(state.name, "skipped", reason=f"{descriptor.type} source"))
                continue

            ref = self.resolver.remote_reference(descriptor)
            latest = self.resolver.cache.latest_commit(ref)
            if latest == descriptor.commit:
                results.append(UpdateResult(state.name, "up-to-date", descriptor.commit, latest))
                continue
            if dry_run:
                results.append(UpdateResult(state.name, "would-update", descriptor.commit, latest))
                continue

            resolution = self.resolver.resolve_descriptor(descriptor, update=True)
            self.remove(state.name)
            self._apply_resolution(resolution, name=state.name, placement=state.placement, overwrite=False)
            new_commit = resolution.descriptor.commit if isinstance(resolution.descriptor, RemoteSource) else None
            results.append(UpdateResult(state.name, "updated", descriptor.commit, new_commit))
        return results

    # ------------------------------------------------------------------- sync

    def _catalog_for(self, state: OverlayState) -> tuple[CatalogSource, CataloguedSource]:
        descriptor = state.source
        if not isinstance(descriptor, CataloguedSource):
            raise GitOverlayError(
                f"Overlay '{state.name}' comes from a {descriptor.type} source; "
                "only overlays from configured sources can be synced",
                context={"overlay": state.name, "source_type": descriptor.type},
            )
        return self.resolver.manager.get(descriptor.source), descriptor

    def sync(
        self,
        name: str,
        *,
        dry_run: bool = False,
        push: bool = True,
        message: Optional[str] = None,
    ) -> SyncResult:
        """Copy edited overlay files back into their catalog source and publish.

        Raises:
            OverlayNotApplied: If ``name`` has no state record.
        """
        state = self.store.load(name)
        catalog, descriptor = self._catalog_for(state)
        resolution = self.resolver.resolve_descriptor(descriptor)

        changed: dict[str, Path] = {}
        for entry in state.files:
            live = self.target_root / entry.target
            source = resolution.path / entry.source
            if not live.exists():
                continue
            if live.is_symlink() and live.resolve() == source.resolve():
                continue
            if _differs(live, source):
                changed[entry.source] = live

        # Symlinked files are edited in the clone itself.
        in_place = catalog.pending_changes(descriptor.scope, descriptor.overlay)
        touched = tuple(sorted({*changed, *in_place}))
        if dry_run or not touched:
            return SyncResult(state.name, touched, dry_run=dry_run)

        catalog.stage_files(descriptor.scope, descriptor.overlay, changed)
        committed = catalog.commit(message or f"Update {descriptor.scope}/{descriptor.overlay}")
        pushed = False
        if committed and push:
            catalog.push()
            pushed = True
        logger.info("synced %d file(s) of '%s' to source '%s'", len(touched), state.name, catalog.name)
        return SyncResult(state.name, touched, committed=committed, pushed=pushed)

    # ----------------------------------------------------------------- switch

    def switch(self, reference: str, **kwargs: Any) -> tuple[list[RemoveResult], ApplyResult]:
        """Remove every applied overlay, then apply ``reference``.

        The reference is resolved before anything is removed. If the apply
        itself fails, the removed overlays are not brought back.
        """
        resolution = self.resolver.resolve(
            reference,
            target=self.target_root,
            source_override=kwargs.pop("source_override", None),
        )
        removed = self.remove_all()
        applied = self._apply_resolution(
            resolution,
            name=kwargs.pop("name", None),
            placement=effective_placement(kwargs.pop("copy", False) or self.copy),
            overwrite=kwargs.pop("overwrite", False),
        )
        return removed, applied

    # -------------------------------------------------------------- add files

    def _relative_to_target(self, raw: str) -> str:
        path = Path(raw).expanduser()
        if path.is_absolute():
            try:
                raw = path.resolve().relative_to(self.target_root).as_posix()
            except ValueError:
                raw = str(path)
        rel = normalize_relative(raw, what="path")
        resolve_within(self.target_root, rel, what="path")
        return rel

    def add_files(self, name: str, paths: Iterable[str], *, commit: bool = True) -> AddFilesResult:
        """Move untracked files of the target into an applied overlay's source.

        Each file is copied into the overlay source and, for symlink overlays,
        replaced in the target by a link to that copy.
        """
        state = self.store.load(name)
        if isinstance(state.source, RemoteSource):
            raise GitOverlayError(
                f"Overlay '{name}' comes from a remote URL and cannot be extended",
                context={"overlay": name},
            )
        resolution = self.resolver.resolve_descriptor(state.source)

        new_entries: list[FileEntry] = []
        files: dict[str, Path] = {}
        for raw in paths:
            rel = self._relative_to_target(raw)
            live = self.target_root / rel
            if not (live.exists() and not live.is_symlink()):
                raise SourceNotFound(f"Not a regular file or directory: {rel}", context={"path": rel})
            if self.git.is_tracked(self.target_root, rel):
                raise PathCollision(f"'{rel}' is tracked by git; only untracked files can be added", context={"path": rel})
            kind = EntryKind.DIRECTORY if live.is_dir() else EntryKind.FILE
            new_entries.append(FileEntry(source=rel, target=rel, placement=state.placement, kind=kind))
            files[rel] = live

        # Existing files of this overlay may stay; other overlays must not own them.
        self.detector.check(
            name,
            [*state.files, *new_entries],
            self.store.list(),
            previous=state.with_files([*state.files, *new_entries]),
        )

        committed = False
        if isinstance(state.source, CataloguedSource):
            catalog = self.resolver.manager.get(state.source.source)
            catalog.stage_files(state.source.scope, state.source.overlay, files)
            if commit:
                committed = catalog.commit(f"Add files to {state.source.scope}/{state.source.overlay}")
        else:
            for rel, live in files.items():
                dest = resolve_within(resolution.path, rel, what="overlay path")
                dest.parent.mkdir(parents=True, exist_ok=True)
                if live.is_dir():
                    remove_path(dest)
                    shutil.copytree(live, dest, symlinks=True)
                else:
                    shutil.copy2(live, dest)

        if state.placement is PlacementKind.SYMLINK:
            for entry in new_entries:
                self.placer.place(resolution.path, entry, replace_existing=True)

        updated = state.with_files(sorted([*state.files, *new_entries], key=lambda e: e.target))
        self.ledger.add(updated.name, updated.exclude_patterns)
        self.store.save(updated)
        return AddFilesResult(name, tuple(new_entries), committed=committed)

    # ----------------------------------------------------------------- create

    def discover_candidates(self) -> list[str]:
        """Untracked and ignored paths of the target that could seed an overlay."""
        managed = {t for s in self.store.list() for t in s.targets}
        state_dir = self.store.state_dir.name + "/"
        return [
            p for p in self.git.list_ignored_and_untracked(self.target_root)
            if p.rstrip("/") not in managed and not p.startswith(state_dir)
        ]

    def create_overlay(
        self,
        name: str,
        include: list[str],
        *,
        source: Optional[str] = None,
        scope: Optional[str] = None,
        output: Optional[Path] = None,
        apply: bool = True,
    ) -> CreateResult:
        """Create an overlay from files in the target.

        Files are copied either to ``output`` (a plain directory) or into a
        catalog source under ``<scope>/<name>`` and committed there. With
        ``apply`` the new overlay is then applied in place of the originals.
        Without ``include``, nothing is written and the untracked/ignored
        candidates are returned instead.
        """
        overlay_name = normalize_overlay_name(name)
        if not include:
            return CreateResult(overlay_name, "", candidates=tuple(self.discover_candidates()))

        files: dict[str, Path] = {}
        for raw in include:
            rel = self._relative_to_target(raw)
            live = self.target_root / rel
            if not live.exists():
                raise SourceNotFound(f"File not found in target: {rel}", context={"path": rel})
            files[rel] = live

        committed = False
        if output is not None:
            dest_root = Path(output).expanduser().resolve()
            for rel, live in files.items():
                dest = resolve_within(dest_root, rel, what="overlay path")
                dest.parent.mkdir(parents=True, exist_ok=True)
                if live.is_dir():
                    shutil.copytree(live, dest, symlinks=True, dirs_exist_ok=True)
                else:
                    shutil.copy2(live, dest)
            reference = str(dest_root)
            location = str(dest_root)
        else:
            manager = self.resolver.manager
            if not manager.sources:
                raise AmbiguousReference(
                    "No sources configured; pass --output or add a source first",
                    context={"overlay": overlay_name},
                )
            catalog = manager.get(source) if source else manager.sources[0]
            scope = scope or self.resolver.detector.origin_scope(self.target_root)
            if not scope:
                raise AmbiguousReference(
                    "Cannot infer a scope from the 'origin' remote; pass --scope org/repo",
                    context={"overlay": overlay_name},
                )
            catalog.stage_files(scope, overlay_name, files)
            committed = catalog.commit(f"Add overlay {scope}/{overlay_name}")
            reference = f"{scope}/{overlay_name}"
            location = f"{catalog.name}:{reference}"

        applied = None
        if apply:
            applied = self.apply(
                reference,
                name=overlay_name,
                overwrite=True,
                source_override=None if output is not None else catalog.name,
            )
        return CreateResult(overlay_name, location, tuple(sorted(files)), committed=committed, applied=applied)


__all__ = ["OverlayEngine"]
