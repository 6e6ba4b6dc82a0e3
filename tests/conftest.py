import os
import sys
from pathlib import Path

import pytest

# Keep the repository free of Python bytecode and __pycache__ artifacts during tests.
sys.dont_write_bytecode = True

TESTS_ROOT = Path(__file__).resolve().parent
REPO_ROOT = TESTS_ROOT.parent
SRC_ROOT = REPO_ROOT / "src"

# Make src/ importable as 'gitoverlay' and tests/ as 'helpers'
for p in (SRC_ROOT, TESTS_ROOT):
    if str(p) not in sys.path:
        sys.path.insert(0, str(p))

from helpers.env import GIT_TEST_CONFIG  # noqa: E402


@pytest.fixture(autouse=True)
def isolated_user_dirs(tmp_path_factory, monkeypatch):
    """Point every per-machine store and git's global config at a fresh tmp dir.

    Tests must never read or write the developer's real ~/.config, ~/.cache or
    ~/.gitconfig, and must not pick up GITOVERLAY_* overrides from the shell.
    """
    root = tmp_path_factory.mktemp("user")
    for key in list(os.environ):
        if key.startswith("GITOVERLAY_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("GITOVERLAY_CONFIG_DIR", str(root / "config"))
    monkeypatch.setenv("GITOVERLAY_DATA_DIR", str(root / "data"))
    monkeypatch.setenv("GITOVERLAY_CACHE_DIR", str(root / "cache"))

    gitconfig = root / "gitconfig"
    gitconfig.write_text(GIT_TEST_CONFIG, encoding="utf-8")
    monkeypatch.setenv("GIT_CONFIG_GLOBAL", str(gitconfig))
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    monkeypatch.setenv("GIT_TERMINAL_PROMPT", "0")

    from gitoverlay.core.schemas.validation import load_schema
    from gitoverlay.core.utils.stdlib_logging import reset_logging_for_tests
    from gitoverlay.data import clear_caches

    yield root

    reset_logging_for_tests()
    clear_caches()
    load_schema.cache_clear()


@pytest.fixture
def user_dirs(isolated_user_dirs):
    from gitoverlay.core.utils.paths import UserDirs

    return UserDirs.from_environment()


@pytest.fixture
def target_repo(tmp_path):
    """A real git working tree to apply overlays to."""
    from helpers.env import TestGitRepo

    return TestGitRepo(tmp_path / "target")


@pytest.fixture
def engine_factory(user_dirs):
    """Build an engine for a target with the isolated user dirs."""
    from gitoverlay.core.overlay.engine import OverlayEngine

    def _make(target: Path) -> OverlayEngine:
        return OverlayEngine.create(target, dirs=user_dirs)

    return _make
