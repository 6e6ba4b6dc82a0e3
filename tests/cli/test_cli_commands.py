"""CLI smoke tests driving the dispatcher in-process."""
from __future__ import annotations

import json
from pathlib import Path

import pytest

from helpers.env import BareRemote, overlay_dir


def run_cli(argv: list[str], capsys) -> tuple[int, str, str]:
    from gitoverlay.cli._dispatcher import main

    code = main(argv)
    captured = capsys.readouterr()
    return code, captured.out, captured.err


class TestDispatcher:
    def test_discovers_commands_and_domains(self) -> None:
        from gitoverlay.cli._dispatcher import discover_commands, discover_domains, discover_root_commands

        assert {"apply", "remove", "status", "restore", "update", "sync", "switch", "add_files", "create", "list", "push"} <= set(
            discover_root_commands()
        )
        assert set(discover_domains()) == {"source", "cache"}
        assert set(discover_commands("source")) == {"add", "list", "move", "remove"}
        assert set(discover_commands("cache")) == {"clear", "list", "remove"}

    def test_no_arguments_prints_help(self, capsys) -> None:
        code, out, _ = run_cli([], capsys)

        assert code == 0
        assert "gitoverlay" in out

    def test_version(self, capsys) -> None:
        from gitoverlay import __version__

        with pytest.raises(SystemExit) as excinfo:
            run_cli(["--version"], capsys)

        assert excinfo.value.code == 0
        assert __version__ in capsys.readouterr().out

    def test_underscore_alias(self, target_repo) -> None:
        from gitoverlay.cli._dispatcher import build_parser

        args = build_parser().parse_args(["add_files", "x", "a.txt", "--repo-root", str(target_repo.repo_path)])
        assert args.name == "x"
        assert args.paths == ["a.txt"]


class TestOverlayCommands:
    def test_apply_status_remove_json(self, tmp_path: Path, target_repo, capsys) -> None:
        src = overlay_dir(tmp_path / "overlays" / "ai", {"CLAUDE.md": "hi\n"})
        root = ["--repo-root", str(target_repo.repo_path), "--json"]

        code, out, _ = run_cli(["apply", str(src), *root], capsys)
        assert code == 0
        applied = json.loads(out)
        assert applied["overlay"] == "ai"
        assert applied["source"] == {"type": "local", "path": str(src.resolve())}

        code, out, _ = run_cli(["status", *root], capsys)
        assert code == 0
        status = json.loads(out)
        assert [o["overlay"] for o in status["overlays"]] == ["ai"]
        assert status["overlays"][0]["files"][0]["present"] is True
        assert status["pending_restore"] == []

        code, out, _ = run_cli(["remove", "ai", *root], capsys)
        assert code == 0
        assert json.loads(out)["removed"][0]["removed"] == ["CLAUDE.md"]
        assert target_repo.status_porcelain() == ""

    def test_apply_error_is_structured(self, tmp_path: Path, target_repo, capsys) -> None:
        target_repo.write({"CLAUDE.md": "mine\n"})
        src = overlay_dir(tmp_path / "overlays" / "ai", {"CLAUDE.md": "hi\n"})

        code, out, err = run_cli(["apply", str(src), "--repo-root", str(target_repo.repo_path), "--json"], capsys)

        assert code == 1
        assert out == ""
        payload = json.loads(err)
        assert payload["error"] == "apply_error"
        assert payload["code"] == "PathCollision"
        assert payload["context"]["path"] == "CLAUDE.md"

    def test_text_output(self, tmp_path: Path, target_repo, capsys) -> None:
        src = overlay_dir(tmp_path / "overlays" / "ai", {"CLAUDE.md": "hi\n"})

        code, out, _ = run_cli(["apply", str(src), "--repo-root", str(target_repo.repo_path), "--dry-run"], capsys)

        assert code == 0
        assert out.startswith("Would apply overlay 'ai'")
        assert "  CLAUDE.md" in out

    def test_remove_needs_name_or_all(self, target_repo, capsys) -> None:
        code, _, err = run_cli(["remove", "--repo-root", str(target_repo.repo_path)], capsys)

        assert code == 2
        assert "--all" in err

    def test_not_a_repository(self, tmp_path: Path, capsys) -> None:
        plain = tmp_path / "plain"
        plain.mkdir()

        code, _, err = run_cli(["status", "--repo-root", str(plain), "--json"], capsys)

        assert code == 1
        assert json.loads(err)["code"] == "NotAGitRepository"

    def test_restore_after_state_loss(self, tmp_path: Path, target_repo, capsys) -> None:
        import shutil

        src = overlay_dir(tmp_path / "overlays" / "ai", {"CLAUDE.md": "hi\n"})
        root = ["--repo-root", str(target_repo.repo_path)]
        run_cli(["apply", str(src), *root], capsys)
        shutil.rmtree(target_repo.repo_path / ".gitoverlay")

        code, out, _ = run_cli(["status", *root], capsys)
        assert code == 0
        assert "Needs restore" in out

        code, out, _ = run_cli(["restore", *root, "--json"], capsys)
        assert code == 0
        assert json.loads(out)["results"][0]["action"] == "restored"


class TestSourceCommands:
    def test_add_list_move_remove(self, tmp_path: Path, capsys) -> None:
        first = BareRemote(tmp_path / "remotes", "sources", "first", {"acme/widgets/ai/a.md": "a\n"})
        second = BareRemote(tmp_path / "remotes", "sources", "second", {"acme/widgets/ai/a.md": "b\n"})

        assert run_cli(["source", "add", "first", str(first.path)], capsys)[0] == 0
        code, out, _ = run_cli(["source", "add", "second", str(second.path), "--position", "1", "--json"], capsys)
        assert code == 0
        assert json.loads(out)["position"] == 1

        code, out, _ = run_cli(["source", "list", "--json"], capsys)
        rows = json.loads(out)["sources"]
        assert [(r["position"], r["name"], r["cloned"]) for r in rows] == [(1, "second", True), (2, "first", True)]

        code, out, _ = run_cli(["source", "move", "first", "1", "--json"], capsys)
        assert json.loads(out)["order"] == ["first", "second"]

        code, out, _ = run_cli(["list", "--json"], capsys)
        assert code == 0
        listed = json.loads(out)["overlays"]
        assert [(o["source"], o["reference"]) for o in listed] == [
            ("first", "acme/widgets/ai"),
            ("second", "acme/widgets/ai"),
        ]

        assert run_cli(["source", "remove", "second"], capsys)[0] == 0
        code, out, _ = run_cli(["source", "list", "--json"], capsys)
        assert [r["name"] for r in json.loads(out)["sources"]] == ["first"]

    def test_duplicate_source(self, tmp_path: Path, capsys) -> None:
        run_cli(["source", "add", "team", str(tmp_path / "x.git"), "--no-clone"], capsys)

        code, _, err = run_cli(["source", "add", "team", str(tmp_path / "y.git"), "--no-clone", "--json"], capsys)

        assert code == 1
        assert json.loads(err)["code"] == "SourceConfigError"


class TestCacheCommands:
    def test_list_and_remove(self, tmp_path: Path, target_repo, capsys) -> None:
        remote = BareRemote(tmp_path / "remotes", "acme", "overlays", {"CLAUDE.md": "v1\n"})
        run_cli(["apply", remote.url, "--repo-root", str(target_repo.repo_path)], capsys)

        code, out, _ = run_cli(["cache", "list", "--json"], capsys)
        assert code == 0
        [entry] = json.loads(out)["entries"]
        assert (entry["owner"], entry["repo"], entry["ref"]) == ("acme", "overlays", "default")

        assert run_cli(["cache", "remove", "not-a-pair"], capsys)[0] == 2
        assert run_cli(["cache", "remove", "acme/overlays"], capsys)[0] == 0
        assert run_cli(["cache", "remove", "acme/overlays"], capsys)[0] == 1

        code, out, _ = run_cli(["cache", "list"], capsys)
        assert "Cache is empty." in out
