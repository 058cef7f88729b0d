"""Tests for the portledger command line."""

from __future__ import annotations

import json

import pytest

from portledger.cli import create_parser, main
from tests.registry_helpers import (
    FakeHashSource,
    baseline_path,
    history_path,
    read_json,
    write_control,
    write_manifest,
)


@pytest.fixture
def fake_git(monkeypatch):
    """Replace GitBackend with an in-memory hash source."""
    source = FakeHashSource()
    monkeypatch.setattr("portledger.registry.vcs.GitBackend", lambda *args, **kwargs: source)
    return source


class TestParser:
    def test_add_version_flags(self):
        args = create_parser().parse_args(
            ["add-version", "zlib", "--overwrite-version", "--skip-formatting-check"]
        )
        assert args.command == "add-version"
        assert args.port == "zlib"
        assert args.overwrite_version
        assert args.skip_formatting_check
        assert not args.all

    def test_no_command_prints_help(self, capsys):
        assert main([]) == 0
        assert "add-version" in capsys.readouterr().out


class TestAddVersion:
    def test_single_port(self, registry_root, fake_git, capsys):
        write_manifest(registry_root, "foo", "1.0.0")
        fake_git.trees["foo"] = "deadbeef"

        assert main(["--root", str(registry_root), "add-version", "foo"]) == 0

        assert read_json(history_path(registry_root, "foo"))["versions"][0]["git-tree"] == (
            "deadbeef"
        )
        assert read_json(baseline_path(registry_root))["default"]["foo"]["baseline"] == "1.0.0"
        assert "added version 1.0.0" in capsys.readouterr().out

    def test_root_from_environment(self, registry_root, fake_git, monkeypatch):
        monkeypatch.setenv("PORTLEDGER_ROOT", str(registry_root))
        write_manifest(registry_root, "foo", "1.0.0")
        fake_git.trees["foo"] = "deadbeef"

        assert main(["add-version", "foo"]) == 0
        assert history_path(registry_root, "foo").exists()

    def test_requires_port_or_all(self, registry_root, fake_git, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main(["--root", str(registry_root), "add-version"])
        assert exc_info.value.code == 2
        assert "requires passing --all" in capsys.readouterr().err

    def test_port_name_wins_over_all(self, registry_root, fake_git, capsys):
        write_manifest(registry_root, "foo", "1.0.0")
        write_manifest(registry_root, "bar", "1.0.0")
        fake_git.trees.update({"foo": "f1", "bar": "b1"})

        assert main(["--root", str(registry_root), "add-version", "foo", "--all"]) == 0

        assert "ignoring --all" in capsys.readouterr().out
        assert not history_path(registry_root, "bar").exists()

    def test_single_port_failure(self, registry_root, fake_git, capsys):
        write_manifest(registry_root, "foo", "1.0.0")

        assert main(["--root", str(registry_root), "add-version", "foo"]) == 1
        assert "error: can't obtain SHA for port foo" in capsys.readouterr().out

    def test_all_is_quiet_and_continues_past_failures(self, registry_root, fake_git, capsys):
        for name in ("alpha", "beta", "gamma"):
            write_manifest(registry_root, name, "1.0")
        fake_git.trees.update({"alpha": "a1", "gamma": "c1"})

        assert main(["--root", str(registry_root), "add-version", "--all"]) == 1

        out = capsys.readouterr().out
        assert "1 of 3 ports could not be updated" in out
        assert "added version" not in out
        assert set(read_json(baseline_path(registry_root))["default"]) == {"alpha", "gamma"}

    def test_all_continues_past_non_utf8_manifest(self, registry_root, fake_git, capsys):
        write_manifest(registry_root, "alpha", "1.0")
        (registry_root / "ports" / "beta").mkdir()
        (registry_root / "ports" / "beta" / "vcpkg.json").write_bytes(b"\xff\xfe{}")
        write_manifest(registry_root, "gamma", "1.0")
        fake_git.trees.update({"alpha": "a1", "beta": "b1", "gamma": "c1"})

        assert main(["--root", str(registry_root), "add-version", "--all"]) == 1

        assert "not valid UTF-8" in capsys.readouterr().out
        assert set(read_json(baseline_path(registry_root))["default"]) == {"alpha", "gamma"}

    def test_all_verbose(self, registry_root, fake_git, capsys):
        write_manifest(registry_root, "alpha", "1.0")
        fake_git.trees["alpha"] = "a1"

        assert main(["--root", str(registry_root), "add-version", "--all", "--verbose"]) == 0
        assert "added version 1.0" in capsys.readouterr().out

    def test_missing_baseline(self, registry_root, fake_git, capsys):
        baseline_path(registry_root).unlink()
        write_manifest(registry_root, "foo", "1.0.0")
        fake_git.trees["foo"] = "deadbeef"

        assert main(["--root", str(registry_root), "add-version", "foo"]) == 1
        assert "couldn't find required file" in capsys.readouterr().out

    def test_overwrite_flag(self, registry_root, fake_git):
        write_manifest(registry_root, "foo", "1.0.0")
        fake_git.trees["foo"] = "deadbeef"
        root = str(registry_root)
        assert main(["--root", root, "add-version", "foo"]) == 0

        fake_git.trees["foo"] = "cafe"
        assert main(["--root", root, "add-version", "foo"]) == 1
        assert main(["--root", root, "add-version", "foo", "--overwrite-version"]) == 0

        versions = read_json(history_path(registry_root, "foo"))["versions"]
        assert [v["git-tree"] for v in versions] == ["cafe"]


class TestFormatManifest:
    def test_rewrites_drifted_manifest(self, registry_root, capsys):
        path = registry_root / "ports" / "foo" / "vcpkg.json"
        path.parent.mkdir()
        path.write_text(json.dumps({"version": "1.0", "name": "foo"}), encoding="utf-8")

        assert main(["--root", str(registry_root), "format-manifest", "foo"]) == 0

        assert path.read_text(encoding="utf-8") == (
            '{\n  "name": "foo",\n  "version": "1.0"\n}\n'
        )
        assert "formatted" in capsys.readouterr().out

    def test_formatted_manifest_untouched(self, registry_root, capsys):
        write_manifest(registry_root, "foo", "1.0")

        assert main(["--root", str(registry_root), "format-manifest", "--all"]) == 0
        assert capsys.readouterr().out == ""

    def test_control_port_is_skipped(self, registry_root, capsys):
        write_control(registry_root, "legacy", "Source: legacy\nVersion: 1\n")

        assert main(["--root", str(registry_root), "format-manifest", "legacy"]) == 0
        assert "uses a CONTROL file" in capsys.readouterr().out
        assert not (registry_root / "ports" / "legacy" / "vcpkg.json").exists()

    def test_unparseable_manifest(self, registry_root, capsys):
        path = registry_root / "ports" / "foo" / "vcpkg.json"
        path.parent.mkdir()
        path.write_text("{", encoding="utf-8")

        assert main(["--root", str(registry_root), "format-manifest", "foo"]) == 1
        assert "error: Error: while loading" in capsys.readouterr().out

    def test_nested_comments_kept(self, registry_root):
        path = registry_root / "ports" / "foo" / "vcpkg.json"
        path.parent.mkdir()
        drifted = {
            "version": "1.0",
            "name": "foo",
            "dependencies": [{"name": "zlib", "$comment": "pinned"}],
            "features": {"ssl": {"description": "TLS", "$comment": "tls"}},
        }
        path.write_text(json.dumps(drifted), encoding="utf-8")

        assert main(["--root", str(registry_root), "format-manifest", "foo"]) == 0

        formatted = read_json(path)
        assert formatted["dependencies"] == [{"$comment": "pinned", "name": "zlib"}]
        assert formatted["features"] == {"ssl": {"$comment": "tls", "description": "TLS"}}
        assert list(formatted["dependencies"][0]) == ["$comment", "name"]

    def test_all_continues_past_non_utf8_manifest(self, registry_root, capsys):
        bad = registry_root / "ports" / "bad" / "vcpkg.json"
        bad.parent.mkdir()
        bad.write_bytes(b'{"name": "bad", "version": "caf\xe9"}')
        good = registry_root / "ports" / "good" / "vcpkg.json"
        good.parent.mkdir()
        good.write_text(json.dumps({"version": "1.0", "name": "good"}), encoding="utf-8")

        assert main(["--root", str(registry_root), "format-manifest", "--all"]) == 1

        assert "not valid UTF-8" in capsys.readouterr().out
        assert read_json(good) == {"name": "good", "version": "1.0"}
        assert bad.read_bytes() == b'{"name": "bad", "version": "caf\xe9"}'

    def test_requires_ports_or_all(self, registry_root):
        with pytest.raises(SystemExit):
            main(["--root", str(registry_root), "format-manifest"])
