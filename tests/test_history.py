"""Tests for per-port history files and the baseline file."""

from __future__ import annotations

import pytest

from portledger.core.types import SchemedVersion, Version, VersionHistoryEntry, VersionScheme
from portledger.registry.baseline import (
    BaselineFormatError,
    BaselineNotFoundError,
    BaselineRegistry,
)
from portledger.registry.history import (
    HistoryFormatError,
    RecordAction,
    VersionHistory,
    VersionHistoryStore,
)
from tests.registry_helpers import baseline_path, history_path, read_json


def entry(text: str, content_hash: str, port_version: int = 0) -> VersionHistoryEntry:
    return VersionHistoryEntry(
        SchemedVersion(VersionScheme.RELAXED, Version(text, port_version)), content_hash
    )


class TestVersionHistory:
    def test_prepend_puts_newest_first(self):
        history = VersionHistory("foo", [entry("1.0", "aaa")])
        history.record(entry("1.1", "bbb"), RecordAction.PREPEND)
        assert [e.content_hash for e in history.entries] == ["bbb", "aaa"]

    def test_replace_keeps_position(self):
        history = VersionHistory("foo", [entry("1.1", "bbb"), entry("1.0", "aaa")])
        history.record(entry("1.0", "ccc"), RecordAction.REPLACE)
        assert [e.content_hash for e in history.entries] == ["bbb", "ccc"]

    def test_replace_requires_existing_version(self):
        history = VersionHistory("foo", [entry("1.0", "aaa")])
        with pytest.raises(LookupError):
            history.record(entry("2.0", "bbb"), RecordAction.REPLACE)

    def test_lookups_use_port_version(self):
        history = VersionHistory("foo", [entry("1.0", "bbb", 1), entry("1.0", "aaa")])
        assert history.find_by_version(Version("1.0", 1)).content_hash == "bbb"
        assert history.find_by_version(Version("1.0", 2)) is None
        assert history.find_by_content_hash("aaa").version == Version("1.0")


class TestVersionHistoryStore:
    def test_missing_file_is_none(self, tmp_path):
        assert VersionHistoryStore(tmp_path).load("zlib") is None

    def test_path_layout(self, tmp_path):
        assert VersionHistoryStore(tmp_path).path_for("zlib") == tmp_path / "z-" / "zlib.json"

    def test_persist_and_reload(self, registry_root):
        store = VersionHistoryStore(registry_root / "versions")
        history = store.create("foo")
        history.record(entry("1.0", "aaa"), RecordAction.PREPEND)
        path = store.persist(history)

        assert path == history_path(registry_root, "foo")
        assert read_json(path) == {
            "versions": [{"git-tree": "aaa", "version": "1.0", "port-version": 0}]
        }
        assert not path.with_name("foo.json.tmp").exists()

        reloaded = VersionHistoryStore(registry_root / "versions").load("foo")
        assert reloaded.entries == history.entries

    def test_file_text_layout(self, registry_root):
        store = VersionHistoryStore(registry_root / "versions")
        history = store.create("foo")
        history.record(
            VersionHistoryEntry(SchemedVersion(VersionScheme.DATE, Version("2021-01-01", 2)), "t"),
            RecordAction.PREPEND,
        )
        text = store.persist(history).read_text(encoding="utf-8")
        assert text == (
            "{\n"
            '  "versions": [\n'
            "    {\n"
            '      "git-tree": "t",\n'
            '      "version-date": "2021-01-01",\n'
            '      "port-version": 2\n'
            "    }\n"
            "  ]\n"
            "}\n"
        )

    @pytest.mark.parametrize(
        "content",
        [
            "not json",
            '{"versions": {}}',
            '{"versions": [{"git-tree": "a"}]}',
            '{"versions": [{"git-tree": "a", "version": "1", "version-date": "2021-01-01"}]}',
            '{"versions": [{"git-tree": "a", "version": "1", "port-version": "1"}]}',
            '{"versions": [{"git-tree": "a", "version-date": "2021-02-30"}]}',
            '{"versions": [{"git-tree": "a", "version": "1", "extra": true}]}',
        ],
    )
    def test_malformed_files(self, registry_root, content):
        path = history_path(registry_root, "foo")
        path.parent.mkdir(parents=True)
        path.write_text(content, encoding="utf-8")
        with pytest.raises(HistoryFormatError) as exc_info:
            VersionHistoryStore(registry_root / "versions").load("foo")
        assert exc_info.value.path == path

    def test_loads_all_schemes(self, registry_root):
        path = history_path(registry_root, "foo")
        path.parent.mkdir(parents=True)
        path.write_text(
            '{"versions": ['
            '{"git-tree": "d", "version-string": "vista", "port-version": 0},'
            '{"git-tree": "c", "version-date": "2021-01-01"},'
            '{"git-tree": "b", "version-semver": "1.0.0", "port-version": 3},'
            '{"git-tree": "a", "version": "1.0"}'
            "]}",
            encoding="utf-8",
        )
        history = VersionHistoryStore(registry_root / "versions").load("foo")
        assert [e.schemed_version.scheme for e in history.entries] == [
            VersionScheme.STRING,
            VersionScheme.DATE,
            VersionScheme.SEMVER,
            VersionScheme.RELAXED,
        ]
        assert history.entries[2].version == Version("1.0.0", 3)


class TestBaselineRegistry:
    def test_missing_file(self, tmp_path):
        with pytest.raises(BaselineNotFoundError, match="couldn't find required file"):
            BaselineRegistry.load(tmp_path / "baseline.json")

    @pytest.mark.parametrize(
        "content",
        [
            "[]",
            '{"default": {"zlib": {"baseline": 1}}}',
            '{"default": {"zlib": {"baseline": "1", "port-version": -1}}}',
            '{"default": {"zlib": {"version": "1"}}}',
        ],
    )
    def test_malformed(self, tmp_path, content):
        path = tmp_path / "baseline.json"
        path.write_text(content, encoding="utf-8")
        with pytest.raises(BaselineFormatError):
            BaselineRegistry.load(path)

    def test_get_set_persist(self, registry_root):
        baseline = BaselineRegistry.load(baseline_path(registry_root))
        assert len(baseline) == 0
        assert baseline.get("zlib") is None

        baseline.set("zlib", Version("1.2.11", 3))
        baseline.set("abseil", Version("2021-01-01"))
        baseline.persist()

        text = baseline_path(registry_root).read_text(encoding="utf-8")
        assert text.index('"abseil"') < text.index('"zlib"')
        assert read_json(baseline_path(registry_root)) == {
            "default": {
                "abseil": {"baseline": "2021-01-01", "port-version": 0},
                "zlib": {"baseline": "1.2.11", "port-version": 3},
            }
        }

        reloaded = BaselineRegistry.load(baseline_path(registry_root))
        assert "zlib" in reloaded
        assert reloaded.get("zlib") == Version("1.2.11", 3)
