"""PackageInfoCache / 包图阶段测试: 在 tmp_path 下构造真实目录树"""

from __future__ import annotations

import logging
import os
from pathlib import Path

import pytest

from addongraph.core.config import Config
from addongraph.core.exceptions import GraphStateError, ProjectNotFoundError
from addongraph.core.package.aggregator import discover_project_addons
from addongraph.core.package.errors import (
    ERROR_DEPENDENCIES_MISSING,
    ERROR_EMBER_ADDON_MAIN_MISSING,
    ERROR_NODEMODULES_ENTRY_MISSING,
    ERROR_PACKAGE_DIR_MISSING,
    ERROR_PACKAGE_JSON_MISSING,
    ERROR_PACKAGE_JSON_PARSE,
)
from addongraph.core.package.store import PackageInfoCache, ResolvedGraph
from addongraph.core.ui import CollectingWarningChannel
from helpers import addon_pkg, write_addon, write_package


@pytest.fixture()
def base(tmp_path: Path) -> Path:
    return tmp_path.resolve()


def _load(root: Path, config: Config | None = None):
    return PackageInfoCache(config or Config()).load_project(root)


def _resolve(root: Path, config: Config | None = None) -> ResolvedGraph:
    return _load(root, config).resolve()


class TestLoadProject:
    def test_missing_package_json_raises(self, base: Path) -> None:
        (base / "empty").mkdir()
        with pytest.raises(ProjectNotFoundError) as exc:
            _load(base / "empty")
        assert exc.value.root == str(base / "empty")

    def test_project_flag_and_role(self, base: Path) -> None:
        root = write_package(base, "app", {"name": "app"})
        graph = _resolve(root)
        assert graph.project.is_project
        assert graph.project.role == "project"
        assert graph.project.real_path == str(root)

    def test_resolved_graph_requires_resolution(self, base: Path) -> None:
        root = write_package(base, "app", {"name": "app"})
        with pytest.raises(GraphStateError):
            ResolvedGraph(_load(root))

    def test_dependencies_empty_until_resolved(self, base: Path) -> None:
        root = write_package(base, "app", {"name": "app", "dependencies": {"a": "*"}})
        write_addon(root, "node_modules/a", "a")
        materialized = _load(root)
        assert materialized.project.dependency_packages is None
        graph = materialized.resolve()
        assert list(graph.project.dependency_packages) == ["a"]


class TestDependencyResolution:
    def test_addon_and_plain_dependencies(self, base: Path) -> None:
        root = write_package(base, "app", {
            "name": "app", "dependencies": {"a": "^1.0.0", "lodash": "*"},
        })
        write_addon(root, "node_modules/a", "a")
        write_package(root, "node_modules/lodash", {"name": "lodash"})

        graph = _resolve(root)
        assert set(graph.project.dependency_packages) == {"a", "lodash"}
        assert list(graph.project_addons()) == ["a"]

    def test_scoped_package(self, base: Path) -> None:
        root = write_package(base, "app", {"name": "app", "dependencies": {"@scope/x": "*"}})
        write_addon(root, "node_modules/@scope/x", "@scope/x")

        graph = _resolve(root)
        info = graph.project_addons()["@scope/x"]
        assert info.real_path == str(root / "node_modules" / "@scope" / "x")

    def test_hoisted_sibling_found_from_node_modules(self, base: Path) -> None:
        root = write_package(base, "app", {"name": "app", "dependencies": {"a": "*"}})
        a = write_addon(root, "node_modules/a", "a", dependencies={"b": "*"})
        write_addon(root, "node_modules/b", "b")

        graph = _resolve(root)
        node_a = graph.packages[str(a)]
        assert node_a.dependency_packages["b"].real_path == str(root / "node_modules" / "b")

    def test_nested_copy_shadows_hoisted(self, base: Path) -> None:
        root = write_package(base, "app", {"name": "app", "dependencies": {"a": "*", "b": "*"}})
        a = write_addon(root, "node_modules/a", "a", dependencies={"b": "*"})
        write_addon(root, "node_modules/b", "b")
        write_addon(a, "node_modules/b", "b", version="2.0.0")

        graph = _resolve(root)
        assert graph.packages[str(a)].dependency_packages["b"].pkg["version"] == "2.0.0"
        assert graph.project.dependency_packages["b"].pkg["version"] == "1.0.0"

    def test_found_in_ancestor_of_project(self, base: Path) -> None:
        root = write_package(base, "repo/packages/app", {"name": "app", "dependencies": {"a": "*"}})
        write_addon(base, "repo/node_modules/a", "a")

        graph = _resolve(root)
        assert graph.project.dependency_packages["a"].real_path == str(base / "repo/node_modules/a")

    def test_missing_dependencies_recorded(self, base: Path) -> None:
        root = write_package(base, "app", {"name": "app", "dependencies": {"x": "*", "y": "*"}})
        graph = _resolve(root)

        missing = graph.project.errors.of_type(ERROR_DEPENDENCIES_MISSING)
        assert len(missing) == 1
        assert sorted(missing[0].data) == ["x", "y"]
        assert graph.project.valid
        assert graph.error_report() == [(str(root), ["Missing dependencies: x, y"])]

    def test_dev_dependencies_only_for_project(self, base: Path) -> None:
        root = write_package(base, "app", {
            "name": "app", "dependencies": {"a": "*"}, "devDependencies": {"d": "*"},
        })
        a = write_addon(root, "node_modules/a", "a", devDependencies={"d": "*"})
        write_addon(root, "node_modules/d", "d")

        graph = _resolve(root)
        assert list(graph.project.dev_dependency_packages) == ["d"]
        assert graph.packages[str(a)].dev_dependency_packages is None
        assert list(graph.project_addons()) == ["a", "d"]


class TestSymlinks:
    def test_symlinked_entry_deduplicated_by_real_path(self, base: Path) -> None:
        root = write_package(base, "app", {
            "name": "app",
            "dependencies": {"a": "*"},
            "ember-addon": {"paths": ["lib/a"]},
        })
        target = write_addon(root, "lib/a", "a")
        (root / "node_modules").mkdir()
        os.symlink(target, root / "node_modules" / "a")

        graph = _resolve(root)
        project = graph.project
        assert project.dependency_packages["a"] is project.in_repo_addons[0]
        assert sum(1 for n in graph.packages.values() if n.name == "a") == 1
        assert graph.project_addons()["a"].real_path == str(target)

    def test_broken_symlink_recorded_on_listing(self, base: Path) -> None:
        root = write_package(base, "app", {"name": "app"})
        nm = root / "node_modules"
        nm.mkdir()
        os.symlink(base / "does-not-exist", nm / "ghost")

        materialized = _load(root)
        listing = materialized.node_modules[str(nm)]
        assert listing.errors.of_type(ERROR_NODEMODULES_ENTRY_MISSING)
        assert "ghost" not in listing.entries
        paths = [p for p, _ in materialized.error_report()]
        assert paths == [str(nm)]

    def test_dot_entries_skipped(self, base: Path) -> None:
        root = write_package(base, "app", {"name": "app"})
        write_package(root, "node_modules/.cache", {"name": "cache"})
        listing = _load(root).node_modules[str(root / "node_modules")]
        assert listing.entries == {}


class TestInvalidPackages:
    def test_package_json_is_a_directory(self, base: Path) -> None:
        root = write_package(base, "app", {"name": "app", "dependencies": {"broken": "*", "a": "*"}})
        (root / "node_modules" / "broken" / "package.json").mkdir(parents=True)
        write_addon(root, "node_modules/a", "a")

        graph = _resolve(root)
        broken = graph.project.dependency_packages["broken"]
        assert not broken.valid
        assert broken.errors.of_type(ERROR_PACKAGE_JSON_PARSE)
        assert list(graph.project_addons()) == ["a"]

    def test_missing_package_json(self, base: Path) -> None:
        root = write_package(base, "app", {"name": "app", "ember-addon": {"paths": ["lib/b"]}})
        write_package(root, "lib/b")

        b = _resolve(root).project.in_repo_addons[0]
        assert not b.valid
        assert b.errors.of_type(ERROR_PACKAGE_JSON_MISSING)

    def test_missing_directory(self, base: Path) -> None:
        root = write_package(base, "app", {"name": "app", "ember-addon": {"paths": ["lib/nope"]}})
        b = _resolve(root).project.in_repo_addons[0]
        assert not b.valid
        assert b.errors.of_type(ERROR_PACKAGE_DIR_MISSING)

    @pytest.mark.parametrize("raw", ["{not json", "[1, 2]"])
    def test_malformed_package_json(self, base: Path, raw: str) -> None:
        root = write_package(base, "app", {"name": "app", "ember-addon": {"paths": ["lib/b"]}})
        write_package(root, "lib/b", raw=raw)

        b = _resolve(root).project.in_repo_addons[0]
        assert not b.valid
        assert b.errors.of_type(ERROR_PACKAGE_JSON_PARSE)

    def test_addon_main_missing(self, base: Path) -> None:
        root = write_package(base, "app", {"name": "app", "dependencies": {"a": "*"}})
        write_package(root, "node_modules/a", addon_pkg("a"))

        a = _resolve(root).project.dependency_packages["a"]
        assert not a.valid
        entries = a.errors.of_type(ERROR_EMBER_ADDON_MAIN_MISSING)
        assert entries[0].data == str(root / "node_modules" / "a" / "index.js")

    def test_non_addon_without_main_is_valid(self, base: Path) -> None:
        root = write_package(base, "app", {"name": "app", "dependencies": {"lodash": "*"}})
        write_package(root, "node_modules/lodash", {"name": "lodash"})
        lodash = _resolve(root).project.dependency_packages["lodash"]
        assert lodash.valid
        assert lodash.addon_main_path is None


class TestAddonMain:
    def _main_of(self, base: Path, pkg: dict, files: dict[str, str]) -> tuple[str, bool]:
        root = write_package(base, "app", {"name": "app", "dependencies": {"a": "*"}})
        write_package(root, "node_modules/a", pkg, files=files)
        a = _resolve(root).project.dependency_packages["a"]
        rel = os.path.relpath(a.addon_main_path, a.real_path)
        return rel, a.valid

    def test_default_main(self, base: Path) -> None:
        assert self._main_of(base, addon_pkg("a"), {"index.js": ""}) == ("index.js", True)

    def test_extension_appended(self, base: Path) -> None:
        pkg = addon_pkg("a", main="lib/entry")
        assert self._main_of(base, pkg, {"lib/entry.js": ""}) == ("lib/entry.js", True)

    def test_addon_config_main_wins(self, base: Path) -> None:
        pkg = addon_pkg("a", main="ignored.js", **{"ember-addon": {"main": "addon-main.js"}})
        assert self._main_of(base, pkg, {"addon-main.js": ""}) == ("addon-main.js", True)

    @pytest.mark.parametrize("main", [".", "./"])
    def test_dot_main_means_default(self, base: Path, main: str) -> None:
        pkg = addon_pkg("a", main=main)
        assert self._main_of(base, pkg, {"index.js": ""}) == ("index.js", True)

    def test_conventions_default_main(self, base: Path) -> None:
        root = write_package(base, "app", {"name": "app", "dependencies": {"a": "*"}})
        write_package(root, "node_modules/a", addon_pkg("a"), files={"index.py": ""})
        graph = _resolve(root, Config(default_main="index.py"))
        assert graph.project.dependency_packages["a"].valid


class TestHostToolAndInternal:
    def test_host_tool_found_by_name(self, base: Path) -> None:
        root = write_package(base, "app", {"name": "app"})
        cli = write_package(root, "node_modules/ember-cli", {
            "name": "ember-cli", "ember-addon": {"paths": ["lib/cli-addon"]},
        })
        write_addon(cli, "lib/cli-addon", "cli-addon")

        graph = _resolve(root)
        assert graph.project.cli_info.real_path == str(cli)
        assert list(graph.project_addons()) == ["cli-addon"]

    def test_host_tool_root_from_config(self, base: Path) -> None:
        root = write_package(base, "app", {"name": "app"})
        tool = write_package(root, "tools/cli", {"name": "my-cli"})
        graph = _resolve(root, Config(host_tool_root="tools/cli"))
        assert graph.project.cli_info.real_path == str(tool)

    def test_no_host_tool(self, base: Path) -> None:
        root = write_package(base, "app", {"name": "app"})
        assert _resolve(root).project.cli_info is None

    def test_internal_addon_paths(self, base: Path) -> None:
        root = write_package(base, "app", {"name": "app"})
        write_addon(root, "internal/x", "x")

        graph = _resolve(root, Config(internal_addon_paths=["internal/x"]))
        assert [n.name for n in graph.project.internal_addons] == ["x"]
        assert list(graph.project_addons()) == ["x"]


class TestAddonDiscovery:
    def test_invalid_in_repo_addon_reported_once(self, base: Path) -> None:
        root = write_package(base, "app", {
            "name": "app",
            "dependencies": {"a": "*"},
            "ember-addon": {"paths": ["lib/b"]},
        })
        write_addon(root, "node_modules/a", "a")
        write_package(root, "lib/b", addon_pkg("b"))   # 没有 index.js

        graph = _resolve(root)
        candidates = discover_project_addons(graph.project)
        assert [c.name for c in candidates] == ["a", "b"]

        channel = CollectingWarningChannel()
        assert list(graph.project_addons(channel=channel)) == ["a"]
        assert list(graph.project_addons(channel=channel)) == ["a"]
        assert channel.lines == [
            f"For project at path {root}:",
            "   Excluding invalid/malformed/missing addon at relative path 'lib/b'",
        ]

    def test_warning_logged_without_channel(
        self, base: Path, caplog: pytest.LogCaptureFixture,
    ) -> None:
        root = write_package(base, "app", {"name": "app", "ember-addon": {"paths": ["lib/b"]}})
        write_package(root, "lib/b", addon_pkg("b"))

        with caplog.at_level(logging.WARNING, logger="addongraph.warnings"):
            assert _resolve(root).project_addons() == {}
        assert "relative path 'lib/b'" in caplog.text

    def test_addon_shaped_project_listed_first(self, base: Path) -> None:
        root = write_package(base, "app", addon_pkg("app", dependencies={"a": "*"}),
                             files={"index.js": ""})
        write_addon(root, "node_modules/a", "a")

        graph = _resolve(root)
        assert list(graph.project_addons()) == ["app", "a"]
        assert graph.walk_addons() == {str(root / "node_modules" / "a"): {}}

    def test_walk_addons(self, base: Path) -> None:
        root = write_package(base, "app", {"name": "app", "dependencies": {"a": "*"}})
        a = write_addon(root, "node_modules/a", "a", dependencies={"c": "*", "ember-cli": "*"})
        c = write_addon(root, "node_modules/c", "c", dependencies={"a": "*"})
        write_addon(root, "node_modules/ember-cli", "ember-cli")

        children = _resolve(root).walk_addons()
        assert list(children) == [str(a), str(c)]
        assert list(children[str(a)]) == ["c"]
        assert list(children[str(c)]) == ["a"]

    def test_walk_addons_exclude(self, base: Path) -> None:
        root = write_package(base, "app", {"name": "app", "dependencies": {"a": "*"}})
        write_addon(root, "node_modules/a", "a", dependencies={"c": "*"})
        write_addon(root, "node_modules/c", "c")

        children = _resolve(root).walk_addons(exclude=lambda info: info.name == "c")
        assert list(children) == [str(root / "node_modules" / "a")]
        assert children[str(root / "node_modules" / "a")] == {}

    def test_error_report_sorted(self, base: Path) -> None:
        root = write_package(base, "app", {
            "name": "app", "dependencies": {"gone": "*"},
            "ember-addon": {"paths": ["lib/z", "lib/b"]},
        })
        write_package(root, "lib/z")
        write_package(root, "lib/b", raw="{")

        report = _resolve(root).error_report()
        assert [p for p, _ in report] == [str(root), str(root / "lib/b"), str(root / "lib/z")]
