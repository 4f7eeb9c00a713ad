"""包信息缓存与包图阶段

两阶段协议:
  1. PackageInfoCache.load_project() 读取项目根下所有可达的包（含上级目录的 node_modules），
     返回 MaterializedGraph。
     此时每个 PackageNode 都已存在，但依赖映射为空。
  2. MaterializedGraph.resolve() 为每个节点解析依赖，返回 ResolvedGraph。
     只有 ResolvedGraph 提供 addon 发现。

同一个 real_path 只创建一个节点；符号链接按真实路径去重。
"""

from __future__ import annotations

import logging
import os
from collections import deque
from pathlib import Path
from types import MappingProxyType
from typing import Mapping

from addongraph.core.config import Config, get_config
from addongraph.core.exceptions import GraphStateError, ProjectNotFoundError
from addongraph.core.package.errors import (
    ERROR_EMBER_ADDON_MAIN_MISSING,
    ERROR_NODEMODULES_ENTRY_MISSING,
    ERROR_PACKAGE_DIR_MISSING,
    ERROR_PACKAGE_JSON_MISSING,
    ERROR_PACKAGE_JSON_PARSE,
    format_error,
)
from addongraph.core.package.addon_map import AddonPredicate, build_addon_map
from addongraph.core.package.aggregator import discover_addon_addons, discover_project_addons
from addongraph.core.package.models import AddonInfo
from addongraph.core.package.node import PackageNode
from addongraph.core.package.node_modules import NODE_MODULES, NodeModulesList, find_in_ancestors
from addongraph.core.package.resolver import DependencyResolver
from addongraph.core.protocols import WarningChannel
from addongraph.core.ui import LoggingWarningChannel
from addongraph.utils.json_io import ManifestParseError, read_manifest

logger = logging.getLogger(__name__)

PACKAGE_JSON = "package.json"


class PackageInfoCache:
    """从磁盘读取包并构建节点（第一阶段）"""

    def __init__(self, config: Config | None = None) -> None:
        self.config = config or get_config()
        self.conventions = self.config.conventions()
        self._packages: dict[str, PackageNode] = {}
        self._node_modules: dict[str, NodeModulesList] = {}

    def load_project(self, project_root: str | Path) -> MaterializedGraph:
        root = Path(project_root).resolve()
        if not (root / PACKAGE_JSON).is_file():
            raise ProjectNotFoundError(f"项目根目录缺少 {PACKAGE_JSON}: {root}", str(root))

        project = self._read_package(root)
        project.is_project = True
        self._read_ancestor_node_modules(root)

        for rel in self.config.internal_addon_paths:
            project.add_internal_addon(self._read_package(root / rel))

        project.cli_info = self._locate_host_tool(project)
        logger.info(
            "已读取项目 %s: %d 个包, %d 个 node_modules 目录",
            project.name, len(self._packages), len(self._node_modules),
        )
        return MaterializedGraph(project, self._packages, self._node_modules)

    def find_package(self, name: str, start_dir: str) -> PackageNode | None:
        return find_in_ancestors(self._node_modules, name, start_dir)

    # ------------------------------------------------------------------
    # 读取
    # ------------------------------------------------------------------

    def _new_node(self, pkg: dict, real_path: str) -> PackageNode:
        node = PackageNode(pkg, real_path, self.conventions)
        # 先登记再递归，in-repo addon 互相引用时不会死循环
        self._packages[real_path] = node
        return node

    def _read_package(self, pkg_path: Path) -> PackageNode:
        real = pkg_path.resolve()
        key = os.fspath(real)
        existing = self._packages.get(key)
        if existing is not None:
            return existing

        if not real.is_dir():
            node = self._new_node({}, key)
            node.valid = False
            node.add_error(ERROR_PACKAGE_DIR_MISSING, key)
            return node

        pkg_file = real / PACKAGE_JSON
        try:
            node = self._new_node(read_manifest(pkg_file), key)
        except FileNotFoundError:
            node = self._new_node({}, key)
            node.valid = False
            node.add_error(ERROR_PACKAGE_JSON_MISSING, os.fspath(pkg_file))
        except ManifestParseError as e:
            node = self._new_node({}, key)
            node.valid = False
            node.add_error(ERROR_PACKAGE_JSON_PARSE, str(e))

        if node.is_addon():
            self._set_addon_main(node)

        paths = node.addon_config.get("paths")
        if isinstance(paths, list):
            for rel in paths:
                if isinstance(rel, str):
                    node.add_in_repo_addon(self._read_package(real / rel))

        nm = real / NODE_MODULES
        if nm.is_dir():
            node.node_modules = self._read_node_modules_list(nm)

        return node

    def _set_addon_main(self, node: PackageNode) -> None:
        default = self.conventions.default_main
        main = node.addon_config.get("main") or node.pkg.get("main")
        if not isinstance(main, str) or main in (".", "./"):
            main = default
        elif not os.path.splitext(main)[1]:
            main = main + os.path.splitext(default)[1]

        main_path = os.path.normpath(os.path.join(node.real_path, main))
        node.addon_main_path = main_path
        if not os.path.isfile(main_path):
            node.valid = False
            node.add_error(ERROR_EMBER_ADDON_MAIN_MISSING, main_path)

    def _read_node_modules_list(self, nm_path: Path) -> NodeModulesList:
        key = os.fspath(nm_path)
        existing = self._node_modules.get(key)
        if existing is not None:
            return existing

        listing = NodeModulesList(key)
        self._node_modules[key] = listing

        for child in sorted(nm_path.iterdir(), key=lambda p: p.name):
            name = child.name
            if name.startswith("."):
                continue
            if child.is_dir():
                if name.startswith("@"):
                    listing.add_entry(name, self._read_node_modules_list(child))
                else:
                    listing.add_entry(name, self._read_package(child))
            elif child.is_symlink():
                # 悬空链接
                listing.add_error(ERROR_NODEMODULES_ENTRY_MISSING, os.fspath(child))
        return listing

    def _read_ancestor_node_modules(self, root: Path) -> None:
        """项目之上各级目录的 node_modules（提升安装的依赖在这里）"""
        for parent in root.parents:
            nm = parent / NODE_MODULES
            if nm.is_dir():
                self._read_node_modules_list(nm)

    def _locate_host_tool(self, project: PackageNode) -> PackageNode | None:
        if self.config.host_tool_root:
            return self._read_package(Path(project.real_path) / self.config.host_tool_root)
        return self.find_package(self.conventions.host_tool_name, project.real_path)


class MaterializedGraph:
    """所有节点已物化、依赖尚未解析的包图"""

    def __init__(
        self,
        project: PackageNode,
        packages: Mapping[str, PackageNode],
        node_modules: Mapping[str, NodeModulesList],
    ) -> None:
        self.project = project
        self.packages = MappingProxyType(dict(packages))
        self.node_modules = MappingProxyType(dict(node_modules))

    def find_package(self, name: str, start_dir: str) -> PackageNode | None:
        return find_in_ancestors(self.node_modules, name, start_dir)

    def resolve(self) -> ResolvedGraph:
        """第二阶段: 为每个节点解析依赖"""
        resolver = DependencyResolver(self)
        for node in self.packages.values():
            resolver.resolve_node(node)
        return ResolvedGraph(self)

    def error_report(self) -> list[tuple[str, list[str]]]:
        """(路径, 错误行) 列表，覆盖所有有错误的节点和 node_modules 目录"""
        report: list[tuple[str, list[str]]] = []
        holders: list[PackageNode | NodeModulesList] = [
            *self.packages.values(), *self.node_modules.values(),
        ]
        for holder in sorted(holders, key=lambda h: h.real_path):
            if holder.has_errors():
                report.append((holder.real_path, [format_error(e) for e in holder.errors]))
        return report


class ResolvedGraph:
    """依赖已解析的包图，提供 addon 发现

    未指定警告通道时，无效 addon 警告写入 addongraph.warnings 日志。
    """

    def __init__(self, materialized: MaterializedGraph) -> None:
        pending = [n.real_path for n in materialized.packages.values() if not n.processed]
        if pending:
            raise GraphStateError(f"仍有 {len(pending)} 个包的依赖未解析: {pending[0]}")
        self._materialized = materialized
        self._default_channel = LoggingWarningChannel()

    @property
    def project(self) -> PackageNode:
        return self._materialized.project

    @property
    def packages(self) -> Mapping[str, PackageNode]:
        return self._materialized.packages

    def find_package(self, name: str, start_dir: str) -> PackageNode | None:
        return self._materialized.find_package(name, start_dir)

    def error_report(self) -> list[tuple[str, list[str]]]:
        return self._materialized.error_report()

    def project_addons(
        self,
        exclude: AddonPredicate | None = None,
        channel: WarningChannel | None = None,
    ) -> dict[str, AddonInfo]:
        project = self.project
        return build_addon_map(
            project, discover_project_addons(project), exclude, channel or self._default_channel,
        )

    def addon_addons(
        self,
        node: PackageNode,
        exclude: AddonPredicate | None = None,
        channel: WarningChannel | None = None,
    ) -> dict[str, AddonInfo]:
        return build_addon_map(
            node, discover_addon_addons(node), exclude, channel or self._default_channel,
        )

    def walk_addons(
        self,
        exclude: AddonPredicate | None = None,
        channel: WarningChannel | None = None,
    ) -> dict[str, dict[str, AddonInfo]]:
        """广度优先遍历项目的 addon 树

        返回 addon real_path -> 其子 addon map，每个 addon 只展开一次。
        项目自身是 addon 时不再重复展开。
        """
        children: dict[str, dict[str, AddonInfo]] = {}
        queue = deque(self.project_addons(exclude, channel).values())
        seen = {self.project.real_path}
        while queue:
            info = queue.popleft()
            if info.real_path in seen:
                continue
            seen.add(info.real_path)
            child_map = self.addon_addons(self.packages[info.real_path], exclude, channel)
            children[info.real_path] = child_map
            queue.extend(child_map.values())
        return children
