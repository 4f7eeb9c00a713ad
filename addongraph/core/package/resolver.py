"""依赖解析器

职责:
- 把 manifest 中声明的依赖名解析为图中具体的 PackageNode
- 先查节点自身的 node_modules 索引，未命中再从父目录开始向上查找
- 缺失的依赖汇总成一条错误记录在节点上，不抛异常，也不影响 valid

必须在所有可达节点都已物化之后才调用（见 MaterializedGraph.resolve）。
"""

from __future__ import annotations

import logging
import os
from typing import Any, Mapping

from addongraph.core.package.errors import ERROR_DEPENDENCIES_MISSING
from addongraph.core.package.node import PackageNode
from addongraph.core.protocols import PackageStore

logger = logging.getLogger(__name__)


class DependencyResolver:
    """依赖解析器 - 只读遍历已物化的包图"""

    def __init__(self, store: PackageStore) -> None:
        self.store = store

    def resolve_dependencies(
        self,
        node: PackageNode,
        dependencies: Mapping[str, Any] | None,
    ) -> dict[str, PackageNode] | None:
        """解析 dependencies / devDependencies 段。

        返回以声明名（而不是被解析包自身的 name）为键的字典；
        声明为空或不存在时返回 None。
        """
        if not dependencies:
            return None
        if not isinstance(dependencies, Mapping):
            logger.warning(
                "%s 的依赖声明不是对象 (实际类型: %s)，忽略",
                node.real_path, type(dependencies).__name__,
            )
            return None

        packages: dict[str, PackageNode] = {}
        missing: list[str] = []

        for dependency_name in dependencies:
            found = self._find(node, dependency_name)
            if found is not None:
                packages[dependency_name] = found
            else:
                missing.append(dependency_name)

        if missing:
            logger.debug("%s 缺少依赖: %s", node.real_path, ", ".join(missing))
            node.add_error(ERROR_DEPENDENCIES_MISSING, missing)

        return packages

    def _find(self, node: PackageNode, name: str) -> PackageNode | None:
        # 大多数依赖就在包自己的 node_modules 下，先查本地索引
        if node.node_modules is not None:
            found = node.node_modules.find_package(name)
            if found is not None:
                return found
        return self.store.find_package(name, os.path.dirname(node.real_path))

    def resolve_node(self, node: PackageNode) -> None:
        """填充单个节点的依赖映射，每个节点只处理一次"""
        if node.processed:
            return
        pkgs = self.resolve_dependencies(node, node.pkg.get("dependencies"))
        if pkgs is not None:
            node.dependency_packages = pkgs
        # 只有项目才关心 devDependencies
        if node.is_project:
            pkgs = self.resolve_dependencies(node, node.pkg.get("devDependencies"))
            if pkgs is not None:
                node.dev_dependency_packages = pkgs
        node.processed = True
