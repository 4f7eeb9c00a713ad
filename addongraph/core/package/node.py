"""包节点

PackageNode 描述磁盘上的一个包（带 package.json 的目录树，可能是 addon 也可能是项目）。
只由 PackageInfoCache 创建，每个 real_path 至多一个节点。

字段按需填充:
  - addon_main_path:         仅 addon
  - in_repo_addons:          addon 和项目都可能有
  - internal_addons/cli_info: 仅项目
  - dependency_packages:     全部依赖（不只 addon），由 DependencyResolver 在第二阶段填充
  - dev_dependency_packages: 同上，仅项目
  - node_modules:            包内存在 node_modules 目录时才有

valid 在目录、package.json 正常且（对 addon 而言）入口文件存在时为 True。
依赖缺失不影响 valid，因为缺失的依赖可能根本用不到。
"""

from __future__ import annotations

import os
from typing import TYPE_CHECKING, Any

from addongraph.core.config import DEFAULT_CONVENTIONS, Conventions
from addongraph.core.package.errors import ErrorList
from addongraph.core.package.models import LazySlot

if TYPE_CHECKING:
    from addongraph.core.package.loader import AddonConstructor
    from addongraph.core.package.node_modules import NodeModulesList


class PackageNode:
    """单个包的解析结果"""

    def __init__(
        self,
        pkg: dict[str, Any],
        real_path: str,
        conventions: Conventions = DEFAULT_CONVENTIONS,
    ) -> None:
        if not isinstance(pkg.get(conventions.addon_key), dict):
            pkg[conventions.addon_key] = {}
        self._pkg = pkg
        self._real_path = real_path
        self.conventions = conventions
        self.errors = ErrorList()

        self.addon_main_path: str | None = None
        self.in_repo_addons: list[PackageNode] | None = None
        self.internal_addons: list[PackageNode] | None = None
        self.cli_info: PackageNode | None = None
        self.dependency_packages: dict[str, PackageNode] | None = None
        self.dev_dependency_packages: dict[str, PackageNode] | None = None
        self.node_modules: NodeModulesList | None = None

        self.valid = True
        self.is_project = False
        self.processed = False

        self.addon_constructor: LazySlot[AddonConstructor] = LazySlot()
        self.dumped_invalid_addons = False

    def __repr__(self) -> str:
        state = "" if self.valid else " invalid"
        return f"<PackageNode {self.name!r} at {self._real_path}{state}>"

    @property
    def pkg(self) -> dict[str, Any]:
        return self._pkg

    @property
    def real_path(self) -> str:
        return self._real_path

    @property
    def name(self) -> str | None:
        return self._pkg.get("name")

    @property
    def addon_config(self) -> dict[str, Any]:
        """manifest 中的 addon 配置段（构造时保证存在）"""
        return self._pkg[self.conventions.addon_key]

    @property
    def role(self) -> str:
        return "project" if self.is_project else "addon"

    def add_error(self, error_type: str, error_data: Any = None) -> None:
        """记录一条本节点的错误。只由 PackageInfoCache 和 DependencyResolver 调用。"""
        self.errors.add_error(error_type, error_data)

    def has_errors(self) -> bool:
        """本节点是否有错误（不含其引用的依赖、in-repo addon 等节点的错误）"""
        return self.errors.has_errors()

    def add_in_repo_addon(self, node: PackageNode) -> None:
        if self.in_repo_addons is None:
            self.in_repo_addons = []
        self.in_repo_addons.append(node)

    def add_internal_addon(self, node: PackageNode) -> None:
        """internal addon 只存在于项目节点"""
        if self.internal_addons is None:
            self.internal_addons = []
        self.internal_addons.append(node)

    def is_addon(self) -> bool:
        keywords = self._pkg.get("keywords")
        return isinstance(keywords, list) and self.conventions.addon_keyword in keywords

    def relative_path_of(self, other: PackageNode) -> str:
        return os.path.relpath(other.real_path, self._real_path)
