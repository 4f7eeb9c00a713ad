"""addon 发现服务: CLI 共享的编排逻辑

把「读取包 → 解析依赖 → 发现 addon → 汇总错误」的流程从 CLI 中提取出来，
命令层只负责格式化输出。
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from addongraph.core.config import Config, get_config
from addongraph.core.exceptions import PackageNotFoundError
from addongraph.core.package.models import AddonInfo
from addongraph.core.package.node import PackageNode
from addongraph.core.package.store import PackageInfoCache, ResolvedGraph
from addongraph.core.ui import CollectingWarningChannel

logger = logging.getLogger(__name__)


@dataclass
class DiscoveryReport:
    """一次发现的结果"""

    project_name: str
    project_path: str
    addons: dict[str, AddonInfo] = field(default_factory=dict)
    children: dict[str, dict[str, AddonInfo]] = field(default_factory=dict)
    errors: list[tuple[str, list[str]]] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def tree(self, info: AddonInfo, _seen: frozenset[str] = frozenset()) -> dict[str, Any]:
        """以 info 为根展开子 addon（遇到环时截断）"""
        node = info.to_dict()
        seen = _seen | {info.real_path}
        node["addons"] = [
            self.tree(child, seen)
            for child in self.children.get(info.real_path, {}).values()
            if child.real_path not in seen
        ]
        return node

    def to_dict(self, *, tree: bool = False) -> dict[str, Any]:
        if tree:
            addons = [self.tree(info) for info in self.addons.values()]
        else:
            addons = [info.to_dict() for info in self.addons.values()]
        return {
            "project": {"name": self.project_name, "path": self.project_path},
            "addons": addons,
            "errors": [{"path": p, "messages": lines} for p, lines in self.errors],
        }


class DiscoveryService:
    """addon 发现服务"""

    def __init__(self, config: Config | None = None) -> None:
        self.config = config or get_config()

    def load(self, project_root: str | Path) -> ResolvedGraph:
        """读取项目并完成两阶段解析"""
        materialized = PackageInfoCache(self.config).load_project(project_root)
        return materialized.resolve()

    def _exclude(self, info: AddonInfo) -> bool:
        return info.name in self.config.exclude_addons

    def discover(self, project_root: str | Path, *, tree: bool = False) -> DiscoveryReport:
        graph = self.load(project_root)
        channel = CollectingWarningChannel()
        exclude = self._exclude if self.config.exclude_addons else None

        project = graph.project
        report = DiscoveryReport(
            project_name=project.name or "",
            project_path=project.real_path,
            addons=graph.project_addons(exclude=exclude, channel=channel),
        )
        if tree:
            report.children = graph.walk_addons(exclude, channel)
        report.errors = graph.error_report()
        if self.config.warn_invalid_addons:
            report.warnings = channel.lines

        logger.info(
            "项目 %s: 发现 %d 个顶层 addon, %d 个包存在错误",
            report.project_name, len(report.addons), len(report.errors),
        )
        return report

    def dependencies(
        self,
        project_root: str | Path,
        package: str | None = None,
        *,
        dev: bool = False,
    ) -> tuple[PackageNode, dict[str, PackageNode]]:
        """返回目标包及其解析后的依赖映射

        package 为空时取项目本身；否则从项目目录向上查找该包。
        dev 仅对项目有意义。
        """
        graph = self.load(project_root)
        node = graph.project
        if package:
            found = graph.find_package(package, node.real_path)
            if found is None:
                raise PackageNotFoundError(f"项目中找不到包: {package}")
            node = found
        deps = node.dev_dependency_packages if dev else node.dependency_packages
        return node, dict(deps or {})
