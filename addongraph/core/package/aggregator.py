"""addon 候选聚合

把多个来源（provenance）的候选包按固定顺序合并为一个列表。来源分两种形态:
  - ListProvenance:    有序列表（in-repo addon、internal addon、项目自身）
  - MappingProvenance: 声明名 -> 节点的有序字典（dependencies / devDependencies）

两种形态都可带一个 exclude 谓词，对每个候选节点求值，返回 True 的被丢弃。
合并结果允许重复；去重推迟到 addon map 构建，按名字覆盖（后出现者生效）。
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterator, Mapping, Sequence, Union

from addongraph.core.package.node import PackageNode

NodePredicate = Callable[[PackageNode], bool]


@dataclass(frozen=True)
class ListProvenance:
    packages: Sequence[PackageNode] | None
    exclude: NodePredicate | None = None

    def __iter__(self) -> Iterator[PackageNode]:
        for node in self.packages or ():
            if self.exclude is None or not self.exclude(node):
                yield node


@dataclass(frozen=True)
class MappingProvenance:
    packages: Mapping[str, PackageNode] | None
    exclude: NodePredicate | None = None

    def __iter__(self) -> Iterator[PackageNode]:
        # 按键的插入顺序，不排序
        for node in (self.packages or {}).values():
            if self.exclude is None or not self.exclude(node):
                yield node


Provenance = Union[ListProvenance, MappingProvenance]


def collect_candidates(provenances: Sequence[Provenance]) -> list[PackageNode]:
    """按来源顺序展开为扁平候选列表"""
    candidates: list[PackageNode] = []
    for provenance in provenances:
        candidates.extend(provenance)
    return candidates


def _not_addon(node: PackageNode) -> bool:
    return not node.is_addon()


def discover_addon_addons(node: PackageNode) -> list[PackageNode]:
    """addon 节点的子 addon: 依赖中的 addon（排除宿主构建工具），然后是 in-repo addon"""
    host_tool = node.conventions.host_tool_name

    def exclude(dep: PackageNode) -> bool:
        return not dep.is_addon() or dep.name == host_tool

    return collect_candidates([
        MappingProvenance(node.dependency_packages, exclude),
        ListProvenance(node.in_repo_addons),
    ])


def discover_project_addons(node: PackageNode) -> list[PackageNode]:
    """项目节点的顶层 addon

    顺序:
      1. 项目自身（项目本身就是 addon 时）
      2. 宿主构建工具的 in-repo addon
      3. internal addon
      4. dependencies 中的 addon
      5. devDependencies 中的 addon
      6. 项目的 in-repo addon
    """
    return collect_candidates([
        ListProvenance([node] if node.is_addon() else None),
        ListProvenance(node.cli_info.in_repo_addons if node.cli_info else None),
        ListProvenance(node.internal_addons),
        MappingProvenance(node.dependency_packages, _not_addon),
        MappingProvenance(node.dev_dependency_packages, _not_addon),
        ListProvenance(node.in_repo_addons),
    ])
