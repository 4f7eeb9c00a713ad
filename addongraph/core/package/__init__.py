"""包图解析与 addon 发现

模块划分:
- node.py:         PackageNode 包节点
- node_modules.py: node_modules 目录索引与向上查找
- resolver.py:     依赖解析
- aggregator.py:   addon 候选聚合
- addon_map.py:    addon map 构建与无效 addon 报告
- loader.py:       addon 构造器加载
- store.py:        磁盘读取与两阶段包图
"""

from addongraph.core.package.addon_map import build_addon_map
from addongraph.core.package.aggregator import (
    ListProvenance,
    MappingProvenance,
    collect_candidates,
    discover_addon_addons,
    discover_project_addons,
)
from addongraph.core.package.loader import AddonConstructor, ConstructorKind, get_addon_constructor
from addongraph.core.package.models import AddonInfo, AddonMeta
from addongraph.core.package.node import PackageNode
from addongraph.core.package.node_modules import NodeModulesList
from addongraph.core.package.resolver import DependencyResolver
from addongraph.core.package.store import MaterializedGraph, PackageInfoCache, ResolvedGraph

__all__ = [
    "AddonConstructor",
    "AddonInfo",
    "AddonMeta",
    "ConstructorKind",
    "DependencyResolver",
    "ListProvenance",
    "MappingProvenance",
    "MaterializedGraph",
    "NodeModulesList",
    "PackageInfoCache",
    "PackageNode",
    "ResolvedGraph",
    "build_addon_map",
    "collect_candidates",
    "discover_addon_addons",
    "discover_project_addons",
    "get_addon_constructor",
]
