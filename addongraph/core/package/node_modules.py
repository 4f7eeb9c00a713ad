"""node_modules 目录索引

NodeModulesList 对应磁盘上的一个 node_modules 目录（或其中的 @scope 目录），
条目以目录名为键，值为 PackageNode 或嵌套的 NodeModulesList（@scope）。
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Mapping, Union

from addongraph.core.package.errors import ErrorList
from addongraph.core.package.node import PackageNode

NODE_MODULES = "node_modules"

Entry = Union[PackageNode, "NodeModulesList"]


class NodeModulesList:
    """单个 node_modules 目录的条目集合"""

    def __init__(self, real_path: str) -> None:
        self.real_path = real_path
        self.entries: dict[str, Entry] = {}
        self.errors = ErrorList()

    def __repr__(self) -> str:
        return f"<NodeModulesList {self.real_path} ({len(self.entries)} entries)>"

    def add_entry(self, name: str, entry: Entry) -> None:
        self.entries[name] = entry

    def add_error(self, error_type: str, error_data: object = None) -> None:
        self.errors.add_error(error_type, error_data)

    def has_errors(self) -> bool:
        return self.errors.has_errors()

    def find_package(self, name: str) -> PackageNode | None:
        """按包名查找，@scope/name 先定位 scope 目录再查找"""
        if name.startswith("@"):
            scope, _, rest = name.partition("/")
            scoped = self.entries.get(scope)
            if isinstance(scoped, NodeModulesList) and rest:
                return scoped.find_package(rest)
            return None
        entry = self.entries.get(name)
        return entry if isinstance(entry, PackageNode) else None


def find_in_ancestors(
    lists: Mapping[str, NodeModulesList],
    name: str,
    start_dir: str,
) -> PackageNode | None:
    """Node 风格的向上查找

    从 start_dir 开始逐级向上，检查每一级的 node_modules（start_dir 本身就是
    node_modules 时直接使用），直到文件系统根。
    """
    curr = Path(start_dir)
    while True:
        nm = curr if curr.name == NODE_MODULES else curr / NODE_MODULES
        listing = lists.get(os.fspath(nm))
        if listing is not None:
            found = listing.find_package(name)
            if found is not None:
                return found
        if curr.parent == curr:
            return None
        curr = curr.parent
