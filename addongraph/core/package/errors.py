"""包级错误收集

每个 PackageNode / NodeModulesList 持有自己的 ErrorList，错误只记录在产生它的
节点上，不会并入父节点。错误不会中断包图构建：结构性错误只把节点标记为无效，
依赖缺失连无效都不算。
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterator

ERROR_PACKAGE_DIR_MISSING = "packageDirectoryMissing"
ERROR_PACKAGE_JSON_MISSING = "packageJsonMissing"
ERROR_PACKAGE_JSON_PARSE = "packageJsonParse"
ERROR_EMBER_ADDON_MAIN_MISSING = "emberAddonMainMissing"
ERROR_DEPENDENCIES_MISSING = "dependenciesMissing"
ERROR_NODEMODULES_ENTRY_MISSING = "nodeModulesEntryMissing"


@dataclass(frozen=True)
class ErrorEntry:
    """一条错误记录: (类型, 数据)"""

    error_type: str
    data: Any = None


class ErrorList:
    """单个节点的错误列表"""

    def __init__(self) -> None:
        self._errors: list[ErrorEntry] = []

    def add_error(self, error_type: str, error_data: Any = None) -> None:
        self._errors.append(ErrorEntry(error_type, error_data))

    def has_errors(self) -> bool:
        return len(self._errors) > 0

    def of_type(self, error_type: str) -> list[ErrorEntry]:
        return [e for e in self._errors if e.error_type == error_type]

    def __iter__(self) -> Iterator[ErrorEntry]:
        return iter(self._errors)

    def __len__(self) -> int:
        return len(self._errors)


def format_error(entry: ErrorEntry) -> str:
    """把一条错误渲染成单行文本"""
    t, data = entry.error_type, entry.data
    if t == ERROR_PACKAGE_DIR_MISSING:
        return f"Package directory does not exist: {data}"
    if t == ERROR_PACKAGE_JSON_MISSING:
        return f"package.json is missing: {data}"
    if t == ERROR_PACKAGE_JSON_PARSE:
        return f"package.json could not be parsed: {data}"
    if t == ERROR_EMBER_ADDON_MAIN_MISSING:
        return f"Addon main file is missing: {data}"
    if t == ERROR_DEPENDENCIES_MISSING:
        names = data if isinstance(data, (list, tuple)) else [data]
        return f"Missing dependencies: {', '.join(names)}"
    if t == ERROR_NODEMODULES_ENTRY_MISSING:
        return f"node_modules entry is not a readable directory: {data}"
    return f"{t}: {data}"
