"""领域协议定义

集中定义包图核心与外部协作方之间的接口契约（Protocol）。
使用 typing.Protocol 而非 ABC，测试中的桩对象无需继承即可满足协议。
"""

from __future__ import annotations

from types import ModuleType
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from addongraph.core.package.node import PackageNode


# =========================================================================
# 包查找协议
# =========================================================================

class ModuleIndex(Protocol):
    """单个 node_modules 目录的本地索引"""

    def find_package(self, name: str) -> PackageNode | None:
        """按包名（支持 @scope/name）查找，未找到返回 None"""
        ...


class PackageStore(Protocol):
    """包仓库协议

    实现 Node 风格的模块查找：从 start_dir 开始逐级向上，
    依次检查每一级的 node_modules。
    """

    def find_package(self, name: str, start_dir: str) -> PackageNode | None:
        """向上逐级查找包，未找到返回 None"""
        ...


# =========================================================================
# 输出协议
# =========================================================================

class WarningChannel(Protocol):
    """警告输出通道，用于报告被排除的无效 addon"""

    def write_warn_line(self, line: str) -> None:
        ...


# =========================================================================
# 模块加载协议
# =========================================================================

class ModuleLoader(Protocol):
    """把 addon 入口文件路径加载为可执行模块"""

    def __call__(self, path: str) -> ModuleType:
        ...
