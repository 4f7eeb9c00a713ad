"""包图数据模型

数据类:
- AddonInfo: addon 清单中的不可变条目
- AddonMeta: addon 构造器附带的加载元信息
- LazySlot: 至多计算一次的缓存槽
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class AddonInfo:
    """addon 清单条目，以 name 为键存入 addon map"""

    name: str | None
    real_path: str
    pkg: dict[str, Any]

    def to_dict(self) -> dict[str, Any]:
        """导出为纯字符串字段；manifest 缺少 name 或 version 不是字符串时照样可输出"""
        version = self.pkg.get("version")
        return {
            "name": "" if self.name is None else str(self.name),
            "path": self.real_path,
            "version": "" if version is None else str(version),
        }


@dataclass
class AddonMeta:
    """构造器元信息，耗时字段由调用方在实例化时回填"""

    module_path: str
    lookup_duration: float = 0.0
    initialize_in: float = 0.0


class LazySlot(Generic[T]):
    """至多填充一次的缓存槽

    用法:
        slot = LazySlot()
        value = slot.get_or_compute(expensive)   # 只在第一次调用 expensive
    """

    _EMPTY = object()

    def __init__(self) -> None:
        self._value: Any = self._EMPTY

    @property
    def is_filled(self) -> bool:
        return self._value is not self._EMPTY

    def get(self) -> T | None:
        return None if self._value is self._EMPTY else self._value

    def get_or_compute(self, compute: Callable[[], T]) -> T:
        if self._value is self._EMPTY:
            self._value = compute()
        return self._value
