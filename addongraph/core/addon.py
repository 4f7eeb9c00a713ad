"""Addon 基类

以 "选项对象" 形式编写的 addon（入口模块只导出属性和函数，不导出可调用的 addon）
通过 Addon.extend() 派生出子类。
"""

from __future__ import annotations

from typing import Any, Mapping


class Addon:
    """所有 addon 实例的基类"""

    root: str | None = None
    pkg: dict[str, Any] | None = None

    def __init__(self, parent: Any = None, project: Any = None) -> None:
        self.parent = parent
        self.project = project

    @property
    def name(self) -> str | None:
        return (self.pkg or {}).get("name")

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name!r} root={self.root}>"

    @classmethod
    def extend(cls, options: Mapping[str, Any]) -> type[Addon]:
        """以 options 作为类属性派生子类，函数值成为方法"""
        pkg = options.get("pkg") or {}
        class_name = _class_name(pkg.get("name") or "Anonymous")
        return type(class_name, (cls,), dict(options))


def _class_name(package_name: str) -> str:
    parts = [p for p in package_name.replace("@", "").replace("/", "-").split("-") if p]
    return "".join(p[:1].upper() + p[1:] for p in parts) + "Addon"
