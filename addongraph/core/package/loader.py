"""addon 构造器加载

只在 addon 实例化时调用，且调用方保证节点确实是 addon，这里不再检查。

入口模块在加载时一次性归入两种形态之一:
  - DIRECT:  模块导出可调用的 ``addon``（类或工厂函数），原样使用，
             仅在其 root / pkg 为空时补上入口目录和 manifest
  - OPTIONS: 其余情况，把导出的选项（``addon`` 字典，否则为模块公开属性）
             叠加在 {root, pkg} 之上，经 Addon.extend() 派生子类

加载过程中的任何异常原样抛给调用方。
"""

from __future__ import annotations

import __future__
import hashlib
import importlib.util
import inspect
import logging
import os
import sys
from dataclasses import dataclass
from enum import Enum
from types import ModuleType
from typing import Any, Callable, Mapping

from addongraph.core.addon import Addon
from addongraph.core.package.models import AddonMeta
from addongraph.core.package.node import PackageNode
from addongraph.core.protocols import ModuleLoader

logger = logging.getLogger(__name__)

ADDON_EXPORT = "addon"


class ConstructorKind(Enum):
    DIRECT = "direct"
    OPTIONS = "options"


@dataclass
class AddonConstructor:
    """addon 构造器句柄"""

    kind: ConstructorKind
    target: Callable[..., Any]
    meta: AddonMeta

    def __call__(self, *args: Any, **kwargs: Any) -> Any:
        return self.target(*args, **kwargs)


def load_module(path: str) -> ModuleType:
    """按文件路径加载 Python 模块，以路径摘要作为唯一模块名注册到 sys.modules"""
    digest = hashlib.sha1(path.encode("utf-8")).hexdigest()[:12]
    module_name = f"_addongraph_addon_{digest}"
    if module_name in sys.modules:
        return sys.modules[module_name]

    spec = importlib.util.spec_from_file_location(module_name, path)
    if spec is None or spec.loader is None:
        raise ImportError(f"无法为 addon 入口创建模块规格: {path}")
    module = importlib.util.module_from_spec(spec)
    sys.modules[module_name] = module
    try:
        spec.loader.exec_module(module)
    except Exception:
        del sys.modules[module_name]
        raise
    return module


_FUTURE_FEATURE = type(__future__.annotations)


def _defined_here(module: Any, value: Any) -> bool:
    """值是否属于入口模块本身（排除 import 进来的模块、函数、类和 __future__ 特性）"""
    if isinstance(value, (ModuleType, _FUTURE_FEATURE)):
        return False
    if inspect.isclass(value) or inspect.isroutine(value):
        return getattr(value, "__module__", None) == getattr(module, "__name__", None)
    return True


def _exported_options(module: Any) -> dict[str, Any]:
    exported = getattr(module, ADDON_EXPORT, None)
    if isinstance(exported, Mapping):
        return dict(exported)
    names = getattr(module, "__all__", None)
    if names is not None:
        return {n: getattr(module, n) for n in names}
    return {
        n: v for n, v in vars(module).items()
        if not n.startswith("_") and _defined_here(module, v)
    }


def _build_constructor(node: PackageNode, module_loader: ModuleLoader) -> AddonConstructor:
    main_path = node.addon_main_path
    # TODO: 为单个 addon 的加载设置耗时预算，超时给出警告
    module = module_loader(main_path)
    main_dir = os.path.dirname(main_path)

    exported = getattr(module, ADDON_EXPORT, None)
    if callable(exported):
        for attr, default in (("root", main_dir), ("pkg", node.pkg)):
            if not getattr(exported, attr, None):
                setattr(exported, attr, default)
        kind, target = ConstructorKind.DIRECT, exported
    else:
        options = {"root": main_dir, "pkg": node.pkg, **_exported_options(module)}
        kind, target = ConstructorKind.OPTIONS, Addon.extend(options)

    logger.debug("已加载 addon 构造器: %s (%s)", node.name, kind.value)
    return AddonConstructor(kind=kind, target=target, meta=AddonMeta(module_path=main_path))


def get_addon_constructor(
    node: PackageNode,
    module_loader: ModuleLoader = load_module,
) -> AddonConstructor:
    """获取节点的 addon 构造器，每个节点只加载一次"""
    return node.addon_constructor.get_or_compute(
        lambda: _build_constructor(node, module_loader),
    )
