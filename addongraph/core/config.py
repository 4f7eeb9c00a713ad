"""集中配置管理

包图解析涉及的约定（addon 关键字、manifest 中的 addon 配置段、宿主构建工具包名、
默认入口文件）统一放在这里，支持从 YAML 文件加载 + 编程式覆盖。
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from addongraph.core.exceptions import ConfigError
from addongraph.utils.yaml_io import load_yaml

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Conventions:
    """包图解析的命名约定，每个 PackageNode 持有一份"""

    addon_keyword: str = "ember-addon"   # keywords 中出现即视为 addon
    addon_key: str = "ember-addon"       # manifest 中 addon 专属配置段
    host_tool_name: str = "ember-cli"    # 宿主构建工具包名，不作为依赖 addon
    default_main: str = "index.js"


DEFAULT_CONVENTIONS = Conventions()


@dataclass
class Config:
    """框架全局配置"""

    # 约定
    addon_keyword: str = "ember-addon"
    addon_key: str = "ember-addon"
    host_tool_name: str = "ember-cli"
    default_main: str = "index.js"

    # 项目
    host_tool_root: str = ""     # 为空时按 host_tool_name 向上查找
    internal_addon_paths: list[str] = field(default_factory=list)
    exclude_addons: list[str] = field(default_factory=list)   # 按名字排除的 addon

    # 输出
    warn_invalid_addons: bool = True

    # 自定义扩展 (放不到字段里的配置项)
    extra: dict = field(default_factory=dict)

    @classmethod
    def from_file(cls, path: str = "addongraph.yml") -> Config:
        """从 YAML 文件加载配置，不存在则返回默认"""
        data = load_yaml(path)
        if not data:
            return cls()
        known = {f.name for f in cls.__dataclass_fields__.values()}
        matched = {k: v for k, v in data.items() if k in known}
        extra = {k: v for k, v in data.items() if k not in known}
        paths = matched.get("internal_addon_paths", [])
        if not isinstance(paths, list):
            raise ConfigError(
                f"internal_addon_paths 必须是列表: {path} "
                f"(实际类型: {type(paths).__name__})"
            )
        cfg = cls(**matched)
        cfg.extra = extra
        return cfg

    def conventions(self) -> Conventions:
        return Conventions(
            addon_keyword=self.addon_keyword,
            addon_key=self.addon_key,
            host_tool_name=self.host_tool_name,
            default_main=self.default_main,
        )

    def to_dict(self) -> dict:
        from dataclasses import asdict
        return asdict(self)


# 全局单例，首次 import 时不加载文件；由 CLI 入口显式初始化
_current: Config | None = None


def get_config() -> Config:
    """获取当前配置（未初始化则返回默认值）"""
    global _current  # noqa: PLW0603
    if _current is None:
        _current = Config()
    return _current


def init_config(path: str = "addongraph.yml") -> Config:
    """从文件初始化全局配置"""
    global _current  # noqa: PLW0603
    _current = Config.from_file(path)
    logger.info("配置已加载: %s", path)
    return _current
