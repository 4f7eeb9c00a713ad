"""addongraph 命令行接口

CLI 按领域拆分为子模块，每个模块注册自己的命令到 main group。
"""

import os
from contextlib import contextmanager
from typing import Iterator

import click

from addongraph import __version__
from addongraph.core.config import get_config, init_config
from addongraph.core.exceptions import AddonGraphError
from addongraph.services.discovery_service import DiscoveryService
from addongraph.utils.logger import setup_logging


def _svc() -> DiscoveryService:
    """按当前全局配置构造发现服务"""
    return DiscoveryService(get_config())


@contextmanager
def _friendly_errors() -> Iterator[None]:
    """把业务异常转成 click 的错误输出（退出码 1）"""
    try:
        yield
    except AddonGraphError as e:
        raise click.ClickException(f"[{e.code}] {e}") from e


@click.group()
@click.version_option(version=__version__)
@click.option("--config", "-c", "config_path", default="addongraph.yml", help="配置文件路径")
def main(config_path: str) -> None:
    """addongraph - 已安装包依赖图解析与 addon 发现"""
    setup_logging(
        level=os.getenv("ADDONGRAPH_LOG_LEVEL", "WARNING"),
        json_output=os.getenv("ADDONGRAPH_LOG_JSON", "") == "1",
        warnings_level=os.getenv("ADDONGRAPH_WARNINGS_LEVEL", "WARNING") or None,
    )
    with _friendly_errors():
        init_config(config_path)


# 注册各领域子命令
from addongraph.cli.cmd_addons import register as _reg_addons  # noqa: E402
from addongraph.cli.cmd_deps import register as _reg_deps  # noqa: E402

_reg_addons(main)
_reg_deps(main)
