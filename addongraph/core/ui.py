"""警告输出通道实现

- LoggingWarningChannel: 写入 logger（库调用方默认使用）
- ClickWarningChannel:   写到 stderr（CLI 使用）
- CollectingWarningChannel: 收集到内存（服务层汇总报告、测试）
"""

from __future__ import annotations

import logging

import click

from addongraph.utils.logger import WARNINGS_LOGGER


class LoggingWarningChannel:
    def __init__(self, logger: logging.Logger | None = None) -> None:
        self.logger = logger or logging.getLogger(WARNINGS_LOGGER)

    def write_warn_line(self, line: str) -> None:
        self.logger.warning("%s", line)


class ClickWarningChannel:
    def write_warn_line(self, line: str) -> None:
        click.secho(line, fg="yellow", err=True)


class CollectingWarningChannel:
    def __init__(self) -> None:
        self.lines: list[str] = []

    def write_warn_line(self, line: str) -> None:
        self.lines.append(line)
