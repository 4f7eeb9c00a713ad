"""CLI: addon 发现与错误报告命令"""

from __future__ import annotations

import json
from typing import Any

import click

from addongraph.cli import _friendly_errors, _svc
from addongraph.core.ui import ClickWarningChannel
from addongraph.utils.yaml_io import dump_yaml, save_yaml


def register(group: click.Group) -> None:
    group.add_command(list_addons)
    group.add_command(show_errors)


def _echo_tree(entries: list[dict[str, Any]], depth: int = 0) -> None:
    for entry in entries:
        indent = "  " * (depth + 1)
        click.echo(f"{indent}{entry['name']:30s} {entry['version']:10s} {entry['path']}")
        _echo_tree(entry.get("addons", []), depth + 1)


@click.command(name="addons")
@click.argument("project_root", default=".")
@click.option("--format", "-f", "fmt", default="text", type=click.Choice(["text", "json", "yaml"]))
@click.option("--tree", is_flag=True, help="展开每个 addon 的子 addon")
@click.option("--output", "-o", default=None, help="写入文件（仅 json / yaml）")
@click.option("--quiet", "-q", is_flag=True, help="不输出无效 addon 警告")
def list_addons(project_root: str, fmt: str, tree: bool, output: str | None, quiet: bool) -> None:
    """列出项目的 addon"""
    with _friendly_errors():
        report = _svc().discover(project_root, tree=tree)

    if not quiet:
        channel = ClickWarningChannel()
        for line in report.warnings:
            channel.write_warn_line(line)

    data = report.to_dict(tree=tree)
    if fmt == "json":
        text = json.dumps(data, indent=2, ensure_ascii=False)
    elif fmt == "yaml":
        text = dump_yaml(data)
    else:
        if output:
            raise click.UsageError("--output 仅支持 json / yaml 格式")
        if not data["addons"]:
            click.echo("没有发现 addon。")
            return
        click.echo(f"项目 {report.project_name} ({report.project_path}):")
        _echo_tree(data["addons"])
        return

    if output:
        if fmt == "yaml":
            save_yaml(output, data)
        else:
            with open(output, "w", encoding="utf-8") as f:
                f.write(text + "\n")
        click.echo(f"已写入: {output}")
    else:
        click.echo(text)


@click.command(name="errors")
@click.argument("project_root", default=".")
def show_errors(project_root: str) -> None:
    """列出包图中记录的错误（依赖缺失、manifest 损坏等）"""
    with _friendly_errors():
        report = _svc().discover(project_root)
    if not report.errors:
        click.echo("没有错误。")
        return
    for path, lines in report.errors:
        click.echo(f"{path}:")
        for line in lines:
            click.echo(f"  {line}")
