"""CLI: 依赖解析命令"""

from __future__ import annotations

import click

from addongraph.cli import _friendly_errors, _svc


def register(group: click.Group) -> None:
    group.add_command(list_deps)


@click.command(name="deps")
@click.argument("project_root", default=".")
@click.option("--package", "-p", default=None, help="指定包名（不指定则为项目本身）")
@click.option("--dev", is_flag=True, help="显示 devDependencies（仅项目）")
def list_deps(project_root: str, package: str | None, dev: bool) -> None:
    """显示依赖名到实际包路径的解析结果"""
    with _friendly_errors():
        node, deps = _svc().dependencies(project_root, package, dev=dev)

    section = "devDependencies" if dev else "dependencies"
    declared = node.pkg.get(section) or {}
    click.echo(f"{node.name} ({node.real_path}) {section}:")
    if not declared:
        click.echo("  (无)")
        return
    for name in declared:
        dep = deps.get(name)
        if dep is None:
            click.echo(f"  {name:30s} <缺失>")
        else:
            marker = " [addon]" if dep.is_addon() else ""
            click.echo(f"  {name:30s} {dep.real_path}{marker}")
