"""addon map 构建

把候选列表转换为 name -> AddonInfo 的字典:
  - 只保留 valid 的候选；exclude 谓词作用在生成的 AddonInfo 上
  - 同名候选后出现者覆盖先出现者
  - 无效候选不进入字典，每个所属节点只通过警告通道报告一次
"""

from __future__ import annotations

import logging
from typing import Callable, Sequence

from addongraph.core.package.models import AddonInfo
from addongraph.core.package.node import PackageNode
from addongraph.core.protocols import WarningChannel

logger = logging.getLogger(__name__)

AddonPredicate = Callable[[AddonInfo], bool]


def get_valid_packages(candidates: Sequence[PackageNode]) -> list[PackageNode]:
    return [c for c in candidates if c.valid]


def get_invalid_packages(candidates: Sequence[PackageNode]) -> list[PackageNode]:
    return [c for c in candidates if not c.valid]


def generate_addon_packages(
    candidates: Sequence[PackageNode],
    exclude: AddonPredicate | None = None,
) -> dict[str, AddonInfo]:
    package_map: dict[str, AddonInfo] = {}
    for node in get_valid_packages(candidates):
        info = AddonInfo(node.name, node.real_path, node.pkg)
        if exclude is None or not exclude(info):
            package_map[node.name] = info
    return package_map


def dump_invalid_addon_packages(
    owner: PackageNode,
    candidates: Sequence[PackageNode],
    channel: WarningChannel | None,
) -> None:
    """报告 owner 的无效子 addon，每个 owner 只报告一次"""
    if owner.dumped_invalid_addons:
        return
    owner.dumped_invalid_addons = True

    invalid = get_invalid_packages(candidates)
    if not invalid or channel is None:
        return

    channel.write_warn_line(f"For {owner.role} at path {owner.real_path}:")
    for node in invalid:
        channel.write_warn_line(
            "   Excluding invalid/malformed/missing addon at relative path "
            f"'{owner.relative_path_of(node)}'"
        )


def build_addon_map(
    owner: PackageNode,
    candidates: Sequence[PackageNode],
    exclude: AddonPredicate | None = None,
    channel: WarningChannel | None = None,
) -> dict[str, AddonInfo]:
    """生成 owner 的 addon map，并（首次调用时）报告无效候选"""
    dump_invalid_addon_packages(owner, candidates, channel)
    package_map = generate_addon_packages(candidates, exclude)
    logger.debug(
        "%s %s: %d 个 addon (%d 个候选)",
        owner.role, owner.real_path, len(package_map), len(candidates),
    )
    return package_map
