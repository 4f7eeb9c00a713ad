"""测试辅助: 在临时目录下构造磁盘包树"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

ADDON_KEYWORD = "ember-addon"


def addon_pkg(name: str, **extra: Any) -> dict[str, Any]:
    """生成带 addon 关键字的 manifest"""
    return {"name": name, "version": "1.0.0", "keywords": [ADDON_KEYWORD], **extra}


def write_package(
    base: Path,
    rel: str,
    pkg: dict[str, Any] | None = None,
    *,
    files: dict[str, str] | None = None,
    raw: str | None = None,
) -> Path:
    """写一个包目录。pkg 为 None 且 raw 为 None 时不写 package.json"""
    d = base / rel
    d.mkdir(parents=True, exist_ok=True)
    if raw is not None:
        (d / "package.json").write_text(raw, encoding="utf-8")
    elif pkg is not None:
        (d / "package.json").write_text(json.dumps(pkg), encoding="utf-8")
    for name, content in (files or {}).items():
        f = d / name
        f.parent.mkdir(parents=True, exist_ok=True)
        f.write_text(content, encoding="utf-8")
    return d


def write_addon(base: Path, rel: str, name: str, **extra: Any) -> Path:
    """写一个带 index.js 入口的有效 addon"""
    return write_package(base, rel, addon_pkg(name, **extra), files={"index.js": ""})
