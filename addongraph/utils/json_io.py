"""package.json 读取工具

与 yaml_io 同样的约定：utf-8、大小限制、顶层必须是对象。
与 load_yaml 不同，这里不吞掉任何问题，由调用方决定记录成哪类包错误。
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

# package.json 最大大小限制 (5MB)
MAX_JSON_SIZE = 5 * 1024 * 1024


class ManifestParseError(ValueError):
    """manifest 内容无法解析为 JSON 对象"""


def read_manifest(path: str | Path) -> dict[str, Any]:
    """读取并解析 package.json

    异常:
        FileNotFoundError: 文件不存在
        ManifestParseError: 非法 JSON、顶层不是对象、文件过大或无法读取（如 package.json 是目录）
    """
    p = Path(path)
    try:
        if p.stat().st_size > MAX_JSON_SIZE:
            raise ManifestParseError(f"manifest 文件过大: {p}")
        data = json.loads(p.read_text(encoding="utf-8"))
    except FileNotFoundError:
        raise
    except OSError as e:
        raise ManifestParseError(f"{p}: 无法读取 ({e})") from e
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ManifestParseError(f"{p}: {e}") from e
    if not isinstance(data, dict):
        raise ManifestParseError(
            f"{p}: 顶层不是对象 (实际类型: {type(data).__name__})"
        )
    return data
