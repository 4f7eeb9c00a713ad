"""共享 fixture: 在 tmp_path 下构造磁盘包树

用法:
    def test_xxx(pkg_tree):
        root = pkg_tree("app", {"name": "app", "dependencies": {"a": "*"}})
        pkg_tree("app/node_modules/a", addon_pkg("a"), files={"index.js": ""})
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable

import pytest

from helpers import write_package


@pytest.fixture()
def pkg_tree(tmp_path: Path) -> Callable[..., Path]:
    def _write(rel: str, pkg: dict[str, Any] | None = None, **kwargs: Any) -> Path:
        return write_package(tmp_path, rel, pkg, **kwargs)
    return _write
