"""统一异常体系

所有业务异常继承 AddonGraphError。CLI 层据此输出友好提示。

注意: 包图本身的问题（manifest 损坏、依赖缺失、addon 无效）不抛异常，
而是记录到各自 PackageNode 的 ErrorList；addon 入口模块加载失败的异常
原样向上抛出，不在这里包装。
"""

from __future__ import annotations


class AddonGraphError(Exception):
    """框架基础异常"""

    code: str = "UNKNOWN"

    def __init__(self, message: str) -> None:
        super().__init__(message)


class ConfigError(AddonGraphError):
    """配置文件缺失或内容无效"""

    code = "CONFIG_ERROR"


class ProjectNotFoundError(AddonGraphError):
    """项目根目录不存在或缺少 package.json"""

    code = "PROJECT_NOT_FOUND"

    def __init__(self, message: str, root: str = "") -> None:
        super().__init__(message)
        self.root = root


class GraphStateError(AddonGraphError):
    """在错误的图阶段调用了操作（如节点尚未全部物化就解析依赖）"""

    code = "GRAPH_STATE_ERROR"


class PackageNotFoundError(AddonGraphError):
    """按名字在包图中找不到指定包"""

    code = "PACKAGE_NOT_FOUND"
