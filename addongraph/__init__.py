"""addongraph - 已安装包依赖图解析与插件(addon)发现"""

__version__ = "0.3.0"
