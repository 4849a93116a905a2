# -*- coding: utf-8 -*-
"""
emeraecm 核心异常
"""


class EcmError(Exception):
    """所有 emeraecm 自定义异常的基类。"""

    pass


# region 清单与版本异常


class ManifestFormatError(EcmError, ValueError):
    """当远程描述符缺少 name/version/source，或持久化记录格式错误时引发。"""

    pass


class VersionFormatError(EcmError, ValueError):
    """当版本字符串不是三段非负整数时引发。"""

    pass


class CycleDetectedError(EcmError):
    """当组件依赖图中存在循环时引发。"""

    def __init__(self, cycle):
        self.cycle = list(cycle)
        path = " -> ".join(self.cycle)
        super().__init__(f"检测到循环依赖: {path}")


# endregion

# region 组件异常


class ComponentNotFoundError(EcmError, KeyError):
    """当找不到指定的顶层组件时引发。"""

    def __str__(self):
        return str(self.args[0]) if self.args else ""


class ComponentExistsError(EcmError):
    """当添加的组件名称已作为顶层组件安装时引发。"""

    pass


class ProtectedComponentError(EcmError):
    """当尝试删除受保护的组件时引发。"""

    pass


# endregion

# region 外部协作者异常


class NetworkError(EcmError):
    """当网络获取失败时引发，不做重试。"""

    def __init__(self, url: str, message: str):
        self.url = url
        super().__init__(f"获取 {url} 失败: {message}")


class PersistenceError(EcmError):
    """当文档存储或内容存储写入失败时引发。"""

    pass


# endregion

# region 配置异常


class ConfigurationError(EcmError, ValueError):
    """当配置无效时引发。"""

    pass


# endregion
