# -*- coding: utf-8 -*-
"""
外部协作者接口

组件管理器只通过这些接口访问宿主的文件存储、文档存储和网络。
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Dict

Frontmatter = Dict[str, Any]


class ContentStore(ABC):
    """内容存储，路径统一使用 "/" 分隔的相对路径"""

    @abstractmethod
    def exists(self, path: str) -> bool:
        """检查文件或目录是否存在"""
        ...

    @abstractmethod
    def create_folder(self, path: str) -> None:
        """创建目录（含父目录），已存在时不做任何事"""
        ...

    @abstractmethod
    def read(self, path: str) -> str:
        """
        读取文本内容

        Raises:
            PersistenceError: 文件不存在或读取失败
        """
        ...

    @abstractmethod
    def write(self, path: str, text: str) -> None:
        """创建或整体覆盖文件"""
        ...

    @abstractmethod
    def delete(self, path: str) -> None:
        """删除文件"""
        ...


class DocumentStore(ABC):
    """结构化 frontmatter 文档存储"""

    @abstractmethod
    def read_frontmatter(self, doc: str) -> Frontmatter:
        ...

    @abstractmethod
    def mutate_frontmatter(
        self, doc: str, fn: Callable[[Frontmatter], Frontmatter]
    ) -> None:
        """读取 frontmatter，交给 fn 修改后整体写回"""
        ...


class NetworkFetcher(ABC):
    """网络获取器"""

    @abstractmethod
    def fetch_json(self, url: str) -> Any:
        """
        获取并解析 JSON

        Raises:
            NetworkError: 请求失败
            ManifestFormatError: 响应不是合法 JSON
        """
        ...

    @abstractmethod
    def fetch_text(self, url: str) -> str:
        """获取文本内容"""
        ...
