# -*- coding: utf-8 -*-
"""
组件安装器
"""

import logging

from ..storage.base import ContentStore, NetworkFetcher
from .manifest import ComponentRecord

logger = logging.getLogger(__name__)


class Installer:
    """将组件源码写入内容存储，写入总是整体覆盖"""

    def __init__(self, content: ContentStore, fetcher: NetworkFetcher):
        self.content = content
        self.fetcher = fetcher

    def materialize(self, record: ComponentRecord) -> None:
        code = self.fetcher.fetch_text(record.source_url)
        self.content.write(record.file_path, code)
        logger.info(f"组件 {record.name}@{record.version} 已写入 {record.file_path}")

    def uninstall(self, record: ComponentRecord) -> None:
        if not self.content.exists(record.file_path):
            logger.warning(f"组件文件不存在，跳过删除: {record.file_path}")
            return
        self.content.delete(record.file_path)
        logger.info(f"组件 {record.name} 的文件已删除: {record.file_path}")
