# -*- coding: utf-8 -*-
"""
更新检查
"""

import logging
from typing import List, Optional

from ..storage.base import NetworkFetcher
from .manifest import Forest, RemoteDescriptor
from .version import VersionComparator

logger = logging.getLogger(__name__)


class UpdateChecker:
    """只检查顶层组件，嵌套依赖不单独轮询"""

    def __init__(
        self, fetcher: NetworkFetcher, comparator: Optional[VersionComparator] = None
    ):
        self.fetcher = fetcher
        self.comparator = comparator or VersionComparator()

    def check_updates(self, forest: Forest) -> List[RemoteDescriptor]:
        """返回有可用升级的远程描述符"""
        logger.info("开始检查更新")
        updates = []

        for record in forest:
            descriptor = RemoteDescriptor.from_payload(
                record.manifest_url, self.fetcher.fetch_json(record.manifest_url)
            )
            if not descriptor.version:
                logger.warning(f"组件 {record.name} 的描述符缺少版本号，跳过")
                continue

            if not self.comparator.is_upgrade(record.version, descriptor.version):
                logger.debug(f"组件 {record.name} 已是最新")
                continue

            logger.info(f"组件 {record.name} 有可用更新: {record.version} -> {descriptor.version}")
            updates.append(descriptor)

        logger.info(f"更新检查完成，共 {len(updates)} 个可用更新")
        return updates
