# -*- coding: utf-8 -*-
"""
组件管理器

组合清单存储、依赖解析、安装与索引生成，对外提供新增、更新、
删除和检查更新等操作。森林由清单存储持有，并显式传入解析器。
"""

import logging
from typing import Callable, List, Optional

from .components.index import IndexGenerator
from .components.installer import Installer
from .components.manifest import (
    ComponentRecord,
    Forest,
    RemoteDescriptor,
    find_top_level,
    with_component,
    without_component,
)
from .components.resolver import DependencyResolver
from .components.store import ManifestStore
from .components.updates import UpdateChecker
from .components.version import VersionComparator
from .config import EcmConfig
from .exceptions import ComponentNotFoundError, EcmError, ProtectedComponentError
from .storage.base import ContentStore, DocumentStore, NetworkFetcher
from .storage.http import HttpFetcher
from .storage.local import FrontmatterDocumentStore, LocalContentStore

Notifier = Callable[[str], None]


class ComponentManager:
    """
    组件管理器

    同一时刻只应有一个调用方驱动一个变更操作，管理器内部不做互斥。
    """

    def __init__(
        self,
        config: Optional[EcmConfig] = None,
        content: Optional[ContentStore] = None,
        documents: Optional[DocumentStore] = None,
        fetcher: Optional[NetworkFetcher] = None,
        notifier: Optional[Notifier] = None,
    ):
        self.config = config or EcmConfig()
        self.logger = logging.getLogger(__name__)

        self.content = content or LocalContentStore(self.config.root)
        self.documents = documents or FrontmatterDocumentStore(self.content)
        self._owns_fetcher = fetcher is None
        self.fetcher = fetcher or HttpFetcher(
            timeout=self.config.request_timeout, user_agent=self.config.user_agent
        )
        self.notifier = notifier or self._log_notice

        self.comparator = VersionComparator(self.config.upgrade_policy)
        self.index_generator = IndexGenerator(self.content, self.config.index_path)
        self.store = ManifestStore(
            self.content, self.documents, self.config.manifest_path, self.index_generator
        )
        self.installer = Installer(self.content, self.fetcher)
        self.resolver = DependencyResolver(
            self.fetcher,
            installer=self.installer,
            comparator=self.comparator,
            path_for=self.config.file_path_for,
            update_depth=self.config.update_depth,
        )
        self.update_checker = UpdateChecker(self.fetcher, self.comparator)

    @property
    def components(self) -> Forest:
        return self.store.components

    def initialize(self) -> Forest:
        """确保组件目录与清单存在并加载森林"""
        self.store.ensure_exists()
        return self.store.load()

    def list_components(self) -> Forest:
        return self.store.components

    def add_component(self, manifest_url: str) -> ComponentRecord:
        """从描述符地址新增组件及其未满足的依赖"""
        forest = self.store.components
        record = self.resolver.add_component(manifest_url, forest)
        self.store.save(with_component(forest, record))
        self.logger.info(f"组件 {record.name}@{record.version} 添加成功")
        return record

    def update_component(self, name: str) -> ComponentRecord:
        """更新顶层组件，远程版本不构成升级时不做任何写入"""
        forest = self.store.components
        resolution = self.resolver.plan_update(name, forest)
        if not resolution.changed:
            return resolution.record

        self.resolver.materialize(resolution)
        self.store.save(with_component(forest, resolution.record))
        self.logger.info(f"组件 {name} 已更新到 {resolution.record.version}")
        return resolution.record

    def update_all(self) -> List[ComponentRecord]:
        """检查并应用所有顶层组件的更新"""
        updated = []
        pending = {d.url for d in self.check_updates()}
        for record in self.store.components:
            if record.manifest_url in pending:
                updated.append(self.update_component(record.name))
        return updated

    def delete_component(self, name: str) -> bool:
        """
        删除顶层组件

        嵌套依赖的文件不会被级联删除。失败时通过 notifier 提示，
        内存与持久化状态保持不变。

        Returns:
            删除是否成功
        """
        forest = self.store.components
        try:
            record = find_top_level(forest, name)
            if record is None:
                raise ComponentNotFoundError(f"组件不存在: {name}")
            if record.protected:
                raise ProtectedComponentError(f"组件 {name} 受保护，不能删除")

            # 清单先于文件落盘；文件删除失败时写回原森林
            self.store.save(without_component(forest, name))
            try:
                self.installer.uninstall(record)
            except EcmError:
                self.store.save(forest)
                raise
        except EcmError as e:
            self.logger.error(f"删除组件失败 {name}: {e}")
            self.notifier(f"删除组件失败: {e}")
            return False

        self.logger.info(f"组件 {name} 已删除")
        return True

    def check_updates(self) -> List[RemoteDescriptor]:
        return self.update_checker.check_updates(self.store.components)

    def rebuild_index(self) -> str:
        return self.index_generator.write(self.store.components)

    def close(self) -> None:
        if self._owns_fetcher and isinstance(self.fetcher, HttpFetcher):
            self.fetcher.close()

    def _log_notice(self, message: str) -> None:
        self.logger.warning(message)
