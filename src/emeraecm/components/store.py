# -*- coding: utf-8 -*-
"""
清单存储

通过文档存储读写已安装组件的森林。
"""

import logging
import posixpath
from typing import Dict, Optional

from ..exceptions import EcmError
from ..storage.base import ContentStore, DocumentStore
from .index import IndexGenerator
from .manifest import Forest, forest_from_frontmatter, forest_to_frontmatter

COMPONENTS_FIELD = "components"
EMPTY_MANIFEST = f"---\n{COMPONENTS_FIELD}:\n---\n"


class ManifestStore:
    """
    清单存储

    save 整体替换 components 字段，随后重新生成索引并重新加载。
    写入失败时恢复清单与索引的原有内容；外部写入者仍可能与之竞争。
    """

    def __init__(
        self,
        content: ContentStore,
        documents: DocumentStore,
        manifest_path: str,
        index_generator: Optional[IndexGenerator] = None,
    ):
        self.content = content
        self.documents = documents
        self.manifest_path = manifest_path
        self.index_generator = index_generator
        self.logger = logging.getLogger(__name__)
        self._components: Forest = ()

    @property
    def components(self) -> Forest:
        """最近一次加载的森林"""
        return self._components

    def ensure_exists(self) -> None:
        """创建组件目录和空清单，幂等"""
        folder = posixpath.dirname(self.manifest_path)
        if folder and not self.content.exists(folder):
            self.content.create_folder(folder)
            self.logger.info(f"已创建组件目录: {folder}")

        if not self.content.exists(self.manifest_path):
            self.content.write(self.manifest_path, EMPTY_MANIFEST)
            self.logger.info(f"已创建空清单: {self.manifest_path}")

    def load(self) -> Forest:
        """读取持久化的森林，文档不存在时返回空森林"""
        if not self.content.exists(self.manifest_path):
            self.logger.debug(f"清单不存在: {self.manifest_path}")
            self._components = ()
            return self._components

        data = self.documents.read_frontmatter(self.manifest_path)
        self._components = forest_from_frontmatter(data.get(COMPONENTS_FIELD))
        self.logger.debug(f"已加载 {len(self._components)} 个顶层组件")
        return self._components

    def save(self, forest: Forest) -> Forest:
        """
        持久化森林，重新生成索引后重新加载

        清单或索引写入失败时恢复两者原有内容并重新加载，随后抛出原异常。

        Raises:
            PersistenceError: 写入失败
        """
        serialized = forest_to_frontmatter(forest)
        snapshot = self._snapshot()

        def replace_components(data):
            data[COMPONENTS_FIELD] = serialized
            return data

        try:
            self.documents.mutate_frontmatter(self.manifest_path, replace_components)
            if self.index_generator is not None:
                self.index_generator.write(forest)
        except EcmError as e:
            self.logger.error(f"清单保存失败，恢复原有内容: {e}")
            self._restore(snapshot)
            raise

        self.logger.info(f"清单已保存: {len(forest)} 个顶层组件")
        return self.load()

    def _snapshot(self) -> Dict[str, str]:
        paths = [self.manifest_path]
        if self.index_generator is not None:
            paths.append(self.index_generator.index_path)
        return {path: self.content.read(path) for path in paths if self.content.exists(path)}

    def _restore(self, snapshot: Dict[str, str]) -> None:
        for path, text in snapshot.items():
            try:
                self.content.write(path, text)
            except EcmError as e:
                self.logger.error(f"恢复 {path} 失败: {e}")

        try:
            self.load()
        except EcmError as e:
            self.logger.error(f"重新加载清单失败: {e}")
