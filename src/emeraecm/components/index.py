# -*- coding: utf-8 -*-
"""
导出索引生成器

将依赖森林展开为去重后的导出列表，并整体重写索引文件。
"""

import logging
from typing import List, Optional, Set

from ..storage.base import ContentStore
from .manifest import ComponentRecord, Forest

EXPORT_TEMPLATE = 'export * from "./{name}";'


class IndexGenerator:
    """
    索引生成器

    深度优先遍历所有顶层组件及其任意深度的依赖，同名组件只导出第一次出现。
    """

    def __init__(
        self,
        content: Optional[ContentStore] = None,
        index_path: str = "Components/index.js",
        template: str = EXPORT_TEMPLATE,
    ):
        self.content = content
        self.index_path = index_path
        self.template = template
        self.logger = logging.getLogger(__name__)

    def collect_exports(self, forest: Forest) -> List[str]:
        """按遍历顺序收集组件名称"""
        exports: List[str] = []
        seen: Set[str] = set()

        def add_exports(record: ComponentRecord) -> None:
            if record.name in seen:
                self.logger.debug(f"组件 {record.name} 已在索引中，跳过")
                return
            seen.add(record.name)
            exports.append(record.name)
            for requirement in record.requires:
                add_exports(requirement)

        for record in forest:
            add_exports(record)
        return exports

    def regenerate(self, forest: Forest) -> str:
        """生成完整的索引文本"""
        return "\n".join(self.template.format(name=name) for name in self.collect_exports(forest))

    def write(self, forest: Forest) -> str:
        """重新生成并整体覆盖索引文件"""
        if self.content is None:
            raise RuntimeError("IndexGenerator 未配置内容存储")

        text = self.regenerate(forest)
        self.content.write(self.index_path, text)
        self.logger.info(f"索引已更新: {self.index_path} ({len(forest)} 个顶层组件)")
        return text
