# -*- coding: utf-8 -*-
"""
本地文件系统实现

LocalContentStore 将相对路径映射到 base_path 下；FrontmatterDocumentStore
在内容存储之上读写带 YAML frontmatter 的 markdown 文档。
"""

import logging
from pathlib import Path
from typing import Callable, Tuple, Union

import yaml

from ..exceptions import PersistenceError
from .base import ContentStore, DocumentStore, Frontmatter

logger = logging.getLogger(__name__)

FRONTMATTER_DELIMITER = "---"


class LocalContentStore(ContentStore):
    """
    本地文件系统内容存储

    所有路径都相对 base_path，越界路径会被拒绝。
    """

    def __init__(self, base_path: Union[str, Path] = "."):
        self.base_path = Path(base_path).resolve()

    def _resolve_path(self, path: str) -> Path:
        clean_path = Path(path).as_posix().lstrip("/")
        full_path = (self.base_path / clean_path).resolve()
        try:
            full_path.relative_to(self.base_path)
        except ValueError:
            raise PersistenceError(f"路径越界: {path}")
        return full_path

    def exists(self, path: str) -> bool:
        return self._resolve_path(path).exists()

    def create_folder(self, path: str) -> None:
        try:
            self._resolve_path(path).mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise PersistenceError(f"创建目录失败 {path}: {e}") from e

    def read(self, path: str) -> str:
        full_path = self._resolve_path(path)
        try:
            return full_path.read_text(encoding="utf-8")
        except OSError as e:
            raise PersistenceError(f"读取文件失败 {path}: {e}") from e

    def write(self, path: str, text: str) -> None:
        full_path = self._resolve_path(path)
        try:
            full_path.parent.mkdir(parents=True, exist_ok=True)
            full_path.write_text(text, encoding="utf-8")
        except OSError as e:
            raise PersistenceError(f"写入文件失败 {path}: {e}") from e
        logger.debug(f"已写入 {path} ({len(text)} 字符)")

    def delete(self, path: str) -> None:
        full_path = self._resolve_path(path)
        try:
            full_path.unlink()
        except OSError as e:
            raise PersistenceError(f"删除文件失败 {path}: {e}") from e
        logger.debug(f"已删除 {path}")


def split_frontmatter(text: str) -> Tuple[Frontmatter, str]:
    """拆分文档为 (frontmatter, 正文)，没有 frontmatter 时返回空字典"""
    lines = text.splitlines(keepends=True)
    if not lines or lines[0].strip() != FRONTMATTER_DELIMITER:
        return {}, text

    for index in range(1, len(lines)):
        if lines[index].strip() == FRONTMATTER_DELIMITER:
            block = "".join(lines[1:index])
            body = "".join(lines[index + 1 :])
            try:
                data = yaml.safe_load(block)
            except yaml.YAMLError as e:
                raise PersistenceError(f"frontmatter 解析失败: {e}") from e
            if data is None:
                data = {}
            if not isinstance(data, dict):
                raise PersistenceError("frontmatter 顶层必须是映射")
            return data, body

    raise PersistenceError("frontmatter 缺少结束分隔符")


def render_frontmatter(data: Frontmatter, body: str = "") -> str:
    block = yaml.safe_dump(
        data, default_flow_style=False, allow_unicode=True, sort_keys=False
    )
    return f"{FRONTMATTER_DELIMITER}\n{block}{FRONTMATTER_DELIMITER}\n{body}"


class FrontmatterDocumentStore(DocumentStore):
    """基于内容存储的 YAML frontmatter 文档存储"""

    def __init__(self, content: ContentStore):
        self.content = content

    def read_frontmatter(self, doc: str) -> Frontmatter:
        data, _ = split_frontmatter(self.content.read(doc))
        return data

    def mutate_frontmatter(
        self, doc: str, fn: Callable[[Frontmatter], Frontmatter]
    ) -> None:
        if not self.content.exists(doc):
            raise PersistenceError(f"文档不存在: {doc}")

        data, body = split_frontmatter(self.content.read(doc))
        updated = fn(data)
        # 与宿主行为一致：fn 原地修改且不返回时沿用原对象
        if updated is None:
            updated = data
        self.content.write(doc, render_frontmatter(updated, body))
