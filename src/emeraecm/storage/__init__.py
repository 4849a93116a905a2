# -*- coding: utf-8 -*-
"""
外部协作者：内容存储、文档存储与网络获取
"""

from .base import ContentStore, DocumentStore, NetworkFetcher
from .http import HttpFetcher
from .local import FrontmatterDocumentStore, LocalContentStore

__all__ = [
    "ContentStore",
    "DocumentStore",
    "NetworkFetcher",
    "LocalContentStore",
    "FrontmatterDocumentStore",
    "HttpFetcher",
]
