# -*- coding: utf-8 -*-
"""
全局测试配置
提供内存内容存储、可记录调用的网络获取器和共享fixture
"""

from typing import Any, Dict, List, Optional

import pytest

from emeraecm.components.manifest import ComponentRecord
from emeraecm.config import EcmConfig
from emeraecm.exceptions import NetworkError, PersistenceError
from emeraecm.storage.base import ContentStore, NetworkFetcher
from emeraecm.storage.local import FrontmatterDocumentStore

BASE_URL = "https://ecm.test"


def manifest_url(name: str) -> str:
    return f"{BASE_URL}/{name}/manifest.json"


def source_url(name: str) -> str:
    return f"{BASE_URL}/{name}/{name}.jsx"


def make_record(name: str, version: str = "1.0.0", requires=(), protected=False) -> ComponentRecord:
    """构造已安装组件记录"""
    return ComponentRecord(
        name=name,
        version=version,
        manifest_url=manifest_url(name),
        source_url=source_url(name),
        file_path=f"Components/{name}.jsx",
        protected=protected,
        requires=tuple(requires),
    )


class MemoryContentStore(ContentStore):
    """测试用内存内容存储"""

    def __init__(self):
        self.files: Dict[str, str] = {}
        self.folders = set()
        self.writes: List[str] = []
        self.deletes: List[str] = []
        self.fail_on_write = set()
        self.fail_on_delete = set()

    def exists(self, path: str) -> bool:
        return path in self.files or path in self.folders

    def create_folder(self, path: str) -> None:
        self.folders.add(path)

    def read(self, path: str) -> str:
        if path not in self.files:
            raise PersistenceError(f"文件不存在: {path}")
        return self.files[path]

    def write(self, path: str, text: str) -> None:
        if path in self.fail_on_write:
            raise PersistenceError(f"写入失败: {path}")
        self.writes.append(path)
        self.files[path] = text

    def delete(self, path: str) -> None:
        if path in self.fail_on_delete:
            raise PersistenceError(f"删除失败: {path}")
        self.deletes.append(path)
        del self.files[path]


class FakeFetcher(NetworkFetcher):
    """测试用网络获取器，记录每次请求"""

    def __init__(self):
        self.json: Dict[str, Any] = {}
        self.text: Dict[str, str] = {}
        self.calls: List[str] = []

    def fetch_json(self, url: str) -> Any:
        self.calls.append(url)
        if url not in self.json:
            raise NetworkError(url, "HTTP 404")
        return self.json[url]

    def fetch_text(self, url: str) -> str:
        self.calls.append(url)
        if url not in self.text:
            raise NetworkError(url, "HTTP 404")
        return self.text[url]

    def publish(
        self,
        name: str,
        version: str,
        /,
        requires: Optional[List[Dict[str, Any]]] = None,
        **overrides,
    ) -> str:
        """发布一个远程描述符及其源码，返回描述符地址"""
        payload = {"name": name, "version": version, "source": source_url(name)}
        if requires is not None:
            payload["requires"] = requires
        payload.update(overrides)
        self.json[manifest_url(name)] = payload
        self.text[source_url(name)] = f"// {name}@{version}\nexport const {name} = () => null;\n"
        return manifest_url(name)

    def fetched(self, url: str) -> int:
        return self.calls.count(url)

    @staticmethod
    def url_for(name: str) -> str:
        return manifest_url(name)

    @staticmethod
    def source_for(name: str) -> str:
        return source_url(name)


def requirement(name: str, version: str, with_name: bool = True) -> Dict[str, Any]:
    entry = {"manifest": manifest_url(name), "version": version}
    if with_name:
        entry["name"] = name
    return entry


@pytest.fixture
def content() -> MemoryContentStore:
    return MemoryContentStore()


@pytest.fixture
def documents(content) -> FrontmatterDocumentStore:
    return FrontmatterDocumentStore(content)


@pytest.fixture
def fetcher() -> FakeFetcher:
    return FakeFetcher()


@pytest.fixture
def config() -> EcmConfig:
    return EcmConfig()


# 测试标记配置
def pytest_configure(config):
    """配置pytest标记"""
    config.addinivalue_line("markers", "unit: 单元测试")
    config.addinivalue_line("markers", "integration: 集成测试")


@pytest.fixture(name="make_record")
def make_record_fixture():
    """构造已安装组件记录的工厂"""
    return make_record


@pytest.fixture(name="requirement")
def requirement_fixture():
    """构造描述符依赖声明的工厂"""
    return requirement
