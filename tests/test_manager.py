# -*- coding: utf-8 -*-
"""
组件管理器测试

通过内存内容存储与模拟获取器驱动完整的新增、更新、删除流程。
"""

import pytest

from emeraecm.exceptions import (
    ComponentExistsError,
    ComponentNotFoundError,
    CycleDetectedError,
    NetworkError,
)
from emeraecm.manager import ComponentManager

MANIFEST = "Components/manifest.md"
INDEX = "Components/index.js"


@pytest.fixture
def notices():
    return []


@pytest.fixture
def manager(config, content, documents, fetcher, notices) -> ComponentManager:
    manager = ComponentManager(
        config, content=content, documents=documents, fetcher=fetcher, notifier=notices.append
    )
    manager.initialize()
    return manager


@pytest.fixture
def seeded(manager, content, make_record):
    """预置一个受保护组件和一个普通组件"""
    forest = (
        make_record("Core", protected=True),
        make_record("Card", requires=[make_record("Button")]),
    )
    for name in ["Core", "Card", "Button"]:
        content.files[f"Components/{name}.jsx"] = f"// {name}"
    manager.store.save(forest)
    content.writes.clear()
    return manager


class TestInitialize:
    """测试初始化"""

    def test_creates_empty_manifest(self, manager, content):
        assert "Components" in content.folders
        assert MANIFEST in content.files
        assert manager.components == ()
        assert manager.list_components() == ()

    def test_loads_persisted_forest(self, seeded, config, content, documents, fetcher):
        reloaded = ComponentManager(config, content=content, documents=documents, fetcher=fetcher)

        forest = reloaded.initialize()

        assert [r.name for r in forest] == ["Core", "Card"]
        assert forest[0].protected is True
        assert forest[1].requires[0].name == "Button"


class TestAddComponent:
    """测试新增组件"""

    def test_add_persists_and_reindexes(self, manager, content, fetcher, requirement):
        fetcher.publish("Button", "1.0.0")
        url = fetcher.publish("Card", "2.0.0", requires=[requirement("Button", "1.0.0")])

        record = manager.add_component(url)

        assert record.name == "Card"
        assert [r.name for r in manager.components] == ["Card"]
        assert manager.components[0].requires[0].name == "Button"
        assert content.files["Components/Card.jsx"].startswith("// Card@2.0.0")
        assert content.files["Components/Button.jsx"].startswith("// Button@1.0.0")
        assert content.files[INDEX].splitlines() == [
            'export * from "./Card";',
            'export * from "./Button";',
        ]
        assert "name: Card" in content.files[MANIFEST]

    def test_add_reuses_installed_dependency(self, seeded, content, fetcher, requirement):
        url = fetcher.publish("Form", "1.0.0", requires=[requirement("Button", "1.0.5")])

        record = seeded.add_component(url)

        assert record.requires == ()
        assert "Components/Button.jsx" not in content.writes
        assert [r.name for r in seeded.components] == ["Core", "Card", "Form"]

    def test_failed_resolution_writes_nothing(self, manager, content, fetcher, requirement):
        fetcher.publish("A", "1.0.0", requires=[requirement("B", "1.0.0")])
        fetcher.publish("B", "1.0.0", requires=[requirement("A", "1.0.0")])
        content.writes.clear()

        with pytest.raises(CycleDetectedError):
            manager.add_component(fetcher.url_for("A"))

        assert content.writes == []
        assert manager.components == ()

    def test_add_existing_rejected(self, seeded, content, fetcher):
        url = fetcher.publish("Card", "3.0.0")

        with pytest.raises(ComponentExistsError):
            seeded.add_component(url)
        assert content.writes == []

    def test_source_fetch_failure_leaves_manifest(self, manager, content, fetcher):
        url = fetcher.publish("Button", "1.0.0")
        del fetcher.text[fetcher.source_for("Button")]
        before = content.files[MANIFEST]

        with pytest.raises(NetworkError):
            manager.add_component(url)

        assert content.files[MANIFEST] == before
        assert manager.components == ()


class TestUpdateComponent:
    """测试更新组件"""

    def test_no_upgrade_writes_nothing(self, seeded, content, fetcher):
        fetcher.publish("Card", "1.0.0")

        record = seeded.update_component("Card")

        assert record.version == "1.0.0"
        assert content.writes == []

    def test_upgrade_persists(self, seeded, content, fetcher, requirement):
        fetcher.publish("Button", "2.0.0")
        fetcher.publish("Card", "1.1.0", requires=[requirement("Button", "2.0.0")])

        record = seeded.update_component("Card")

        assert record.version == "1.1.0"
        assert record.requires[0].version == "2.0.0"
        assert seeded.components[1] == record
        assert seeded.components[1].requires[0].version == "2.0.0"
        assert content.writes[:2] == ["Components/Button.jsx", "Components/Card.jsx"]
        assert MANIFEST in content.writes
        assert INDEX in content.writes

    def test_update_missing(self, seeded):
        with pytest.raises(ComponentNotFoundError):
            seeded.update_component("Ghost")

    def test_update_all(self, seeded, fetcher):
        fetcher.publish("Core", "1.0.0")
        fetcher.publish("Card", "1.0.1")

        updated = seeded.update_all()

        assert [(r.name, r.version) for r in updated] == [("Card", "1.0.1")]
        assert [r.version for r in seeded.components] == ["1.0.0", "1.0.1"]

    def test_check_updates(self, seeded, fetcher):
        fetcher.publish("Core", "1.1.0")
        fetcher.publish("Card", "")

        assert [d.name for d in seeded.check_updates()] == ["Core"]


class TestDeleteComponent:
    """测试删除组件"""

    def test_delete(self, seeded, content, notices):
        assert seeded.delete_component("Card") is True

        assert [r.name for r in seeded.components] == ["Core"]
        assert content.deletes == ["Components/Card.jsx"]
        # 嵌套依赖的文件保留
        assert "Components/Button.jsx" in content.files
        assert content.files[INDEX] == 'export * from "./Core";'
        assert notices == []

    def test_protected_component_kept(self, seeded, content, notices):
        assert seeded.delete_component("Core") is False

        assert [r.name for r in seeded.components] == ["Core", "Card"]
        assert content.deletes == []
        assert content.writes == []
        assert len(notices) == 1
        assert "受保护" in notices[0]

    def test_missing_component(self, seeded, notices):
        assert seeded.delete_component("Ghost") is False
        assert "Ghost" in notices[0]

    def test_nested_dependency_not_deletable(self, seeded, content):
        assert seeded.delete_component("Button") is False
        assert content.deletes == []

    def test_file_delete_failure_restores_manifest(self, seeded, content, notices):
        manifest_before = content.files[MANIFEST]
        index_before = content.files[INDEX]
        content.fail_on_delete.add("Components/Card.jsx")

        assert seeded.delete_component("Card") is False

        assert [r.name for r in seeded.components] == ["Core", "Card"]
        assert content.files[MANIFEST] == manifest_before
        assert content.files[INDEX] == index_before
        assert "Components/Card.jsx" in content.files
        assert len(notices) == 1

    @pytest.mark.parametrize("failing_path", [MANIFEST, INDEX])
    def test_save_failure_keeps_file_and_manifest(
        self, seeded, config, content, documents, fetcher, notices, failing_path
    ):
        manifest_before = content.files[MANIFEST]
        index_before = content.files[INDEX]
        content.fail_on_write.add(failing_path)

        assert seeded.delete_component("Card") is False

        assert "Components/Card.jsx" in content.files
        assert content.deletes == []
        assert content.files[MANIFEST] == manifest_before
        assert content.files[INDEX] == index_before
        assert [r.name for r in seeded.components] == ["Core", "Card"]
        assert len(notices) == 1

        # 内存与磁盘一致：重新加载得到同样的森林
        content.fail_on_write.clear()
        reloaded = ComponentManager(config, content=content, documents=documents, fetcher=fetcher)
        assert [r.name for r in reloaded.initialize()] == ["Core", "Card"]


class TestRebuildIndex:
    """测试重建索引"""

    def test_rebuild(self, seeded, content):
        content.files[INDEX] = ""

        text = seeded.rebuild_index()

        assert text.splitlines() == [
            'export * from "./Core";',
            'export * from "./Card";',
            'export * from "./Button";',
        ]
        assert content.files[INDEX] == text
