# -*- coding: utf-8 -*-
"""
依赖解析引擎

递归解析远程描述符，生成完整的依赖子树；解析过程只读取网络，
写入内容存储是解析完成之后的独立步骤。
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple

import networkx as nx
from pydantic import ValidationError

from ..exceptions import (
    ComponentExistsError,
    ComponentNotFoundError,
    CycleDetectedError,
    ManifestFormatError,
)
from ..storage.base import NetworkFetcher
from .installer import Installer
from .manifest import (
    ComponentRecord,
    Forest,
    RemoteDescriptor,
    Requirement,
    component_file_path,
    find_component,
    find_top_level,
)
from .version import VersionComparator


@dataclass(frozen=True)
class Resolution:
    """
    解析结果

    record 为解析后的组件记录；installs 为需要写入源码的记录，
    依赖在前、父组件在后。changed 为 False 时 installs 为空。
    """

    record: ComponentRecord
    installs: Tuple[ComponentRecord, ...] = ()
    changed: bool = True


@dataclass
class _ResolutionContext:
    """单次 add/update 调用内的解析状态"""

    forest: Forest
    graph: nx.DiGraph = field(default_factory=nx.DiGraph)
    descriptors: Dict[str, RemoteDescriptor] = field(default_factory=dict)
    installs: List[ComponentRecord] = field(default_factory=list)
    resolved: Dict[str, ComponentRecord] = field(default_factory=dict)
    updating: List[str] = field(default_factory=list)

    def visit(self, url: str, parent: Optional[str]) -> None:
        """记录描述符之间的边，出现环时立即失败"""
        if parent is None:
            self.graph.add_node(url)
            return

        self.graph.add_edge(parent, url)
        if not nx.is_directed_acyclic_graph(self.graph):
            edges = nx.find_cycle(self.graph, source=url)
            cycle = [u for u, _ in edges]
            raise CycleDetectedError(cycle + [cycle[0]])


def _canonical_url(url: str) -> str:
    return url.strip()


class DependencyResolver:
    """
    组件依赖解析器

    负责新增组件的递归解析与已安装组件的递归更新。
    森林作为参数显式传入，解析器本身不持有任何组件状态。
    """

    def __init__(
        self,
        fetcher: NetworkFetcher,
        installer: Optional[Installer] = None,
        comparator: Optional[VersionComparator] = None,
        path_for: Callable[[str], str] = component_file_path,
        update_depth: Optional[int] = None,
    ):
        """
        初始化依赖解析器

        Args:
            fetcher: 网络获取器
            installer: 安装器，为 None 时只能做解析规划
            comparator: 版本比较器
            path_for: 由组件名称推导文件路径
            update_depth: 更新传播深度，None 表示不限，0 表示不更新依赖
        """
        self.fetcher = fetcher
        self.installer = installer
        self.comparator = comparator or VersionComparator()
        self.path_for = path_for
        self.update_depth = update_depth
        self.logger = logging.getLogger(__name__)

    # region 新增

    def plan_add(self, manifest_url: str, forest: Forest) -> Resolution:
        """
        解析新增组件，不写入任何文件

        Raises:
            ManifestFormatError: 描述符缺少 name/version/source
            VersionFormatError: 版本号格式错误
            CycleDetectedError: 存在循环依赖
            ComponentExistsError: 同名顶层组件已安装
            NetworkError: 获取失败
        """
        manifest_url = _canonical_url(manifest_url)
        self.logger.info(f"开始解析组件: {manifest_url}")

        ctx = _ResolutionContext(forest=tuple(forest))
        try:
            descriptor = self._fetch_descriptor(manifest_url, ctx).ensure_installable()
            if find_top_level(ctx.forest, descriptor.name) is not None:
                raise ComponentExistsError(f"组件 {descriptor.name} 已安装，请使用更新")

            record = self._resolve(manifest_url, ctx, parent=None)
        except Exception as e:
            self.logger.error(f"组件解析失败 {manifest_url}: {e}")
            raise

        self.logger.info(
            f"组件 {record.name}@{record.version} 解析完成，需写入 {len(ctx.installs)} 个文件"
        )
        return Resolution(record=record, installs=tuple(ctx.installs))

    def add_component(self, manifest_url: str, forest: Forest) -> ComponentRecord:
        """解析新增组件并写入所有需要的源码文件"""
        resolution = self.plan_add(manifest_url, forest)
        self.materialize(resolution)
        return resolution.record

    def check_dependency(self, name: str, required_version: str, forest: Forest) -> bool:
        """
        检查依赖是否已被满足

        在森林的顶层和任意深度的依赖中查找同名组件，
        找到且主、次版本号一致即视为满足。
        """
        found = find_component(forest, name)
        if found is None:
            self.logger.debug(f"依赖 {name} 未安装")
            return False

        if not self.comparator.satisfies(found.version, required_version):
            self.logger.debug(
                f"依赖 {name} 已安装版本 {found.version} 与所需版本 {required_version} 不兼容"
            )
            return False

        return True

    def _resolve(
        self, manifest_url: str, ctx: _ResolutionContext, parent: Optional[str]
    ) -> ComponentRecord:
        """递归解析描述符为组件子树"""
        manifest_url = _canonical_url(manifest_url)
        ctx.visit(manifest_url, parent)
        if manifest_url in ctx.resolved:
            # 本次调用内已解析过的子树直接复用，不重复写入
            return ctx.resolved[manifest_url]

        descriptor = self._fetch_descriptor(manifest_url, ctx).ensure_installable()

        requirements = []
        for requirement in descriptor.requires:
            name = self._requirement_name(requirement, ctx)
            if name and self.check_dependency(name, requirement.version, ctx.forest):
                self.logger.debug(f"依赖 {name} 已满足，跳过")
                continue

            self.logger.debug(f"{descriptor.name} 需要新增依赖 {name or requirement.manifest_url}")
            requirements.append(self._resolve(requirement.manifest_url, ctx, parent=manifest_url))

        record = self._build_record(descriptor, tuple(requirements))
        ctx.installs.append(record)
        ctx.resolved[manifest_url] = record
        return record

    # endregion

    # region 更新

    def plan_update(self, name: str, forest: Forest) -> Resolution:
        """
        解析顶层组件的更新，不写入任何文件

        远程版本缺失或不构成升级时返回原记录，changed 为 False。

        Raises:
            ComponentNotFoundError: 顶层组件不存在
        """
        forest = tuple(forest)
        component = find_top_level(forest, name)
        if component is None:
            raise ComponentNotFoundError(f"组件不存在: {name}")

        ctx = _ResolutionContext(forest=forest)
        try:
            updated = self._update(component, ctx, depth=0)
        except Exception as e:
            self.logger.error(f"组件更新失败 {name}: {e}")
            raise

        if updated is component:
            return Resolution(record=component, installs=(), changed=False)
        return Resolution(record=updated, installs=tuple(ctx.installs))

    def update_component(self, name: str, forest: Forest) -> ComponentRecord:
        """更新顶层组件并写入所有需要的源码文件"""
        resolution = self.plan_update(name, forest)
        self.materialize(resolution)
        return resolution.record

    def _update(
        self, record: ComponentRecord, ctx: _ResolutionContext, depth: int
    ) -> ComponentRecord:
        if record.name in ctx.updating:
            raise CycleDetectedError(ctx.updating[ctx.updating.index(record.name) :] + [record.name])

        descriptor = self._fetch_descriptor(record.manifest_url, ctx)
        if not descriptor.version:
            self.logger.warning(f"组件 {record.name} 的描述符缺少版本号，跳过")
            return record

        if not self.comparator.is_upgrade(record.version, descriptor.version):
            self.logger.info(f"组件 {record.name} 已是最新 ({record.version})")
            return record

        if not descriptor.source:
            raise ManifestFormatError(f"无效的描述符 {descriptor.url}: 缺少字段 ['source']")

        self.logger.info(f"更新组件 {record.name}: {record.version} -> {descriptor.version}")
        ctx.updating.append(record.name)
        ctx.graph.add_node(_canonical_url(record.manifest_url))

        updated = record
        for requirement in descriptor.requires:
            req_name = self._requirement_name(requirement, ctx)
            existing = None
            if req_name:
                existing = updated.find_requirement(req_name) or find_component(ctx.forest, req_name)

            if existing is None:
                self.logger.info(f"{record.name} 新增依赖 {req_name or requirement.manifest_url}")
                subtree = self._resolve(
                    requirement.manifest_url, ctx, parent=_canonical_url(record.manifest_url)
                )
                updated = updated.replace_requirement(subtree.name, subtree)
                continue

            if self.comparator.satisfies(existing.version, requirement.version):
                self.logger.debug(f"依赖 {req_name}@{existing.version} 仍然兼容")
                continue

            if not self._may_propagate(depth):
                self.logger.warning(
                    f"依赖 {req_name}@{existing.version} 与所需版本 {requirement.version} "
                    f"不兼容，但已达到更新传播深度 {self.update_depth}"
                )
                continue

            self.logger.info(f"依赖 {req_name} 不兼容，递归更新")
            refreshed = self._update(existing, ctx, depth + 1)
            if not self.comparator.satisfies(refreshed.version, requirement.version):
                self.logger.warning(
                    f"依赖 {req_name} 更新后版本 {refreshed.version} 仍不满足 {requirement.version}"
                )
            updated = updated.replace_requirement(req_name, refreshed)

        ctx.updating.pop()

        updated = updated.model_copy(
            update={"version": descriptor.version, "source_url": descriptor.source}
        )
        ctx.installs.append(updated)
        return updated

    def _may_propagate(self, depth: int) -> bool:
        return self.update_depth is None or depth < self.update_depth

    # endregion

    def materialize(self, resolution: Resolution) -> None:
        """按顺序写入解析结果中的所有组件源码"""
        if not resolution.installs:
            return
        if self.installer is None:
            raise RuntimeError("DependencyResolver 未配置安装器，无法写入组件")

        for record in resolution.installs:
            self.installer.materialize(record)

    def _fetch_descriptor(self, url: str, ctx: _ResolutionContext) -> RemoteDescriptor:
        """获取描述符，同一次调用内按地址缓存"""
        url = _canonical_url(url)
        if url not in ctx.descriptors:
            self.logger.debug(f"获取描述符: {url}")
            ctx.descriptors[url] = RemoteDescriptor.from_payload(url, self.fetcher.fetch_json(url))
        return ctx.descriptors[url]

    def _requirement_name(self, requirement: Requirement, ctx: _ResolutionContext) -> Optional[str]:
        """依赖声明未给出名称时，通过其描述符获取"""
        if requirement.name:
            return requirement.name
        return self._fetch_descriptor(requirement.manifest_url, ctx).name

    def _build_record(
        self, descriptor: RemoteDescriptor, requires: Tuple[ComponentRecord, ...]
    ) -> ComponentRecord:
        try:
            return ComponentRecord(
                name=descriptor.name,
                version=descriptor.version,
                manifest_url=descriptor.url,
                source_url=descriptor.source,
                file_path=self.path_for(descriptor.name),
                requires=requires,
            )
        except ValidationError as e:
            raise ManifestFormatError(f"无效的描述符 {descriptor.url}: {e}") from e
