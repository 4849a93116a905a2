# -*- coding: utf-8 -*-
"""
组件依赖管理系统

提供组件清单、依赖解析、版本比较、安装与索引生成等功能。
"""

from .index import IndexGenerator
from .installer import Installer
from .manifest import (
    ComponentRecord,
    Forest,
    RemoteDescriptor,
    Requirement,
    find_component,
    find_top_level,
    iter_components,
    with_component,
    without_component,
)
from .resolver import DependencyResolver, Resolution
from .store import ManifestStore
from .updates import UpdateChecker
from .version import UpgradePolicy, Version, VersionComparator

__all__ = [
    "ComponentRecord",
    "RemoteDescriptor",
    "Requirement",
    "Forest",
    "find_component",
    "find_top_level",
    "iter_components",
    "with_component",
    "without_component",
    "VersionComparator",
    "Version",
    "UpgradePolicy",
    "ManifestStore",
    "DependencyResolver",
    "Resolution",
    "Installer",
    "IndexGenerator",
    "UpdateChecker",
]
