# -*- coding: utf-8 -*-
"""
emeraecm: A Manifest-Driven Component Dependency Manager
"""

__author__ = "emeraecm"
__version__ = "0.3.0"

# 组件依赖管理
from .components import (
    ComponentRecord,
    DependencyResolver,
    IndexGenerator,
    Installer,
    ManifestStore,
    RemoteDescriptor,
    UpdateChecker,
    UpgradePolicy,
    VersionComparator,
)
from .config import EcmConfig

# 异常
from .exceptions import (
    ComponentExistsError,
    ComponentNotFoundError,
    ConfigurationError,
    CycleDetectedError,
    EcmError,
    ManifestFormatError,
    NetworkError,
    PersistenceError,
    ProtectedComponentError,
    VersionFormatError,
)
from .manager import ComponentManager

__all__ = [
    # 核心组件
    "ComponentManager",
    "EcmConfig",
    "ComponentRecord",
    "RemoteDescriptor",
    "VersionComparator",
    "UpgradePolicy",
    "ManifestStore",
    "DependencyResolver",
    "Installer",
    "IndexGenerator",
    "UpdateChecker",
    # 异常
    "EcmError",
    "ManifestFormatError",
    "VersionFormatError",
    "NetworkError",
    "PersistenceError",
    "CycleDetectedError",
    "ComponentNotFoundError",
    "ComponentExistsError",
    "ProtectedComponentError",
    "ConfigurationError",
]
