# -*- coding: utf-8 -*-
"""
组件版本比较

版本号固定为 MAJOR.MINOR.PATCH 三段非负整数，兼容粒度为次版本号。
"""

import re
from enum import Enum
from typing import NamedTuple, Union

from packaging import version as pkg_version

from ..exceptions import VersionFormatError

_VERSION_PATTERN = re.compile(r"^(\d+)\.(\d+)\.(\d+)$", re.ASCII)


class UpgradePolicy(str, Enum):
    """升级判定策略"""

    PER_FIELD = "per_field"  # 各字段独立比较，任一字段变大即视为升级
    ORDERED = "ordered"  # 按 (major, minor, patch) 字典序比较


class Version(NamedTuple):
    """已解析的版本号"""

    major: int
    minor: int
    patch: int

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"


VersionLike = Union[str, Version]


class VersionComparator:
    """
    版本比较器

    负责版本解析、兼容性判定以及升级判定。
    """

    def __init__(self, policy: UpgradePolicy = UpgradePolicy.PER_FIELD):
        self.policy = UpgradePolicy(policy)

    @staticmethod
    def parse(value: VersionLike) -> Version:
        """
        解析版本字符串

        Raises:
            VersionFormatError: 任一字段不是非负整数
        """
        if isinstance(value, Version):
            return value
        if not isinstance(value, str):
            raise VersionFormatError(f"无效的版本格式: {value!r}")

        match = _VERSION_PATTERN.match(value.strip())
        if not match:
            raise VersionFormatError(f"无效的版本格式: {value!r}")
        return Version(*(int(part) for part in match.groups()))

    @classmethod
    def satisfies(cls, installed: VersionLike, required: VersionLike) -> bool:
        """已安装版本与所需版本的主版本号、次版本号均相同即视为满足"""
        current = cls.parse(installed)
        target = cls.parse(required)
        return current.major == target.major and current.minor == target.minor

    def is_upgrade(self, current: VersionLike, candidate: VersionLike) -> bool:
        """判断 candidate 相对 current 是否为升级"""
        current_v = self.parse(current)
        candidate_v = self.parse(candidate)

        if self.policy is UpgradePolicy.ORDERED:
            return pkg_version.Version(str(candidate_v)) > pkg_version.Version(
                str(current_v)
            )

        # 各字段独立比较：1.5.0 -> 0.6.0 也会被判定为升级
        return (
            candidate_v.major > current_v.major
            or candidate_v.minor > current_v.minor
            or candidate_v.patch > current_v.patch
        )


def parse_version(value: VersionLike) -> Version:
    """解析版本字符串，见 VersionComparator.parse"""
    return VersionComparator.parse(value)


def satisfies(installed: VersionLike, required: VersionLike) -> bool:
    """见 VersionComparator.satisfies"""
    return VersionComparator.satisfies(installed, required)


def is_upgrade(
    current: VersionLike,
    candidate: VersionLike,
    policy: UpgradePolicy = UpgradePolicy.PER_FIELD,
) -> bool:
    """见 VersionComparator.is_upgrade"""
    return VersionComparator(policy).is_upgrade(current, candidate)
