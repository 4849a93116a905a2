# -*- coding: utf-8 -*-
"""
emeraecm 配置模块
提供基于 Pydantic 的配置验证机制，支持环境变量解析和多环境配置
"""

import copy
import os
import posixpath
import re
from pathlib import Path
from typing import Any, Dict, Optional, Type, TypeVar

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from .components.manifest import component_file_path
from .components.version import UpgradePolicy
from .exceptions import ConfigurationError

T = TypeVar("T", bound="EcmConfig")

# 环境变量匹配模式: ${VAR_NAME}
ENV_VAR_PATTERN = re.compile(r"\${([A-Za-z0-9_]+)}")


def expand_env_vars(value: Any) -> Any:
    """
    展开字符串中所有 ${VAR} 引用，保留引用前后的文本

    Raises:
        ValueError: 引用的环境变量未设置
    """
    if not isinstance(value, str):
        return value

    def substitute(match: "re.Match[str]") -> str:
        resolved = os.getenv(match.group(1))
        if resolved is None:
            raise ValueError(f"环境变量 '{match.group(1)}' 未设置")
        return resolved

    return ENV_VAR_PATTERN.sub(substitute, value)


class EcmConfig(BaseModel):
    """
    组件管理器配置

    未知字段直接拒绝，赋值同样经过验证。字符串字段可以引用 ${VAR_NAME}
    形式的环境变量；load_from_dict 按 APP_ENV 叠加环境专属配置。
    """

    root: str = Field(default=".", description="内容存储根目录")
    components_dir: str = Field(default="Components", description="组件目录（相对 root）")
    manifest_file: str = Field(default="manifest.md", description="清单文档文件名")
    index_file: str = Field(default="index.js", description="导出索引文件名")
    component_extension: str = Field(default=".jsx", description="组件文件扩展名")

    # None 表示无限传播；0 表示更新时不触碰依赖
    update_depth: Optional[int] = Field(default=None, ge=0, description="更新传播深度")
    upgrade_policy: UpgradePolicy = Field(
        default=UpgradePolicy.PER_FIELD, description="升级判定策略"
    )

    request_timeout: float = Field(default=30.0, gt=0, description="HTTP 请求超时(秒)")
    user_agent: str = Field(default="emeraecm", description="HTTP User-Agent")

    # Pydantic v2 配置
    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    @model_validator(mode="before")
    @classmethod
    def _expand_env_vars(cls, data: Any) -> Any:
        """字段值中的 ${VAR} 在其他验证之前展开"""
        if not isinstance(data, dict):
            return data
        return {key: expand_env_vars(value) for key, value in data.items()}

    @property
    def manifest_path(self) -> str:
        return posixpath.join(self.components_dir, self.manifest_file)

    @property
    def index_path(self) -> str:
        return posixpath.join(self.components_dir, self.index_file)

    def file_path_for(self, name: str) -> str:
        return component_file_path(name, self.components_dir, self.component_extension)

    @classmethod
    def load_from_dict(
        cls: Type[T],
        config_data: Dict[str, Any],
        env: Optional[str] = None,
    ) -> T:
        """
        从字典加载配置，支持环境特定的配置覆盖

        配置结构示例：
        {
            "default": {"components_dir": "Components"},
            "production": {"request_timeout": 60}
        }
        没有 "default" 键时整个字典视为基础配置。

        Args:
            config_data: 配置字典
            env: 目标环境，为 None 时使用 os.getenv("APP_ENV", "development")

        Raises:
            ConfigurationError: 配置验证失败
        """
        if env is None:
            env = os.getenv("APP_ENV", "development")

        if "default" in config_data:
            base_config = config_data.get("default") or {}
            env_config = config_data.get(env) or {}
        else:
            base_config, env_config = config_data, {}

        def deep_merge(base: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
            result = copy.deepcopy(base)
            for key, value in overrides.items():
                if isinstance(value, dict) and isinstance(result.get(key), dict):
                    result[key] = deep_merge(result[key], value)
                else:
                    result[key] = value
            return result

        try:
            return cls(**deep_merge(base_config, env_config))
        except ValidationError as e:
            error_details = []
            for error in e.errors():
                field = ".".join(str(loc) for loc in error["loc"])
                error_details.append(f"{field}: {error['msg']}")
            raise ConfigurationError(f"字段验证失败: {'; '.join(error_details)}") from e

    @classmethod
    def load_from_file(cls: Type[T], config_path: Path, env: Optional[str] = None) -> T:
        """从 YAML 文件加载配置"""
        config_path = Path(config_path)
        if not config_path.exists():
            raise ConfigurationError(f"配置文件不存在: {config_path}")

        with open(config_path, "r", encoding="utf-8") as f:
            try:
                data = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigurationError(f"配置文件解析失败 {config_path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigurationError(f"配置文件顶层必须是映射: {config_path}")
        return cls.load_from_dict(data, env=env)
