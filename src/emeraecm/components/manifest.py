# -*- coding: utf-8 -*-
"""
组件清单模型

定义已安装组件记录、远程描述符以及依赖森林的纯函数操作。
"""

import posixpath
from typing import Any, Dict, Iterator, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..exceptions import ManifestFormatError, VersionFormatError
from .version import parse_version


def _raise_boundary_error(error: ValidationError, context: str) -> None:
    """将 Pydantic 验证错误转换为 emeraecm 异常"""
    details = []
    for item in error.errors():
        cause = (item.get("ctx") or {}).get("error")
        if isinstance(cause, VersionFormatError):
            raise cause from error
        field = ".".join(str(loc) for loc in item["loc"])
        details.append(f"{field}: {item['msg']}")
    raise ManifestFormatError(f"{context}: {'; '.join(details)}") from error


def _validate_version(value: Any) -> str:
    return str(parse_version(value))


def component_file_path(
    name: str, directory: str = "Components", extension: str = ".jsx"
) -> str:
    """组件文件路径只由名称决定"""
    return posixpath.join(directory, f"{name}{extension}")


class ComponentRecord(BaseModel):
    """
    已安装组件记录

    不可变值对象；requires 中的子树与其他父节点下的同名依赖互相独立。
    """

    name: str = Field(..., min_length=1, description="组件名称")
    version: str = Field(..., description="组件版本 (MAJOR.MINOR.PATCH)")
    manifest_url: str = Field(..., alias="manifest", description="远程描述符地址")
    source_url: str = Field(..., alias="source", description="组件源码地址")
    file_path: str = Field(..., alias="filePath", description="组件文件路径")
    protected: bool = Field(default=False, description="受保护组件不可删除")
    requires: Tuple["ComponentRecord", ...] = Field(
        default_factory=tuple, description="已解析的依赖子树"
    )

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        """名称会用于文件路径和导出语句"""
        if "/" in v or "\\" in v or v in (".", ".."):
            raise ValueError(f"无效的组件名称: {v}")
        return v

    @field_validator("version", mode="before")
    @classmethod
    def validate_version(cls, v):
        return _validate_version(v)

    @field_validator("protected", mode="before")
    @classmethod
    def validate_protected(cls, v):
        return False if v is None else v

    @field_validator("requires", mode="before")
    @classmethod
    def validate_requires(cls, v):
        if v is None:
            return ()
        return tuple(item for item in v if item is not None)

    @classmethod
    def from_frontmatter(cls, data: Dict[str, Any]) -> "ComponentRecord":
        """从持久化文档中的字典构造记录"""
        if not isinstance(data, dict):
            raise ManifestFormatError(f"组件记录必须是对象: {data!r}")
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            _raise_boundary_error(e, f"组件记录格式错误 {data.get('name')}")

    def to_frontmatter(self) -> Dict[str, Any]:
        """转换为可写入文档的纯字典"""
        return self.model_dump(mode="json", by_alias=True)

    def find_requirement(self, name: str) -> Optional["ComponentRecord"]:
        """在直接依赖中查找"""
        return next((r for r in self.requires if r.name == name), None)

    def replace_requirement(self, name: str, record: "ComponentRecord") -> "ComponentRecord":
        """替换同名直接依赖，不存在时追加"""
        requires = list(self.requires)
        for index, existing in enumerate(requires):
            if existing.name == name:
                requires[index] = record
                break
        else:
            requires.append(record)
        return self.model_copy(update={"requires": tuple(requires)})


ComponentRecord.model_rebuild()


class Requirement(BaseModel):
    """远程描述符中的依赖声明"""

    manifest_url: str = Field(..., alias="manifest", min_length=1)
    version: str
    name: Optional[str] = None

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    @field_validator("version", mode="before")
    @classmethod
    def validate_version(cls, v):
        return _validate_version(v)


class RemoteDescriptor(BaseModel):
    """
    远程组件描述符

    通过 HTTP 获取的临时对象。name/version/source 在这里都是可选的：
    更新检查允许缺少版本号，安装前由 ensure_installable 校验。
    """

    url: str = Field(..., description="描述符地址")
    name: Optional[str] = None
    version: Optional[str] = None
    source: Optional[str] = None
    requires: Tuple[Requirement, ...] = Field(default_factory=tuple)

    model_config = ConfigDict(frozen=True, extra="ignore")

    @field_validator("name", "source", mode="before")
    @classmethod
    def blank_to_none(cls, v):
        # 空字符串与缺失等价
        if v is None or v == "":
            return None
        return v

    @field_validator("version", mode="before")
    @classmethod
    def validate_version(cls, v):
        if v is None or v == "":
            return None
        return _validate_version(v)

    @field_validator("requires", mode="before")
    @classmethod
    def validate_requires(cls, v):
        if v is None:
            return ()
        if not isinstance(v, (list, tuple)):
            raise ValueError("requires 必须是数组")
        return tuple(v)

    @classmethod
    def from_payload(cls, url: str, payload: Any) -> "RemoteDescriptor":
        """从远程 JSON 构造描述符"""
        if not isinstance(payload, dict):
            raise ManifestFormatError(f"描述符必须是 JSON 对象: {url}")
        try:
            return cls.model_validate({**payload, "url": url})
        except ValidationError as e:
            _raise_boundary_error(e, f"描述符格式错误 {url}")

    def ensure_installable(self) -> "RemoteDescriptor":
        """安装前校验必需字段"""
        missing = [f for f in ("name", "version", "source") if not getattr(self, f)]
        if missing:
            raise ManifestFormatError(f"无效的描述符 {self.url}: 缺少字段 {missing}")
        return self


# region 依赖森林

Forest = Tuple[ComponentRecord, ...]


def forest_from_frontmatter(components: Optional[List[Any]]) -> Forest:
    """从文档的 components 字段构造森林，忽略空条目"""
    return tuple(
        ComponentRecord.from_frontmatter(item)
        for item in (components or [])
        if item is not None
    )


def forest_to_frontmatter(forest: Forest) -> List[Dict[str, Any]]:
    return [record.to_frontmatter() for record in forest]


def iter_components(forest: Forest) -> Iterator[ComponentRecord]:
    """深度优先遍历森林中的所有记录（含任意深度的依赖）"""
    for record in forest:
        yield record
        yield from iter_components(record.requires)


def find_component(forest: Forest, name: str) -> Optional[ComponentRecord]:
    """按名称查找，顶层与嵌套依赖均参与匹配，返回第一个命中"""
    return next((r for r in iter_components(forest) if r.name == name), None)


def find_top_level(forest: Forest, name: str) -> Optional[ComponentRecord]:
    return next((r for r in forest if r.name == name), None)


def with_component(forest: Forest, record: ComponentRecord) -> Forest:
    """替换同名顶层记录，不存在时追加到末尾"""
    if find_top_level(forest, record.name) is None:
        return tuple(forest) + (record,)
    return tuple(record if r.name == record.name else r for r in forest)


def without_component(forest: Forest, name: str) -> Forest:
    return tuple(r for r in forest if r.name != name)


# endregion
