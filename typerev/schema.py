"""OpenAPI schema 对象模型.

只包含合成器会产出的字段. 文档级对象 (paths, operations 等) 不在本库范围内.
"""

from collections.abc import Iterable, Mapping
from enum import Enum
from typing import Any, Union

from pydantic import BaseModel, ConfigDict, Field

COMPONENTS_PREFIX = "#/components/schemas/"


class DataType(str, Enum):
    """schema 的基础数据类型."""

    STRING = "string"
    INTEGER = "integer"
    NUMBER = "number"
    BOOLEAN = "boolean"
    OBJECT = "object"
    ARRAY = "array"


class Reference(BaseModel):
    """指向 `components/schemas` 中命名 schema 的引用."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    ref: str = Field(alias="$ref")
    description: str | None = None

    @classmethod
    def to(cls, name: str) -> "Reference":
        """构造指向指定名称的引用."""
        return cls(ref=f"{COMPONENTS_PREFIX}{name}")

    @property
    def name(self) -> str:
        """被引用的 schema 名称."""
        return self.ref.rsplit("/", 1)[-1]

    @property
    def is_referenceable(self) -> bool:
        """引用本身不会再被提取."""
        return False

    def with_description(self, description: str | None) -> "Reference":
        """返回附加了描述的副本."""
        return self.model_copy(update={"description": description})


class Schema(BaseModel):
    """schema 对象.

    所有字段可选, 全部为空时表示不受约束的任意值 (`{}`).
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    type: DataType | None = None
    format: str | None = None
    description: str | None = None
    enum: list[Any] | None = None
    properties: dict[str, Union["Schema", Reference]] | None = None
    required: list[str] | None = None
    items: Union["Schema", Reference, None] = None
    additional_properties: Union["Schema", Reference, None] = Field(
        default=None, alias="additionalProperties"
    )

    @classmethod
    def any(cls) -> "Schema":
        """不受约束的 schema."""
        return cls()

    @classmethod
    def primitive(cls, data_type: DataType, format: str | None = None) -> "Schema":
        """基础类型 schema."""
        return cls(type=data_type, format=format)

    @classmethod
    def enum_of(cls, data_type: DataType, cases: Iterable[Any]) -> "Schema":
        """字面量枚举 schema."""
        return cls(type=data_type, enum=list(cases))

    @classmethod
    def object(
        cls,
        properties: Mapping[str, "SchemaOrRef"],
        required: Iterable[str] = (),
    ) -> "Schema":
        """字段固定的对象 schema. `required` 为空时省略."""
        required_list = list(required)
        return cls(
            type=DataType.OBJECT,
            properties=dict(properties),
            required=required_list or None,
        )

    @classmethod
    def dictionary(cls, values: "SchemaOrRef") -> "Schema":
        """开放映射 schema, 所有值遵循 `values`."""
        return cls(type=DataType.OBJECT, additional_properties=values)

    @classmethod
    def array(cls, items: "SchemaOrRef") -> "Schema":
        """数组 schema."""
        return cls(type=DataType.ARRAY, items=items)

    @property
    def is_referenceable(self) -> bool:
        """对象、字典与数组可以被提取为命名 schema; 基础类型与枚举不行."""
        if self.enum is not None:
            return False
        return self.type in (DataType.OBJECT, DataType.ARRAY)

    def with_description(self, description: str | None) -> "Schema":
        """返回附加了描述的副本."""
        return self.model_copy(update={"description": description})


SchemaOrRef = Union[Schema, Reference]


def dump_schema(value: SchemaOrRef) -> dict[str, Any]:
    """转换为可直接写入文档的 JSON 字典 (使用别名, 省略空字段)."""
    return value.model_dump(by_alias=True, exclude_none=True, mode="json")
