"""测试 typerev 结构体.

覆盖 typerev.struct 模块的核心特性:
1. Struct 定义与字段配置 (default, default_factory, key)
2. 字段解码计划 (rev_fields)
3. 类方法 (rev_shape, rev_schema)
4. 泛型结构体
5. 描述文本
6. 前向引用与 model_rebuild
"""

from typing import Generic, Optional, TypeVar

import pytest
from pydantic import Field as PydanticField

from typerev import (
    DataType,
    Field,
    Keyed,
    PrimitiveKind,
    Recursive,
    Reference,
    Schema,
    SchemaRegistry,
    Single,
    Struct,
)

T = TypeVar("T")

# --- 辅助模型 ---


class SimpleUser(Struct):
    """基础测试用户结构体."""

    uid: int = Field(key="user_id")
    name: str = Field("unknown")


class FactoryUser(Struct):
    """测试 default_factory 的结构体."""

    tags: list[str] = Field(default_factory=list)
    scores: list[int] = Field(default_factory=lambda: [100])


class Described(Struct):
    """带描述的结构体."""

    __rev_description__ = "A described struct"

    id: int


class WithExcluded(Struct):
    """带排除字段的结构体."""

    id: int
    cache: str = PydanticField(default="", exclude=True)


class Page(Struct, Generic[T]):
    """泛型分页结构体."""

    items: list[T]
    total: int


class Item(Struct):
    """分页条目."""

    sku: str


class Team(Struct):
    """通过前向引用与 Member 互相引用."""

    lead: "Member"


class Member(Struct):
    team: Optional[Team] = None


Team.model_rebuild()


# --- 测试用例 ---


def test_struct_defaults() -> None:
    """Struct 应正确处理字段默认值和 factory."""
    user = SimpleUser(uid=1)
    assert user.uid == 1
    assert user.name == "unknown"

    factory = FactoryUser()
    assert factory.tags == []
    assert factory.scores == [100]


def test_field_empty_key_raises() -> None:
    """Field(key="") 应抛出 ValueError."""
    with pytest.raises(ValueError, match="Invalid key"):
        Field(key="")


def test_rev_fields_plan() -> None:
    """rev_fields() 按声明顺序给出键名与可选性."""
    plans = SimpleUser.rev_fields()
    assert list(plans) == ["uid", "name"]

    assert plans["uid"].key == "user_id"
    assert not plans["uid"].optional

    assert plans["name"].key == "name"
    assert plans["name"].optional
    assert plans["name"].has_default


def test_rev_fields_skips_excluded() -> None:
    """显式排除的字段不参与解码."""
    assert list(WithExcluded.rev_fields()) == ["id"]


def test_optional_annotation_plan() -> None:
    """可空注解的字段记录内层类型."""

    class Holder(Struct):
        value: int | None

    plan = Holder.rev_fields()["value"]
    assert plan.optional
    assert not plan.has_default
    assert plan.inner is int


def test_rev_shape() -> None:
    """rev_shape() 返回定形的按键形状, 字段名取键名."""
    shape = SimpleUser.rev_shape()
    assert isinstance(shape.container, Keyed)
    assert shape.container.is_fixed
    assert shape.type is SimpleUser
    assert list(shape.container.fields) == ["user_id", "name"]
    assert shape.container.fields["user_id"].container == Single(PrimitiveKind.INT)
    assert shape.container.fields["name"].is_optional


def test_rev_schema_registers() -> None:
    """rev_schema() 写入注册表并返回引用."""
    registry = SchemaRegistry()
    ref = SimpleUser.rev_schema(registry)
    assert ref == Reference.to("SimpleUser")
    assert registry["SimpleUser"] == Schema.object(
        {
            "user_id": Schema.primitive(DataType.INTEGER, "int64"),
            "name": Schema.primitive(DataType.STRING),
        },
        required=["user_id"],
    )


def test_rev_schema_params() -> None:
    """rev_schema() 接受配置参数."""
    schema = FactoryUser.rev_schema(extract_references=False, key_strategy="camel_case")
    assert isinstance(schema, Schema)
    assert schema.properties is not None
    assert list(schema.properties) == ["tags", "scores"]
    assert schema.required is None


def test_description_attached() -> None:
    """__rev_description__ 附加到命名 schema."""
    registry = SchemaRegistry()
    Described.rev_schema(registry)
    assert registry["Described"].description == "A described struct"


def test_generic_struct() -> None:
    """参数化的泛型结构体使用参数化后的字段类型与名称."""
    registry = SchemaRegistry()
    ref = Page[Item].rev_schema(registry)

    assert isinstance(ref, Reference)
    assert ref.name == "Page_Item"
    page = registry["Page_Item"]
    assert isinstance(page, Schema)
    assert page.properties is not None
    assert page.properties["items"] == Schema.array(Reference.to("Item"))
    assert "Item" in registry


def test_forward_reference_after_model_rebuild() -> None:
    """显式 model_rebuild 之后, 前向引用字段按解析后的类型探测."""
    assert Team.__pydantic_complete__

    shape = Team.rev_shape()
    assert isinstance(shape.container, Keyed)
    lead = shape.container.fields["lead"]
    assert lead.type is Member
    assert isinstance(lead.container, Keyed)
    assert lead.container.fields["team"].container == Recursive(Team)

    registry = SchemaRegistry()
    Team.rev_schema(registry)
    member = registry["Member"]
    assert isinstance(member, Schema)
    assert member.properties == {"team": Reference.to("Team")}
