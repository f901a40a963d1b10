"""Schema 合成器测试.

覆盖 typerev.synthesizer.SchemaSynthesizer:
1. Person/Pet 场景: 引用提取与 required 推导
2. 基础类型与定宽类型的 format 映射
3. 枚举、开放映射、数组
4. 递归类型通过注册表自引用
5. 引用去重与关闭引用提取
6. 日期格式、自描述类型与描述文本
7. 字段名转换策略
"""

import dataclasses
import datetime
import decimal
import uuid
from enum import Enum
from typing import Any, Literal, Optional

import pytest

from typerev import (
    DataType,
    DateFormat,
    Float32,
    Int8,
    Int16,
    Int32,
    Int64,
    KeyStrategy,
    Keyed,
    PrimitiveKind,
    Reference,
    Schema,
    SchemaConfig,
    SchemaRegistry,
    SchemaSynthesizer,
    SchemaTypeError,
    ShapeTree,
    Single,
    Struct,
    UInt,
    UInt8,
    UInt16,
    UInt32,
    UInt64,
    Unkeyed,
)
from typerev.protocol import Decoder
from typerev.synthesizer import primitive_schema

STRING = Schema.primitive(DataType.STRING)
INT64 = Schema.primitive(DataType.INTEGER, "int64")

# --- 辅助模型 ---


class Pet(Struct):
    """宠物."""

    name: str


class Person(Struct):
    """人员."""

    name: str
    age: int
    pet: Pet | None = None


class Owner(Struct):
    """多处引用同一类型."""

    first: Pet
    second: Pet
    others: list[Pet] = []


class TreeNode(Struct):
    """自引用的树节点."""

    name: str
    parent: Optional["TreeNode"] = None


class Status(Enum):
    """状态."""

    ACTIVE = "active"
    DISABLED = "disabled"


class Described(Struct):
    """带描述的结构体."""

    __rev_description__ = "Described thing"

    id: int


class Money:
    """自描述类型."""

    @classmethod
    def __rev_schema__(cls) -> Schema:
        return Schema.primitive(DataType.STRING, "decimal")


class BadSchema:
    """自描述钩子返回了非 schema 对象."""

    @classmethod
    def __rev_schema__(cls) -> Any:
        return {"type": "string"}


class Scores(dict[str, float]):
    """具名的字典类型."""


class Profile(Struct):
    """用于字段名转换."""

    firstName: str
    last_name: str
    userID: int | None = None


@dataclasses.dataclass
class Timeline:
    """带日期字段."""

    created: datetime.datetime
    day: datetime.date


@dataclasses.dataclass
class Wallet:
    """带自描述字段."""

    id: uuid.UUID
    balance: decimal.Decimal
    amount: Money


def synthesize(type_: Any, registry: SchemaRegistry, **params: Any) -> Any:
    config = SchemaConfig.from_params(**params)
    return SchemaSynthesizer(config).schema_for_type(type_, registry)


# --- 测试用例 ---


def test_person_pet_scenario() -> None:
    """Person 引用 Pet, 两者都写入注册表."""
    registry = SchemaRegistry()
    result = synthesize(Person, registry)

    assert result == Reference.to("Person")
    assert registry["Person"] == Schema.object(
        {"name": STRING, "age": INT64, "pet": Reference.to("Pet")},
        required=["name", "age"],
    )
    assert registry["Pet"] == Schema.object({"name": STRING}, required=["name"])
    assert len(registry) == 2


@pytest.mark.parametrize(
    ("kind", "expected"),
    [
        (PrimitiveKind.INT8, Schema.primitive(DataType.INTEGER, "int32")),
        (PrimitiveKind.UINT16, Schema.primitive(DataType.INTEGER, "int32")),
        (PrimitiveKind.UINT32, Schema.primitive(DataType.INTEGER, "int32")),
        (PrimitiveKind.INT, INT64),
        (PrimitiveKind.UINT64, INT64),
        (PrimitiveKind.DOUBLE, Schema.primitive(DataType.NUMBER, "double")),
        (PrimitiveKind.FLOAT, Schema.primitive(DataType.NUMBER, "float")),
        (PrimitiveKind.BOOL, Schema.primitive(DataType.BOOLEAN)),
        (PrimitiveKind.STRING, STRING),
        (PrimitiveKind.NULL, STRING),
    ],
)
def test_primitive_schema(kind: PrimitiveKind, expected: Schema) -> None:
    """基础类型按固定表映射到 type/format."""
    assert primitive_schema(kind) == expected


@pytest.mark.parametrize(
    ("type_", "data_type", "fmt"),
    [
        (int, DataType.INTEGER, "int64"),
        (float, DataType.NUMBER, "double"),
        (bool, DataType.BOOLEAN, None),
        (str, DataType.STRING, None),
        (Int8, DataType.INTEGER, "int32"),
        (Int16, DataType.INTEGER, "int32"),
        (Int32, DataType.INTEGER, "int32"),
        (Int64, DataType.INTEGER, "int64"),
        (UInt, DataType.INTEGER, "int64"),
        (UInt8, DataType.INTEGER, "int32"),
        (UInt16, DataType.INTEGER, "int32"),
        (UInt32, DataType.INTEGER, "int32"),
        (UInt64, DataType.INTEGER, "int64"),
        (Float32, DataType.NUMBER, "float"),
    ],
)
def test_primitive_types(type_: type, data_type: DataType, fmt: str | None) -> None:
    """基础类型不会写入注册表."""
    registry = SchemaRegistry()
    assert synthesize(type_, registry) == Schema.primitive(data_type, fmt)
    assert len(registry) == 0


def test_enum_schema_inline() -> None:
    """枚举得到带取值列表的内联 schema."""
    registry = SchemaRegistry()
    assert synthesize(Status, registry) == Schema.enum_of(
        DataType.STRING, ["active", "disabled"]
    )
    assert synthesize(Literal[1, 2], registry) == Schema.enum_of(DataType.INTEGER, [1, 2])
    assert len(registry) == 0


def test_dictionary_schema() -> None:
    """开放映射得到 additionalProperties, 容器注解保持内联."""
    registry = SchemaRegistry()
    result = synthesize(dict[str, Pet], registry)
    assert result == Schema.dictionary(Reference.to("Pet"))
    assert list(registry) == ["Pet"]


def test_named_dictionary_extracted() -> None:
    """具名的字典类型被提取为命名 schema."""
    registry = SchemaRegistry()
    assert synthesize(Scores, registry) == Reference.to("Scores")
    assert registry["Scores"] == Schema.dictionary(Schema.primitive(DataType.NUMBER, "double"))


def test_empty_open_mapping_is_any_valued() -> None:
    """没有观察到任何值的开放映射使用任意值 schema."""
    shape = ShapeTree(Keyed({}, is_fixed=False))
    result = SchemaSynthesizer().synthesize(shape, None, SchemaRegistry())
    assert result == Schema.dictionary(Schema.any())


def test_array_schema() -> None:
    """序列得到数组 schema."""
    registry = SchemaRegistry()
    assert synthesize(list[int], registry) == Schema.array(INT64)
    assert synthesize(list[list[str]], registry) == Schema.array(Schema.array(STRING))
    assert len(registry) == 0


def test_heterogeneous_tuple_items_any() -> None:
    """元素形状不一致的元组得到任意元素."""
    assert synthesize(tuple[int, str], SchemaRegistry()) == Schema.array(Schema.any())


def test_recursive_self_reference() -> None:
    """递归类型通过注册表自引用, 合成终止."""
    registry = SchemaRegistry()
    result = synthesize(TreeNode, registry)

    assert result == Reference.to("TreeNode")
    assert registry["TreeNode"] == Schema.object(
        {"name": STRING, "parent": Reference.to("TreeNode")},
        required=["name"],
    )


def test_reference_deduplication() -> None:
    """同一类型多次出现只写入一个注册表条目."""
    registry = SchemaRegistry()
    synthesize(Owner, registry)

    assert sorted(registry) == ["Owner", "Pet"]
    owner = registry["Owner"]
    assert isinstance(owner, Schema)
    assert owner.properties == {
        "first": Reference.to("Pet"),
        "second": Reference.to("Pet"),
        "others": Schema.array(Reference.to("Pet")),
    }
    assert owner.required == ["first", "second"]


def test_resynthesis_overwrites() -> None:
    """对同一注册表重复合成不产生重复条目."""
    registry = SchemaRegistry()
    synthesize(Person, registry)
    synthesize(Person, registry)
    synthesize(Pet, registry)
    assert list(registry) == ["Pet", "Person"]


def test_extraction_disabled() -> None:
    """关闭引用提取时所有 schema 内联, 注册表为空."""
    registry = SchemaRegistry()
    result = synthesize(Person, registry, extract_references=False)

    assert result == Schema.object(
        {
            "name": STRING,
            "age": INT64,
            "pet": Schema.object({"name": STRING}, required=["name"]),
        },
        required=["name", "age"],
    )
    assert len(registry) == 0


def test_extraction_disabled_keeps_recursive_types() -> None:
    """关闭引用提取时, 被递归引用的类型仍写入注册表."""
    registry = SchemaRegistry()
    result = synthesize(TreeNode, registry, extract_references=False)

    assert result == Reference.to("TreeNode")
    assert list(registry) == ["TreeNode"]


@pytest.mark.parametrize(
    ("date_format", "created", "day"),
    [
        (
            DateFormat.ISO8601,
            Schema.primitive(DataType.STRING, "date-time"),
            Schema.primitive(DataType.STRING, "date"),
        ),
        (
            DateFormat.EPOCH_SECONDS,
            Schema.primitive(DataType.NUMBER, "double"),
            Schema.primitive(DataType.NUMBER, "double"),
        ),
        (
            DateFormat.EPOCH_MILLISECONDS,
            Schema.primitive(DataType.INTEGER, "int64"),
            Schema.primitive(DataType.INTEGER, "int64"),
        ),
    ],
)
def test_date_formats(date_format: DateFormat, created: Schema, day: Schema) -> None:
    """日期类型按配置的日期格式生成 schema."""
    registry = SchemaRegistry()
    synthesize(Timeline, registry, date_format=date_format)
    timeline = registry["Timeline"]
    assert isinstance(timeline, Schema)
    assert timeline.properties == {"created": created, "day": day}


def test_self_describing_types() -> None:
    """自描述类型使用声明的 schema."""
    registry = SchemaRegistry()
    synthesize(Wallet, registry)
    wallet = registry["Wallet"]
    assert isinstance(wallet, Schema)
    assert wallet.properties == {
        "id": Schema.primitive(DataType.STRING, "uuid"),
        "balance": Schema.primitive(DataType.NUMBER),
        "amount": Schema.primitive(DataType.STRING, "decimal"),
    }


def test_bad_self_describing_schema_raises() -> None:
    """自描述钩子返回非 schema 对象时抛出 SchemaTypeError."""
    with pytest.raises(SchemaTypeError, match="BadSchema"):
        synthesize(BadSchema, SchemaRegistry())
    with pytest.raises(TypeError):
        synthesize(BadSchema, SchemaRegistry())


def test_description_attached() -> None:
    """描述文本附加到命名 schema 上."""
    registry = SchemaRegistry()
    assert synthesize(Described, registry) == Reference.to("Described")
    assert registry["Described"].description == "Described thing"


def test_description_on_inline_schema() -> None:
    """关闭引用提取时描述附加到内联 schema."""
    result = synthesize(Described, SchemaRegistry(), extract_references=False)
    assert isinstance(result, Schema)
    assert result.description == "Described thing"


@pytest.mark.parametrize(
    ("strategy", "properties", "required"),
    [
        (KeyStrategy.AS_DECLARED, ["firstName", "last_name", "userID"], ["firstName", "last_name"]),
        (KeyStrategy.SNAKE_CASE, ["first_name", "last_name", "user_id"], ["first_name", "last_name"]),
        (KeyStrategy.CAMEL_CASE, ["firstName", "lastName", "userId"], ["firstName", "lastName"]),
        (KeyStrategy.KEBAB_CASE, ["first-name", "last-name", "user-id"], ["first-name", "last-name"]),
    ],
)
def test_key_strategies(
    strategy: KeyStrategy, properties: list[str], required: list[str]
) -> None:
    """字段名转换同时作用于 properties 与 required."""
    registry = SchemaRegistry()
    synthesize(Profile, registry, key_strategy=strategy)
    profile = registry["Profile"]
    assert isinstance(profile, Schema)
    assert profile.properties is not None
    assert list(profile.properties) == properties
    assert profile.required == required


def test_key_collision_last_write_wins() -> None:
    """转换后重名的字段以最后一个为准, required 不重复."""
    shape = ShapeTree(
        Keyed(
            {
                "user_id": ShapeTree(Single(PrimitiveKind.STRING), type=str),
                "userId": ShapeTree(Single(PrimitiveKind.INT), type=int),
            }
        )
    )
    synthesizer = SchemaSynthesizer(SchemaConfig(key_strategy=KeyStrategy.SNAKE_CASE))
    result = synthesizer.synthesize(shape, None, SchemaRegistry())

    assert result == Schema.object({"user_id": INT64}, required=["user_id"])


def test_unconstrained_is_any() -> None:
    """任意形状得到空 schema."""
    registry = SchemaRegistry()
    assert synthesize(Any, registry) == Schema.any()
    assert SchemaSynthesizer().synthesize(
        ShapeTree(Unkeyed(ShapeTree.unconstrained())), None, registry
    ) == Schema.array(Schema.any())


def test_schema_for_value() -> None:
    """schema_for_value() 按实例类型合成."""
    registry = SchemaRegistry()
    result = SchemaSynthesizer().schema_for_value(Pet(name="Tom"), registry)
    assert result == Reference.to("Pet")
    assert "Pet" in registry


def test_custom_decode_type_extracted() -> None:
    """声明 __rev_decode__ 的具名类同样被提取."""

    class Point:
        @classmethod
        def __rev_decode__(cls, decoder: Decoder) -> "Point":
            container = decoder.keyed_container()
            container.decode(float, "x")
            container.decode(float, "y")
            return cls()

    registry = SchemaRegistry()
    assert synthesize(Point, registry) == Reference.to("Point")
    double = Schema.primitive(DataType.NUMBER, "double")
    assert registry["Point"] == Schema.object({"x": double, "y": double}, required=["x", "y"])
