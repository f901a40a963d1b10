"""typerev API模块.

提供推导形状树的 `describe`, 生成 schema 的 `schema_of`,
以及一次性输出文档 `components/schemas` 部分的 `components`.
"""

from typing import Any

from .config import KeyEncoder, SchemaConfig
from .options import DateFormat, KeyStrategy
from .probe import TypeProbe
from .registry import SchemaRegistry
from .schema import SchemaOrRef
from .shape import ShapeTree
from .synthesizer import SchemaSynthesizer


def describe(type_: Any) -> ShapeTree:
    """推导类型的形状树.

    Args:
        type_: 类型或类型注解, 如 `Person`、`list[int]`、`dict[str, Pet]`.

    Returns:
        ShapeTree: 类型的形状树.

    Raises:
        ProbeSurfaceError: 输入不是可探测的类型注解.

    Examples:
        >>> from typerev import Struct, describe
        >>> class Pet(Struct):
        ...     name: str
        >>> describe(Pet).kind
        'keyed'
    """
    return TypeProbe().describe(type_)


def describe_value(value: Any) -> ShapeTree:
    """推导实例所属类型的形状树."""
    return TypeProbe().describe_value(value)


def schema_of(
    type_: Any,
    registry: SchemaRegistry | None = None,
    *,
    date_format: DateFormat | str = DateFormat.ISO8601,
    key_strategy: KeyEncoder | str = KeyStrategy.AS_DECLARED,
    extract_references: bool = True,
) -> SchemaOrRef:
    """生成类型的 schema.

    Args:
        type_: 类型或类型注解.
        registry: 命名 schema 注册表. 为 None 时使用一个临时注册表,
            此时提取出的命名 schema 不会返回给调用方.
        date_format: 日期类型的表示方式.
        key_strategy: 字段名转换策略, 或 `Callable[[str], str]`.
        extract_references: 是否把具名的对象/数组 schema 提取到注册表.

    Returns:
        SchemaOrRef: 内联 schema, 或指向注册表条目的引用.

    Examples:
        >>> from typerev import SchemaRegistry, Struct, schema_of
        >>> class Pet(Struct):
        ...     name: str
        >>> registry = SchemaRegistry()
        >>> schema_of(Pet, registry).ref
        '#/components/schemas/Pet'
        >>> registry.to_dict()["Pet"]["required"]
        ['name']
    """
    config = SchemaConfig.from_params(
        date_format=date_format,
        key_strategy=key_strategy,
        extract_references=extract_references,
    )
    if registry is None:
        registry = SchemaRegistry()
    return SchemaSynthesizer(config).schema_for_type(type_, registry)


def schema_of_value(
    value: Any,
    registry: SchemaRegistry | None = None,
    *,
    date_format: DateFormat | str = DateFormat.ISO8601,
    key_strategy: KeyEncoder | str = KeyStrategy.AS_DECLARED,
    extract_references: bool = True,
) -> SchemaOrRef:
    """按实例所属类型生成 schema. 参数见 `schema_of`."""
    return schema_of(
        type(value),
        registry,
        date_format=date_format,
        key_strategy=key_strategy,
        extract_references=extract_references,
    )


def components(
    *types: Any,
    date_format: DateFormat | str = DateFormat.ISO8601,
    key_strategy: KeyEncoder | str = KeyStrategy.AS_DECLARED,
) -> dict[str, dict[str, Any]]:
    """为一组类型生成文档的 `components/schemas` 部分.

    所有类型共享同一个注册表, 嵌套类型按名称去重.

    Returns:
        dict[str, dict[str, Any]]: 名称到 JSON schema 字典的映射.

    Examples:
        >>> components(Person, Pet).keys()
        dict_keys(['Pet', 'Person'])
    """
    registry = SchemaRegistry()
    synthesizer = SchemaSynthesizer(
        SchemaConfig.from_params(date_format=date_format, key_strategy=key_strategy)
    )
    for type_ in types:
        synthesizer.schema_for_type(type_, registry)
    return registry.to_dict()
