"""内置类型的解码适配器.

为不声明 `__rev_decode__` 的常见类型提供通用解码协议下的自解码逻辑:

- 容器: `list[T]`、`set[T]`、`tuple[T, ...]`、定长 `tuple[A, B]`、`dict[K, V]`
- `Optional[T]`、`Literal[...]`、`Enum`
- `pydantic.BaseModel` 子类与 dataclass

这些函数只依赖抽象解码协议, 对真实解码器和结构探测器的合成解码面同样适用.
"""

import dataclasses
import types as stdlib_types
import typing
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Annotated, Any, Union, get_args, get_origin

from pydantic import BaseModel

from .exceptions import DecodeError
from .protocol import Decoder

DecodeFunc = Callable[[Decoder], Any]

NoneType = type(None)


@dataclass(frozen=True)
class FieldPlan:
    """一个字段的解码计划.

    Attributes:
        name: 构造实例时使用的参数名 (pydantic 模型为 alias 或属性名).
        key: 解码容器中的键名.
        annotation: 完整的类型注解.
        inner: 去掉 None 之后的类型注解.
        optional: 是否按可缺失字段读取 (注解允许 None 或字段有默认值).
        has_default: 字段是否有默认值.
    """

    name: str
    key: str
    annotation: Any
    inner: Any
    optional: bool
    has_default: bool


def strip_optional(annotation: Any) -> tuple[Any, bool]:
    """剥离注解中的 None 分支.

    Returns:
        tuple[Any, bool]: (去掉 None 后的注解, 是否包含 None).
    """
    origin = get_origin(annotation)
    if origin is Annotated:
        return strip_optional(get_args(annotation)[0])

    if origin is Union or origin is stdlib_types.UnionType:
        args = get_args(annotation)
        non_none = [a for a in args if a is not NoneType]
        if len(non_none) < len(args):
            if len(non_none) == 1:
                return non_none[0], True
            return Union[tuple(non_none)], True

    return annotation, False


def decode_fields(decoder: Decoder, plans: Iterable[FieldPlan]) -> dict[str, Any]:
    """按计划从按键容器读取全部字段, 返回属性名到值的字典.

    可缺失字段读到 None 且有默认值时不写入结果, 交给默认值处理.
    """
    container = decoder.keyed_container()
    values: dict[str, Any] = {}
    for plan in plans:
        if plan.optional:
            value = container.decode_if_present(plan.inner, plan.key)
            if value is None and plan.has_default:
                continue
        else:
            value = container.decode(plan.annotation, plan.key)
        values[plan.name] = value
    return values


def model_plan(cls: type[BaseModel]) -> list[FieldPlan]:
    """根据 pydantic 模型字段生成解码计划. 键名优先使用 alias."""
    if not cls.__pydantic_complete__:
        cls.model_rebuild(raise_errors=False)

    plans = []
    for name, info in cls.model_fields.items():
        if info.exclude is True:
            continue
        inner, nullable = strip_optional(info.annotation)
        has_default = not info.is_required()
        plans.append(
            FieldPlan(
                name=info.alias or name,
                key=info.alias or name,
                annotation=info.annotation,
                inner=inner,
                optional=nullable or has_default,
                has_default=has_default,
            )
        )
    return plans


def dataclass_plan(cls: type) -> list[FieldPlan]:
    """根据 dataclass 字段生成解码计划.

    键名可通过 `field(metadata={"rev_key": ...})` 指定. 注解中无法解析的前向引用
    会让 `typing.get_type_hints` 抛出 NameError, 由调用方处理.
    """
    hints = typing.get_type_hints(cls)
    plans = []
    for item in dataclasses.fields(cls):
        if not item.init:
            continue
        annotation = hints.get(item.name, Any)
        inner, nullable = strip_optional(annotation)
        has_default = (
            item.default is not dataclasses.MISSING
            or item.default_factory is not dataclasses.MISSING
        )
        plans.append(
            FieldPlan(
                name=item.name,
                key=item.metadata.get("rev_key", item.name),
                annotation=annotation,
                inner=inner,
                optional=nullable or has_default,
                has_default=has_default,
            )
        )
    return plans


def decode_model(cls: type[BaseModel]) -> DecodeFunc:
    """pydantic 模型: 按字段读取后用 `model_construct` 构造 (不触发校验)."""

    def decode(decoder: Decoder) -> BaseModel:
        return cls.model_construct(**decode_fields(decoder, model_plan(cls)))

    return decode


def decode_dataclass(cls: type) -> DecodeFunc:
    """dataclass: 按字段读取后调用构造函数."""

    def decode(decoder: Decoder) -> Any:
        return cls(**decode_fields(decoder, dataclass_plan(cls)))

    return decode


def decode_sequence(item_type: Any, build: Callable[[list[Any]], Any] = list) -> DecodeFunc:
    """同质序列: 读取元素直到容器结束."""

    def decode(decoder: Decoder) -> Any:
        container = decoder.unkeyed_container()
        items = []
        while not container.is_at_end:
            items.append(container.decode(item_type))
        return build(items)

    return decode


def decode_tuple(item_types: Sequence[Any]) -> DecodeFunc:
    """定长元组: 按位置依次读取每个元素."""

    def decode(decoder: Decoder) -> tuple[Any, ...]:
        container = decoder.unkeyed_container()
        return tuple(container.decode(item_type) for item_type in item_types)

    return decode


def decode_mapping(
    value_type: Any, build: Callable[[dict[str, Any]], Any] = dict
) -> DecodeFunc:
    """开放映射: 枚举容器中的全部键, 每个值按 `value_type` 读取."""

    def decode(decoder: Decoder) -> Any:
        container = decoder.keyed_container()
        return build({key: container.decode(value_type, key) for key in container.all_keys})

    return decode


def decode_optional(inner: Any) -> DecodeFunc:
    """可空值: 先检查 null, 否则按内层类型读取."""

    def decode(decoder: Decoder) -> Any:
        container = decoder.single_value_container()
        if container.decode_nil():
            return None
        return container.decode(inner)

    return decode


def decode_literal(values: Sequence[Any]) -> DecodeFunc:
    """字面量: 按第一个取值的类型读取, 读到的值必须在取值集合中."""
    value_type = type(values[0]) if values else str

    def decode(decoder: Decoder) -> Any:
        raw = decoder.single_value_container().decode(value_type)
        if raw not in values:
            raise DecodeError(f"{raw!r} is not one of {list(values)!r}", loc=list(decoder.path))
        return raw

    return decode


def decode_enum(cls: type[Enum]) -> DecodeFunc:
    """枚举: 按成员值的类型读取原始值, 再转换为成员."""
    members = list(cls)
    value_type = type(members[0].value) if members else str

    def decode(decoder: Decoder) -> Enum:
        raw = decoder.single_value_container().decode(value_type)
        try:
            return cls(raw)
        except ValueError as e:
            raise DecodeError(
                f"{raw!r} is not a valid {cls.__name__}", loc=list(decoder.path)
            ) from e

    return decode
