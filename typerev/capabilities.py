"""类型能力注册表.

每个被建模的类型声明它实现了哪些可选能力:

- 结构自解码 (`__rev_decode__` 或内置适配器)
- 基础标量 (`__rev_kind__` 或内置基础类型)
- 取值可枚举 (`__rev_cases__`, `Enum`, `Literal`)
- 自描述 schema (`__rev_schema__`)
- 描述文本 (`__rev_description__`)

能力按类型标识解析一次并缓存为不可变的 `Capabilities` 记录, 探测器和合成器
只通过注册表查询, 不在各处做动态类型判断.

Examples:
    >>> import uuid
    >>> from typerev import Schema, DataType, capabilities
    >>> capabilities.register(
    ...     uuid.UUID,
    ...     schema=lambda: Schema.primitive(DataType.STRING, "uuid"),
    ...     placeholder=uuid.UUID(int=0),
    ... )
"""

import collections.abc
import dataclasses
import datetime
import decimal
import re
import types as stdlib_types
import uuid
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from enum import Enum
from typing import (
    Annotated,
    Any,
    ForwardRef,
    Literal,
    TypeVar,
    Union,
    get_args,
    get_origin,
)

from pydantic import BaseModel

from . import adapter
from .cases import all_cases, label_of
from .exceptions import ProbeSurfaceError
from .log import logger
from .schema import DataType, Schema, SchemaOrRef
from .shape import PrimitiveKind

_NON_IDENTIFIER = re.compile(r"[^0-9A-Za-z_]+")

EPOCH = datetime.datetime(1970, 1, 1, tzinfo=datetime.timezone.utc)

_PRIMITIVE_KINDS: dict[type, PrimitiveKind] = {
    bool: PrimitiveKind.BOOL,
    str: PrimitiveKind.STRING,
    int: PrimitiveKind.INT,
    float: PrimitiveKind.DOUBLE,
    type(None): PrimitiveKind.NULL,
}

_ZERO_VALUES: dict[PrimitiveKind, Any] = {
    PrimitiveKind.BOOL: False,
    PrimitiveKind.STRING: "",
    PrimitiveKind.DOUBLE: 0.0,
    PrimitiveKind.FLOAT: 0.0,
    PrimitiveKind.NULL: None,
}

_SEQUENCE_ORIGINS: dict[Any, Callable[[list[Any]], Any]] = {
    list: list,
    set: set,
    frozenset: frozenset,
    collections.abc.Sequence: list,
    collections.abc.MutableSequence: list,
    collections.abc.Iterable: list,
    collections.abc.Collection: list,
    collections.abc.Set: frozenset,
    collections.abc.MutableSet: set,
}

_MAPPING_ORIGINS = (dict, collections.abc.Mapping, collections.abc.MutableMapping)


@dataclass(frozen=True)
class Capabilities:
    """一个类型声明的能力.

    Attributes:
        type: 类型标识.
        name: 由类型标识确定的 schema 名称.
        decode: 结构自解码函数, 为 None 时探测结果为任意形状.
        kind: 基础标量类型, 非基础类型为 None.
        placeholder: 探测时返回给父级解码逻辑的占位值.
        cases: 可枚举类型的字面量标签.
        schema: 自描述类型提供的 schema 工厂.
        description: 附加到 schema 的描述文本.
        is_date: 是否为日期类型.
        referenceable: 是否为可提取为命名 schema 的具名类型.
    """

    type: Any
    name: str
    decode: adapter.DecodeFunc | None = None
    kind: PrimitiveKind | None = None
    placeholder: Any = None
    cases: tuple[Any, ...] | None = None
    schema: Callable[[], SchemaOrRef] | None = None
    description: str | None = None
    is_date: bool = False
    referenceable: bool = False

    @property
    def bypasses_probe(self) -> bool:
        """日期与自描述类型不经过结构探测."""
        return self.is_date or self.schema is not None


def type_key(type_: Any) -> Any:
    """类型标识的缓存键. 不可哈希的注解退化为其 repr."""
    try:
        hash(type_)
    except TypeError:
        return repr(type_)
    return type_


def type_name(type_: Any) -> str:
    """由类型标识确定的 schema 名称.

    类使用 `__name__`, 参数化注解由原始类型与参数名称以 `_` 连接;
    非标识符字符折叠为 `_` (如 pydantic 泛型 `Page[Pet]` -> `Page_Pet`).
    """
    origin = get_origin(type_)
    if origin is Annotated:
        return type_name(get_args(type_)[0])
    if origin is not None:
        return "_".join([type_name(origin)] + [type_name(arg) for arg in get_args(type_)])

    raw = type_.__name__ if isinstance(type_, type) else repr(type_).replace("typing.", "")
    return _NON_IDENTIFIER.sub("_", raw).strip("_") or "Any"


def _base_args(cls: type, base: type) -> tuple[Any, ...]:
    """从 `class Tags(list[str])` 这样的声明中取出容器的类型参数."""
    for klass in cls.__mro__:
        for orig in getattr(klass, "__orig_bases__", ()):
            if get_origin(orig) is base:
                return get_args(orig)
    return ()


class CapabilityRegistry:
    """类型标识到能力记录的注册表.

    显式注册的能力优先于推导结果; 推导结果在首次查询时缓存.
    """

    def __init__(self) -> None:
        self._explicit: dict[Any, Capabilities] = {}
        self._cache: dict[Any, Capabilities] = {}

    def register(
        self,
        type_: Any,
        *,
        decode: adapter.DecodeFunc | None = None,
        kind: PrimitiveKind | None = None,
        placeholder: Any = None,
        cases: Iterable[Any] | None = None,
        schema: Callable[[], SchemaOrRef] | None = None,
        description: str | None = None,
        is_date: bool = False,
        name: str | None = None,
        referenceable: bool = False,
    ) -> Capabilities:
        """为类型显式登记能力, 覆盖推导结果.

        Args:
            type_: 类型或类型注解.
            decode: 结构自解码函数.
            kind: 基础标量类型.
            placeholder: 探测占位值.
            cases: 规范实例列表 (转换为字面量标签).
            schema: 自描述 schema 工厂.
            description: 描述文本.
            is_date: 是否为日期类型.
            name: schema 名称, 默认由类型标识推导.
            referenceable: 是否可提取为命名 schema.

        Returns:
            Capabilities: 登记的能力记录.
        """
        if placeholder is None and kind is not None:
            placeholder = _ZERO_VALUES.get(kind, 0)

        record = Capabilities(
            type=type_,
            name=name or type_name(type_),
            decode=decode,
            kind=kind,
            placeholder=placeholder,
            cases=tuple(label_of(case) for case in cases) if cases is not None else None,
            schema=schema,
            description=description,
            is_date=is_date,
            referenceable=referenceable,
        )
        key = type_key(type_)
        self._explicit[key] = record
        self._cache.pop(key, None)
        return record

    def lookup(self, type_: Any) -> Capabilities:
        """查询类型的能力.

        Raises:
            ProbeSurfaceError: 输入不是类型注解 (字符串、未解析的前向引用、实例等).
        """
        key = type_key(type_)
        record = self._cache.get(key)
        if record is None:
            record = self._explicit.get(key) or self._resolve(type_)
            self._cache[key] = record
        return record

    def _resolve(self, type_: Any) -> Capabilities:
        if type_ is Any or type_ is object or isinstance(type_, TypeVar):
            return Capabilities(type=type_, name="Any")

        if isinstance(type_, str | ForwardRef):
            raise ProbeSurfaceError(f"Unresolved forward reference: {type_!r}")

        origin = get_origin(type_)
        args = get_args(type_)

        if origin is Annotated:
            return self.lookup(args[0])

        if origin is Union or origin is stdlib_types.UnionType:
            inner, nullable = adapter.strip_optional(type_)
            if nullable:
                return Capabilities(
                    type=type_,
                    name=type_name(inner),
                    decode=adapter.decode_optional(inner),
                )
            # 多个非 None 分支没有单一形状
            return Capabilities(type=type_, name=type_name(type_))

        if origin is Literal:
            values = list(args)
            return Capabilities(
                type=type_,
                name=type_name(type_),
                decode=adapter.decode_literal(values),
                placeholder=values[0] if values else None,
                cases=tuple(label_of(value) for value in values),
            )

        if origin is not None:
            return self._resolve_generic(type_, origin, args)

        if not isinstance(type_, type):
            raise ProbeSurfaceError(f"Not a type annotation: {type_!r}")

        return self._resolve_class(type_)

    def _resolve_generic(self, type_: Any, origin: Any, args: tuple[Any, ...]) -> Capabilities:
        name = type_name(type_)

        if origin in _SEQUENCE_ORIGINS:
            item = args[0] if args else Any
            return Capabilities(
                type=type_,
                name=name,
                decode=adapter.decode_sequence(item, _SEQUENCE_ORIGINS[origin]),
                placeholder=_SEQUENCE_ORIGINS[origin]([]),
            )

        if origin is tuple:
            if len(args) == 2 and args[1] is Ellipsis:
                decode = adapter.decode_sequence(args[0], tuple)
            else:
                decode = adapter.decode_tuple(args)
            return Capabilities(type=type_, name=name, decode=decode, placeholder=())

        if origin in _MAPPING_ORIGINS:
            value = args[1] if len(args) == 2 else Any
            return Capabilities(
                type=type_,
                name=name,
                decode=adapter.decode_mapping(value),
                placeholder={},
            )

        if isinstance(origin, type):
            # 非 pydantic 的用户泛型 (如 dataclass Generic[T]), 按原始类处理
            return dataclasses.replace(self.lookup(origin), type=type_, name=name)

        raise ProbeSurfaceError(f"Unsupported type annotation: {type_!r}")

    def _resolve_class(self, cls: type) -> Capabilities:
        name = type_name(cls)
        description = getattr(cls, "__rev_description__", None)
        nominal = cls.__module__ != "builtins"

        kind = getattr(cls, "__rev_kind__", None) or _PRIMITIVE_KINDS.get(cls)
        if kind is not None:
            return Capabilities(
                type=cls,
                name=name,
                kind=kind,
                placeholder=_ZERO_VALUES.get(kind, 0),
                description=description,
            )

        if issubclass(cls, datetime.date):
            return Capabilities(
                type=cls,
                name=name,
                placeholder=EPOCH if issubclass(cls, datetime.datetime) else EPOCH.date(),
                description=description,
                is_date=True,
            )

        cases = all_cases(cls)
        decode = getattr(cls, "__rev_decode__", None)
        placeholder = cases[0] if cases else None

        if decode is None:
            if issubclass(cls, Enum):
                decode = adapter.decode_enum(cls)
            elif issubclass(cls, BaseModel):
                decode = adapter.decode_model(cls)
            elif dataclasses.is_dataclass(cls):
                decode = adapter.decode_dataclass(cls)
            elif issubclass(cls, dict):
                value_args = _base_args(cls, dict)
                value = value_args[1] if len(value_args) == 2 else Any
                decode = adapter.decode_mapping(value, cls)
            elif issubclass(cls, list | set | frozenset | tuple):
                base = next(b for b in (list, set, frozenset, tuple) if issubclass(cls, b))
                item_args = _base_args(cls, base)
                decode = adapter.decode_sequence(item_args[0] if item_args else Any, cls)
            else:
                logger.debug("[CapabilityRegistry] %s 没有声明解码能力, 按任意形状处理", name)

        return Capabilities(
            type=cls,
            name=name,
            decode=decode,
            placeholder=placeholder,
            cases=tuple(label_of(case) for case in cases) if cases is not None else None,
            schema=getattr(cls, "__rev_schema__", None),
            description=description,
            referenceable=nominal,
        )


def _register_defaults(registry: CapabilityRegistry) -> None:
    registry.register(
        uuid.UUID,
        schema=lambda: Schema.primitive(DataType.STRING, "uuid"),
        placeholder=uuid.UUID(int=0),
    )
    registry.register(
        decimal.Decimal,
        schema=lambda: Schema.primitive(DataType.NUMBER),
        placeholder=decimal.Decimal(0),
    )
    for binary in (bytes, bytearray):
        registry.register(
            binary,
            schema=lambda: Schema.primitive(DataType.STRING, "byte"),
            placeholder=binary(),
        )


default_registry = CapabilityRegistry()
_register_defaults(default_registry)


def register(type_: Any, **kwargs: Any) -> Capabilities:
    """在默认注册表中为类型登记能力. 参数见 `CapabilityRegistry.register`."""
    return default_registry.register(type_, **kwargs)


def lookup(type_: Any) -> Capabilities:
    """在默认注册表中查询类型的能力."""
    return default_registry.lookup(type_)
