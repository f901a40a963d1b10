"""形状树数据模型.

形状树描述一个类型在解码时会呈现的结构, 由结构探测器在没有任何实例的情况下构建,
随后交给 schema 合成器消费.

每个节点恰好持有一种容器变体:

- `Single`: 终端标量.
- `Keyed`: 有序字段映射, 区分定形结构体与开放字典.
- `Unkeyed`: 元素形状一致的序列.
- `Recursive`: 对调用链上正在探测的类型的回引.
- `Unconstrained`: 显式的 "任意" 形状.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Union


class PrimitiveKind(str, Enum):
    """终端标量的基础类型."""

    BOOL = "bool"
    STRING = "string"
    INT = "int"
    INT8 = "int8"
    INT16 = "int16"
    INT32 = "int32"
    INT64 = "int64"
    UINT = "uint"
    UINT8 = "uint8"
    UINT16 = "uint16"
    UINT32 = "uint32"
    UINT64 = "uint64"
    DOUBLE = "double"
    FLOAT = "float"
    NULL = "null"


@dataclass(frozen=True)
class Single:
    """终端标量."""

    kind: PrimitiveKind


@dataclass(frozen=True)
class Keyed:
    """按键访问的容器.

    Attributes:
        fields: 字段名到子节点的有序映射 (按发现顺序).
        is_fixed: True 表示字段集合固定 (结构体), False 表示开放映射 (字典).
    """

    fields: dict[str, "ShapeTree"] = field(default_factory=dict)
    is_fixed: bool = True

    @property
    def representative(self) -> "ShapeTree | None":
        """开放映射的代表值形状 (第一个字段)."""
        return next(iter(self.fields.values()), None)


@dataclass(frozen=True)
class Unkeyed:
    """元素形状一致的序列."""

    element: "ShapeTree"


@dataclass(frozen=True)
class Recursive:
    """对正在探测中的类型的回引, 不再展开."""

    marker: Any


@dataclass(frozen=True)
class Unconstrained:
    """任意形状."""


Container = Union[Single, Keyed, Unkeyed, Recursive, Unconstrained]

_KIND_NAMES: dict[type, str] = {
    Single: "single",
    Keyed: "keyed",
    Unkeyed: "unkeyed",
    Recursive: "recursive",
    Unconstrained: "any",
}


@dataclass(frozen=True)
class ShapeTree:
    """形状树节点.

    Attributes:
        container: 节点的容器变体.
        type: 产生该节点的类型标识, 匿名嵌套容器为 None.
        is_optional: 该值在父级上下文中是否允许缺失.
        cases: 可枚举类型的字面量取值列表.
    """

    container: Container
    type: Any = None
    is_optional: bool = False
    cases: tuple[Any, ...] | None = None

    @classmethod
    def unconstrained(cls, type_: Any = None) -> "ShapeTree":
        """构造任意形状的节点."""
        return cls(Unconstrained(), type=type_)

    @property
    def kind(self) -> str:
        """容器变体名称 (如 'single', 'keyed')."""
        return _KIND_NAMES[type(self.container)]

    def optional(self, is_optional: bool = True) -> "ShapeTree":
        """返回设置了 `is_optional` 的副本."""
        if self.is_optional == is_optional:
            return self
        return replace(self, is_optional=is_optional)
