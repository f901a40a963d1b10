"""定宽数值类型.

Python 的 `int`/`float` 不携带位宽信息, 本模块提供可用作字段注解的子类,
用于在 schema 中得到精确的 `format`. 在 pydantic 模型中它们按普通 `int`/`float` 校验.

Examples:
    >>> from typerev import Struct
    >>> from typerev.types import Int32, Float32
    >>> class Point(Struct):
    ...     x: Int32
    ...     weight: Float32
"""

from typing import Any, ClassVar

from .shape import PrimitiveKind


class FixedInt(int):
    """定宽整数的基类."""

    __rev_kind__: ClassVar[PrimitiveKind] = PrimitiveKind.INT

    @classmethod
    def __get_pydantic_core_schema__(cls, source_type: Any, handler: Any) -> Any:
        from pydantic_core import core_schema

        return core_schema.int_schema()


class FixedFloat(float):
    """定宽浮点数的基类."""

    __rev_kind__: ClassVar[PrimitiveKind] = PrimitiveKind.DOUBLE

    @classmethod
    def __get_pydantic_core_schema__(cls, source_type: Any, handler: Any) -> Any:
        from pydantic_core import core_schema

        return core_schema.float_schema()


class Int8(FixedInt):
    """1 字节有符号整数, 范围 -128 到 127."""

    __rev_kind__ = PrimitiveKind.INT8


class Int16(FixedInt):
    """2 字节有符号整数."""

    __rev_kind__ = PrimitiveKind.INT16


class Int32(FixedInt):
    """4 字节有符号整数."""

    __rev_kind__ = PrimitiveKind.INT32


class Int64(FixedInt):
    """8 字节有符号整数."""

    __rev_kind__ = PrimitiveKind.INT64


class UInt(FixedInt):
    """平台宽度的无符号整数 (按 64 位处理)."""

    __rev_kind__ = PrimitiveKind.UINT


class UInt8(FixedInt):
    """1 字节无符号整数."""

    __rev_kind__ = PrimitiveKind.UINT8


class UInt16(FixedInt):
    """2 字节无符号整数."""

    __rev_kind__ = PrimitiveKind.UINT16


class UInt32(FixedInt):
    """4 字节无符号整数."""

    __rev_kind__ = PrimitiveKind.UINT32


class UInt64(FixedInt):
    """8 字节无符号整数."""

    __rev_kind__ = PrimitiveKind.UINT64


class Float32(FixedFloat):
    """单精度浮点数.

    Python `float` 本身按双精度 (`double`) 处理.
    """

    __rev_kind__ = PrimitiveKind.FLOAT


class Float64(FixedFloat):
    """双精度浮点数, 与 `float` 等价, 用于显式标注."""
