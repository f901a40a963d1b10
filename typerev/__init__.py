"""类型结构反推与 OpenAPI schema 合成库.

在没有任何实例的情况下, 通过模拟类型的自解码过程推导出类型的形状树,
并据此生成 OpenAPI 组件 schema.
"""

from . import capabilities
from .api import components, describe, describe_value, schema_of, schema_of_value
from .capabilities import Capabilities, CapabilityRegistry
from .cases import all_cases, case_labels
from .config import SchemaConfig
from .exceptions import DecodeError, ProbeSurfaceError, SchemaTypeError, TypeRevError
from .options import DateFormat, KeyStrategy
from .probe import TypeProbe
from .protocol import Decoder, KeyedContainer, SingleValueContainer, UnkeyedContainer
from .registry import SchemaRegistry
from .render import build_shape_tree, print_shape
from .schema import DataType, Reference, Schema, SchemaOrRef, dump_schema
from .shape import (
    Keyed,
    PrimitiveKind,
    Recursive,
    ShapeTree,
    Single,
    Unconstrained,
    Unkeyed,
)
from .struct import Field, Struct
from .synthesizer import SchemaSynthesizer
from .types import (
    Float32,
    Float64,
    Int8,
    Int16,
    Int32,
    Int64,
    UInt,
    UInt8,
    UInt16,
    UInt32,
    UInt64,
)

__version__ = "0.1.0"

__all__ = [
    "Capabilities",
    "CapabilityRegistry",
    "DataType",
    "DateFormat",
    "DecodeError",
    "Decoder",
    "Field",
    "Float32",
    "Float64",
    "Int8",
    "Int16",
    "Int32",
    "Int64",
    "KeyStrategy",
    "Keyed",
    "KeyedContainer",
    "PrimitiveKind",
    "ProbeSurfaceError",
    "Recursive",
    "Reference",
    "Schema",
    "SchemaConfig",
    "SchemaOrRef",
    "SchemaRegistry",
    "SchemaSynthesizer",
    "SchemaTypeError",
    "ShapeTree",
    "Single",
    "SingleValueContainer",
    "Struct",
    "TypeProbe",
    "TypeRevError",
    "UInt",
    "UInt8",
    "UInt16",
    "UInt32",
    "UInt64",
    "Unconstrained",
    "Unkeyed",
    "UnkeyedContainer",
    "all_cases",
    "build_shape_tree",
    "capabilities",
    "case_labels",
    "components",
    "describe",
    "describe_value",
    "dump_schema",
    "print_shape",
    "schema_of",
    "schema_of_value",
]
