"""Schema 合成器.

遍历结构探测器产出的形状树, 为每个节点生成 schema 或引用,
并把可引用的具名类型提取到调用方持有的 `SchemaRegistry` 中.
"""

from collections.abc import Callable
from typing import Any

from .capabilities import Capabilities, CapabilityRegistry, default_registry
from .config import SchemaConfig
from .exceptions import ProbeSurfaceError, SchemaTypeError
from .log import logger
from .probe import TypeProbe
from .registry import SchemaRegistry
from .schema import DataType, Reference, Schema, SchemaOrRef
from .shape import Keyed, PrimitiveKind, Recursive, ShapeTree, Single, Unkeyed

_FORMATS: dict[PrimitiveKind, tuple[DataType, str | None]] = {
    PrimitiveKind.INT8: (DataType.INTEGER, "int32"),
    PrimitiveKind.INT16: (DataType.INTEGER, "int32"),
    PrimitiveKind.INT32: (DataType.INTEGER, "int32"),
    PrimitiveKind.UINT8: (DataType.INTEGER, "int32"),
    PrimitiveKind.UINT16: (DataType.INTEGER, "int32"),
    PrimitiveKind.UINT32: (DataType.INTEGER, "int32"),
    PrimitiveKind.INT: (DataType.INTEGER, "int64"),
    PrimitiveKind.INT64: (DataType.INTEGER, "int64"),
    PrimitiveKind.UINT: (DataType.INTEGER, "int64"),
    PrimitiveKind.UINT64: (DataType.INTEGER, "int64"),
    PrimitiveKind.DOUBLE: (DataType.NUMBER, "double"),
    PrimitiveKind.FLOAT: (DataType.NUMBER, "float"),
    PrimitiveKind.BOOL: (DataType.BOOLEAN, None),
    PrimitiveKind.STRING: (DataType.STRING, None),
    PrimitiveKind.NULL: (DataType.STRING, None),
}


def primitive_schema(kind: PrimitiveKind) -> Schema:
    """基础类型对应的 schema."""
    data_type, fmt = _FORMATS[kind]
    return Schema.primitive(data_type, fmt)


class SchemaSynthesizer:
    """形状树到 schema 的合成器.

    Args:
        config: 合成配置, 默认使用 `SchemaConfig()`.
        capabilities: 能力注册表, 默认使用全局注册表.
    """

    def __init__(
        self,
        config: SchemaConfig | None = None,
        capabilities: CapabilityRegistry | None = None,
    ) -> None:
        self.config = config or SchemaConfig()
        self.capabilities = capabilities or default_registry
        self.probe = TypeProbe(self.capabilities)

    def schema_for_type(self, type_: Any, registry: SchemaRegistry) -> SchemaOrRef:
        """探测类型并合成 schema.

        Raises:
            ProbeSurfaceError: 输入不是可探测的类型注解.
            SchemaTypeError: 自描述类型声明了无效的 schema.
        """
        return self.synthesize(self.probe.describe(type_), type_, registry)

    def schema_for_value(self, value: Any, registry: SchemaRegistry) -> SchemaOrRef:
        """按实例所属类型合成 schema. 不读取实例数据."""
        return self.schema_for_type(type(value), registry)

    def synthesize(
        self, shape: ShapeTree, type_: Any, registry: SchemaRegistry
    ) -> SchemaOrRef:
        """由形状树合成 schema.

        Args:
            shape: 结构探测器产出的形状树.
            type_: 形状树对应的类型标识, 节点自带类型标识时以节点为准.
            registry: 命名 schema 注册表, 合成过程中被写入.

        Returns:
            SchemaOrRef: 内联 schema, 或指向注册表条目的引用.
        """
        logger.debug("[SchemaSynthesizer] 开始合成 %r", type_)
        return self._synthesize(shape, type_, registry, set())

    def _lookup(self, type_: Any) -> Capabilities | None:
        if type_ is None:
            return None
        try:
            return self.capabilities.lookup(type_)
        except ProbeSurfaceError:
            return None

    def _synthesize(
        self,
        shape: ShapeTree,
        type_: Any,
        registry: SchemaRegistry,
        recursive: set[str],
    ) -> SchemaOrRef:
        caps = self._lookup(shape.type if shape.type is not None else type_)

        result: SchemaOrRef
        if caps is not None and caps.is_date:
            result = self.config.date_schema(caps.type)
        elif caps is not None and caps.schema is not None:
            result = self._declared(caps.name, caps.schema)
        else:
            result = self._structural(shape, registry, recursive)

        if caps is None:
            return result

        if caps.description is not None:
            result = result.with_description(caps.description)

        forced = caps.name in recursive
        if forced or (self.config.extract_references and caps.referenceable):
            return registry.register(caps.name, result, origin=caps.type)
        return result

    def _declared(self, name: str, factory: Callable[[], SchemaOrRef]) -> SchemaOrRef:
        result = factory()
        if not isinstance(result, Schema | Reference):
            raise SchemaTypeError(
                f"{name} declared a schema of type {type(result).__name__}, "
                "expected Schema or Reference"
            )
        return result

    def _structural(
        self,
        shape: ShapeTree,
        registry: SchemaRegistry,
        recursive: set[str],
    ) -> SchemaOrRef:
        container = shape.container

        if isinstance(container, Single):
            if shape.cases is not None:
                return Schema.enum_of(_FORMATS[container.kind][0], shape.cases)
            return primitive_schema(container.kind)

        if isinstance(container, Keyed):
            if not container.is_fixed:
                representative = container.representative
                if representative is None:
                    return Schema.dictionary(Schema.any())
                return Schema.dictionary(
                    self._synthesize(representative, None, registry, recursive)
                )

            properties: dict[str, SchemaOrRef] = {}
            required: list[str] = []
            for name, child in container.fields.items():
                key = self.config.encode_key(name)
                properties[key] = self._synthesize(child, None, registry, recursive)
                if not child.is_optional and key not in required:
                    required.append(key)
            return Schema.object(properties, required)

        if isinstance(container, Unkeyed):
            return Schema.array(self._synthesize(container.element, None, registry, recursive))

        if isinstance(container, Recursive):
            caps = self._lookup(container.marker)
            name = caps.name if caps is not None else "Any"
            logger.debug("[SchemaSynthesizer] 递归类型 %s 以引用表示", name)
            recursive.add(name)
            return Reference.to(name)

        return Schema.any()
