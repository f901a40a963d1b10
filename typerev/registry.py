"""命名 schema 注册表.

注册表在一次合成会话开始时为空, 在会话期间累积每个可引用类型的 schema,
最终可以作为文档的 `components/schemas` 部分输出.

注册表不做任何同步: 一个会话应只在一个线程中使用.
"""

from collections.abc import Iterator, Mapping
from typing import Any

from .log import logger
from .schema import Reference, SchemaOrRef, dump_schema


class SchemaRegistry(Mapping[str, SchemaOrRef]):
    """类型名称到 schema 的映射, 按名称去重.

    Examples:
        >>> from typerev import DataType, Schema
        >>> registry = SchemaRegistry()
        >>> registry.register("Pet", Schema.object({"name": Schema.primitive(DataType.STRING)}))
        Reference(ref='#/components/schemas/Pet', description=None)
        >>> "Pet" in registry
        True
    """

    def __init__(self) -> None:
        self._schemas: dict[str, SchemaOrRef] = {}
        self._origins: dict[str, Any] = {}

    def __getitem__(self, name: str) -> SchemaOrRef:
        return self._schemas[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._schemas)

    def __len__(self) -> int:
        return len(self._schemas)

    def __repr__(self) -> str:
        return f"SchemaRegistry({list(self._schemas)!r})"

    def register(self, name: str, schema: SchemaOrRef, origin: Any = None) -> SchemaOrRef:
        """登记命名 schema 并返回指向它的引用.

        同名条目被覆盖而不是重复. 不可引用的 schema (基础类型、枚举、引用)
        不会被登记, 直接原样返回.

        Args:
            name: schema 名称.
            schema: 待登记的 schema.
            origin: 产生该 schema 的类型标识, 仅用于诊断.

        Returns:
            SchemaOrRef: 引用, 或未登记时的原 schema.
        """
        if not schema.is_referenceable:
            return schema

        previous = self._origins.get(name)
        if name in self._schemas and origin is not None and previous not in (None, origin):
            logger.debug(
                "[SchemaRegistry] 名称 %s 被 %r 覆盖 (原类型 %r)", name, origin, previous
            )

        self._schemas[name] = schema
        self._origins[name] = origin
        return Reference.to(name)

    def origin(self, name: str) -> Any:
        """产生指定条目的类型标识."""
        return self._origins.get(name)

    def to_dict(self) -> dict[str, dict[str, Any]]:
        """转换为可直接写入文档 `components/schemas` 的 JSON 字典."""
        return {name: dump_schema(schema) for name, schema in self._schemas.items()}
