"""typerev 配置对象."""

import datetime
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from .options import DateFormat, KeyStrategy
from .schema import DataType, Schema

KeyEncoder = KeyStrategy | Callable[[str], str]


@dataclass(frozen=True)
class SchemaConfig:
    """schema 合成配置 (不可变).

    在 API 入口层创建, 然后传递给合成器.

    Attributes:
        date_format: 日期类型的表示方式.
        key_strategy: 字段名转换策略, 或自定义映射函数.
        extract_references: 是否把可引用的 schema 提取到注册表.
            关闭时所有 schema 内联返回, 注册表不被填充.
    """

    date_format: DateFormat = DateFormat.ISO8601
    key_strategy: KeyEncoder = KeyStrategy.AS_DECLARED
    extract_references: bool = True

    @classmethod
    def from_params(
        cls,
        date_format: DateFormat | str = DateFormat.ISO8601,
        key_strategy: KeyEncoder | str = KeyStrategy.AS_DECLARED,
        extract_references: bool = True,
    ) -> "SchemaConfig":
        """从参数构建配置对象.

        Args:
            date_format: DateFormat 枚举或其字符串值.
            key_strategy: KeyStrategy 枚举、其字符串值或 `Callable[[str], str]`.
            extract_references: 是否提取引用.

        Returns:
            SchemaConfig: 配置对象.

        Raises:
            ValueError: 字符串不是合法的枚举值.
        """
        if isinstance(key_strategy, str):
            key_strategy = KeyStrategy(key_strategy)

        return cls(
            date_format=DateFormat(date_format),
            key_strategy=key_strategy,
            extract_references=extract_references,
        )

    def encode_key(self, name: str) -> str:
        """按配置转换字段名."""
        if isinstance(self.key_strategy, KeyStrategy):
            return self.key_strategy.apply(name)
        return self.key_strategy(name)

    def date_schema(self, type_: Any = None) -> Schema:
        """日期类型的 schema.

        `datetime.date` (不含时间) 在 ISO8601 下使用 `date` 格式.
        """
        if self.date_format is DateFormat.EPOCH_SECONDS:
            return Schema.primitive(DataType.NUMBER, "double")
        if self.date_format is DateFormat.EPOCH_MILLISECONDS:
            return Schema.primitive(DataType.INTEGER, "int64")

        is_date_only = (
            isinstance(type_, type)
            and issubclass(type_, datetime.date)
            and not issubclass(type_, datetime.datetime)
        )
        return Schema.primitive(DataType.STRING, "date" if is_date_only else "date-time")
