"""Schema 生成的配置选项.

该模块定义了控制日期表示和字段名大小写转换的枚举.
"""

import re
from enum import Enum

_BOUNDARY_LOWER_UPPER = re.compile(r"([a-z0-9])([A-Z])")
_BOUNDARY_ACRONYM = re.compile(r"([A-Z]+)([A-Z][a-z])")
_SEPARATORS = re.compile(r"[\s_\-]+")


class DateFormat(str, Enum):
    """日期类型在 schema 中的表示方式."""

    # RFC 3339 字符串 (date-time / date)
    ISO8601 = "iso8601"

    # 自 1970-01-01 起的秒数 (浮点)
    EPOCH_SECONDS = "epoch_seconds"

    # 自 1970-01-01 起的毫秒数 (整数)
    EPOCH_MILLISECONDS = "epoch_milliseconds"


def split_words(name: str) -> list[str]:
    """将标识符拆分为单词, 识别 camelCase、snake_case、kebab-case 与连续大写缩写."""
    spaced = _BOUNDARY_ACRONYM.sub(r"\1 \2", name)
    spaced = _BOUNDARY_LOWER_UPPER.sub(r"\1 \2", spaced)
    return [word for word in _SEPARATORS.split(spaced) if word]


class KeyStrategy(str, Enum):
    """字段名写入 schema 属性名之前的转换策略.

    自定义映射不在此枚举中, 直接向 `SchemaConfig` 传入 `Callable[[str], str]`.
    """

    AS_DECLARED = "as_declared"
    SNAKE_CASE = "snake_case"
    CAMEL_CASE = "camel_case"
    KEBAB_CASE = "kebab_case"

    def apply(self, name: str) -> str:
        """按当前策略转换字段名."""
        if self is KeyStrategy.AS_DECLARED:
            return name

        words = split_words(name)
        if not words:
            return name

        if self is KeyStrategy.SNAKE_CASE:
            return "_".join(word.lower() for word in words)
        if self is KeyStrategy.KEBAB_CASE:
            return "-".join(word.lower() for word in words)

        head, *tail = words
        return head.lower() + "".join(word.capitalize() for word in tail)
