"""typerev日志记录器."""

import logging
from collections.abc import Sequence

logger = logging.getLogger("typerev")


def format_path(path: Sequence[str | int]) -> str:
    """将编码路径格式化为点分形式, 序列下标以 `[i]` 表示."""
    if not path:
        return "<root>"

    parts: list[str] = []
    for item in path:
        if isinstance(item, int):
            parts.append(f"[{item}]")
        elif parts:
            parts.append(f".{item}")
        else:
            parts.append(item)
    return "".join(parts)
