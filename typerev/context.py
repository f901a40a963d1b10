"""结构探测上下文.

该模块定义在一次探测会话中显式传递的循环守卫. 守卫记录哪些类型正在探测中,
使自引用类型在第一次重入时被截断为 `Recursive` 节点.
"""

from dataclasses import dataclass, field
from typing import Any

from .capabilities import type_key
from .shape import ShapeTree


@dataclass
class GuardEntry:
    """一个类型在当前会话中的探测状态.

    Attributes:
        in_progress: 类型是否仍在调用链上.
        shape: 探测完成后的形状树.
        placeholder: 探测完成后返回给父级的占位值.
    """

    in_progress: bool = True
    shape: ShapeTree | None = None
    placeholder: Any = None


@dataclass
class CycleGuard:
    """类型标识到探测状态的映射.

    每次顶层 `describe` 创建一个新的守卫, 并作为参数传递给每一次递归探测,
    不使用全局状态, 因此不同会话互不干扰.
    """

    entries: dict[Any, GuardEntry] = field(default_factory=dict)
    depth: int = 0

    def get(self, type_: Any) -> GuardEntry | None:
        """查询类型的探测状态."""
        return self.entries.get(type_key(type_))

    def is_in_progress(self, type_: Any) -> bool:
        """类型是否正在调用链上."""
        entry = self.get(type_)
        return entry is not None and entry.in_progress

    def enter(self, type_: Any) -> None:
        """标记类型开始探测."""
        self.entries[type_key(type_)] = GuardEntry()
        self.depth += 1

    def complete(self, type_: Any, shape: ShapeTree, placeholder: Any) -> None:
        """记录类型的探测结果并将其移出调用链."""
        self.entries[type_key(type_)] = GuardEntry(
            in_progress=False, shape=shape, placeholder=placeholder
        )
        self.depth -= 1
