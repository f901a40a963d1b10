"""合成解码面实现.

该模块提供结构探测使用的两个解码器:

- `ProbeDecoder`: 第一遍. 对类型发出的每个字段/元素/值请求都不失败, 记录请求的形状
  并返回无害的占位值, 让类型自身的解码逻辑继续执行.
- `KeyCheckDecoder`: 第二遍. 独立地再次运行类型的解码逻辑, 只记录哪些按键容器
  枚举了 `all_keys` (接受任意键), 用于区分定形结构体与开放映射.

记录在各容器私有的构建器中进行, 解码结束后自底向上生成不可变的形状树.
"""

from collections.abc import Callable
from dataclasses import replace
from typing import TYPE_CHECKING, Any, Union

from .context import CycleGuard
from .protocol import (
    CodingPath,
    Decoder,
    KeyedContainer,
    SingleValueContainer,
    UnkeyedContainer,
)
from .shape import Keyed, Recursive, ShapeTree, Unkeyed

if TYPE_CHECKING:
    from .probe import TypeProbe

RelPath = tuple[str | int, ...]

SUPER_KEY = "super"


class _KeyedBuilder:
    """按键容器的记录器."""

    __slots__ = ("fields", "nil_keys")

    def __init__(self) -> None:
        self.fields: dict[str, _Item | None] = {}
        self.nil_keys: set[str] = set()

    def put(self, key: str, item: "_Item") -> None:
        # 同名键后写覆盖, 保留首次出现的位置
        self.fields[key] = item

    def mark_nil(self, key: str) -> None:
        self.nil_keys.add(key)
        if key not in self.fields:
            self.fields[key] = None

    def finish(self, rel: RelPath, open_paths: set[RelPath]) -> ShapeTree:
        fields = {}
        for key, item in self.fields.items():
            node = _finish(item, rel + (key,), open_paths)
            fields[key] = node.optional() if key in self.nil_keys else node
        return ShapeTree(Keyed(fields, is_fixed=rel not in open_paths))


class _UnkeyedBuilder:
    """序列容器的记录器. 多次读取的元素形状不一致时, 元素退化为任意形状."""

    __slots__ = ("items", "optional")

    def __init__(self) -> None:
        self.items: list[_Item] = []
        self.optional = False

    def add(self, item: "_Item") -> None:
        self.items.append(item)

    def finish(self, rel: RelPath, open_paths: set[RelPath]) -> ShapeTree:
        nodes = [_finish(item, rel + (0,), open_paths) for item in self.items]
        if nodes and all(node == nodes[0] for node in nodes[1:]):
            element = nodes[0]
        else:
            element = ShapeTree.unconstrained()
        return ShapeTree(Unkeyed(element.optional() if self.optional else element))


class _SingleBuilder:
    """单值容器的记录器. 读取到的子节点整体替代解码器的结果."""

    __slots__ = ("optional", "value")

    def __init__(self) -> None:
        self.value: ShapeTree | None = None
        self.optional = False


_Item = Union[ShapeTree, _KeyedBuilder, _UnkeyedBuilder, "ProbeDecoder"]


def _finish(item: "_Item | None", rel: RelPath, open_paths: set[RelPath]) -> ShapeTree:
    if item is None:
        return ShapeTree.unconstrained()
    if isinstance(item, ShapeTree):
        return item
    if isinstance(item, ProbeDecoder):
        return item.finish(None, open_paths)
    return item.finish(rel, open_paths)


class ProbeDecoder(Decoder):
    """结构探测的合成解码器 (第一遍).

    Attributes:
        path: 当前解码器在整个探测中的编码路径.
        saw_keyed: 解码过程中是否请求过按键容器 (含嵌套容器).
    """

    def __init__(
        self,
        probe: "TypeProbe",
        guard: CycleGuard,
        path: CodingPath | None = None,
        rel: RelPath = (),
    ) -> None:
        self.path = path or []
        self.saw_keyed = False
        self._probe = probe
        self._guard = guard
        self._rel = rel
        self._root: ProbeDecoder = self
        self._result: _KeyedBuilder | _UnkeyedBuilder | _SingleBuilder | None = None

    def keyed_container(self) -> KeyedContainer:
        builder = _KeyedBuilder()
        self._result = builder
        return ProbeKeyedContainer(self, builder, self.path, self._rel)

    def unkeyed_container(self) -> UnkeyedContainer:
        builder = _UnkeyedBuilder()
        self._result = builder
        return ProbeUnkeyedContainer(self, builder, self.path, self._rel)

    def single_value_container(self) -> SingleValueContainer:
        builder = _SingleBuilder()
        self._result = builder
        return ProbeSingleValueContainer(self, builder, self.path)

    @property
    def recorded(self) -> bool:
        """是否记录到了任何容器请求."""
        return self._result is not None

    def probe_child(self, type_: Any, path: CodingPath) -> tuple[ShapeTree, Any]:
        """探测嵌套类型, 返回 (形状树, 占位值)."""
        return self._probe.probe_nested(type_, self._guard, path)

    def child_decoder(self, path: CodingPath, rel: RelPath) -> "ProbeDecoder":
        """创建共享当前类型探测上下文的子解码器 (用于 super_decoder)."""
        child = ProbeDecoder(self._probe, self._guard, path, rel)
        child._root = self._root
        return child

    def mark_keyed(self) -> None:
        """记录请求了按键容器."""
        self._root.saw_keyed = True

    def finish(self, type_: Any, open_paths: set[RelPath]) -> ShapeTree:
        """生成形状树.

        Args:
            type_: 节点的类型标识.
            open_paths: 第二遍中枚举过 `all_keys` 的按键容器相对路径.
        """
        result = self._result
        if result is None:
            return ShapeTree.unconstrained(type_)

        if isinstance(result, _SingleBuilder):
            node = result.value or ShapeTree.unconstrained(type_)
            # 具名包装类型接管子节点的类型标识, Optional 等注解保留内层类型
            if isinstance(type_, type) and not isinstance(node.container, Recursive):
                node = replace(node, type=type_)
            return node.optional() if result.optional else node

        return replace(result.finish(self._rel, open_paths), type=type_)


class ProbeKeyedContainer(KeyedContainer):
    """记录字段请求的按键容器.

    `all_keys` 返回一个合成键, 让字典类类型读取一个代表值; `contains` 总是为真.
    """

    def __init__(
        self,
        decoder: ProbeDecoder,
        builder: _KeyedBuilder,
        path: CodingPath,
        rel: RelPath,
    ) -> None:
        decoder.mark_keyed()
        self.path = path
        self._decoder = decoder
        self._builder = builder
        self._rel = rel

    @property
    def all_keys(self) -> list[str]:
        return [""]

    def contains(self, key: str) -> bool:
        return True

    def decode(self, type_: Any, key: str) -> Any:
        node, value = self._decoder.probe_child(type_, self.path + [key])
        self._builder.put(key, node)
        return value

    def decode_if_present(self, type_: Any, key: str) -> Any | None:
        node, _ = self._decoder.probe_child(type_, self.path + [key])
        self._builder.put(key, node.optional())
        return None

    def decode_nil(self, key: str) -> bool:
        self._builder.mark_nil(key)
        return False

    def nested_keyed_container(self, key: str) -> KeyedContainer:
        builder = _KeyedBuilder()
        self._builder.put(key, builder)
        return ProbeKeyedContainer(self._decoder, builder, self.path + [key], self._rel + (key,))

    def nested_unkeyed_container(self, key: str) -> UnkeyedContainer:
        builder = _UnkeyedBuilder()
        self._builder.put(key, builder)
        return ProbeUnkeyedContainer(
            self._decoder, builder, self.path + [key], self._rel + (key,)
        )

    def super_decoder(self, key: str | None = None) -> Decoder:
        key = SUPER_KEY if key is None else key
        child = self._decoder.child_decoder(self.path + [key], self._rel + (key,))
        self._builder.put(key, child)
        return child


class ProbeUnkeyedContainer(UnkeyedContainer):
    """记录元素请求的序列容器. 报告恰好一个元素."""

    def __init__(
        self,
        decoder: ProbeDecoder,
        builder: _UnkeyedBuilder,
        path: CodingPath,
        rel: RelPath,
    ) -> None:
        self.path = path
        self._decoder = decoder
        self._builder = builder
        self._rel = rel

    @property
    def count(self) -> int | None:
        return 1

    @property
    def is_at_end(self) -> bool:
        return len(self._builder.items) >= 1

    @property
    def _next_path(self) -> CodingPath:
        return self.path + [len(self._builder.items)]

    def decode(self, type_: Any) -> Any:
        node, value = self._decoder.probe_child(type_, self._next_path)
        self._builder.add(node)
        return value

    def decode_if_present(self, type_: Any) -> Any | None:
        node, _ = self._decoder.probe_child(type_, self._next_path)
        self._builder.add(node.optional())
        return None

    def decode_nil(self) -> bool:
        self._builder.optional = True
        return False

    def nested_keyed_container(self) -> KeyedContainer:
        builder = _KeyedBuilder()
        path = self._next_path
        self._builder.add(builder)
        return ProbeKeyedContainer(self._decoder, builder, path, self._rel + (0,))

    def nested_unkeyed_container(self) -> UnkeyedContainer:
        builder = _UnkeyedBuilder()
        path = self._next_path
        self._builder.add(builder)
        return ProbeUnkeyedContainer(self._decoder, builder, path, self._rel + (0,))

    def super_decoder(self) -> Decoder:
        child = self._decoder.child_decoder(self._next_path, self._rel + (0,))
        self._builder.add(child)
        return child


class ProbeSingleValueContainer(SingleValueContainer):
    """记录单值请求的容器."""

    def __init__(self, decoder: ProbeDecoder, builder: _SingleBuilder, path: CodingPath) -> None:
        self.path = path
        self._decoder = decoder
        self._builder = builder

    def decode(self, type_: Any) -> Any:
        node, value = self._decoder.probe_child(type_, self.path)
        self._builder.value = node
        return value

    def decode_nil(self) -> bool:
        self._builder.optional = True
        return False


class KeyCheckDecoder(Decoder):
    """定形/开放检测的合成解码器 (第二遍).

    不递归探测嵌套类型: 每个请求直接返回占位值. 只记录枚举过 `all_keys`
    的按键容器的相对路径.

    Attributes:
        open_paths: 枚举过 `all_keys` 的按键容器相对路径集合.
    """

    def __init__(
        self,
        placeholder: Callable[[Any], Any],
        path: CodingPath | None = None,
        rel: RelPath = (),
        open_paths: set[RelPath] | None = None,
    ) -> None:
        self.path = path or []
        self.open_paths = open_paths if open_paths is not None else set()
        self._placeholder = placeholder
        self._rel = rel

    @property
    def is_additional(self) -> bool:
        """根按键容器是否接受任意键."""
        return () in self.open_paths

    def placeholder(self, type_: Any) -> Any:
        """类型的占位值."""
        return self._placeholder(type_)

    def child(self, path: CodingPath, rel: RelPath) -> "KeyCheckDecoder":
        """创建共享检测结果的子解码器."""
        return KeyCheckDecoder(self._placeholder, path, rel, self.open_paths)

    def keyed_container(self) -> KeyedContainer:
        return _KeyCheckKeyedContainer(self, self.path, self._rel)

    def unkeyed_container(self) -> UnkeyedContainer:
        return _KeyCheckUnkeyedContainer(self, self.path, self._rel)

    def single_value_container(self) -> SingleValueContainer:
        return _KeyCheckSingleValueContainer(self, self.path)


class _KeyCheckKeyedContainer(KeyedContainer):
    def __init__(self, decoder: KeyCheckDecoder, path: CodingPath, rel: RelPath) -> None:
        self.path = path
        self._decoder = decoder
        self._rel = rel

    @property
    def all_keys(self) -> list[str]:
        self._decoder.open_paths.add(self._rel)
        return []

    def contains(self, key: str) -> bool:
        return True

    def decode(self, type_: Any, key: str) -> Any:
        return self._decoder.placeholder(type_)

    def decode_if_present(self, type_: Any, key: str) -> Any | None:
        return None

    def decode_nil(self, key: str) -> bool:
        return False

    def nested_keyed_container(self, key: str) -> KeyedContainer:
        return _KeyCheckKeyedContainer(self._decoder, self.path + [key], self._rel + (key,))

    def nested_unkeyed_container(self, key: str) -> UnkeyedContainer:
        return _KeyCheckUnkeyedContainer(self._decoder, self.path + [key], self._rel + (key,))

    def super_decoder(self, key: str | None = None) -> Decoder:
        key = SUPER_KEY if key is None else key
        return self._decoder.child(self.path + [key], self._rel + (key,))


class _KeyCheckUnkeyedContainer(UnkeyedContainer):
    def __init__(self, decoder: KeyCheckDecoder, path: CodingPath, rel: RelPath) -> None:
        self.path = path
        self._decoder = decoder
        self._rel = rel
        self._index = 0

    @property
    def count(self) -> int | None:
        return 1

    @property
    def is_at_end(self) -> bool:
        return self._index >= 1

    def _advance(self) -> CodingPath:
        path = self.path + [self._index]
        self._index += 1
        return path

    def decode(self, type_: Any) -> Any:
        self._advance()
        return self._decoder.placeholder(type_)

    def decode_if_present(self, type_: Any) -> Any | None:
        self._advance()
        return None

    def decode_nil(self) -> bool:
        return False

    def nested_keyed_container(self) -> KeyedContainer:
        return _KeyCheckKeyedContainer(self._decoder, self._advance(), self._rel + (0,))

    def nested_unkeyed_container(self) -> UnkeyedContainer:
        return _KeyCheckUnkeyedContainer(self._decoder, self._advance(), self._rel + (0,))

    def super_decoder(self) -> Decoder:
        return self._decoder.child(self._advance(), self._rel + (0,))


class _KeyCheckSingleValueContainer(SingleValueContainer):
    def __init__(self, decoder: KeyCheckDecoder, path: CodingPath) -> None:
        self.path = path
        self._decoder = decoder

    def decode(self, type_: Any) -> Any:
        return self._decoder.placeholder(type_)

    def decode_nil(self) -> bool:
        return False
