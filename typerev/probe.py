"""结构探测器.

在没有任何实例的情况下, 通过让类型对合成解码面执行自身的解码逻辑,
推导出类型的形状树.

探测流程:

1. 查询类型能力. 基础标量直接得到 `Single` 节点; 日期、自描述类型以及没有
   解码能力的类型得到任意形状节点.
2. 类型已在调用链上时返回 `Recursive` 节点; 本会话中已探测完成且不含回引的类型复用结果.
3. 第一遍: 用 `ProbeDecoder` 运行类型的解码逻辑, 记录容器请求.
   解码中途失败时保留已记录的部分.
4. 第二遍: 若类型请求过按键容器, 用 `KeyCheckDecoder` 再运行一次解码逻辑,
   枚举过 `all_keys` 的按键容器标记为开放映射.
5. 可枚举类型的节点替换为带取值列表的 `Single` 节点.
"""

from typing import Any

from .adapter import DecodeFunc
from .capabilities import Capabilities, CapabilityRegistry, default_registry
from .context import CycleGuard
from .decoder import KeyCheckDecoder, ProbeDecoder, RelPath
from .exceptions import ProbeSurfaceError
from .log import format_path, logger
from .protocol import CodingPath
from .shape import Keyed, PrimitiveKind, Recursive, ShapeTree, Single, Unkeyed


def kind_of_label(label: Any) -> PrimitiveKind:
    """由字面量标签推断基础类型."""
    if label is None:
        return PrimitiveKind.NULL
    if isinstance(label, bool):
        return PrimitiveKind.BOOL
    if isinstance(label, int):
        return PrimitiveKind.INT
    if isinstance(label, float):
        return PrimitiveKind.DOUBLE
    return PrimitiveKind.STRING


def has_recursive(shape: ShapeTree) -> bool:
    """子树中是否含有 `Recursive` 回引节点."""
    container = shape.container
    if isinstance(container, Recursive):
        return True
    if isinstance(container, Keyed):
        return any(has_recursive(child) for child in container.fields.values())
    if isinstance(container, Unkeyed):
        return has_recursive(container.element)
    return False


class TypeProbe:
    """结构探测器.

    探测器本身不保存会话状态: 每次 `describe` 创建新的循环守卫,
    并在递归探测中显式传递.

    Args:
        capabilities: 能力注册表, 默认使用全局注册表.
    """

    def __init__(self, capabilities: CapabilityRegistry | None = None) -> None:
        self.capabilities = capabilities or default_registry

    def describe(self, type_: Any) -> ShapeTree:
        """推导类型的形状树.

        Args:
            type_: 类型或类型注解.

        Returns:
            ShapeTree: 根节点.

        Raises:
            ProbeSurfaceError: 输入不是可探测的类型注解.
        """
        logger.debug("[TypeProbe] 开始探测 %r", type_)
        guard = CycleGuard()
        shape, _ = self._probe(type_, guard, [])
        logger.debug("[TypeProbe] 探测完成 %r -> %s", type_, shape.kind)
        return shape

    def describe_value(self, value: Any) -> ShapeTree:
        """推导实例所属类型的形状树. 只使用实例的类型标识, 不读取实例数据."""
        return self.describe(type(value))

    def probe_nested(
        self, type_: Any, guard: CycleGuard, path: CodingPath
    ) -> tuple[ShapeTree, Any]:
        """探测嵌套类型, 返回 (形状树, 占位值).

        嵌套位置上无法探测的注解退化为任意形状, 不中断父级的探测.
        """
        try:
            return self._probe(type_, guard, path)
        except ProbeSurfaceError as e:
            logger.debug("[TypeProbe] %s 处的 %r 无法探测: %s", format_path(path), type_, e)
            return ShapeTree.unconstrained(), None

    def placeholder(self, type_: Any, guard: CycleGuard) -> Any:
        """类型在当前会话中的占位值."""
        try:
            caps = self.capabilities.lookup(type_)
        except ProbeSurfaceError:
            return None
        entry = guard.get(caps.type)
        if entry is not None and not entry.in_progress:
            return entry.placeholder
        return caps.placeholder

    def _probe(self, type_: Any, guard: CycleGuard, path: CodingPath) -> tuple[ShapeTree, Any]:
        caps = self.capabilities.lookup(type_)

        if caps.kind is not None:
            return ShapeTree(Single(caps.kind), type=caps.type), caps.placeholder

        if caps.bypasses_probe or caps.decode is None:
            return ShapeTree.unconstrained(caps.type), caps.placeholder

        entry = guard.get(caps.type)
        if entry is not None and entry.in_progress:
            logger.debug("[TypeProbe] %s 处检测到递归引用 %s", format_path(path), caps.name)
            return ShapeTree(Recursive(caps.type), type=caps.type), caps.placeholder

        if entry is not None and entry.shape is not None:
            # 含回引的形状依赖探测时的调用链, 不能跨位置复用
            if not has_recursive(entry.shape):
                return entry.shape, entry.placeholder
            logger.debug(
                "[TypeProbe] %s 的缓存形状含回引, 在 %s 处重新探测", caps.name, format_path(path)
            )

        guard.enter(caps.type)
        shape, value = self._decode(caps, guard, path)
        guard.complete(caps.type, shape, value)
        return shape, value

    def _decode(
        self, caps: Capabilities, guard: CycleGuard, path: CodingPath
    ) -> tuple[ShapeTree, Any]:
        decode = caps.decode
        if decode is None:
            return ShapeTree.unconstrained(caps.type), caps.placeholder

        decoder = ProbeDecoder(self, guard, path)
        value = caps.placeholder
        try:
            value = decode(decoder)
        except Exception as e:
            logger.debug(
                "[TypeProbe] %s 在 %s 处解码失败, 保留已记录的形状: %s",
                caps.name,
                format_path(path),
                e,
            )

        open_paths = self._check_keys(caps.name, decode, guard) if decoder.saw_keyed else set()
        shape = decoder.finish(caps.type, open_paths)

        if caps.cases is not None:
            if isinstance(shape.container, Single):
                kind = shape.container.kind
            else:
                kind = kind_of_label(caps.cases[0]) if caps.cases else PrimitiveKind.STRING
            shape = ShapeTree(
                Single(kind),
                type=caps.type,
                is_optional=shape.is_optional,
                cases=caps.cases,
            )

        return shape, value

    def _check_keys(self, name: str, decode: DecodeFunc, guard: CycleGuard) -> set[RelPath]:
        """第二遍: 返回枚举过 `all_keys` 的按键容器相对路径."""
        checker = KeyCheckDecoder(lambda t: self.placeholder(t, guard))
        try:
            decode(checker)
        except Exception as e:
            logger.debug("[KeyCheck] %s 的键检测未完成: %s", name, e)

        if checker.open_paths:
            logger.debug("[KeyCheck] %s 接受任意键: %r", name, sorted(map(str, checker.open_paths)))
        return checker.open_paths
