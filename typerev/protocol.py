"""通用解码协议.

本模块定义类型自解码时面对的抽象解码面. 一个类型通过 `__rev_decode__`
(或能力注册表中登记的适配器) 描述自己会如何从解码器中读取数据:
请求按键容器、序列容器或单值容器, 并对每个字段/元素/值回调容器.

结构探测器提供该协议的合成实现, 记录类型发出的请求而不读取任何真实数据.

Examples:
    >>> class Money:
    ...     @classmethod
    ...     def __rev_decode__(cls, decoder: Decoder) -> "Money":
    ...         container = decoder.keyed_container()
    ...         amount = container.decode(int, "amount")
    ...         currency = container.decode(str, "currency")
    ...         return cls(amount, currency)
"""

import abc
from typing import Any

CodingPath = list[str | int]


class Decoder(abc.ABC):
    """解码器: 类型自解码的入口."""

    path: CodingPath

    @abc.abstractmethod
    def keyed_container(self) -> "KeyedContainer":
        """请求按键访问的容器 (结构体或映射)."""
        raise NotImplementedError

    @abc.abstractmethod
    def unkeyed_container(self) -> "UnkeyedContainer":
        """请求顺序访问的容器 (序列)."""
        raise NotImplementedError

    @abc.abstractmethod
    def single_value_container(self) -> "SingleValueContainer":
        """请求单值容器."""
        raise NotImplementedError


class KeyedContainer(abc.ABC):
    """按键访问的容器."""

    path: CodingPath

    @property
    @abc.abstractmethod
    def all_keys(self) -> list[str]:
        """容器中存在的全部键.

        字典类类型通过枚举此属性读取任意键; 字段固定的结构体不应访问它.
        """
        raise NotImplementedError

    @abc.abstractmethod
    def contains(self, key: str) -> bool:
        """容器中是否存在指定键."""
        raise NotImplementedError

    @abc.abstractmethod
    def decode(self, type_: Any, key: str) -> Any:
        """读取必填字段."""
        raise NotImplementedError

    @abc.abstractmethod
    def decode_if_present(self, type_: Any, key: str) -> Any | None:
        """读取可缺失字段, 缺失或为 null 时返回 None."""
        raise NotImplementedError

    @abc.abstractmethod
    def decode_nil(self, key: str) -> bool:
        """指定键的值是否为 null."""
        raise NotImplementedError

    @abc.abstractmethod
    def nested_keyed_container(self, key: str) -> "KeyedContainer":
        """以指定键的值打开嵌套的按键容器."""
        raise NotImplementedError

    @abc.abstractmethod
    def nested_unkeyed_container(self, key: str) -> "UnkeyedContainer":
        """以指定键的值打开嵌套的序列容器."""
        raise NotImplementedError

    @abc.abstractmethod
    def super_decoder(self, key: str | None = None) -> Decoder:
        """返回用于解码父类部分 (或指定键的值) 的解码器."""
        raise NotImplementedError


class UnkeyedContainer(abc.ABC):
    """顺序访问的容器."""

    path: CodingPath

    @property
    @abc.abstractmethod
    def count(self) -> int | None:
        """元素数量, 未知时为 None."""
        raise NotImplementedError

    @property
    @abc.abstractmethod
    def is_at_end(self) -> bool:
        """是否已读完全部元素."""
        raise NotImplementedError

    @abc.abstractmethod
    def decode(self, type_: Any) -> Any:
        """读取下一个元素."""
        raise NotImplementedError

    @abc.abstractmethod
    def decode_if_present(self, type_: Any) -> Any | None:
        """读取下一个可为 null 的元素."""
        raise NotImplementedError

    @abc.abstractmethod
    def decode_nil(self) -> bool:
        """下一个元素是否为 null (为 null 时消耗该元素)."""
        raise NotImplementedError

    @abc.abstractmethod
    def nested_keyed_container(self) -> KeyedContainer:
        """以下一个元素打开嵌套的按键容器."""
        raise NotImplementedError

    @abc.abstractmethod
    def nested_unkeyed_container(self) -> "UnkeyedContainer":
        """以下一个元素打开嵌套的序列容器."""
        raise NotImplementedError

    @abc.abstractmethod
    def super_decoder(self) -> Decoder:
        """以下一个元素返回解码器."""
        raise NotImplementedError


class SingleValueContainer(abc.ABC):
    """单值容器."""

    path: CodingPath

    @abc.abstractmethod
    def decode(self, type_: Any) -> Any:
        """读取单个值."""
        raise NotImplementedError

    @abc.abstractmethod
    def decode_nil(self) -> bool:
        """值是否为 null."""
        raise NotImplementedError
