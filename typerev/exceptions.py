"""typerev特定的异常类.

该模块为typerev库定义了异常层次结构.
"""


class TypeRevError(Exception):
    """所有 typerev 异常的基类."""

    pass


class DecodeError(TypeRevError):
    """类型的自解码逻辑无法接受解码面提供的值时抛出.

    Case:
        - 枚举类型收到的占位值不是合法成员.
        - 定长元组的元素数量不足.
        - 自定义 `__rev_decode__` 主动拒绝当前容器结构.
    """

    def __init__(
        self,
        msg: str,
        loc: list[str | int] | None = None,
    ) -> None:
        """初始化解码错误.

        Args:
            msg: 错误描述信息.
            loc: 错误发生的位置路径 (字段名或下标).
        """
        super().__init__(msg)
        self.loc = loc or []

    def __str__(self) -> str:
        base_msg = super().__str__()
        if self.loc:
            loc_str = ".".join(str(x) for x in self.loc)
            return f"{base_msg} (at {loc_str})"
        return base_msg


class ProbeSurfaceError(TypeRevError):
    """无法为输入构建合成解码面时抛出.

    这是调用方违反前置条件 (传入的不是类型注解), 而不是数据问题.
    顶层 `describe` 会直接抛出, 嵌套字段中出现时降级为无约束形状.
    """

    pass


class SchemaTypeError(TypeRevError, TypeError):
    """自描述类型声明的 schema 不是 `Schema`/`Reference` 时抛出."""

    pass
