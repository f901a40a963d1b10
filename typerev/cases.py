"""可枚举类型检测.

识别取值集合有限且可静态枚举的类型 (枚举、字面量、声明了 `__rev_cases__` 的类型),
并给出按声明顺序排列的字面量标签. 结构探测器据此把这类类型表示为带取值列表的标量.
"""

from enum import Enum
from typing import Annotated, Any, Literal, get_args, get_origin


def all_cases(type_: Any) -> list[Any] | None:
    """返回类型的全部规范实例, 不可枚举时返回 None.

    Args:
        type_: 待检测的类型或类型注解.

    Returns:
        list[Any] | None: 按声明顺序的实例列表.
    """
    origin = get_origin(type_)
    if origin is Annotated:
        return all_cases(get_args(type_)[0])
    if origin is Literal:
        return list(get_args(type_))

    if origin is not None or not isinstance(type_, type):
        return None

    hook = getattr(type_, "__rev_cases__", None)
    if hook is not None:
        return list(hook())

    if issubclass(type_, Enum):
        return list(type_)

    return None


def label_of(case: Any) -> Any:
    """单个实例的字面量标签: 枚举成员取 `value`, 标量原样保留, 其他取 `str()`."""
    if isinstance(case, Enum):
        case = case.value
    if case is None or isinstance(case, str | int | float | bool):
        return case
    return str(case)


def case_labels(type_: Any) -> list[Any] | None:
    """返回可枚举类型的字面量标签列表, 不可枚举时返回 None."""
    cases = all_cases(type_)
    if cases is None:
        return None
    return [label_of(case) for case in cases]


def first_case(type_: Any) -> Any:
    """第一个规范实例, 用作探测时的回退占位值; 不可枚举或为空时返回 None."""
    cases = all_cases(type_)
    if not cases:
        return None
    return cases[0]
