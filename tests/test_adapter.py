"""内置解码适配器测试.

覆盖 typerev.adapter 模块的解码计划:
1. Optional 注解剥离
2. pydantic 模型的字段计划 (alias, 默认值, 排除字段)
3. dataclass 的字段计划 (metadata 键名, default_factory)
"""

import dataclasses
from typing import Annotated, Any, Optional, Union

import pytest
from pydantic import BaseModel, Field

from typerev.adapter import dataclass_plan, model_plan, strip_optional

# --- 辅助模型 ---


class Account(BaseModel):
    """pydantic 模型."""

    account_id: int = Field(alias="accountId")
    nickname: str | None = None
    secret: str = Field(default="", exclude=True)


@dataclasses.dataclass
class Span:
    """dataclass."""

    start: int
    labels: list[str] = dataclasses.field(default_factory=list)
    stop: Optional[int] = dataclasses.field(default=None, metadata={"rev_key": "end"})
    cached: int = dataclasses.field(default=0, init=False)


# --- 测试用例 ---


@pytest.mark.parametrize(
    ("annotation", "inner", "nullable"),
    [
        (int, int, False),
        (Optional[int], int, True),
        (int | None, int, True),
        (Union[int, str, None], Union[int, str], True),
        (Union[int, str], Union[int, str], False),
        (Annotated[Optional[str], "doc"], str, True),
        (list[int | None], list[int | None], False),
    ],
)
def test_strip_optional(annotation: Any, inner: Any, nullable: bool) -> None:
    """strip_optional() 剥离 None 分支并报告是否可空."""
    assert strip_optional(annotation) == (inner, nullable)


def test_model_plan() -> None:
    """pydantic 模型的计划使用 alias 作为键名并跳过排除字段."""
    plans = {plan.key: plan for plan in model_plan(Account)}
    assert list(plans) == ["accountId", "nickname"]

    assert plans["accountId"].name == "accountId"
    assert not plans["accountId"].optional

    nickname = plans["nickname"]
    assert nickname.optional
    assert nickname.has_default
    assert nickname.inner is str


def test_dataclass_plan() -> None:
    """dataclass 的计划支持 metadata 键名并跳过 init=False 字段."""
    plans = {plan.name: plan for plan in dataclass_plan(Span)}
    assert list(plans) == ["start", "labels", "stop"]

    assert not plans["start"].optional
    assert plans["labels"].optional
    assert plans["labels"].has_default
    assert plans["stop"].key == "end"
    assert plans["stop"].inner is int
