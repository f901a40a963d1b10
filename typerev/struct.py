"""typerev 结构体定义模块."""

from typing import Any, ClassVar, cast

from pydantic import BaseModel
from pydantic import Field as PydanticField
from pydantic.fields import FieldInfo
from pydantic_core import PydanticUndefined
from typing_extensions import Self, dataclass_transform

from .adapter import FieldPlan, decode_fields, strip_optional
from .protocol import Decoder
from .registry import SchemaRegistry
from .schema import SchemaOrRef
from .shape import ShapeTree


def Field(
    default: Any = PydanticUndefined,
    *,
    key: str | None = None,
    default_factory: Any | None = None,
) -> Any:
    """创建结构体字段配置.

    这是一个 Pydantic `Field` 的包装函数, 用于注入解码所需的元数据 (`key`).
    不需要自定义键名的字段可以直接使用普通注解.

    Args:
        default: 字段的静态默认值.
            有默认值的字段在 schema 中不是 required.
        key: 字段在解码容器中的键名, 默认使用 alias 或属性名.
        default_factory: 用于生成默认值的无参可调用对象.

    Returns:
        Any: 包含 typerev 元数据的 Pydantic FieldInfo 对象.

    Raises:
        ValueError: 如果 `key` 为空字符串.

    Examples:
        >>> from typerev import Struct, Field
        >>> class User(Struct):
        ...     # 1. 必填字段, 键名为 "user_id"
        ...     uid: int = Field(key="user_id")
        ...
        ...     # 2. 带默认值的字段 (可缺失)
        ...     name: str = Field("Anonymous")
        ...
        ...     # 3. 列表字段, 需使用 factory
        ...     tags: list[str] = Field(default_factory=list)
    """
    if key is not None and not key:
        raise ValueError("Invalid key: empty string")

    kwargs: dict[str, Any] = {}
    if key is not None:
        kwargs["json_schema_extra"] = {"rev_key": key}

    if default is not PydanticUndefined:
        kwargs["default"] = default

    if default_factory is not None:
        kwargs["default_factory"] = default_factory

    return cast(Any, PydanticField)(**kwargs)


def _field_key(name: str, info: FieldInfo) -> str:
    extra = info.json_schema_extra
    if isinstance(extra, dict) and extra.get("rev_key"):
        return cast(str, extra["rev_key"])
    return info.alias or name


def prepare_fields(fields: dict[str, FieldInfo]) -> dict[str, FieldPlan]:
    """准备字段解码计划.

    遍历 Pydantic 的 fields, 按声明顺序生成 `FieldPlan`. 显式排除的字段不参与解码.
    """
    plans = {}
    for name, info in fields.items():
        if info.exclude is True:
            continue
        inner, nullable = strip_optional(info.annotation)
        has_default = not info.is_required()
        plans[name] = FieldPlan(
            name=name,
            key=_field_key(name, info),
            annotation=info.annotation,
            inner=inner,
            optional=nullable or has_default,
            has_default=has_default,
        )
    return plans


@dataclass_transform(kw_only_default=True, field_specifiers=(Field,))
class StructMeta(type(BaseModel)):
    """Struct 的元类, 用于收集字段解码计划."""

    def __new__(  # noqa: D102
        mcs,
        name: str,
        bases: tuple[type, ...],
        namespace: dict[str, Any],
        **kwargs: Any,
    ):
        cls = super().__new__(mcs, name, bases, namespace, **kwargs)
        if any(isinstance(base, StructMeta) for base in bases):
            cls.__rev_fields__ = prepare_fields(cls.model_fields)
            cls.__rev_fields_complete__ = cls.__pydantic_complete__
        return cls


class Struct(BaseModel, metaclass=StructMeta):
    """结构体基类.

    继承自 `pydantic.BaseModel`, 提供声明式的结构定义方式, 并自动实现
    通用解码协议下的结构自解码 (`__rev_decode__`).

    核心特性:
        1. **声明式定义**: 使用 Python 类型注解定义字段类型.
        2. **键名映射**: 通过 `Field(key=...)` 绑定解码容器中的键名.
        3. **可选字段**: `Optional` 注解或带默认值的字段按可缺失读取.
        4. **描述**: 通过 `__rev_description__` 为 schema 附加描述.
        5. **泛型支持**: 支持 `Generic[T]` 定义通用结构体.

    Examples:
        **基础用法:**
        >>> from typerev import Struct
        >>> class Pet(Struct):
        ...     name: str

        **嵌套与可选:**
        >>> class Person(Struct):
        ...     __rev_description__ = "A person"
        ...     name: str
        ...     age: int
        ...     pet: Pet | None = None

        **生成 schema:**
        >>> registry = SchemaRegistry()
        >>> Person.rev_schema(registry)
        Reference(ref='#/components/schemas/Person', description=None)
    """

    __rev_fields__: ClassVar[dict[str, FieldPlan]] = {}
    __rev_fields_complete__: ClassVar[bool] = True
    __rev_description__: ClassVar[str | None] = None

    @classmethod
    def rev_fields(cls) -> dict[str, FieldPlan]:
        """字段解码计划.

        计划基于未完成的模型 (含未解析的前向引用) 收集时, 在模型重建后重新收集;
        模型仍未完成时先尝试重建.
        """
        if not cls.__rev_fields_complete__:
            if not cls.__pydantic_complete__:
                cls.model_rebuild(raise_errors=False)
            cls.__rev_fields__ = prepare_fields(cls.model_fields)
            cls.__rev_fields_complete__ = cls.__pydantic_complete__
        return cls.__rev_fields__

    @classmethod
    def __rev_decode__(cls, decoder: Decoder) -> Self:
        """按字段计划从按键容器读取, 用 `model_construct` 构造实例 (不触发校验)."""
        return cls.model_construct(**decode_fields(decoder, cls.rev_fields().values()))

    @classmethod
    def rev_shape(cls) -> ShapeTree:
        """探测当前结构体的形状树."""
        from .api import describe

        return describe(cls)

    @classmethod
    def rev_schema(
        cls,
        registry: SchemaRegistry | None = None,
        **params: Any,
    ) -> SchemaOrRef:
        """生成当前结构体的 schema.

        Args:
            registry: 命名 schema 注册表, 可提取的 schema 写入其中.
            **params: 传给 `SchemaConfig.from_params` 的配置
                (`date_format`, `key_strategy`, `extract_references`).

        Returns:
            SchemaOrRef: schema 或指向注册表条目的引用.
        """
        from .api import schema_of

        return schema_of(cls, registry, **params)
