"""形状树的终端渲染.

用 rich 把形状树输出为树状视图, 便于查看探测结果.
"""

from rich.console import Console
from rich.text import Text
from rich.tree import Tree

from .capabilities import type_name
from .shape import Keyed, Recursive, ShapeTree, Single, Unkeyed

STYLE_KEY = "bold blue"
STYLE_KIND = "cyan"
STYLE_TYPE = "green"
STYLE_CASES = "magenta"


def _label(shape: ShapeTree, key: str | None) -> Text:
    label = Text()
    if key is not None:
        label.append(f"{key}", style=STYLE_KEY)
        if shape.is_optional:
            label.append("?", style=STYLE_KEY)
        label.append(": ")

    container = shape.container
    if isinstance(container, Single):
        label.append(container.kind.value, style=STYLE_KIND)
    elif isinstance(container, Keyed):
        label.append("Struct" if container.is_fixed else "Map", style="bold yellow")
    elif isinstance(container, Unkeyed):
        label.append("List", style=STYLE_KIND)
    elif isinstance(container, Recursive):
        label.append(f"-> {type_name(container.marker)}", style="italic")
    else:
        label.append("Any", style="dim")

    if shape.type is not None and not isinstance(container, Recursive):
        label.append(f" ({type_name(shape.type)})", style=STYLE_TYPE)
    if shape.cases is not None:
        label.append(f" {list(shape.cases)!r}", style=STYLE_CASES)
    return label


def _add(shape: ShapeTree, tree: Tree, key: str | None) -> None:
    branch = tree.add(_label(shape, key))
    _add_children(shape, branch)


def _add_children(shape: ShapeTree, branch: Tree) -> None:
    container = shape.container
    if isinstance(container, Keyed):
        for name, child in container.fields.items():
            _add(child, branch, name)
    elif isinstance(container, Unkeyed):
        _add(container.element, branch, "[0]")


def build_shape_tree(shape: ShapeTree, label: str = "root") -> Tree:
    """构建形状树的 rich 视图.

    Args:
        shape: 形状树根节点.
        label: 根节点标签.

    Returns:
        Tree: 可直接打印的 rich 树.
    """
    tree = Tree(_label(shape, label))
    _add_children(shape, tree)
    return tree


def print_shape(shape: ShapeTree, console: Console | None = None, label: str = "root") -> None:
    """在终端打印形状树."""
    (console or Console()).print(build_shape_tree(shape, label))
