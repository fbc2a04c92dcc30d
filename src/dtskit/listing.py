from typing import List

import tree_sitter as ts

from dtskit.lang.typescript import (
    DECLARATION_TYPES,
    MODULE_TYPES,
    declaration_name,
    parse_source,
)
from dtskit.models import ListedDeclaration
from dtskit.source import SourceText, get_node_text


def list_declarations(source: SourceText, tree: ts.Tree) -> List[ListedDeclaration]:
    """
    Depth-first list of modules and named declarations with their qualified
    names and positions.
    """
    out: List[ListedDeclaration] = []
    _visit(source, tree.root_node, "", out)
    return out


def _visit(
    source: SourceText, node: ts.Node, container: str, out: List[ListedDeclaration]
) -> None:
    for child in node.named_children:
        name_node = child.child_by_field_name("name")

        if child.type in MODULE_TYPES and name_node is not None:
            name = declaration_name(child) or ""
            qualified = f"{container}.{name}" if container else name
            out.append(
                ListedDeclaration(
                    name=name,
                    qualified_name=qualified,
                    kind=child.type,
                    position=source.format_position(name_node.start_byte),
                    is_module=True,
                )
            )
            _visit(source, child, qualified, out)
            continue

        inner = container
        if child.type in DECLARATION_TYPES and name_node is not None:
            name = get_node_text(name_node)
            inner = f"{container}.{name}" if container else name
            out.append(
                ListedDeclaration(
                    name=name,
                    qualified_name=inner,
                    kind=child.type,
                    position=source.format_position(name_node.start_byte),
                )
            )
        _visit(source, child, inner, out)


def list_source(source: SourceText) -> List[ListedDeclaration]:
    return list_declarations(source, parse_source(source))


def format_listing(items: List[ListedDeclaration]) -> str:
    lines = []
    for item in items:
        if item.is_module:
            lines.append(item.qualified_name)
        else:
            lines.append(f"  {item.qualified_name}: {item.position}")
    return "\n".join(lines)
