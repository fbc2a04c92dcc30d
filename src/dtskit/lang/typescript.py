import re
from typing import Any, List, Optional

import tree_sitter as ts
import tree_sitter_typescript as tsts

from dtskit.errors import MultiVariableExportError
from dtskit.source import SourceText, get_node_text, leading_comment, strip_quotes

TS_LANGUAGE = ts.Language(tsts.language_typescript())
_parser: Optional[ts.Parser] = None


def _get_parser() -> ts.Parser:
    global _parser
    if _parser is None:
        _parser = ts.Parser(TS_LANGUAGE)
    return _parser


def parse_source(source: SourceText) -> ts.Tree:
    return _get_parser().parse(source.data)


# Declarations that may carry a name worth stripping or listing
DECLARATION_TYPES = frozenset(
    {
        "public_field_definition",
        "property_signature",
        "method_definition",
        "method_signature",
        "abstract_method_signature",
        "variable_declarator",
        "function_declaration",
        "function_signature",
        "class_declaration",
        "abstract_class_declaration",
        "interface_declaration",
        "enum_declaration",
    }
)

VARIABLE_STATEMENT_TYPES = ("lexical_declaration", "variable_declaration")
MODULE_TYPES = ("module", "internal_module")

_INTERNAL_TAG_RE = re.compile(r"@(internal|private)\b")


def unwrap_declaration(node: Optional[ts.Node]) -> Optional[ts.Node]:
    """
    Strip `export`, `declare` and expression wrappers around a declaration.
    Returns None for export statements that carry no declaration
    (re-exports, `export =`, `export default expr`).
    """
    while node is not None:
        if node.type == "export_statement":
            node = node.child_by_field_name("declaration")
        elif node.type == "ambient_declaration":
            inner = next(
                (c for c in node.named_children if c.type != "comment"), None
            )
            if inner is None or inner.type == "statement_block":
                # `declare global { ... }`
                return node
            node = inner
        elif node.type == "expression_statement":
            inner = node.named_children[0] if node.named_children else None
            if inner is None or inner.type not in MODULE_TYPES:
                return node
            node = inner
        else:
            return node
    return None


def is_static(node: ts.Node) -> bool:
    return any(c.type == "static" for c in node.children)


def accessibility(node: ts.Node) -> Optional[str]:
    mod = next((c for c in node.children if c.type == "accessibility_modifier"), None)
    return get_node_text(mod) or None


def accessor_kind(node: ts.Node) -> Optional[str]:
    """
    Return "get" or "set" for accessor members. The keyword is an unnamed
    token in front of the member name, so a method called `get` is not
    mistaken for an accessor.
    """
    name_node = node.child_by_field_name("name")
    for c in node.children:
        if name_node is not None and c.start_byte >= name_node.start_byte:
            break
        if not c.is_named and c.type in ("get", "set"):
            return c.type
    return None


def variable_declarators(node: ts.Node) -> List[ts.Node]:
    return [c for c in node.named_children if c.type == "variable_declarator"]


def declaration_name(node: ts.Node) -> Optional[str]:
    if node.type in VARIABLE_STATEMENT_TYPES:
        decls = variable_declarators(node)
        return declaration_name(decls[0]) if decls else None
    name_node = node.child_by_field_name("name")
    if name_node is None:
        return None
    name = get_node_text(name_node)
    if node.type in MODULE_TYPES:
        name = strip_quotes(name)
    return name or None


def parameter_names(node: ts.Node) -> Optional[List[str]]:
    """
    Names of the formal parameters of a function-like node, or None when the
    node takes no parameter list at all.
    """
    params = node.child_by_field_name("parameters")
    if params is None:
        return None
    names: List[str] = []
    for p in params.named_children:
        if p.type not in ("required_parameter", "optional_parameter"):
            continue
        pattern = p.child_by_field_name("pattern")
        if pattern is None:
            continue
        if pattern.type == "rest_pattern" and pattern.named_children:
            pattern = pattern.named_children[0]
        names.append(get_node_text(pattern))
    return names


def has_internal_tag(comment: Optional[ts.Node]) -> bool:
    if comment is None:
        return False
    text = get_node_text(comment)
    return text.startswith("/**") and _INTERNAL_TAG_RE.search(text) is not None


def is_private_or_internal(
    node: ts.Node, outer: Optional[ts.Node] = None, check_tags: bool = True
) -> bool:
    """
    True for declarations with the `private` modifier or, when *check_tags*
    is set, an @internal / @private tag in their documentation comment.
    *outer* is the statement wrapping *node* (an export statement), which
    owns the leading comment.
    """
    if accessibility(node) == "private":
        return True
    if not check_tags:
        return False
    return has_internal_tag(leading_comment(outer if outer is not None else node))


def is_exported(statement: ts.Node) -> bool:
    return statement.type == "export_statement"


def export_name(statement: ts.Node, source: SourceText) -> Optional[str]:
    """
    Name of the declaration exported by *statement*, or None when the
    statement does not export a named declaration.
    """
    if not is_exported(statement):
        return None
    decl = unwrap_declaration(statement)
    if decl is None or decl.type == "ambient_declaration":
        return None
    if decl.type in VARIABLE_STATEMENT_TYPES:
        decls = variable_declarators(decl)
        if len(decls) > 1:
            raise MultiVariableExportError(source.format_position(statement.start_byte))
    return declaration_name(decl)


def reexport_source(statement: ts.Node) -> Optional[str]:
    """Module specifier of an `export ... from "module"` statement."""
    if not is_exported(statement):
        return None
    src = statement.child_by_field_name("source")
    if src is None:
        return None
    return strip_quotes(get_node_text(src)) or None


def export_clause(statement: ts.Node) -> Optional[ts.Node]:
    return next((c for c in statement.named_children if c.type == "export_clause"), None)


def is_namespace_reexport(statement: ts.Node) -> bool:
    return any(c.type == "namespace_export" for c in statement.named_children)


def export_specifiers(clause: ts.Node) -> List[tuple[str, Optional[str], Any]]:
    """Return ``(name, alias, node)`` for each element of an export clause."""
    out: List[tuple[str, Optional[str], Any]] = []
    for spec in clause.named_children:
        if spec.type != "export_specifier":
            continue
        name = get_node_text(spec.child_by_field_name("name"))
        alias = get_node_text(spec.child_by_field_name("alias")) or None
        out.append((name, alias, spec))
    return out


def statement_block(node: ts.Node) -> Optional[ts.Node]:
    """Body of a module, namespace or `declare global` block."""
    body = node.child_by_field_name("body")
    if body is not None:
        return body
    return next((c for c in node.named_children if c.type == "statement_block"), None)


def body_members(node: ts.Node) -> List[ts.Node]:
    """
    Member nodes of a class, interface or object type, without comments
    and punctuation.
    """
    if node.type in ("class_declaration", "abstract_class_declaration", "class"):
        body = node.child_by_field_name("body")
    elif node.type == "interface_declaration":
        body = node.child_by_field_name("body")
    elif node.type == "type_alias_declaration":
        body = node.child_by_field_name("value")
        if body is None or body.type != "object_type":
            return []
    else:
        body = node
    if body is None:
        return []
    return [c for c in body.named_children if c.type != "comment"]
