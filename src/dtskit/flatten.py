import re
from typing import Iterable, List, Optional, Sequence

import tree_sitter as ts

from dtskit.graph import ModuleMap, build_module_graph
from dtskit.lang.typescript import (
    DECLARATION_TYPES,
    MODULE_TYPES,
    VARIABLE_STATEMENT_TYPES,
    declaration_name,
    is_private_or_internal,
    parse_source,
    statement_block,
    unwrap_declaration,
)
from dtskit.logger import logger
from dtskit.models import ExportRecord
from dtskit.resolver import ExportResolver
from dtskit.settings import DtsSettings
from dtskit.source import SourceText, declaration_range
from dtskit.splice import Deletion, splice

_IMPORT_TYPE_RE = re.compile(
    rb"import\(\s*([\"'])(?P<module>[^\"']+)\1\s*\)\s*\.\s*(?P<name>[A-Za-z_$][\w$]*)"
)

# Body node types, per declaration type, whose children are its members
_MEMBER_BODIES = {
    "class_declaration": ("class_body",),
    "abstract_class_declaration": ("class_body",),
    "interface_declaration": ("interface_body", "object_type"),
    "type_alias_declaration": ("object_type",),
    "module": ("statement_block",),
    "internal_module": ("statement_block",),
}


def _members(node: ts.Node) -> List[ts.Node]:
    """
    Member statements of a class, interface, namespace or object type alias.
    Type annotations and parameter lists are not member containers.
    """
    decl = unwrap_declaration(node)
    if decl is None:
        return []
    if decl.type == "type_alias_declaration":
        body = decl.child_by_field_name("value")
    elif decl.type in MODULE_TYPES:
        body = statement_block(decl)
    else:
        body = decl.child_by_field_name("body")
    if body is None or body.type not in _MEMBER_BODIES.get(decl.type, ()):
        return []
    return [c for c in body.named_children if c.type != "comment"]


def _is_deletable(node: ts.Node, settings: DtsSettings) -> bool:
    decl = unwrap_declaration(node)
    if decl is None:
        return False
    if decl.type not in DECLARATION_TYPES and decl.type not in VARIABLE_STATEMENT_TYPES:
        return False
    name = declaration_name(decl)
    if name and settings.is_private_name(name):
        return True
    return is_private_or_internal(decl, node, check_tags=settings.strip_internal)


def collect_deletions(
    record: ExportRecord, resolver: ExportResolver, settings: DtsSettings
) -> List[Deletion]:
    """
    Ranges to remove from an exported declaration: private and internal
    members, and `import("module").` qualifiers of types that the module
    exports anyway.
    """
    source: SourceText = record.source
    deletions: List[Deletion] = []

    stack = list(reversed(_members(record.node)))
    while stack:
        node = stack.pop()
        if _is_deletable(node, settings):
            deletions.append(Deletion(*declaration_range(source, node)))
            continue
        stack.extend(reversed(_members(node)))

    deletions.extend(_import_qualifiers(record, resolver, deletions))
    return deletions


def _tree_root(node: ts.Node) -> ts.Node:
    while node.parent is not None:
        node = node.parent
    return node


def _import_qualifiers(
    record: ExportRecord, resolver: ExportResolver, members: Sequence[Deletion]
) -> List[Deletion]:
    source: SourceText = record.source
    data = source.data[record.start_byte : record.end_byte]
    root = _tree_root(record.node)
    out: List[Deletion] = []
    for m in _IMPORT_TYPE_RE.finditer(data):
        pos = record.start_byte + m.start()
        if any(d.pos <= pos < d.end for d in members):
            continue
        # Text inside comments and string literals only looks like an import type
        token = root.descendant_for_byte_range(pos, pos + len(b"import"))
        if token is None or token.type != "import":
            continue
        module_name = m.group("module").decode("utf-8")
        module = resolver.module_map.lookup(module_name)
        if module is None:
            logger.debug("Import type from unknown module kept", module=module_name)
            continue
        if not resolver.exports_name(module, m.group("name").decode("utf-8")):
            continue
        out.append(Deletion(pos, record.start_byte + m.start("name")))
    return out


def write_export(
    record: ExportRecord, resolver: ExportResolver, settings: DtsSettings
) -> Optional[str]:
    """
    Cleaned text of one exported declaration, or None when the declaration
    itself is private or internal.
    """
    decl = unwrap_declaration(record.node)
    if decl is not None and is_private_or_internal(
        decl, record.node, check_tags=settings.strip_internal
    ):
        logger.debug("Dropping private export", export=record.name)
        return None

    deletions = collect_deletions(record, resolver, settings)
    data = record.source.data[record.start_byte : record.end_byte]
    return splice(data, deletions, origin=record.start_byte).decode("utf-8")


def flatten_sources(
    sources: Iterable[SourceText],
    module_name: str,
    root_modules: Sequence[str],
    settings: Optional[DtsSettings] = None,
) -> str:
    """
    Merge the exports of *root_modules*, found across *sources*, into a single
    `declare module` block named *module_name*.
    """
    settings = settings or DtsSettings()

    # Phase 1: independent per-file graphs. The trees must outlive the
    # export records that reference their nodes.
    trees: List[ts.Tree] = []
    graphs = []
    for source in sources:
        tree = parse_source(source)
        trees.append(tree)
        graphs.append(build_module_graph(source, tree))

    # Phase 2: frozen module map, then resolution.
    module_map = ModuleMap.from_graphs(graphs, settings.module_suffixes)
    resolver = ExportResolver(module_map)
    resolver.resolve_all(graphs)
    exports = resolver.resolve_roots(root_modules)

    out = [f'declare module "{module_name}" {{\n']
    for record in exports:
        text = write_export(record, resolver, settings)
        if text:
            out.append(text)
    out.append("\n}\n")
    return "".join(out)


def flatten(
    paths: Sequence[str],
    module_name: str,
    root_modules: Sequence[str],
    settings: Optional[DtsSettings] = None,
) -> str:
    return flatten_sources(
        [SourceText.from_file(p) for p in paths], module_name, root_modules, settings
    )
