from collections.abc import Mapping
from types import MappingProxyType
from typing import Iterable, Iterator, List, Optional, Sequence

import tree_sitter as ts

from dtskit.lang.typescript import (
    MODULE_TYPES,
    declaration_name,
    export_clause,
    export_name,
    export_specifiers,
    is_namespace_reexport,
    reexport_source,
    statement_block,
    unwrap_declaration,
)
from dtskit.logger import logger
from dtskit.models import ExportRecord, ModuleGraphNode
from dtskit.source import SourceText, declaration_range

DEFAULT_MODULE_SUFFIXES = ("/index", ".d.ts")


def build_module_graph(source: SourceText, tree: ts.Tree) -> ModuleGraphNode:
    """
    Build the module graph of one parsed file. The file itself is the root
    module, named after its path.
    """
    return _process_statements(
        source, source.path, tree.root_node.named_children, is_source_file=True
    )


def _process_statements(
    source: SourceText,
    module_name: str,
    statements: Sequence[ts.Node],
    is_source_file: bool,
) -> ModuleGraphNode:
    exports: List[ExportRecord] = []
    modules: List[ModuleGraphNode] = []

    for node in statements:
        if node.type == "comment":
            continue

        name = export_name(node, source)
        if name:
            start, end = declaration_range(source, node)
            exports.append(
                ExportRecord(
                    name=name,
                    definition=source.text(start, end),
                    start_byte=start,
                    end_byte=end,
                    node=node,
                    source=source,
                )
            )
            continue

        from_module = reexport_source(node)
        if from_module:
            exports.extend(_reexports(source, module_name, node, from_module))
            continue

        decl = unwrap_declaration(node)
        if decl is not None and decl.type in MODULE_TYPES:
            child_name = declaration_name(decl) or ""
            if not is_source_file:
                child_name = f"{module_name}/{child_name}"
            body = statement_block(decl)
            modules.append(
                _process_statements(
                    source,
                    child_name,
                    body.named_children if body is not None else [],
                    is_source_file=False,
                )
            )

    return ModuleGraphNode(name=module_name, exports=exports, modules=modules)


def _reexports(
    source: SourceText, module_name: str, node: ts.Node, from_module: str
) -> List[ExportRecord]:
    clause = export_clause(node)
    if clause is None:
        if is_namespace_reexport(node):
            logger.warning(
                "Namespace re-exports not supported, ignoring",
                position=source.format_position(node.start_byte),
                module=module_name,
            )
            return []
        return [ExportRecord(name="*", from_module=from_module)]

    out: List[ExportRecord] = []
    for name, alias, spec in export_specifiers(clause):
        if alias and alias != name:
            logger.warning(
                "Renaming exports not supported, ignoring",
                position=source.format_position(spec.start_byte),
                module=module_name,
                export=f"{name} as {alias}",
            )
            continue
        out.append(ExportRecord(name=name, from_module=from_module))
    return out


class ModuleMap(Mapping):
    """
    Read-only flat index of every module in a set of module graphs, keyed by
    module name.
    """

    def __init__(
        self,
        modules: dict[str, ModuleGraphNode],
        suffixes: Sequence[str] = DEFAULT_MODULE_SUFFIXES,
    ) -> None:
        self._modules = MappingProxyType(dict(modules))
        self.suffixes = tuple(suffixes)

    @classmethod
    def from_graphs(
        cls,
        graphs: Iterable[ModuleGraphNode],
        suffixes: Sequence[str] = DEFAULT_MODULE_SUFFIXES,
    ) -> "ModuleMap":
        modules: dict[str, ModuleGraphNode] = {}
        for graph in graphs:
            for module in graph.iter_modules():
                if module.name in modules:
                    logger.debug("Module declared more than once", module=module.name)
                modules[module.name] = module
        return cls(modules, suffixes)

    def __getitem__(self, name: str) -> ModuleGraphNode:
        return self._modules[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._modules)

    def __len__(self) -> int:
        return len(self._modules)

    def lookup(self, name: str) -> Optional[ModuleGraphNode]:
        """Find a module by exact name, then by each fallback suffix."""
        module = self._modules.get(name)
        if module is not None:
            return module
        for suffix in self.suffixes:
            module = self._modules.get(name + suffix)
            if module is not None:
                return module
        return None

    def get_module(self, name: str) -> Optional[ModuleGraphNode]:
        """Like `lookup`, but warns when the module is unknown."""
        module = self.lookup(name)
        if module is None:
            logger.warning("Unknown module", module=name)
        return module
