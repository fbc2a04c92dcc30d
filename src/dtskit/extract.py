from typing import Any, Callable, List, NamedTuple, Optional, Tuple

import tree_sitter as ts

from dtskit.jsdoc import parse_block, replace_inline
from dtskit.lang.typescript import (
    accessor_kind,
    body_members,
    declaration_name,
    is_static,
    parameter_names,
    parse_source,
    statement_block,
    unwrap_declaration,
    variable_declarators,
)
from dtskit.logger import logger
from dtskit.models import (
    DeclarationKind,
    DeclarationNode,
    INSTANCE_DELIMITER,
    LinkReference,
    MODULE_PREFIX,
    NamePathSegment,
    STATIC_DELIMITER,
    UNRESOLVED_DELIMITER,
)
from dtskit.namepath import qualify_namepath, resolve, resolve_link
from dtskit.settings import DtsSettings
from dtskit.source import (
    SourceText,
    get_node_text,
    leading_comment,
    skip_terminator,
    strip_blank_lines,
    strip_comments,
    unindent,
)

CALL_SIGNATURE_NAME = "(call signature)"


class Scope(NamedTuple):
    """Name path, module and namespaces of the container being traversed."""

    namepath: str = ""
    module: str = ""
    namespace: Tuple[str, ...] = ()


def join_namepath(base: str, name: str, sep: str = STATIC_DELIMITER) -> str:
    if not base:
        return name
    return f"{base}{sep}{name}"


Handler = Callable[[ts.Node, Scope, ts.Node], Optional[DeclarationNode]]


class DeclarationTreeBuilder:
    """
    Builds the declaration tree of one parsed file in a single top-down pass
    and validates the documentation links gathered along the way.
    """

    def __init__(self, source: SourceText, settings: Optional[DtsSettings] = None) -> None:
        self.source = source
        self.settings = settings or DtsSettings()
        self.links: List[LinkReference] = []
        self._link_scopes: dict[int, List[List[NamePathSegment]]] = {}
        self._handlers: dict[str, Handler] = {
            "module": self._handle_module,
            "internal_module": self._handle_module,
            "function_signature": self._handle_function,
            "function_declaration": self._handle_function,
            "class_declaration": self._handle_class_like,
            "abstract_class_declaration": self._handle_class_like,
            "interface_declaration": self._handle_class_like,
            "method_signature": self._handle_method,
            "method_definition": self._handle_method,
            "abstract_method_signature": self._handle_method,
            "public_field_definition": self._handle_property,
            "property_signature": self._handle_property,
            "call_signature": self._handle_call_signature,
            "type_alias_declaration": self._handle_type_alias,
            "lexical_declaration": self._handle_variable,
            "variable_declaration": self._handle_variable,
        }

    def build(self, tree: ts.Tree) -> DeclarationNode:
        root = tree.root_node
        sf = DeclarationNode(
            kind=DeclarationKind.SOURCE_FILE,
            members=self._process_members(root.named_children, Scope()),
            start_byte=root.start_byte,
            end_byte=root.end_byte,
        )
        self.check_links(sf)
        return sf

    # --- traversal --------------------------------------------------
    def _process(self, node: ts.Node, scope: Scope) -> Optional[DeclarationNode]:
        decl = unwrap_declaration(node)
        handler = self._handlers.get(decl.type) if decl is not None else None
        if handler is None:
            self._debug_unknown_node(decl if decl is not None else node)
            return None
        return handler(decl, scope, node)

    def _process_members(
        self, nodes: List[ts.Node], scope: Scope
    ) -> List[DeclarationNode]:
        out: List[DeclarationNode] = []
        for node in nodes:
            if node.type == "comment":
                continue
            x = self._process(node, scope)
            if x is not None:
                out.append(x)
        return out

    def _debug_unknown_node(self, node: ts.Node) -> None:
        logger.debug(
            "Skipping unsupported node",
            position=self.source.format_position(node.start_byte),
            node_type=node.type,
            raw=get_node_text(node)[:200],
        )

    # --- handlers ---------------------------------------------------
    def _handle_module(
        self, node: ts.Node, scope: Scope, outer: ts.Node
    ) -> DeclarationNode:
        name = declaration_name(node) or ""
        if node.type == "module":
            kind = DeclarationKind.MODULE
            inner = Scope(
                namepath=f"{MODULE_PREFIX}{name}",
                module=join_namepath(scope.module, name, "/"),
            )
        else:
            kind = DeclarationKind.NAMESPACE
            inner = Scope(
                namepath=join_namepath(scope.namepath, name),
                module=scope.module,
                namespace=scope.namespace + (name,),
            )
        body = statement_block(node)
        return DeclarationNode(
            kind=kind,
            name=name,
            namepath=inner.namepath,
            members=self._process_members(
                body.named_children if body is not None else [], inner
            ),
            start_byte=outer.start_byte,
            end_byte=outer.end_byte,
        )

    def _handle_function(
        self, node: ts.Node, scope: Scope, outer: ts.Node
    ) -> DeclarationNode:
        return DeclarationNode(
            kind=DeclarationKind.FUNCTION, **self._common(node, outer, scope)
        )

    def _handle_class_like(
        self, node: ts.Node, scope: Scope, outer: ts.Node
    ) -> DeclarationNode:
        kind = (
            DeclarationKind.INTERFACE
            if node.type == "interface_declaration"
            else DeclarationKind.CLASS
        )
        x = DeclarationNode(kind=kind, **self._common(node, outer, scope))
        inner = scope._replace(namepath=x.namepath or scope.namepath)
        x.members = merge_accessors(self._process_members(body_members(node), inner))
        return x

    def _handle_method(
        self, node: ts.Node, scope: Scope, outer: ts.Node
    ) -> DeclarationNode:
        common = self._common(node, outer, scope, is_member=True)
        accessor = accessor_kind(node)
        if accessor == "get":
            kind = DeclarationKind.GET
        elif accessor == "set":
            kind = DeclarationKind.SET
        elif common.get("name") == "constructor":
            kind = DeclarationKind.CONSTRUCTOR
        else:
            kind = DeclarationKind.METHOD
        return DeclarationNode(kind=kind, **common)

    def _handle_property(
        self, node: ts.Node, scope: Scope, outer: ts.Node
    ) -> DeclarationNode:
        return DeclarationNode(
            kind=DeclarationKind.PROPERTY,
            **self._common(node, outer, scope, is_member=True),
        )

    def _handle_call_signature(
        self, node: ts.Node, scope: Scope, outer: ts.Node
    ) -> DeclarationNode:
        common = self._common(node, outer, scope, is_member=True)
        common["name"] = CALL_SIGNATURE_NAME
        return DeclarationNode(kind=DeclarationKind.CALL_SIGNATURE, **common)

    def _handle_type_alias(
        self, node: ts.Node, scope: Scope, outer: ts.Node
    ) -> DeclarationNode:
        x = DeclarationNode(
            kind=DeclarationKind.TYPE_ALIAS, **self._common(node, outer, scope)
        )
        members = body_members(node)
        if members:
            inner = scope._replace(namepath=x.namepath or scope.namepath)
            x.members = self._process_members(members, inner)
        return x

    def _handle_variable(
        self, node: ts.Node, scope: Scope, outer: ts.Node
    ) -> Optional[DeclarationNode]:
        decls = variable_declarators(node)
        if not decls:
            return None
        if len(decls) != 1:
            logger.warning(
                "Multi-variable statements not supported",
                position=self.source.format_position(outer.start_byte),
            )
        # The statement is flattened into its (first) declarator: the name
        # comes from the declarator, documentation and text from the statement.
        common = self._common(decls[0], outer, scope, require_docs=False)
        return DeclarationNode(kind=DeclarationKind.VARIABLE, **common)

    # --- shared -----------------------------------------------------
    def _common(
        self,
        node: ts.Node,
        outer: ts.Node,
        scope: Scope,
        *,
        is_member: bool = False,
        require_docs: bool = True,
    ) -> dict[str, Any]:
        common: dict[str, Any] = {
            "start_byte": outer.start_byte,
            "end_byte": outer.end_byte,
        }

        static = is_static(node)
        if static:
            common["static"] = True

        name = declaration_name(node)
        if name:
            common["name"] = name
            if is_member:
                sep = STATIC_DELIMITER if static else INSTANCE_DELIMITER
            else:
                sep = STATIC_DELIMITER
            common["namepath"] = join_namepath(scope.namepath, name, sep)

        src = self.source
        start = src.find_bol_ws(outer.start_byte)
        end = src.find_next_line_ws(skip_terminator(src, outer.end_byte))
        common["definition"] = unindent(
            strip_blank_lines(strip_comments(src.text(start, end)))
        ).rstrip()

        documented = False
        comment = leading_comment(outer)
        if comment is not None:
            comment_pos = src.find_bol_ws(comment.start_byte)
            comment_text = src.text(
                comment_pos, src.find_next_line_ws(comment.end_byte)
            )
            body, links = replace_inline(comment_text)
            for link in links:
                link.pos += comment_pos
                link.end += comment_pos
                if isinstance(link.namepath, list):
                    self._link_scopes[id(link)] = _scoped_namepaths(
                        link.namepath, scope
                    )
                    link.namepath = self._link_scopes[id(link)][0]
                self.links.append(link)

            jsdoc = parse_block(body)
            if jsdoc is not None:
                documented = True
                common["jsdoc"] = jsdoc
                if links:
                    common["links"] = links
                if self.settings.check_params:
                    self._check_params(node, jsdoc)

        if not documented and require_docs and self.settings.warn_undocumented:
            logger.warning(
                "No documentation",
                position=self._format_position(node),
                name=name or "<unnamed element>",
            )
        return common

    def _check_params(self, node: ts.Node, jsdoc) -> None:
        names = parameter_names(node)
        if names is None:
            return
        documented = [b.name for b in jsdoc if b.block == "param"]
        for pname in documented:
            if pname not in names:
                logger.warning(
                    "@param block for unknown parameter",
                    position=self._format_position(node),
                    parameter=pname,
                )
        for pname in names:
            if pname not in documented:
                logger.warning(
                    "Missing @param description",
                    position=self._format_position(node),
                    parameter=pname,
                )

    def _format_position(self, node: ts.Node) -> str:
        name_node = node.child_by_field_name("name")
        pos = name_node.start_byte if name_node is not None else node.start_byte
        return self.source.format_position(pos)

    # --- links ------------------------------------------------------
    def check_links(self, root: DeclarationNode) -> None:
        """
        Resolve every collected link against *root*, warn about the ones that
        do not resolve and rewrite all of them to canonical string form.
        """
        for link in self.links:
            if not isinstance(link.namepath, list):
                continue
            candidates = self._link_scopes.get(id(link), [link.namepath])
            link.namepath = next(
                (c for c in candidates if resolve(root, c) is not None), candidates[0]
            )
            resolution = resolve_link(root, link)
            unchecked = any(
                seg.delimiter == UNRESOLVED_DELIMITER for seg in link.namepath
            )
            if not resolution.resolved and not unchecked:
                logger.warning(
                    "Unresolved namepath",
                    position=self.source.format_position(link.pos),
                    namepath=resolution.namepath,
                )
            link.namepath = resolution.namepath


def _scoped_namepaths(
    namepath: List[NamePathSegment], scope: Scope
) -> List[List[NamePathSegment]]:
    """
    Qualifications of a link written in *scope*, innermost namespace first,
    ending with the enclosing module alone.
    """
    return [
        qualify_namepath(namepath, scope.module, scope.namespace[:depth])
        for depth in range(len(scope.namespace), -1, -1)
    ]


def merge_accessors(members: List[DeclarationNode]) -> List[DeclarationNode]:
    """
    Replace get/set accessors with one synthetic `property` per name and
    static-ness, holding the getter before the setter. The property takes
    the place of the first accessor and its bare name path; the accessors
    are qualified with `.get` / `.set`.
    """
    props: dict[tuple[Optional[str], bool], DeclarationNode] = {}
    accessors: dict[tuple[Optional[str], bool], List[DeclarationNode]] = {}
    out: List[DeclarationNode] = []
    for m in members:
        if m.kind not in (DeclarationKind.GET, DeclarationKind.SET):
            out.append(m)
            continue
        key = (m.name, m.is_static)
        prop = props.get(key)
        if prop is None:
            accessors[key] = []
            prop = DeclarationNode(
                kind=DeclarationKind.PROPERTY,
                name=m.name,
                static=m.static,
                start_byte=m.start_byte,
                end_byte=m.end_byte,
            )
            props[key] = prop
            out.append(prop)
        prop.namepath = m.namepath
        prop.start_byte = min(prop.start_byte, m.start_byte)
        prop.end_byte = max(prop.end_byte, m.end_byte)
        if m.namepath:
            m.namepath = f"{m.namepath}.{m.kind.value}"
        if m.kind == DeclarationKind.GET:
            accessors[key].insert(0, m)
        else:
            accessors[key].append(m)
    for key, prop in props.items():
        prop.members = accessors[key]
    return out


def extract_source(
    source: SourceText, settings: Optional[DtsSettings] = None
) -> DeclarationNode:
    tree = parse_source(source)
    return DeclarationTreeBuilder(source, settings).build(tree)


def extract(path: str, settings: Optional[DtsSettings] = None) -> DeclarationNode:
    return extract_source(SourceText.from_file(path), settings)


def to_json(root: DeclarationNode, indent: int = 4) -> str:
    return root.model_dump_json(indent=indent, exclude_none=True)
