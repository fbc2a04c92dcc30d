from typing import List, Optional, Sequence

from pydantic import BaseModel

from dtskit.jsdoc import format_namepath
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


class LinkResolution(BaseModel):
    """Outcome of resolving one link; unresolved links carry no node."""

    namepath: Optional[str] = None
    node: Optional[DeclarationNode] = None

    @property
    def resolved(self) -> bool:
        return self.node is not None


def resolve(
    root: DeclarationNode, namepath: List[NamePathSegment]
) -> Optional[DeclarationNode]:
    """
    Walk *namepath* down from *root* and return the declaration it names,
    or None.

    Each segment must match a direct member of the current node. Module
    scoped segments only match `module` members, and an instance (`#`)
    segment never passes through a static node. Paths that use the `~`
    delimiter are never resolved. The first matching member is taken; there
    is no backtracking.
    """
    if any(seg.delimiter == UNRESOLVED_DELIMITER for seg in namepath):
        return None

    node = root
    for seg in namepath:
        if not node.members:
            return None
        if seg.delimiter == INSTANCE_DELIMITER and node.is_static:
            return None
        found = None
        for m in node.members:
            if seg.prefix == MODULE_PREFIX and m.kind != DeclarationKind.MODULE:
                continue
            if m.name != seg.name:
                continue
            found = m
            break
        if found is None:
            return None
        node = found
    return node


def qualify_namepath(
    namepath: List[NamePathSegment], module: str, namespace: Sequence[str] = ()
) -> List[NamePathSegment]:
    """
    Prefix *namepath* with the module and namespaces it was written in,
    unless it already starts with a module scoped segment or there is no
    enclosing scope.
    """
    if not namepath or namepath[0].prefix == MODULE_PREFIX:
        return list(namepath)
    head: List[NamePathSegment] = []
    if module:
        head.append(NamePathSegment(prefix=MODULE_PREFIX, name=module))
    for name in namespace:
        delimiter = STATIC_DELIMITER if head else None
        head.append(NamePathSegment(name=name, delimiter=delimiter))
    if not head:
        return list(namepath)
    first = namepath[0].model_copy(update={"delimiter": STATIC_DELIMITER})
    return [*head, first, *namepath[1:]]


def resolve_link(root: DeclarationNode, link: LinkReference) -> LinkResolution:
    if not isinstance(link.namepath, list):
        return LinkResolution(namepath=link.namepath)
    return LinkResolution(
        namepath=format_namepath(link.namepath),
        node=resolve(root, link.namepath),
    )
