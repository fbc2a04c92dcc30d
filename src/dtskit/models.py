from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, Field

# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class DeclarationKind(str, Enum):
    SOURCE_FILE = "source-file"
    MODULE = "module"
    NAMESPACE = "namespace"
    CLASS = "class"
    INTERFACE = "interface"
    FUNCTION = "function"
    CONSTRUCTOR = "constructor"
    PROPERTY = "property"
    METHOD = "method"
    GET = "get"
    SET = "set"
    TYPE_ALIAS = "type-alias"
    VARIABLE = "variable"
    CALL_SIGNATURE = "call-signature"


class ResolutionState(str, Enum):
    UNRESOLVED = "unresolved"
    IN_PROGRESS = "in_progress"
    RESOLVED = "resolved"


# Name path markers
MODULE_PREFIX = "module:"
STATIC_DELIMITER = "."
INSTANCE_DELIMITER = "#"
UNRESOLVED_DELIMITER = "~"


# ---------------------------------------------------------------------------
# Documentation
# ---------------------------------------------------------------------------


class NamePathSegment(BaseModel):
    prefix: Optional[str] = None  # "module:" for module scoped segments
    name: str
    delimiter: Optional[str] = None  # delimiter preceding this segment


class LinkReference(BaseModel):
    pos: int  # absolute byte offset of the inline tag
    end: int
    tag: str = "link"  # link, linkcode or linkplain
    target: str  # raw link target as written
    text: Optional[str] = None
    # Segments while the run is in progress, canonical string once checked.
    namepath: Optional[List[NamePathSegment] | str] = None


class DocBlock(BaseModel):
    block: str  # "description" or the tag name (param, returns, ...)
    name: Optional[str] = None
    text: str = ""


# ---------------------------------------------------------------------------
# Declaration tree
# ---------------------------------------------------------------------------


class DeclarationNode(BaseModel):
    kind: DeclarationKind
    name: Optional[str] = None
    namepath: Optional[str] = None
    static: Optional[bool] = None
    definition: Optional[str] = None
    jsdoc: Optional[List[DocBlock]] = None
    links: Optional[List[LinkReference]] = None
    members: Optional[List["DeclarationNode"]] = None

    start_byte: int = Field(default=0, exclude=True)
    end_byte: int = Field(default=0, exclude=True)

    @property
    def is_static(self) -> bool:
        return bool(self.static)

    def iter_named(self):
        """
        Depth-first iteration over every named declaration below this node.
        """
        for m in self.members or []:
            if m.name:
                yield m
            yield from m.iter_named()


# ---------------------------------------------------------------------------
# Module / export graph
# ---------------------------------------------------------------------------


class ExportRecord(BaseModel):
    """
    A concrete export (``definition`` is set) or a re-export edge
    (``from_module`` is set, ``name`` may be ``*``).
    """

    name: str
    from_module: Optional[str] = None

    definition: Optional[str] = None
    start_byte: int = 0  # original position of `definition`
    end_byte: int = 0
    node: Any = Field(default=None, exclude=True, repr=False)  # tree_sitter.Node
    source: Any = Field(default=None, exclude=True, repr=False)  # SourceText

    @property
    def is_concrete(self) -> bool:
        return self.definition is not None

    @property
    def is_wildcard(self) -> bool:
        return not self.is_concrete and self.name == "*"


class ModuleGraphNode(BaseModel):
    name: str
    exports: List[ExportRecord] = Field(default_factory=list)
    modules: List["ModuleGraphNode"] = Field(default_factory=list)

    def iter_modules(self):
        """Pre-order iteration over this module and every nested module."""
        yield self
        for m in self.modules:
            yield from m.iter_modules()


class ListedDeclaration(BaseModel):
    name: str
    qualified_name: str
    kind: str  # syntax node type
    position: str  # file:line:column
    is_module: bool = False
