"""
Minimal JSDoc support: inline link extraction, name path parsing and block
splitting. Only what the extract command needs is implemented; type
expressions are kept as raw text.
"""

import re
from typing import List, Optional, Tuple

from dtskit.models import (
    DocBlock,
    LinkReference,
    MODULE_PREFIX,
    NamePathSegment,
)

_DELIMITERS = ".#~"
_NAME_RE = re.compile(r"[^.#~]*")
_INLINE_LINK_RE = re.compile(
    r"(?:\[(?P<label>[^\]\n]*)\])?"
    r"\{@(?P<tag>link|linkcode|linkplain)\s+(?P<target>[^\s|}]+)"
    r"(?:\s*\|\s*(?P<pipe>[^}]*)|\s+(?P<text>[^}]*))?\}"
)
_TAG_RE = re.compile(r"^@(\w+)\s*(.*)$", re.DOTALL)
_NAMED_TAGS = frozenset(
    {"param", "arg", "argument", "property", "prop", "typedef", "callback", "template"}
)


def parse_namepath(text: str) -> Optional[List[NamePathSegment]]:
    """
    Split a name path such as ``module:foo/bar.Widget#render`` into segments.
    Returns None for text that is not a well formed name path.
    """
    segments: List[NamePathSegment] = []
    delimiter: Optional[str] = None
    i = 0
    size = len(text)
    while i < size:
        prefix = None
        if text.startswith(MODULE_PREFIX, i):
            prefix = MODULE_PREFIX
            i += len(MODULE_PREFIX)
        if i < size and text[i] == '"':
            close = text.find('"', i + 1)
            if close < 0:
                return None
            name = text[i + 1 : close]
            i = close + 1
        else:
            m = _NAME_RE.match(text, i)
            name = m.group(0) if m else ""
            i = m.end() if m else i
        if not name:
            return None
        segments.append(NamePathSegment(prefix=prefix, name=name, delimiter=delimiter))
        if i < size:
            if text[i] not in _DELIMITERS or i + 1 == size:
                return None
            delimiter = text[i]
            i += 1
    return segments or None


def format_namepath(segments: List[NamePathSegment]) -> str:
    """Canonical string form of a parsed name path."""
    parts: List[str] = []
    for idx, seg in enumerate(segments):
        if idx > 0:
            parts.append(seg.delimiter or ".")
        name = seg.name
        if any(d in name for d in _DELIMITERS):
            name = f'"{name}"'
        parts.append(f"{seg.prefix or ''}{name}")
    return "".join(parts)


def replace_inline(comment: str) -> Tuple[str, List[LinkReference]]:
    """
    Replace inline ``{@link ...}`` tags with their display text and return the
    links found. Link positions are byte offsets relative to *comment*.
    """
    links: List[LinkReference] = []
    out: List[str] = []
    last = 0
    for m in _INLINE_LINK_RE.finditer(comment):
        target = m.group("target")
        label = m.group("label") or m.group("pipe") or m.group("text")
        label = label.strip() if label else None
        pos = len(comment[: m.start()].encode("utf-8"))
        end = pos + len(m.group(0).encode("utf-8"))
        links.append(
            LinkReference(
                pos=pos,
                end=end,
                tag=m.group("tag"),
                target=target,
                text=label,
                namepath=None if "://" in target else parse_namepath(target),
            )
        )
        out.append(comment[last : m.start()])
        out.append(label or target)
        last = m.end()
    out.append(comment[last:])
    return "".join(out), links


def _strip_delimiters(comment: str) -> Optional[List[str]]:
    text = comment.strip()
    if not (text.startswith("/**") and text.endswith("*/")) or text == "/**/":
        return None
    text = text[3:-2]
    lines = []
    for line in text.splitlines():
        line = line.strip()
        if line.startswith("*"):
            line = line[1:]
            if line.startswith(" "):
                line = line[1:]
        lines.append(line.rstrip())
    return lines


def parse_block(comment: str) -> Optional[List[DocBlock]]:
    """
    Split a ``/** ... */`` comment into a description block followed by one
    block per tag. Returns None when *comment* is not a documentation comment.
    """
    lines = _strip_delimiters(comment)
    if lines is None:
        return None

    chunks: List[List[str]] = [[]]
    for line in lines:
        if line.startswith("@"):
            chunks.append([line])
        else:
            chunks[-1].append(line)

    blocks: List[DocBlock] = []
    description = "\n".join(chunks[0]).strip()
    if description:
        blocks.append(DocBlock(block="description", text=description))

    for chunk in chunks[1:]:
        m = _TAG_RE.match("\n".join(chunk).strip())
        if m is None:
            continue
        tag, rest = m.group(1), m.group(2).strip()
        name = None
        if tag in _NAMED_TAGS:
            if rest.startswith("{"):
                depth = 0
                for idx, ch in enumerate(rest):
                    depth += ch == "{"
                    depth -= ch == "}"
                    if depth == 0:
                        rest = rest[idx + 1 :].lstrip()
                        break
            parts = rest.split(None, 1)
            if parts:
                name = parts[0].strip("[]").split("=", 1)[0]
                rest = parts[1] if len(parts) > 1 else ""
            rest = rest.lstrip("- ").strip()
        blocks.append(DocBlock(block=tag, name=name, text=rest))
    return blocks
