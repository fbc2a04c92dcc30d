import bisect
import os
import re
from typing import Any, List, Optional


class SourceText:
    """
    The bytes of one input file plus a line index for position reporting.

    All offsets handled by dtskit are byte offsets into ``data``, which is what
    tree-sitter reports for its nodes.
    """

    def __init__(self, path: str, data: bytes) -> None:
        self.path = path
        self.data = data
        self._line_starts: List[int] = [0]
        for m in re.finditer(rb"\n", data):
            self._line_starts.append(m.end())

    @classmethod
    def from_file(cls, path: str) -> "SourceText":
        with open(path, "rb") as f:
            return cls(path, f.read())

    @classmethod
    def from_string(cls, text: str, path: str = "<string>") -> "SourceText":
        return cls(path, text.encode("utf-8"))

    def __len__(self) -> int:
        return len(self.data)

    @property
    def name(self) -> str:
        return os.path.basename(self.path)

    def text(self, start: int, end: int) -> str:
        return self.data[start:end].decode("utf-8")

    def find_bol_ws(self, pos: int) -> int:
        """
        Move *pos* back to the start of its line when only whitespace
        precedes it on that line, otherwise return *pos* unchanged.
        """
        p = pos
        while p > 0 and self.data[p - 1] in b" \t":
            p -= 1
        if p == 0 or self.data[p - 1] == ord("\n"):
            return p
        return pos

    def find_next_line_ws(self, pos: int) -> int:
        """
        Move *pos* past trailing whitespace and the line break that follows
        it, when only whitespace remains on the line.
        """
        p = pos
        size = len(self.data)
        while p < size and self.data[p] in b" \t\r":
            p += 1
        if p == size:
            return p
        if self.data[p] == ord("\n"):
            return p + 1
        return pos

    def position(self, offset: int) -> tuple[int, int]:
        """Return 1-based ``(line, column)`` for a byte offset."""
        idx = bisect.bisect_right(self._line_starts, offset) - 1
        line_start = self._line_starts[idx]
        column = len(self.data[line_start:offset].decode("utf-8", errors="replace"))
        return idx + 1, column + 1

    def format_position(self, offset: int) -> str:
        line, column = self.position(offset)
        return f"{self.path}:{line}:{column}"


# Syntax tree helpers
def get_node_text(node) -> str:
    """
    Get text of the tree sitter node
    """
    if not node or not node.text:
        return ""

    return node.text.decode("utf-8")


def leading_comment(node: Any) -> Optional[Any]:
    """
    Return the comment node that immediately precedes *node*, if any.

    A comment that starts on the same line a previous token ends on is a
    trailing comment of that token and is not returned.
    """
    sib = node.prev_sibling
    if sib is None or sib.type != "comment":
        return None
    before = sib.prev_sibling
    if (
        before is not None
        and before.type != "comment"
        and before.end_point[0] == sib.start_point[0]
    ):
        return None
    return sib


def declaration_range(source: SourceText, node: Any) -> tuple[int, int]:
    """
    Full text range of a declaration: its immediately preceding comment block
    plus the node itself, extended to whole lines.
    """
    start = node.start_byte
    comment = leading_comment(node)
    if comment is not None:
        start = comment.start_byte
    end = skip_terminator(source, node.end_byte)
    return source.find_bol_ws(start), source.find_next_line_ws(end)


def skip_terminator(source: SourceText, end: int) -> int:
    """Extend *end* over a `;` or `,` member separator on the same line."""
    p = end
    while p < len(source.data) and source.data[p] in b" \t":
        p += 1
    if p < len(source.data) and source.data[p] in b";,":
        return p + 1
    return end


# Text helpers
def strip_quotes(text: str) -> str:
    if len(text) >= 2 and text[0] == text[-1] and text[0] in "\"'":
        return text[1:-1]
    return text


def strip_blank_lines(text: str) -> str:
    return re.sub(r"^\s*\n", "", text, flags=re.MULTILINE)


def unindent(text: str) -> str:
    """
    Dedents a string by calculating the minimum indentation
    from all non-empty lines and removing it.
    """
    lines = text.splitlines()
    if not lines:
        return ""

    min_indent: Optional[int] = None

    for line in lines:
        stripped = line.lstrip()
        if stripped:
            indent = len(line) - len(stripped)
            if min_indent is None or indent < min_indent:
                min_indent = indent

    if min_indent is None:
        return "\n".join(lines)

    return "\n".join(line[min_indent:] for line in lines)


def strip_comments(text: str) -> str:
    """
    Remove ``//`` and ``/* */`` comments, leaving string literals alone.
    """
    out: List[str] = []
    i = 0
    size = len(text)
    while i < size:
        ch = text[i]
        if ch in "\"'`":
            j = i + 1
            while j < size and text[j] != ch:
                if text[j] == "\\":
                    j += 1
                j += 1
            out.append(text[i : j + 1])
            i = j + 1
        elif text.startswith("//", i):
            j = text.find("\n", i)
            i = size if j < 0 else j
        elif text.startswith("/*", i):
            j = text.find("*/", i + 2)
            i = size if j < 0 else j + 2
        else:
            out.append(ch)
            i += 1
    return "".join(out)
