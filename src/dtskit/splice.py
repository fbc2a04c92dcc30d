from typing import AnyStr, Iterable, NamedTuple

from dtskit.errors import OverlappingDeletionError


class Deletion(NamedTuple):
    pos: int
    end: int


def splice(text: AnyStr, deletions: Iterable[Deletion], origin: int = 0) -> AnyStr:
    """
    Remove *deletions* from *text* and return the result.

    Deletion offsets are absolute source offsets; *origin* is the source
    offset of ``text[0]``. Ranges are applied back to front so earlier
    offsets stay valid. Overlapping ranges raise OverlappingDeletionError.
    """
    ordered = sorted(deletions, key=lambda d: d.pos, reverse=True)
    prev = None
    for d in ordered:
        if prev is not None and d.end > prev.pos:
            raise OverlappingDeletionError((d.pos, d.end), (prev.pos, prev.end))
        prev = d
        text = text[: d.pos - origin] + text[d.end - origin :]
    return text
