import pytest

from dtskit.errors import OverlappingDeletionError
from dtskit.splice import Deletion, splice


def test_splice_without_deletions_returns_input_unchanged():
    text = "export declare class Foo {\n    bar(): void;\n}\n"
    assert splice(text, []) == text
    assert splice(text.encode("utf-8"), []) == text.encode("utf-8")


def test_splice_removes_ranges_relative_to_origin():
    text = "class A {\n    _x: number;\n    y: number;\n}\n"
    origin = 100
    start = text.index("    _x")
    end = text.index("    y")
    out = splice(text, [Deletion(origin + start, origin + end)], origin=origin)
    assert out == "class A {\n    y: number;\n}\n"


def test_splice_applies_unsorted_deletions_back_to_front():
    text = "0123456789"
    out = splice(text, [Deletion(1, 3), Deletion(7, 9), Deletion(4, 5)])
    assert out == "03569"


def test_adjacent_deletions_are_allowed():
    assert splice("abcdef", [Deletion(0, 2), Deletion(2, 4)]) == "ef"


def test_overlapping_deletions_are_fatal():
    with pytest.raises(OverlappingDeletionError) as exc:
        splice("abcdefgh", [Deletion(1, 5), Deletion(4, 6)])
    assert exc.value.first == (1, 5)
    assert exc.value.second == (4, 6)
    assert "overlapping" in str(exc.value)
