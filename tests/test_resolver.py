import pytest

from dtskit.errors import UnknownRootModuleError
from dtskit.graph import ModuleMap
from dtskit.models import ExportRecord, ModuleGraphNode, ResolutionState
from dtskit.resolver import ExportResolver


def _concrete(name):
    return ExportRecord(name=name, definition=f"export function {name}(): void;\n")


def _reexport(name, module):
    return ExportRecord(name=name, from_module=module)


def _resolver(*modules):
    return ExportResolver(ModuleMap.from_graphs(modules))


def _names(records):
    return [r.name for r in records]


def test_wildcard_reexport():
    x = ModuleGraphNode(name="X", exports=[_concrete("foo")])
    y = ModuleGraphNode(name="Y", exports=[_reexport("*", "X")])
    resolver = _resolver(x, y)
    assert _names(resolver.resolve_roots(["Y"])) == ["foo"]


def test_named_reexport_copies_only_the_named_record():
    x = ModuleGraphNode(name="X", exports=[_concrete("a"), _concrete("b")])
    y = ModuleGraphNode(name="Y", exports=[_reexport("a", "X")])
    resolver = _resolver(x, y)
    result = resolver.resolve_roots(["Y"])
    assert _names(result) == ["a"]
    assert result[0] is x.exports[0]


def test_transitive_closure_is_deduplicated():
    base = ModuleGraphNode(name="base", exports=[_concrete("one"), _concrete("two")])
    mid = ModuleGraphNode(
        name="mid", exports=[_reexport("*", "base"), _concrete("three")]
    )
    top = ModuleGraphNode(
        name="top",
        exports=[_reexport("*", "mid"), _reexport("one", "base"), _reexport("*", "base")],
    )
    resolver = _resolver(base, mid, top)
    assert _names(resolver.resolve_roots(["top"])) == ["one", "two", "three"]


def test_cyclic_reexports_terminate_deterministically():
    def build():
        a = ModuleGraphNode(name="A", exports=[_reexport("*", "B"), _concrete("fromA")])
        b = ModuleGraphNode(name="B", exports=[_reexport("*", "A"), _concrete("fromB")])
        return _resolver(a, b), a, b

    resolver, a, b = build()
    first = _names(resolver.resolve_roots(["A"]))
    # B saw A while A was still in progress, so it only has its own export
    assert first == ["fromB", "fromA"]
    assert _names(resolver.resolve(b)) == ["fromB"]
    assert resolver.state(a) is ResolutionState.RESOLVED

    again, _, _ = build()
    assert _names(again.resolve_roots(["A"])) == first


def test_self_reexport_terminates():
    a = ModuleGraphNode(name="A", exports=[_reexport("*", "A"), _concrete("x")])
    assert _names(_resolver(a).resolve_roots(["A"])) == ["x"]


def test_missing_named_export_is_skipped(caplog):
    x = ModuleGraphNode(name="X", exports=[_concrete("a")])
    y = ModuleGraphNode(name="Y", exports=[_reexport("nope", "X"), _concrete("c")])
    result = _resolver(x, y).resolve_roots(["Y"])
    assert _names(result) == ["c"]
    assert "Couldn't find export" in caplog.text


def test_unknown_reexport_module_is_skipped(caplog):
    y = ModuleGraphNode(name="Y", exports=[_reexport("*", "ghost"), _concrete("c")])
    assert _names(_resolver(y).resolve_roots(["Y"])) == ["c"]
    assert "Unknown module" in caplog.text


def test_submodule_exports_are_not_promoted():
    inner = ModuleGraphNode(name="outer/inner", exports=[_concrete("deep")])
    outer = ModuleGraphNode(name="outer", exports=[_concrete("shallow")], modules=[inner])
    resolver = _resolver(outer)
    assert _names(resolver.resolve_roots(["outer"])) == ["shallow"]
    assert resolver.state(inner) is ResolutionState.RESOLVED
    assert _names(resolver.resolve_roots(["outer/inner"])) == ["deep"]


def test_roots_are_unioned_in_order():
    x = ModuleGraphNode(name="X", exports=[_concrete("a")])
    y = ModuleGraphNode(name="Y", exports=[_concrete("b"), _reexport("a", "X")])
    resolver = _resolver(x, y)
    assert _names(resolver.resolve_roots(["Y", "X"])) == ["b", "a"]


def test_module_lookup_fallback_suffixes():
    index = ModuleGraphNode(name="pkg/index", exports=[_concrete("i")])
    file_module = ModuleGraphNode(name="types.d.ts", exports=[_concrete("t")])
    resolver = _resolver(index, file_module)
    assert _names(resolver.resolve_roots(["pkg"])) == ["i"]
    assert _names(resolver.resolve_roots(["types"])) == ["t"]


def test_unknown_root_module_raises():
    resolver = _resolver(ModuleGraphNode(name="X"))
    with pytest.raises(UnknownRootModuleError):
        resolver.resolve_roots(["missing"])


def test_module_map_is_read_only():
    module_map = ModuleMap.from_graphs([ModuleGraphNode(name="X")])
    assert "X" in module_map
    assert len(module_map) == 1
    with pytest.raises(TypeError):
        module_map["Y"] = ModuleGraphNode(name="Y")  # type: ignore[index]
