import pytest

from dtskit.errors import MultiVariableExportError
from dtskit.graph import ModuleMap, build_module_graph
from dtskit.source import SourceText
from dtskit.lang.typescript import parse_source


def _graph(parse, code, path="test.d.ts"):
    source, tree = parse(code, path)
    return build_module_graph(source, tree)


def test_concrete_export_captures_comment_and_whole_lines(parse):
    code = (
        'declare module "m" {\n'
        "    // unrelated\n"
        "\n"
        "    /**\n"
        "     * Does foo.\n"
        "     */\n"
        "    export function foo(): void;\n"
        "    function notExported(): void;\n"
        "}\n"
    )
    graph = _graph(parse, code)
    assert graph.name == "test.d.ts"
    assert graph.exports == []
    (module,) = graph.modules
    assert module.name == "m"
    (record,) = module.exports
    assert record.is_concrete
    assert record.name == "foo"
    assert record.definition == (
        "    /**\n"
        "     * Does foo.\n"
        "     */\n"
        "    export function foo(): void;\n"
    )
    assert code.encode()[record.start_byte : record.end_byte].decode() == record.definition


def test_reexport_records(parse):
    code = (
        'declare module "m" {\n'
        '    export * from "a";\n'
        '    export { x, y } from "b";\n'
        "}\n"
    )
    (module,) = _graph(parse, code).modules
    assert [(e.name, e.from_module, e.is_concrete) for e in module.exports] == [
        ("*", "a", False),
        ("x", "b", False),
        ("y", "b", False),
    ]
    assert module.exports[0].is_wildcard


def test_renaming_reexport_is_ignored_with_warning(parse, caplog):
    code = 'declare module "m" {\n    export { x as z, w } from "b";\n}\n'
    (module,) = _graph(parse, code).modules
    assert [e.name for e in module.exports] == ["w"]
    assert "Renaming exports not supported" in caplog.text


def test_nested_module_names_are_qualified(parse):
    code = (
        'declare module "outer" {\n'
        "    namespace inner {\n"
        "        namespace deepest {\n"
        "            export const z: number;\n"
        "        }\n"
        "        export const y: number;\n"
        "    }\n"
        "    export const x: number;\n"
        "}\n"
    )
    graph = _graph(parse, code)
    outer = graph.modules[0]
    inner = outer.modules[0]
    assert outer.name == "outer"
    assert inner.name == "outer/inner"
    assert inner.modules[0].name == "outer/inner/deepest"
    assert [e.name for e in inner.exports] == ["y"]
    assert [e.name for e in outer.exports] == ["x"]


def test_exported_namespace_is_a_concrete_export(parse):
    code = 'declare module "m" {\n    export namespace util {\n        function f(): void;\n    }\n}\n'
    (module,) = _graph(parse, code).modules
    assert [e.name for e in module.exports] == ["util"]
    assert module.modules == []


def test_top_level_exports_belong_to_the_file_module(parse):
    graph = _graph(parse, "export declare function top(): void;\n", "lib/index.d.ts")
    assert graph.name == "lib/index.d.ts"
    assert [e.name for e in graph.exports] == ["top"]
    module_map = ModuleMap.from_graphs([graph])
    assert module_map.lookup("lib/index") is graph
    assert module_map.lookup("lib") is None


def test_multi_variable_export_is_fatal(parse):
    with pytest.raises(MultiVariableExportError) as exc:
        _graph(parse, "export declare const a: number, b: number;\n")
    assert exc.value.position == "test.d.ts:1:1"


def test_module_map_spans_all_files(samples_dir):
    graphs = []
    for name in ("widgets.d.ts", "cycle.d.ts"):
        source = SourceText.from_file(str(samples_dir / name))
        graphs.append(build_module_graph(source, parse_source(source)))
    module_map = ModuleMap.from_graphs(graphs)
    for name in ("widgets/core", "widgets/extra", "widgets", "a", "b"):
        assert name in module_map
    assert module_map.lookup("widgets/core").exports[1].name == "Widget"
