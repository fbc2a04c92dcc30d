from dtskit.listing import format_listing, list_source
from dtskit.source import SourceText


def test_lists_modules_and_declarations(samples_dir):
    path = str(samples_dir / "widgets.d.ts")
    items = list_source(SourceText.from_file(path))

    modules = [i.qualified_name for i in items if i.is_module]
    assert modules == ["widgets/core", "widgets/extra", "widgets"]

    names = [i.qualified_name for i in items if not i.is_module]
    assert names[:3] == [
        "widgets/core.createWidget",
        "widgets/core.Widget",
        "widgets/core.Widget.#private",
    ]
    assert "widgets/core.Widget.parent" in names
    assert "widgets/core.VERSION" in names
    assert "widgets/extra.extraB" in names

    create = next(i for i in items if i.name == "createWidget")
    assert create.position == f"{path}:6:21"
    assert create.kind == "function_signature"


def test_nested_namespaces_are_qualified():
    code = (
        'declare module "m" {\n'
        "    namespace inner {\n"
        "        function f(): void;\n"
        "    }\n"
        "}\n"
    )
    items = list_source(SourceText.from_string(code, "m.d.ts"))
    assert [(i.qualified_name, i.is_module) for i in items] == [
        ("m", True),
        ("m.inner", True),
        ("m.inner.f", False),
    ]
    assert format_listing(items) == "m\nm.inner\n  m.inner.f: m.d.ts:3:18"
