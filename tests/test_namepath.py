from dtskit.jsdoc import parse_namepath
from dtskit.models import DeclarationKind, DeclarationNode, LinkReference
from dtskit.namepath import qualify_namepath, resolve, resolve_link


def _node(kind, name=None, members=None, static=None):
    return DeclarationNode(kind=kind, name=name, members=members, static=static)


def _tree():
    render = _node(DeclarationKind.METHOD, "render")
    create = _node(DeclarationKind.METHOD, "create", static=True)
    widget = _node(DeclarationKind.CLASS, "Widget", members=[create, render])
    factory = _node(
        DeclarationKind.CLASS,
        "Factory",
        members=[_node(DeclarationKind.METHOD, "build")],
        static=True,
    )
    ns = _node(DeclarationKind.NAMESPACE, "core", members=[widget])
    module = _node(DeclarationKind.MODULE, "widgets", members=[ns, widget, factory])
    shadow = _node(DeclarationKind.CLASS, "widgets", members=[])
    return _node(DeclarationKind.SOURCE_FILE, members=[shadow, module])


def test_resolve_walks_members():
    root = _tree()
    node = resolve(root, parse_namepath("module:widgets.Widget#render"))
    assert node is not None
    assert node.kind == DeclarationKind.METHOD
    assert node.name == "render"

    node = resolve(root, parse_namepath("module:widgets.core.Widget.create"))
    assert node is not None and node.name == "create"


def test_module_segments_only_match_modules():
    root = _tree()
    # The class named "widgets" comes first but is skipped for module: segments
    node = resolve(root, parse_namepath("module:widgets"))
    assert node is not None
    assert node.kind == DeclarationKind.MODULE
    # Without the prefix the first member with that name wins
    node = resolve(root, parse_namepath("widgets"))
    assert node.kind == DeclarationKind.CLASS


def test_missing_segment_is_not_found():
    root = _tree()
    assert resolve(root, parse_namepath("module:widgets.Nope")) is None
    assert resolve(root, parse_namepath("module:widgets.Widget#render.deeper")) is None
    assert resolve(root, parse_namepath("module:nothing")) is None


def test_unknown_resolution_delimiter_is_never_resolved():
    root = _tree()
    assert resolve(root, parse_namepath("module:widgets.Widget~render")) is None
    assert resolve(root, parse_namepath("module:widgets~Widget")) is None


def test_instance_member_through_static_container_fails():
    root = _tree()
    assert resolve(root, parse_namepath("module:widgets.Factory#build")) is None
    assert resolve(root, parse_namepath("module:widgets.Factory.build")) is not None


def test_resolve_is_deterministic():
    root = _tree()
    path = parse_namepath("module:widgets.Widget#render")
    assert resolve(root, path) is resolve(root, path)


def test_qualify_namepath_prefixes_current_module():
    path = qualify_namepath(parse_namepath("Widget#render"), "widgets")
    assert [(s.prefix, s.name, s.delimiter) for s in path] == [
        ("module:", "widgets", None),
        (None, "Widget", "."),
        (None, "render", "#"),
    ]
    already = parse_namepath("module:other.Thing")
    assert qualify_namepath(already, "widgets") == already
    assert qualify_namepath(parse_namepath("Thing"), "") == parse_namepath("Thing")


def test_qualify_namepath_with_namespaces():
    path = qualify_namepath(parse_namepath("Other"), "widgets", ("core", "util"))
    assert [(s.prefix, s.name, s.delimiter) for s in path] == [
        ("module:", "widgets", None),
        (None, "core", "."),
        (None, "util", "."),
        (None, "Other", "."),
    ]
    bare = qualify_namepath(parse_namepath("Other"), "", ("core",))
    assert [(s.name, s.delimiter) for s in bare] == [("core", None), ("Other", ".")]


def test_resolve_link_reports_canonical_namepath():
    root = _tree()
    link = LinkReference(
        pos=0, end=10, target="x", namepath=parse_namepath("module:widgets.Gone")
    )
    res = resolve_link(root, link)
    assert not res.resolved
    assert res.namepath == "module:widgets.Gone"

    link.namepath = parse_namepath("module:widgets.Widget")
    res = resolve_link(root, link)
    assert res.resolved
    assert res.node.name == "Widget"
