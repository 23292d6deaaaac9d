import pytest

from kdotool.models import Bindings, RenderError
from kdotool.templates import FRAGMENTS, Fragment, TemplateRenderer


@pytest.fixture
def real_renderer():
    return TemplateRenderer()


def test_catalog_is_complete():
    assert set(FRAGMENTS) == set(Fragment)


def test_header(real_renderer, context):
    header = real_renderer.render(Fragment.HEADER, context.bindings())
    assert 'callDBus("org.kde.kdotool.pid1", "/", "org.kde.kdotool.Callback", "result", String(message));' in header
    assert '"finished"' in header
    assert 'var kdotool_marker = "kdotool-test.js";' in header
    assert "workspace.windowList()" in header
    assert "workspace.clientList()" not in header
    assert header.rstrip().endswith("var window_stack = [];")


def test_header_kde5(real_renderer, context):
    bindings = context.bindings().extend(kde5=True)
    header = real_renderer.render(Fragment.HEADER, bindings)
    assert "workspace.clientList()" in header
    assert "workspace.windowList()" not in header


def test_header_debug(real_renderer, context):
    quiet = real_renderer.render(Fragment.HEADER, context.bindings())
    verbose = real_renderer.render(Fragment.HEADER, context.bindings().extend(debug=True))
    assert '"debug", String(message)' not in quiet
    assert '"debug", String(message)' in verbose


def test_footer(real_renderer, context):
    footer = real_renderer.render(Fragment.FOOTER, context.bindings())
    assert "registerShortcut" not in footer
    assert footer.rstrip().endswith("main();")


def test_footer_shortcut(real_renderer, context):
    footer = real_renderer.render(Fragment.FOOTER, context.bindings().extend(shortcut="Meta+K"))
    assert 'registerShortcut("kdotool-test.js", "kdotool-test.js", "Meta+K", main);' in footer

    footer = real_renderer.render(Fragment.FOOTER, context.bindings().extend(shortcut="Meta+K", script_name="focus"))
    assert 'registerShortcut("focus", "focus", "Meta+K", main);' in footer


def test_missing_binding(real_renderer):
    with pytest.raises(RenderError, match="savewindowstack"):
        real_renderer.render(Fragment.SAVEWINDOWSTACK, Bindings({"step_name": "savewindowstack"}))


def test_unknown_fragment(real_renderer):
    with pytest.raises(RenderError):
        real_renderer.render("nope", Bindings())


def test_user_strings_are_escaped(real_renderer):
    script = real_renderer.render(Fragment.SAVEWINDOWSTACK, Bindings({"step_name": "savewindowstack", "name": 'a"b'}))
    assert 'saved_window_stacks["a\\"b"]' in script


def test_custom_catalog():
    renderer = TemplateRenderer({"greeting": "hello {{ who }} on {{ callback_interface }}"})
    assert renderer.render("greeting", {"who": "kwin"}) == "hello kwin on org.kde.kdotool.Callback"


def test_bindings_are_immutable():
    base = Bindings({"a": 1})
    extended = base.extend(b=2, a=3)
    assert dict(base) == {"a": 1}
    assert dict(extended) == {"a": 3, "b": 2}
    with pytest.raises(TypeError):
        base["a"] = 2  # type: ignore
