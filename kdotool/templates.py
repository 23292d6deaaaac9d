"""Fragment catalog and strict template renderer.

The generated KWin script is the concatenation of named fragments. Each
fragment is a jinja2 template rendered with `StrictUndefined`: referencing
a variable that isn't bound is a `RenderError`, never an empty string.

User supplied strings are always inserted through the `tojson` filter so
they end up as JavaScript string literals.
"""

from collections.abc import Mapping
from enum import StrEnum
from typing import Any

from jinja2 import DictLoader, Environment, StrictUndefined, TemplateError, Undefined
from jinja2.utils import htmlsafe_json_dumps

from .constants import CALLBACK_INTERFACE, CALLBACK_PATH
from .models import RenderError

__all__ = ["FRAGMENTS", "Fragment", "TemplateRenderer"]


class Fragment(StrEnum):
    """Names of the catalog entries."""

    HEADER = "header"
    FOOTER = "footer"
    LAST_OUTPUT = "last_output"

    ACTION_ON_WINDOW_ID = "action_on_window_id"
    ACTION_ON_STACK_ITEM = "action_on_stack_item"
    ACTION_ON_STACK_ALL = "action_on_stack_all"
    GLOBAL_ACTION = "global_action"

    SEARCH = "search"
    GETACTIVEWINDOW = "getactivewindow"
    SAVEWINDOWSTACK = "savewindowstack"
    LOADWINDOWSTACK = "loadwindowstack"

    # window action bodies, `w` is the target window
    GETWINDOWNAME = "action/getwindowname"
    GETWINDOWCLASSNAME = "action/getwindowclassname"
    GETWINDOWGEOMETRY = "action/getwindowgeometry"
    GETWINDOWPID = "action/getwindowpid"
    GETWINDOWID = "action/getwindowid"
    GET_DESKTOP_FOR_WINDOW = "action/get_desktop_for_window"
    WINDOWACTIVATE = "action/windowactivate"
    WINDOWMINIMIZE = "action/windowminimize"
    WINDOWRAISE = "action/windowraise"
    WINDOWCLOSE = "action/windowclose"
    WINDOWMOVE = "action/windowmove"
    WINDOWSIZE = "action/windowsize"
    WINDOWSTATE = "action/windowstate"
    SET_DESKTOP_FOR_WINDOW = "action/set_desktop_for_window"

    # global action bodies
    GET_DESKTOP = "global/get_desktop"
    SET_DESKTOP = "global/set_desktop"
    GET_NUM_DESKTOPS = "global/get_num_desktops"
    SET_NUM_DESKTOPS = "global/set_num_desktops"


_CALLBACK = '"{{ dbus_addr }}", "{{ callback_path }}", "{{ callback_interface }}"'

_HEADER = (
    """\
// kdotool {{ marker }}: {{ cmdline|tojson }}
var kdotool_marker = {{ marker|tojson }};

function output_debug(message) {
{%- if debug %}
    print(kdotool_marker, "DEBUG", message);
    callDBus(CALLBACK, "debug", String(message));
{%- endif %}
}

function output_error(message) {
    print(kdotool_marker, "ERROR", message);
    callDBus(CALLBACK, "error", String(message));
}

function output_result(message) {
    if (message == null) {
        message = "null";
    }
    callDBus(CALLBACK, "result", String(message));
}

function output_finished() {
    callDBus(CALLBACK, "finished", kdotool_marker);
}

function normalize_id(id) {
    id = String(id).replace(/[{}]/g, "").toLowerCase();
    if (id.indexOf("0x") == 0) {
        id = String(parseInt(id, 16));
    }
    return id;
}
{% if kde5 %}
function window_list() { return workspace.clientList(); }
function active_window() { return workspace.activeClient; }
function activate_window(w) { workspace.activeClient = w; }
function raise_window(w) { workspace.activeClient = w; }
function window_id(w) { return String(w.windowId); }
function window_screen(w) { return w.screen; }
function current_desktop() { return workspace.currentDesktop; }
function set_current_desktop(n) { workspace.currentDesktop = n; }
function num_desktops() { return workspace.desktops; }
function set_num_desktops(n) { workspace.desktops = n; }
function window_desktop(w) { return w.onAllDesktops ? 0 : w.desktop; }
function set_window_desktop(w, n) { w.desktop = n; }
{% else %}
function window_list() { return workspace.windowList(); }
function active_window() { return workspace.activeWindow; }
function activate_window(w) { workspace.activeWindow = w; }
function raise_window(w) { workspace.raiseWindow(w); }
function window_id(w) { return String(w.internalId); }
function window_screen(w) { return workspace.screens.indexOf(w.output); }
function current_desktop() { return workspace.desktops.indexOf(workspace.currentDesktop) + 1; }
function set_current_desktop(n) {
    if (n < 1 || n > workspace.desktops.length) {
        output_error("invalid desktop number " + n);
        return;
    }
    workspace.currentDesktop = workspace.desktops[n - 1];
}
function num_desktops() { return workspace.desktops.length; }
function set_num_desktops(n) {
    while (workspace.desktops.length < n) {
        workspace.createDesktop(workspace.desktops.length, "");
    }
    while (workspace.desktops.length > n) {
        workspace.removeDesktop(workspace.desktops[workspace.desktops.length - 1]);
    }
}
function window_desktop(w) {
    if (w.onAllDesktops || w.desktops.length == 0) {
        return 0;
    }
    return workspace.desktops.indexOf(w.desktops[0]) + 1;
}
function set_window_desktop(w, n) {
    if (n < 1 || n > workspace.desktops.length) {
        output_error("invalid desktop number " + n);
        return;
    }
    w.desktops = [workspace.desktops[n - 1]];
}
{% endif %}
function find_window(id) {
    var wanted = normalize_id(id);
    var windows = window_list();
    for (var i = 0; i < windows.length; ++i) {
        if (normalize_id(window_id(windows[i])) == wanted) {
            return windows[i];
        }
    }
    return null;
}

function window_state_get(w, prop) {
    if (prop == "maximized") {
        var area = workspace.clientArea(KWin.MaximizeArea, w);
        var g = w.frameGeometry;
        return g.x == area.x && g.y == area.y && g.width == area.width && g.height == area.height;
    }
    return w[prop];
}

function window_state_set(w, prop, value) {
    if (prop == "maximized") {
        w.setMaximize(value, value);
    } else {
        w[prop] = value;
    }
}

var saved_window_stacks = {};

function run() {
    var window_stack = [];
"""
).replace("CALLBACK", _CALLBACK)

_FOOTER = """\
}

function main() {
    try {
        run();
    } catch (e) {
        output_error(e);
    }
    output_finished();
}
{% if shortcut %}
registerShortcut({{ (script_name or marker)|tojson }}, {{ (script_name or marker)|tojson }}, {{ shortcut|tojson }}, main);
{%- else %}
main();
{%- endif %}
"""

_LAST_OUTPUT = """\
    for (var i = 0; i < window_stack.length; ++i) {
        output_result(window_id(window_stack[i]));
    }
"""

_ACTION_ON_WINDOW_ID = """\
    output_debug("{{ step_name }} on window " + {{ window_id|tojson }});
    {
        var w = find_window({{ window_id|tojson }});
        if (w) {
            {{ action }}
        } else {
            output_error("window not found: " + {{ window_id|tojson }});
        }
    }
"""

_ACTION_ON_STACK_ITEM = """\
    output_debug("{{ step_name }} on window stack item {{ item_index }}");
    if (window_stack.length < {{ item_index }}) {
        output_error("window stack index out of range: {{ item_index }}");
    } else {
        var w = window_stack[{{ item_index }} - 1];
        {{ action }}
    }
"""

_ACTION_ON_STACK_ALL = """\
    output_debug("{{ step_name }} on " + window_stack.length + " windows");
    for (var si = 0; si < window_stack.length; ++si) {
        var w = window_stack[si];
        {{ action }}
    }
"""

_GLOBAL_ACTION = """\
    output_debug("{{ step_name }}");
    {
        {{ action }}
    }
"""

_SEARCH = """\
    output_debug("{{ step_name }} " + {{ search_term|tojson }});
    window_stack = [];
    {
        var re = new RegExp({{ search_term|tojson }}, "i");
        var windows = window_list();
        for (var i = 0; i < windows.length; ++i) {
            var w = windows[i];
            var matches = [];
{%- if match_class %}
            matches.push(re.test(String(w.resourceClass)));
{%- endif %}
{%- if match_classname %}
            matches.push(re.test(String(w.resourceName)));
{%- endif %}
{%- if match_role %}
            matches.push(re.test(String(w.windowRole)));
{%- endif %}
{%- if match_name %}
            matches.push(re.test(String(w.caption)));
{%- endif %}
{%- if match_pid %}
            matches.push(w.pid == {{ pid }});
{%- endif %}
{%- if match_desktop %}
            matches.push(window_desktop(w) == {{ desktop }});
{%- endif %}
{%- if match_screen %}
            matches.push(window_screen(w) == {{ screen }});
{%- endif %}
            var matched = {% if match_all %}matches.every(Boolean){% else %}matches.some(Boolean){% endif %};
            if (matched) {
                window_stack.push(w);
{%- if limit > 0 %}
                if (window_stack.length >= {{ limit }}) {
                    break;
                }
{%- endif %}
            }
        }
    }
"""

_GETACTIVEWINDOW = """\
    output_debug("{{ step_name }}");
    window_stack = active_window() ? [active_window()] : [];
"""

_SAVEWINDOWSTACK = """\
    output_debug("{{ step_name }} " + {{ name|tojson }});
    saved_window_stacks[{{ name|tojson }}] = window_stack.slice();
"""

_LOADWINDOWSTACK = """\
    output_debug("{{ step_name }} " + {{ name|tojson }});
    if ({{ name|tojson }} in saved_window_stacks) {
        window_stack = saved_window_stacks[{{ name|tojson }}].slice();
    } else {
        output_error("no saved window stack named " + {{ name|tojson }});
        window_stack = [];
    }
"""

_WINDOWMOVE = """\
var area = workspace.clientArea(KWin.MaximizeArea, w);
            var g = w.frameGeometry;
            var x = g.x;
            var y = g.y;
{%- if x is not none %}
            x = {% if relative %}x + {% endif %}{{ x }};
{%- elif x_percent is not none %}
            x = {% if relative %}x{% else %}area.x{% endif %} + area.width * {{ x_percent }} / 100;
{%- endif %}
{%- if y is not none %}
            y = {% if relative %}y + {% endif %}{{ y }};
{%- elif y_percent is not none %}
            y = {% if relative %}y{% else %}area.y{% endif %} + area.height * {{ y_percent }} / 100;
{%- endif %}
            w.frameGeometry = {x: x, y: y, width: g.width, height: g.height};"""

_WINDOWSIZE = """\
var area = workspace.clientArea(KWin.MaximizeArea, w);
            var g = w.frameGeometry;
            var width = g.width;
            var height = g.height;
{%- if x is not none %}
            width = {{ x }};
{%- elif x_percent is not none %}
            width = area.width * {{ x_percent }} / 100;
{%- endif %}
{%- if y is not none %}
            height = {{ y }};
{%- elif y_percent is not none %}
            height = area.height * {{ y_percent }} / 100;
{%- endif %}
            w.frameGeometry = {x: g.x, y: g.y, width: width, height: height};"""

_WINDOWSTATE = """\
{%- for mutation in mutations %}
            window_state_set(w, {{ mutation.prop|tojson }}, {% if mutation.op == "toggle" %}!window_state_get(w, {{ mutation.prop|tojson }}){% elif mutation.op == "set" %}true{% else %}false{% endif %});
{%- endfor %}"""

_GETWINDOWGEOMETRY = """\
var g = w.frameGeometry;
            output_result("Window " + window_id(w));
            output_result("  Position: " + g.x + "," + g.y);
            output_result("  Geometry: " + g.width + "x" + g.height);"""

FRAGMENTS: dict[Fragment, str] = {
    Fragment.HEADER: _HEADER,
    Fragment.FOOTER: _FOOTER,
    Fragment.LAST_OUTPUT: _LAST_OUTPUT,
    Fragment.ACTION_ON_WINDOW_ID: _ACTION_ON_WINDOW_ID,
    Fragment.ACTION_ON_STACK_ITEM: _ACTION_ON_STACK_ITEM,
    Fragment.ACTION_ON_STACK_ALL: _ACTION_ON_STACK_ALL,
    Fragment.GLOBAL_ACTION: _GLOBAL_ACTION,
    Fragment.SEARCH: _SEARCH,
    Fragment.GETACTIVEWINDOW: _GETACTIVEWINDOW,
    Fragment.SAVEWINDOWSTACK: _SAVEWINDOWSTACK,
    Fragment.LOADWINDOWSTACK: _LOADWINDOWSTACK,
    Fragment.GETWINDOWNAME: "output_result(w.caption);",
    Fragment.GETWINDOWCLASSNAME: "output_result(w.resourceClass);",
    Fragment.GETWINDOWGEOMETRY: _GETWINDOWGEOMETRY,
    Fragment.GETWINDOWPID: "output_result(w.pid);",
    Fragment.GETWINDOWID: "output_result(window_id(w));",
    Fragment.GET_DESKTOP_FOR_WINDOW: "output_result(window_desktop(w));",
    Fragment.WINDOWACTIVATE: "activate_window(w);",
    Fragment.WINDOWMINIMIZE: "w.minimized = true;",
    Fragment.WINDOWRAISE: "raise_window(w);",
    Fragment.WINDOWCLOSE: "w.closeWindow();",
    Fragment.WINDOWMOVE: _WINDOWMOVE,
    Fragment.WINDOWSIZE: _WINDOWSIZE,
    Fragment.WINDOWSTATE: _WINDOWSTATE,
    Fragment.SET_DESKTOP_FOR_WINDOW: "set_window_desktop(w, {{ desktop_id }});",
    Fragment.GET_DESKTOP: "output_result(current_desktop());",
    Fragment.SET_DESKTOP: "set_current_desktop({{ n }});",
    Fragment.GET_NUM_DESKTOPS: "output_result(num_desktops());",
    Fragment.SET_NUM_DESKTOPS: "set_num_desktops({{ n }});",
}


def _tojson(value: Any) -> str:  # noqa: ANN401
    """Builtin `tojson` filter, failing on unbound values instead of leaking a TypeError."""
    if isinstance(value, Undefined):
        str(value)  # raises UndefinedError
    return htmlsafe_json_dumps(value)


class TemplateRenderer:
    """Renders catalog fragments against a binding record."""

    def __init__(self, fragments: Mapping[str, str] | None = None) -> None:
        self.env = Environment(
            loader=DictLoader(dict(fragments if fragments is not None else FRAGMENTS)),
            undefined=StrictUndefined,
            keep_trailing_newline=True,
            autoescape=False,
        )
        self.env.globals.update(callback_path=CALLBACK_PATH, callback_interface=CALLBACK_INTERFACE)
        self.env.filters["tojson"] = _tojson

    def render(self, fragment: str, bindings: Mapping[str, Any]) -> str:
        """Render `fragment` with `bindings`.

        Raises:
            RenderError: unbound variable, unknown fragment or broken template
        """
        try:
            return self.env.get_template(str(fragment)).render(dict(bindings))
        except TemplateError as e:
            msg = f"failed to render fragment '{fragment}': {e}"
            raise RenderError(msg) from e
