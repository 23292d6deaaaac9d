"""Directive parser.

Consumes the arguments of one directive from a `TokenCursor` and renders it
into a `Step`. Directives are not separated on the command line: when a
directive has all the arguments it can take, the next value it reads is
handed back as `Step.pushed_back_token`, the name of the following directive.

    search firefox windowactivate
    ^^^^^^ ^^^^^^^ -> pushed back: "windowactivate"
"""

import re
from dataclasses import asdict, dataclass

from .addressing import DEFAULT_REFERENCE, is_strong_reference, resolve_reference, wrapper_fragment
from .commands import Command, CommandKind, lookup_command, lookup_property
from .models import (
    ArgumentError,
    AxisValue,
    Bindings,
    MissingArgumentError,
    MutationOp,
    PropertyMutation,
    ReferenceKind,
    Step,
    WindowReference,
)
from .templates import Fragment, TemplateRenderer
from .tokens import Long, TokenCursor, Value

__all__ = ["DirectiveParser", "SearchOptions", "parse_axis", "read_search_options"]

_AXIS_RE = re.compile(r"^(?:-?\d+%?|x|y)$")
_INTEGER_RE = re.compile(r"^-?\d+$")

_MUTATION_FLAGS = {
    "add": MutationOp.SET,
    "remove": MutationOp.UNSET,
    "toggle": MutationOp.TOGGLE,
}


@dataclass
class SearchOptions:  # pylint: disable=too-many-instance-attributes
    """Options of the `search` directive."""

    match_class: bool = False
    match_classname: bool = False
    match_role: bool = False
    match_name: bool = False
    match_pid: bool = False
    pid: int = 0
    match_desktop: bool = False
    desktop: int = 0
    match_screen: bool = False
    screen: int = 0
    limit: int = 0
    match_all: bool = False
    search_term: str = ""

    def apply_defaults(self) -> None:
        """Match on every text attribute when none was selected."""
        if not (self.match_class or self.match_classname or self.match_role or self.match_name):
            self.match_class = True
            self.match_classname = True
            self.match_role = True
            self.match_name = True


def parse_axis(text: str, name: str, keyword: str) -> AxisValue:
    """Parse one `windowmove` / `windowsize` coordinate.

    Args:
        text: the argument, eg: "100", "50%" or the keyword
        name: argument name, for error messages
        keyword: "x" or "y", leaves the axis unchanged
    """
    if text == keyword:
        return AxisValue()
    number, percent = (text[:-1], True) if text.endswith("%") else (text, False)
    try:
        return AxisValue(int(number), percent)
    except ValueError:
        msg = f"invalid value '{text}' for '{name}'"
        raise ArgumentError(msg) from None


def read_search_options(cursor: TokenCursor) -> tuple[SearchOptions, str | None]:
    """Read the flags and term of `search`, returning the options and the pushed back value."""
    opts = SearchOptions()
    term: str | None = None
    pushed_back = None

    while (item := cursor.next()) is not None:
        match item:
            case Long("class"):
                opts.match_class = True
            case Long("classname"):
                opts.match_classname = True
            case Long("role"):
                opts.match_role = True
            case Long("name"):
                opts.match_name = True
            case Long("pid"):
                opts.match_pid = True
                opts.pid = cursor.value().as_int("pid")
            case Long("desktop"):
                opts.match_desktop = True
                opts.desktop = cursor.value().as_int("desktop")
            case Long("screen"):
                opts.match_screen = True
                opts.screen = cursor.value().as_int("screen")
            case Long("limit"):
                opts.limit = cursor.value().as_int("limit")
                if opts.limit < 0:
                    msg = f"invalid value '{opts.limit}' for 'limit'"
                    raise ArgumentError(msg)
            case Long("all"):
                opts.match_all = True
            case Long("any"):
                opts.match_all = False
            case Value(text) if term is None:
                term = text
            case Value(text):
                pushed_back = text
                break
            case _:
                raise item.unexpected()

    opts.search_term = term or ""
    opts.apply_defaults()
    return opts, pushed_back


class DirectiveParser:
    """Per-command grammars."""

    def __init__(self, renderer: TemplateRenderer) -> None:
        self.renderer = renderer

    def parse(self, name: str, cursor: TokenCursor, bindings: Bindings) -> Step:
        """Parse the arguments of the directive `name` and render it.

        Args:
            name: the directive name, as typed
            cursor: positioned right after the directive name
            bindings: base bindings (session context)
        """
        command = lookup_command(name)
        bindings = bindings.extend(step_name=name)

        match command.kind:
            case CommandKind.SEARCH:
                return self._parse_search(cursor, bindings)
            case CommandKind.ACTIVE_WINDOW:
                return Step(self.renderer.render(Fragment.GETACTIVEWINDOW, bindings), is_query=True)
            case CommandKind.WINDOW_STACK:
                return self._parse_window_stack(command, cursor, bindings)
            case CommandKind.WINDOW_ACTION:
                return self._parse_window_action(command, cursor, bindings)
            case CommandKind.GLOBAL_ACTION:
                return self._parse_global_action(command, cursor, bindings)

    # Queries {{{

    def _parse_search(self, cursor: TokenCursor, bindings: Bindings) -> Step:
        opts, pushed_back = read_search_options(cursor)
        script = self.renderer.render(Fragment.SEARCH, bindings.extend(**asdict(opts)))
        return Step(script, is_query=True, pushed_back_token=pushed_back)

    def _parse_window_stack(self, command: Command, cursor: TokenCursor, bindings: Bindings) -> Step:
        stack_name: str | None = None
        pushed_back = None

        while (item := cursor.next()) is not None:
            match item:
                case Value(text) if stack_name is None:
                    stack_name = text
                case Value(text):
                    pushed_back = text
                    break
                case _:
                    raise item.unexpected()

        if stack_name is None:
            raise MissingArgumentError("name")

        is_load = command is Command.LOADWINDOWSTACK
        fragment = Fragment.LOADWINDOWSTACK if is_load else Fragment.SAVEWINDOWSTACK
        script = self.renderer.render(fragment, bindings.extend(name=stack_name))
        return Step(script, is_query=is_load, pushed_back_token=pushed_back)

    # }}}

    # Window actions {{{

    def _parse_window_action(self, command: Command, cursor: TokenCursor, bindings: Bindings) -> Step:
        match command:
            case Command.WINDOWSTATE:
                reference, pushed_back, local = self._windowstate_args(cursor)
            case Command.WINDOWMOVE | Command.WINDOWSIZE:
                reference, pushed_back, local = self._geometry_args(command, cursor)
            case Command.SET_DESKTOP_FOR_WINDOW:
                reference, pushed_back, local = self._desktop_for_window_args(cursor)
            case _:
                reference, pushed_back = self._reference_only(cursor)
                local = {}

        action = self.renderer.render(Fragment[command.name], bindings.extend(**local))
        reference = reference or DEFAULT_REFERENCE
        script = self._wrap_action(reference, action, bindings)
        return Step(script, is_query=False, pushed_back_token=pushed_back)

    def _wrap_action(self, reference: WindowReference, action: str, bindings: Bindings) -> str:
        """Apply `action` to the window(s) designated by `reference`."""
        bindings = bindings.extend(action=action)
        match reference.kind:
            case ReferenceKind.EXPLICIT_ID:
                bindings = bindings.extend(window_id=reference.window_id)
            case ReferenceKind.STACK_INDEX:
                bindings = bindings.extend(item_index=reference.index)
            case ReferenceKind.ALL_STACK:
                pass
        return self.renderer.render(wrapper_fragment(reference), bindings)

    def _reference_only(self, cursor: TokenCursor) -> tuple[WindowReference | None, str | None]:
        item = cursor.next(numbers_as_values=True)
        match item:
            case None:
                return None, None
            case Value(text):
                reference = resolve_reference(text)
                if reference is None:
                    return None, text
                pushed_back = self._next_command(cursor)
                return reference, pushed_back
            case _:
                raise item.unexpected()

    @staticmethod
    def _next_command(cursor: TokenCursor) -> str | None:
        """Read the pushed back value once every slot is filled."""
        item = cursor.next()
        match item:
            case None:
                return None
            case Value(text):
                return text
            case _:
                raise item.unexpected()

    def _windowstate_args(self, cursor: TokenCursor) -> tuple[WindowReference | None, str | None, dict]:
        reference: WindowReference | None = None
        mutations: list[PropertyMutation] = []
        pushed_back = None

        while (item := cursor.next(numbers_as_values=True)) is not None:
            match item:
                case Long(flag) if flag in _MUTATION_FLAGS:
                    prop = lookup_property(cursor.value().text)
                    mutations.append(PropertyMutation(_MUTATION_FLAGS[flag], prop))
                case Value(text) if reference is None:
                    reference = resolve_reference(text)
                    if reference is None:
                        pushed_back = text
                        break
                case Value(text):
                    pushed_back = text
                    break
                case _:
                    raise item.unexpected()

        local = {"mutations": [{"op": str(m.op), "prop": m.prop} for m in mutations]}
        return reference, pushed_back, local

    def _geometry_args(self, command: Command, cursor: TokenCursor) -> tuple[WindowReference | None, str | None, dict]:
        """Arguments of windowmove / windowsize: [window] <x> <y>.

        A leading window reference is only recognized when three values are
        given, or when the first one can't be read as a number (`%2`, a UUID).
        """
        relative = False
        values: list[str] = []
        pushed_back = None

        while (item := cursor.next(numbers_as_values=True)) is not None:
            match item:
                case Long("relative") if command is Command.WINDOWMOVE:
                    relative = True
                case Value(text) if len(values) < 2:  # noqa: PLR2004
                    values.append(text)
                case Value(text) if len(values) == 2 and _AXIS_RE.match(text) and resolve_reference(values[0]):  # noqa: PLR2004
                    values.append(text)
                case Value(text):
                    pushed_back = text
                    break
                case _:
                    raise item.unexpected()

        reference = None
        if len(values) == 3 or (values and is_strong_reference(values[0])):  # noqa: PLR2004
            reference = resolve_reference(values.pop(0))

        if not values:
            raise MissingArgumentError("x")
        x = parse_axis(values[0], "x", "x")
        if len(values) < 2:  # noqa: PLR2004
            raise MissingArgumentError("y")
        y = parse_axis(values[1], "y", "y")

        local = {
            "relative": relative,
            "x": None if x.percent else x.value,
            "y": None if y.percent else y.value,
            "x_percent": x.value if x.percent else None,
            "y_percent": y.value if y.percent else None,
        }
        return reference, pushed_back, local

    def _desktop_for_window_args(self, cursor: TokenCursor) -> tuple[WindowReference | None, str | None, dict]:
        """Arguments of set_desktop_for_window: [window] <desktop_id>."""
        values: list[str] = []
        pushed_back = None

        while (item := cursor.next(numbers_as_values=True)) is not None:
            match item:
                case Value(text) if not values:
                    values.append(text)
                case Value(text) if len(values) == 1 and _INTEGER_RE.match(text) and resolve_reference(values[0]):
                    values.append(text)
                case Value(text):
                    pushed_back = text
                    break
                case _:
                    raise item.unexpected()

        reference = None
        if len(values) == 2 or (values and is_strong_reference(values[0])):  # noqa: PLR2004
            reference = resolve_reference(values.pop(0))
        if not values:
            raise MissingArgumentError("desktop_id")
        return reference, pushed_back, {"desktop_id": Value(values[0]).as_int("desktop_id")}

    # }}}

    def _parse_global_action(self, command: Command, cursor: TokenCursor, bindings: Bindings) -> Step:
        local = {}
        pushed_back = None

        match command:
            case Command.SET_DESKTOP | Command.SET_NUM_DESKTOPS:
                arg_name = "desktop_id" if command is Command.SET_DESKTOP else "num"
                item = cursor.next(numbers_as_values=True)
                match item:
                    case None:
                        raise MissingArgumentError(arg_name)
                    case Value():
                        local["n"] = item.as_int(arg_name)
                    case _:
                        raise item.unexpected()
                pushed_back = self._next_command(cursor)
            case _:
                pushed_back = self._next_command(cursor)

        action = self.renderer.render(Fragment[command.name], bindings.extend(**local))
        script = self.renderer.render(Fragment.GLOBAL_ACTION, bindings.extend(action=action))
        return Step(script, is_query=False, pushed_back_token=pushed_back)
