"""Command table.

Every directive kdotool understands is a member of `Command`; the name
lookup (aliases included) is built once, at import time.
"""

from enum import Enum, StrEnum

from .models import UnknownCommandError, UnknownPropertyError

__all__ = [
    "COMMANDS_BY_NAME",
    "WINDOWSTATE_PROPERTIES",
    "Command",
    "CommandKind",
    "lookup_command",
    "lookup_property",
]


class CommandKind(Enum):
    """Grammar families."""

    SEARCH = "search"
    ACTIVE_WINDOW = "active-window"
    WINDOW_STACK = "window-stack"
    WINDOW_ACTION = "window-action"
    GLOBAL_ACTION = "global-action"


class Command(StrEnum):
    """Known directives."""

    SEARCH = "search"
    GETACTIVEWINDOW = "getactivewindow"
    SAVEWINDOWSTACK = "savewindowstack"
    LOADWINDOWSTACK = "loadwindowstack"

    # window actions
    GETWINDOWNAME = "getwindowname"
    GETWINDOWCLASSNAME = "getwindowclassname"
    GETWINDOWGEOMETRY = "getwindowgeometry"
    GETWINDOWPID = "getwindowpid"
    GETWINDOWID = "getwindowid"
    GET_DESKTOP_FOR_WINDOW = "get_desktop_for_window"
    WINDOWACTIVATE = "windowactivate"
    WINDOWMINIMIZE = "windowminimize"
    WINDOWRAISE = "windowraise"
    WINDOWCLOSE = "windowclose"
    WINDOWMOVE = "windowmove"
    WINDOWSIZE = "windowsize"
    WINDOWSTATE = "windowstate"
    SET_DESKTOP_FOR_WINDOW = "set_desktop_for_window"

    # global actions
    GET_DESKTOP = "get_desktop"
    SET_DESKTOP = "set_desktop"
    GET_NUM_DESKTOPS = "get_num_desktops"
    SET_NUM_DESKTOPS = "set_num_desktops"

    @property
    def kind(self) -> CommandKind:
        """Grammar family of the command."""
        return _KINDS.get(self, CommandKind.WINDOW_ACTION)

    @property
    def is_window_action(self) -> bool:
        """True for commands taking a window reference."""
        return self.kind is CommandKind.WINDOW_ACTION


_KINDS: dict[Command, CommandKind] = {
    Command.SEARCH: CommandKind.SEARCH,
    Command.GETACTIVEWINDOW: CommandKind.ACTIVE_WINDOW,
    Command.SAVEWINDOWSTACK: CommandKind.WINDOW_STACK,
    Command.LOADWINDOWSTACK: CommandKind.WINDOW_STACK,
    Command.GET_DESKTOP: CommandKind.GLOBAL_ACTION,
    Command.SET_DESKTOP: CommandKind.GLOBAL_ACTION,
    Command.GET_NUM_DESKTOPS: CommandKind.GLOBAL_ACTION,
    Command.SET_NUM_DESKTOPS: CommandKind.GLOBAL_ACTION,
}

_ALIASES: dict[str, Command] = {
    "activatewindow": Command.WINDOWACTIVATE,
}

COMMANDS_BY_NAME: dict[str, Command] = {command.value: command for command in Command} | _ALIASES

# windowstate property name -> KWin window property
WINDOWSTATE_PROPERTIES: dict[str, str] = {
    "above": "keepAbove",
    "below": "keepBelow",
    "skip_taskbar": "skipTaskbar",
    "skip_pager": "skipPager",
    "skip_switcher": "skipSwitcher",
    "fullscreen": "fullScreen",
    "shaded": "shade",
    "demands_attention": "demandsAttention",
    "no_border": "noBorder",
    "minimized": "minimized",
    "maximized": "maximized",
    "sticky": "onAllDesktops",
}


def lookup_command(name: str) -> Command:
    """Return the command called `name`.

    Raises:
        UnknownCommandError: `name` is not a known command or alias
    """
    try:
        return COMMANDS_BY_NAME[name]
    except KeyError:
        raise UnknownCommandError(name) from None


def lookup_property(key: str) -> str:
    """Return the KWin property behind a windowstate property name (case insensitive).

    Raises:
        UnknownPropertyError: the property isn't supported
    """
    key = key.lower()
    try:
        return WINDOWSTATE_PROPERTIES[key]
    except KeyError:
        raise UnknownPropertyError(key) from None
