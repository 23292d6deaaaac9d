"""Help text, generated from the command table."""

from .commands import WINDOWSTATE_PROPERTIES, Command, CommandKind

__all__ = ["get_help"]

_OPTIONS = (
    ("-h, --help", "Show this help"),
    ("-v, --version", "Show program version"),
    ("-d, --debug", "Enable debug output"),
    ("-n, --dry-run", "Don't actually run the script. Just print it to stdout."),
    ("--shortcut <shortcut>", "Register a shortcut to run the script."),
    ("  --name <name>", "Set a name for the shortcut, so you can remove it later."),
    ("--remove <name>", "Remove a previously registered shortcut."),
)

# arguments shown after the command name
_ARGUMENTS = {
    Command.SEARCH: "[--class] [--classname] [--role] [--name] [--pid <pid>] [--desktop <n>] [--screen <n>] [--limit <n>] [--all|--any] <term>",
    Command.SAVEWINDOWSTACK: "<name>",
    Command.LOADWINDOWSTACK: "<name>",
    Command.WINDOWMOVE: "[--relative] <window> <x> <y>",
    Command.WINDOWSIZE: "<window> <width> <height>",
    Command.WINDOWSTATE: "[--add|--remove|--toggle <property>]... <window>",
    Command.SET_DESKTOP_FOR_WINDOW: "<window> <desktop_id>",
    Command.SET_DESKTOP: "<desktop_id>",
    Command.SET_NUM_DESKTOPS: "<num>",
}


def _usage(command: Command) -> str:
    if command in _ARGUMENTS:
        return f"{command} {_ARGUMENTS[command]}"
    if command.is_window_action:
        return f"{command} <window>"
    return str(command)


def get_help() -> str:
    """Get the usage documentation."""
    lines = ["Usage: kdotool [options] <command> [args...] [<command> [args...]]...", "", "Options:"]
    lines.extend(f"  {flag:25s}  {doc}" for flag, doc in _OPTIONS)

    lines += ["", "Commands:"]
    queries = [c for c in Command if not c.is_window_action and c.kind is not CommandKind.GLOBAL_ACTION]
    window_actions = sorted((c for c in Command if c.is_window_action), key=str)
    global_actions = sorted((c for c in Command if c.kind is CommandKind.GLOBAL_ACTION), key=str)
    for command in queries + window_actions + global_actions:
        lines.append(f"  {_usage(command)}")

    lines += [
        "",
        "Window can be specified as:",
        "  %1 - the first window in the stack (default)",
        "  %N - the Nth window in the stack",
        "  %@ - all windows in the stack",
        "  <window id> - the window with the given ID",
        "",
        "Window properties (windowstate):",
        "  " + ", ".join(WINDOWSTATE_PROPERTIES),
    ]
    return "\n".join(lines)
