"""Command line front end: global options, then the command chain."""

import os
from collections.abc import Sequence
from dataclasses import dataclass

from .compiler import PipelineCompiler
from .constants import KDE_SESSION_VERSION_VAR
from .debug import is_debug
from .help import get_help
from .ipc import KWinSession, remove_script
from .logging_setup import get_logger, init_logger
from .models import ExitCode, SessionContext
from .tokens import Long, Short, TokenCursor, Value
from .version import VERSION

__all__ = ["GlobalOptions", "is_kde5", "parse_global_options", "run_client"]


@dataclass
class GlobalOptions:  # pylint: disable=too-many-instance-attributes
    """Options given before the first command."""

    help: bool = False
    version: bool = False
    debug: bool = False
    dry_run: bool = False
    shortcut: str = ""
    script_name: str = ""
    remove: bool = False
    first_command: str | None = None


def parse_global_options(cursor: TokenCursor) -> GlobalOptions:
    """Read the global options, stopping at the first command name."""
    opts = GlobalOptions()
    while (item := cursor.next()) is not None:
        match item:
            case Short("h") | Long("help"):
                opts.help = True
            case Short("v") | Long("version"):
                opts.version = True
            case Short("d") | Long("debug"):
                opts.debug = True
            case Short("n") | Long("dry-run"):
                opts.dry_run = True
            case Long("shortcut"):
                opts.shortcut = cursor.value().text
            case Long("name"):
                opts.script_name = cursor.value().text
            case Long("remove"):
                opts.remove = True
                opts.script_name = cursor.value().text
            case Value(text):
                opts.first_command = text
                break
            case _:
                raise item.unexpected()
    return opts


def is_kde5() -> bool:
    """True in a Plasma 5 session."""
    return os.environ.get(KDE_SESSION_VERSION_VAR) == "5"


async def run_client(argv: Sequence[str]) -> ExitCode:
    """Run kdotool with the command line arguments `argv` (program name excluded)."""
    cursor = TokenCursor(argv)
    opts = parse_global_options(cursor)

    if opts.help or (opts.first_command is None and not opts.remove and not opts.version):
        print(get_help())
        return ExitCode.SUCCESS
    if opts.version:
        print(f"kdotool v{VERSION}")
        return ExitCode.SUCCESS

    if opts.debug:
        init_logger(force_debug=True)
    log = get_logger("client")

    if opts.remove:
        log.debug("Removing script %s", opts.script_name)
        await remove_script(opts.script_name)
        return ExitCode.SUCCESS

    kde5 = is_kde5()
    async with KWinSession(kde5=kde5, shortcut=opts.shortcut, script_name=opts.script_name) as session:
        context = SessionContext(
            debug=is_debug(),
            kde5=kde5,
            marker=session.marker,
            dbus_addr=session.bus_name,
            script_name=opts.script_name,
            shortcut=opts.shortcut,
            cmdline=" ".join(["kdotool", opts.first_command, *cursor.remaining()]),
        )
        log.debug("===== Generate KWin script =====")
        script = PipelineCompiler().compile(cursor, context, opts.first_command)
        await session.execute(script.text, dry_run=opts.dry_run)
    return ExitCode.SUCCESS
