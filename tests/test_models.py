from kdotool.models import (
    ArgumentError,
    CompileError,
    ExitCode,
    IpcError,
    KdotoolError,
    MissingArgumentError,
    RenderError,
    SessionContext,
    UnknownCommandError,
    format_error,
)


def raise_chain():
    try:
        try:
            raise MissingArgumentError("y")
        except ArgumentError as e:
            raise CompileError("windowsize") from e
    except CompileError as e:
        return e


def test_format_error_joins_the_chain():
    assert format_error(raise_chain()) == "in command 'windowsize': missing argument 'y'"
    assert format_error(KdotoolError()) == "KdotoolError"


def test_exit_codes():
    assert ArgumentError("x").exit_code == ExitCode.USAGE_ERROR
    assert UnknownCommandError("x").exit_code == ExitCode.USAGE_ERROR
    assert RenderError("x").exit_code == ExitCode.INTERNAL_ERROR
    assert IpcError("x").exit_code == ExitCode.CONNECTION_ERROR
    assert KdotoolError("x").exit_code == ExitCode.COMMAND_ERROR
    assert raise_chain().exit_code == ExitCode.USAGE_ERROR
    assert CompileError("x").exit_code == ExitCode.COMMAND_ERROR


def test_session_bindings():
    bindings = SessionContext(marker="m", shortcut="Meta+K").bindings()
    assert bindings["marker"] == "m"
    assert bindings["shortcut"] == "Meta+K"
    assert bindings["script_name"] == ""
    assert not bindings["kde5"]
    assert set(bindings) == {"debug", "kde5", "marker", "dbus_addr", "script_name", "shortcut", "cmdline"}
