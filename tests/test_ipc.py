import asyncio
import os
from unittest.mock import AsyncMock, Mock

import pytest
from sdbus.exceptions import SdBusBaseError

from kdotool import ipc
from kdotool.constants import CALLBACK_PATH, KWIN_SCRIPTING_PATH, KWIN_SERVICE
from kdotool.ipc import KWinSession, ScriptCallbacks, call_remote, remove_script, script_object_path
from kdotool.messages import MessageLog
from kdotool.models import IpcError

SCRIPT = "// generated\nmain();\n"


def reporting(session, *messages):
    "A fake `run` D-Bus call, the script sends `messages` back"

    async def run():
        for tag, payload in messages:
            await session.messages.append(tag, payload)

    return run


def test_script_object_paths():
    assert script_object_path(7, kde5=True) == "/7"
    assert script_object_path(7, kde5=False) == "/Scripting/Script7"


@pytest.mark.asyncio
async def test_call_remote_errors():
    with pytest.raises(IpcError, match="loadScript failed"):
        await call_remote(AsyncMock(side_effect=SdBusBaseError("denied"))(), "loadScript")
    with pytest.raises(IpcError, match="run: no reply after 5s"):
        await call_remote(AsyncMock(side_effect=TimeoutError)(), "run")
    assert await call_remote(AsyncMock(return_value=3)(), "loadScript") == 3


@pytest.mark.asyncio
async def test_remove_makes_one_call(mocker):
    bus = Mock(name="bus")
    mocker.patch("kdotool.ipc.open_session_bus", return_value=bus)
    scripting = Mock()
    scripting.unload_script = AsyncMock(return_value=True)
    factory = mocker.patch("kdotool.ipc.KWinScripting.new_proxy", return_value=scripting)

    assert await remove_script("focus-firefox")

    factory.assert_called_once_with(KWIN_SERVICE, KWIN_SCRIPTING_PATH, bus=bus)
    scripting.unload_script.assert_awaited_once_with("focus-firefox")
    bus.close.assert_called_once()


@pytest.mark.asyncio
async def test_remove_timeout(mocker):
    bus = Mock(name="bus")
    mocker.patch("kdotool.ipc.open_session_bus", return_value=bus)
    scripting = Mock()
    scripting.unload_script = AsyncMock(side_effect=TimeoutError)
    mocker.patch("kdotool.ipc.KWinScripting.new_proxy", return_value=scripting)

    with pytest.raises(IpcError):
        await remove_script("focus-firefox")
    bus.close.assert_called_once()


@pytest.mark.asyncio
async def test_session_setup_and_teardown(bus_mocks):
    async with KWinSession() as session:
        assert session.bus_name == f"org.kde.kdotool.pid{os.getpid()}"
        assert session.marker.startswith("kdotool-")
        assert session.marker.endswith(".js")
        assert os.path.exists(session.script_path)
        bus_mocks.receiving_bus.request_name_async.assert_awaited_once_with(session.bus_name, 0)
    assert not os.path.exists(session.script_path)
    bus_mocks.control_bus.close.assert_called_once()
    bus_mocks.receiving_bus.close.assert_called_once()


@pytest.mark.asyncio
async def test_connection_failure(mocker):
    mocker.patch("kdotool.ipc.open_session_bus", side_effect=SdBusBaseError("no bus"))
    with pytest.raises(IpcError, match="cannot connect to the session bus"):
        async with KWinSession():
            pass


@pytest.mark.asyncio
async def test_dry_run_makes_no_remote_call(bus_mocks, capsys):
    async with KWinSession() as session:
        assert await session.execute(SCRIPT, dry_run=True) is None
        with open(session.script_path, encoding="utf-8") as f:
            assert f.read() == SCRIPT

    assert capsys.readouterr().out == "// generated\nmain();\n"
    bus_mocks.scripting_factory.assert_not_called()
    bus_mocks.script_factory.assert_not_called()
    bus_mocks.export.assert_not_called()


@pytest.mark.asyncio
async def test_run(bus_mocks, capsys):
    async with KWinSession() as session:

        async def load_script(path, name):
            with open(path, encoding="utf-8") as f:
                assert f.read() == SCRIPT
            assert name == ""
            return 7

        bus_mocks.scripting.load_script.side_effect = load_script
        bus_mocks.script.run.side_effect = reporting(
            session, ("result", "12345"), ("error", "window not found"), ("finished", session.marker)
        )

        assert await session.execute(SCRIPT) == 7

        bus_mocks.script_factory.assert_called_once_with(KWIN_SERVICE, "/Scripting/Script7", bus=bus_mocks.control_bus)
        bus_mocks.script.run.assert_awaited_once()
        bus_mocks.script.stop.assert_awaited_once()
        bus_mocks.export.assert_called_once_with(CALLBACK_PATH, bus_mocks.receiving_bus)
        listener = session._listener
        assert listener is not None and not listener.done()

    assert listener.cancelled()
    out, err = capsys.readouterr()
    assert out == "12345\n"
    assert err == "ERROR: window not found\n"


@pytest.mark.asyncio
async def test_run_kde5_paths(bus_mocks):
    async with KWinSession(kde5=True) as session:
        bus_mocks.script.run.side_effect = reporting(session, ("finished", ""))
        await session.execute(SCRIPT)
    bus_mocks.script_factory.assert_called_once_with(KWIN_SERVICE, "/7", bus=bus_mocks.control_bus)


@pytest.mark.asyncio
async def test_missing_finished_callback(bus_mocks, monkeypatch, capsys):
    monkeypatch.setattr(ipc, "CALLBACK_TIMEOUT", 0.01)
    async with KWinSession() as session:
        bus_mocks.script.run.side_effect = reporting(session, ("result", "partial"))
        await session.execute(SCRIPT)
    assert capsys.readouterr().out == "partial\n"


@pytest.mark.asyncio
async def test_shortcut(bus_mocks, capsys):
    async with KWinSession(shortcut="Meta+K", script_name="focus") as session:
        await session.execute(SCRIPT)
        bus_mocks.scripting.load_script.assert_awaited_once_with(session.script_path, "focus")
    bus_mocks.script.stop.assert_not_awaited()
    assert capsys.readouterr().out == "Shortcut registered: Meta+K\nScript ID: 7\nScript name: focus\n"


@pytest.mark.asyncio
async def test_load_failure(bus_mocks):
    bus_mocks.scripting.load_script.side_effect = SdBusBaseError("denied")
    with pytest.raises(IpcError, match="loadScript failed"):
        async with KWinSession() as session:
            await session.execute(SCRIPT)
    bus_mocks.script.run.assert_not_awaited()
    assert not os.path.exists(session.script_path)


@pytest.mark.asyncio
async def test_debug_mode_reads_the_journal(bus_mocks, mocker):
    mocker.patch("kdotool.ipc.is_debug", return_value=True)
    async with KWinSession() as session:
        bus_mocks.script.run.side_effect = reporting(session, ("finished", ""))
        await session.execute(SCRIPT)
    ipc.fetch_kwin_log.assert_awaited_once()


@pytest.mark.asyncio
async def test_callbacks_record_messages():
    messages = MessageLog()
    callbacks = ScriptCallbacks(messages)
    await callbacks.on_result("1")
    await callbacks.on_debug("looking")
    await callbacks.on_error("oops")
    await callbacks.on_finished("marker")
    assert [(m.tag, m.payload) for m in await messages.drain()] == [
        ("result", "1"),
        ("debug", "looking"),
        ("error", "oops"),
        ("finished", "marker"),
    ]
    assert messages.finished


@pytest.mark.asyncio
async def test_export_failure_aborts_the_run(bus_mocks):
    bus_mocks.export.side_effect = SdBusBaseError("object path already exported")
    with pytest.raises(IpcError, match="cannot export the callback object on /"):
        async with KWinSession() as session:
            await asyncio.wait_for(session.execute(SCRIPT), timeout=2)
    bus_mocks.script.run.assert_not_awaited()
    assert session._listener is None
    assert not os.path.exists(session.script_path)


@pytest.mark.asyncio
async def test_unexpected_export_error_is_raised(bus_mocks):
    bus_mocks.export.side_effect = RuntimeError("boom")
    async with KWinSession() as session:
        with pytest.raises(RuntimeError, match="boom"):
            await asyncio.wait_for(session.start_listener(), timeout=2)
        assert session._listener is None


@pytest.mark.asyncio
async def test_listener_is_started_once(bus_mocks):
    async with KWinSession() as session:
        await session.start_listener()
        with pytest.raises(AssertionError):
            await session.start_listener()
        await asyncio.sleep(0)
    assert session._listener is None
