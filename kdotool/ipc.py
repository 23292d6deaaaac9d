"""Talk to the KWin scripting host over the D-Bus session bus.

Two connections are used:

- the control connection calls KWin (load, run, stop, unload)
- the receiving connection owns a process-unique name, exports the
  callback object and collects what the running script sends back
"""

__all__ = [
    "KWinScript",
    "KWinScripting",
    "KWinSession",
    "ScriptCallbacks",
    "call_remote",
    "open_session_bus",
    "remove_script",
    "script_object_path",
]

import asyncio
import contextlib
import os
from collections.abc import Awaitable
from datetime import datetime
from typing import Any, Self

import aiofiles
import aiofiles.os
import aiofiles.tempfile
from sdbus import DbusInterfaceCommonAsync, SdBus, dbus_method_async, sd_bus_open_user
from sdbus.exceptions import SdBusBaseError

from .constants import (
    CALLBACK_INTERFACE,
    CALLBACK_PATH,
    CALLBACK_TIMEOUT,
    CLIENT_BUS_NAME_PREFIX,
    KWIN_SCRIPT_INTERFACE,
    KWIN_SCRIPTING_INTERFACE,
    KWIN_SCRIPTING_PATH,
    KWIN_SERVICE,
    LISTENER_POLL_INTERVAL,
    REPLY_TIMEOUT,
    SCRIPT_FILE_PREFIX,
    SCRIPT_FILE_SUFFIX,
)
from .debug import is_debug
from .journal import fetch_kwin_log
from .logging_setup import get_logger
from .messages import MessageLog, print_messages
from .models import IpcError

# D-Bus interfaces {{{


class KWinScripting(DbusInterfaceCommonAsync, interface_name=KWIN_SCRIPTING_INTERFACE):
    """`/Scripting` on KWin."""

    @dbus_method_async(input_signature="ss", result_signature="i", method_name="loadScript")
    async def load_script(self, path: str, name: str) -> int:
        """Load the script file at `path`, returns its id."""
        raise NotImplementedError

    @dbus_method_async(input_signature="s", result_signature="b", method_name="unloadScript")
    async def unload_script(self, name: str) -> bool:
        """Unload the script registered as `name`."""
        raise NotImplementedError


class KWinScript(DbusInterfaceCommonAsync, interface_name=KWIN_SCRIPT_INTERFACE):
    """One loaded script."""

    @dbus_method_async(method_name="run")
    async def run(self) -> None:
        raise NotImplementedError

    @dbus_method_async(method_name="stop")
    async def stop(self) -> None:
        raise NotImplementedError


class ScriptCallbacks(DbusInterfaceCommonAsync, interface_name=CALLBACK_INTERFACE):
    """Exported by kdotool, called by the script through `callDBus()`."""

    def __init__(self, messages: MessageLog) -> None:
        super().__init__()
        self.messages = messages

    @dbus_method_async(input_signature="s", method_name="result")
    async def on_result(self, payload: str) -> None:
        await self.messages.append("result", payload)

    @dbus_method_async(input_signature="s", method_name="error")
    async def on_error(self, payload: str) -> None:
        await self.messages.append("error", payload)

    @dbus_method_async(input_signature="s", method_name="debug")
    async def on_debug(self, payload: str) -> None:
        await self.messages.append("debug", payload)

    @dbus_method_async(input_signature="s", method_name="finished")
    async def on_finished(self, payload: str) -> None:
        await self.messages.append("finished", payload)


# }}}


def open_session_bus() -> SdBus:
    """Open a new connection to the session bus."""
    return sd_bus_open_user()


def script_object_path(script_id: int, kde5: bool) -> str:
    """Object path of a loaded script, KWin 5 and KWin 6 use different schemes."""
    return f"/{script_id}" if kde5 else f"{KWIN_SCRIPTING_PATH}/Script{script_id}"


async def call_remote(call: Awaitable[Any], what: str) -> Any:  # noqa: ANN401
    """Await a D-Bus call, bounded by `REPLY_TIMEOUT`.

    Raises:
        IpcError: error reply or no reply in time
    """
    try:
        return await asyncio.wait_for(call, timeout=REPLY_TIMEOUT)
    except TimeoutError as e:
        msg = f"{what}: no reply after {REPLY_TIMEOUT:g}s"
        raise IpcError(msg) from e
    except SdBusBaseError as e:
        msg = f"{what} failed"
        raise IpcError(msg) from e


async def remove_script(name: str) -> bool:
    """Unload a script registered earlier with `--shortcut --name <name>`."""
    log = get_logger("ipc")
    try:
        bus = open_session_bus()
    except (SdBusBaseError, OSError) as e:
        msg = "cannot connect to the session bus"
        raise IpcError(msg) from e
    try:
        scripting = KWinScripting.new_proxy(KWIN_SERVICE, KWIN_SCRIPTING_PATH, bus=bus)
        removed = bool(await call_remote(scripting.unload_script(name), "unloadScript"))
    finally:
        bus.close()
    if not removed:
        log.warning("No script named %s", name)
    return removed


class KWinSession:  # pylint: disable=too-many-instance-attributes
    """Loads one generated script into KWin, runs it and relays its callbacks.

    Use as an async context manager: the connections and the temporary
    script file are set up on enter and released on exit.
    """

    def __init__(self, kde5: bool = False, shortcut: str = "", script_name: str = "") -> None:
        self.log = get_logger("ipc")
        self.kde5 = kde5
        self.shortcut = shortcut
        self.script_name = script_name
        self.bus_name = f"{CLIENT_BUS_NAME_PREFIX}{os.getpid()}"
        self.messages = MessageLog()
        self.script_path = ""
        self.script_id: int | None = None
        self.control_bus: SdBus | None = None
        self.receiving_bus: SdBus | None = None
        self._listener: asyncio.Task | None = None
        self._callbacks: ScriptCallbacks | None = None  # exported object, kept referenced while listening

    @property
    def marker(self) -> str:
        """Unique id of this run: the base name of the script file."""
        return os.path.basename(self.script_path)

    async def __aenter__(self) -> Self:
        try:
            await self.open()
        except Exception:
            await self.close()
            raise
        return self

    async def __aexit__(self, *_: object) -> None:
        await self.close()

    async def open(self) -> None:
        """Connect both buses, claim the callback name and create the script file."""
        self.log.debug("===== Connect to the session bus =====")
        try:
            self.control_bus = open_session_bus()
            self.receiving_bus = open_session_bus()
        except (SdBusBaseError, OSError) as e:
            msg = "cannot connect to the session bus"
            raise IpcError(msg) from e
        await call_remote(self.receiving_bus.request_name_async(self.bus_name, 0), f"request name {self.bus_name}")
        self.log.debug("Callback address: %s", self.bus_name)

        async with aiofiles.tempfile.NamedTemporaryFile("w", prefix=SCRIPT_FILE_PREFIX, suffix=SCRIPT_FILE_SUFFIX, delete=False) as f:
            self.script_path = str(f.name)

    async def close(self) -> None:
        """Stop listening, remove the script file and disconnect."""
        await self.stop_listener()
        if self.script_path:
            with contextlib.suppress(FileNotFoundError):
                await aiofiles.os.remove(self.script_path)
        for bus in (self.receiving_bus, self.control_bus):
            if bus is not None:
                bus.close()
        self.receiving_bus = self.control_bus = None

    # Listener {{{

    async def start_listener(self) -> None:
        """Export the callback object and keep the receiving connection serviced.

        Raises:
            IpcError: the callback object can't be exported
        """
        assert self._listener is None, "listener already started"
        callbacks = ScriptCallbacks(self.messages)
        try:
            callbacks.export_to_dbus(CALLBACK_PATH, self.receiving_bus)
        except SdBusBaseError as e:
            msg = f"cannot export the callback object on {CALLBACK_PATH}"
            raise IpcError(msg) from e
        self._callbacks = callbacks
        self._listener = asyncio.create_task(self._listen())

    async def _listen(self) -> None:
        while True:
            await asyncio.sleep(LISTENER_POLL_INTERVAL)

    async def stop_listener(self) -> None:
        """Cancel the listener and wait for it."""
        if self._listener is None:
            return
        self._listener.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._listener
        self._listener = None
        self._callbacks = None

    # }}}

    async def write_script(self, text: str) -> None:
        """Save the generated script into the session's file."""
        async with aiofiles.open(self.script_path, "w", encoding="utf-8") as f:
            await f.write(text)

    async def execute(self, script: str, dry_run: bool = False) -> int | None:
        """Save `script`, then load and run it, printing what it reports.

        In dry-run mode the script is only printed.

        Returns:
            The KWin script id (None in dry-run mode)
        """
        self.log.debug("Script:\n%s", script)
        await self.write_script(script)
        if dry_run:
            print(script.strip())
            return None

        self.log.debug("===== Load script into KWin =====")
        scripting = KWinScripting.new_proxy(KWIN_SERVICE, KWIN_SCRIPTING_PATH, bus=self.control_bus)
        self.script_id = script_id = int(await call_remote(scripting.load_script(self.script_path, self.script_name), "loadScript"))
        self.log.debug("Script ID: %s", script_id)

        self.log.debug("===== Run script =====")
        instance = KWinScript.new_proxy(KWIN_SERVICE, script_object_path(script_id, self.kde5), bus=self.control_bus)
        await self.start_listener()
        start_time = datetime.now()
        await call_remote(instance.run(), "run")
        if not self.shortcut:
            await call_remote(instance.stop(), "stop")
            if not await self.messages.wait_finished(CALLBACK_TIMEOUT):
                self.log.warning("The script didn't report back in %gs, output may be incomplete", CALLBACK_TIMEOUT)

        if is_debug():
            journal = await fetch_kwin_log(start_time)
            self.log.debug("KWin log from the systemd journal:\n%s", journal)

        self.log.debug("===== Output =====")
        print_messages(await self.messages.drain())

        if self.shortcut:
            print(f"Shortcut registered: {self.shortcut}")
            print(f"Script ID: {script_id}")
            if self.script_name:
                print(f"Script name: {self.script_name}")
        return script_id
