" generic fixtures "
from unittest.mock import AsyncMock, Mock

import pytest

from kdotool.models import SessionContext


def pytest_configure():
    "Runs once before all"
    from kdotool.logging_setup import init_logger

    init_logger("/dev/null", force_debug=True)


@pytest.fixture
def context():
    "A typical session context"
    return SessionContext(
        debug=False,
        kde5=False,
        marker="kdotool-test.js",
        dbus_addr="org.kde.kdotool.pid1",
        cmdline="kdotool search firefox",
    )


@pytest.fixture
def renderer():
    "A renderer mock returning the fragment name, keeps track of the bindings"
    mocked = Mock()
    mocked.render.side_effect = lambda fragment, bindings: f"[{fragment}]"
    return mocked


@pytest.fixture
def bus_mocks(mocker):
    "Mocks both D-Bus connections and the KWin proxies"
    control_bus = Mock(name="control_bus")
    receiving_bus = Mock(name="receiving_bus")
    receiving_bus.request_name_async = AsyncMock()
    mocker.patch("kdotool.ipc.open_session_bus", side_effect=[control_bus, receiving_bus])

    scripting = Mock(name="scripting")
    scripting.load_script = AsyncMock(return_value=7)
    scripting.unload_script = AsyncMock(return_value=True)
    scripting_factory = mocker.patch("kdotool.ipc.KWinScripting.new_proxy", return_value=scripting)

    script = Mock(name="script")
    script.run = AsyncMock()
    script.stop = AsyncMock()
    script_factory = mocker.patch("kdotool.ipc.KWinScript.new_proxy", return_value=script)

    export = mocker.patch("kdotool.ipc.ScriptCallbacks.export_to_dbus")
    mocker.patch("kdotool.ipc.fetch_kwin_log", AsyncMock(return_value=""))

    return Mock(
        control_bus=control_bus,
        receiving_bus=receiving_bus,
        scripting=scripting,
        scripting_factory=scripting_factory,
        script=script,
        script_factory=script_factory,
        export=export,
    )
