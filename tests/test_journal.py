from datetime import datetime
from unittest.mock import AsyncMock, Mock

import pytest

from kdotool.journal import fetch_kwin_log, journalctl_command

SINCE = datetime(2024, 1, 2, 3, 4, 5)


def test_command_line():
    args = journalctl_command(SINCE)
    assert args[0] == "journalctl"
    assert "--since=2024-01-02 03:04:05" in args
    assert "--user-unit=plasma-kwin_wayland.service" in args
    assert "QT_CATEGORY=js" in args
    assert args[-1] == "--output=cat"


@pytest.fixture
def subprocess_exec_mock(mocker):
    mocked_exec = mocker.patch("asyncio.create_subprocess_exec", name="mocked_exec")
    mocked_process = Mock(name="mocked_subprocess")
    mocked_process.communicate = AsyncMock(return_value=(b"js: hello\njs: world\n", None))
    mocked_process.wait = AsyncMock()
    mocked_process.returncode = 0
    mocked_exec.return_value = mocked_process
    return mocked_exec, mocked_process


@pytest.mark.asyncio
async def test_fetch(subprocess_exec_mock):
    mocked_exec, _ = subprocess_exec_mock
    assert await fetch_kwin_log(SINCE) == "js: hello\njs: world"
    assert mocked_exec.call_args.args[0] == "journalctl"


@pytest.mark.asyncio
async def test_fetch_failure(subprocess_exec_mock):
    _, process = subprocess_exec_mock
    process.returncode = 1
    assert await fetch_kwin_log(SINCE) == ""


@pytest.mark.asyncio
async def test_no_journalctl(mocker):
    mocker.patch("asyncio.create_subprocess_exec", side_effect=FileNotFoundError("journalctl"))
    assert await fetch_kwin_log(SINCE) == ""


@pytest.mark.asyncio
async def test_timeout(subprocess_exec_mock):
    _, process = subprocess_exec_mock
    process.communicate = AsyncMock(side_effect=TimeoutError)
    assert await fetch_kwin_log(SINCE) == ""
    process.kill.assert_called_once()
