import sys
from unittest.mock import AsyncMock

import pytest

from kdotool import command
from kdotool.models import IpcError


@pytest.fixture
def run_main(monkeypatch, mocker):
    mocker.patch("kdotool.command.init_logger")

    def _run(*args):
        monkeypatch.setattr(sys, "argv", ["kdotool", *args])
        with pytest.raises(SystemExit) as excinfo:
            command.main()
        return excinfo.value.code

    return _run


@pytest.fixture
def session_mock(mocker):
    session = mocker.patch("kdotool.client.KWinSession").return_value
    session.__aenter__.return_value = session
    session.marker = "kdotool-abcd.js"
    session.bus_name = "org.kde.kdotool.pid42"
    return session


def test_success(run_main, capsys):
    assert run_main("--version") == 0
    assert capsys.readouterr().out == "kdotool v0.2.2\n"


def test_usage_error(run_main, capsys):
    assert run_main("--bogus") == 1
    assert capsys.readouterr().err == "ERROR: invalid option '--bogus'\n"


def test_compile_error(run_main, capsys, session_mock):
    assert run_main("windowmove", "abc", "5") == 1
    assert capsys.readouterr().err == "ERROR: in command 'windowmove': invalid value 'abc' for 'x'\n"


def test_unknown_command(run_main, capsys, session_mock):
    assert run_main("search", "foo", "frobnicate") == 1
    assert capsys.readouterr().err == "ERROR: in command 'frobnicate': Unknown command: frobnicate\n"


def test_connection_error(run_main, capsys, mocker):
    mocker.patch("kdotool.client.remove_script", AsyncMock(side_effect=IpcError("cannot connect to the session bus")))
    assert run_main("--remove", "focus") == 3
    assert capsys.readouterr().err == "ERROR: cannot connect to the session bus\n"
