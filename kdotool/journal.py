"""KWin script log, read back from the systemd journal (debug mode only)."""

import asyncio
from datetime import datetime

from .constants import REPLY_TIMEOUT
from .logging_setup import get_logger

__all__ = ["fetch_kwin_log", "journalctl_command"]

KWIN_UNITS = ("plasma-kwin_wayland.service", "plasma-kwin_x11.service")
SCRIPT_CATEGORIES = ("js", "kwin_scripting")


def journalctl_command(since: datetime) -> list[str]:
    """Arguments of the journalctl call reading what KWin scripts printed since `since`."""
    args = ["journalctl", f"--since={since:%Y-%m-%d %H:%M:%S}", "--user"]
    args.extend(f"--user-unit={unit}" for unit in KWIN_UNITS)
    args.extend(f"QT_CATEGORY={category}" for category in SCRIPT_CATEGORIES)
    args.append("--output=cat")
    return args


async def fetch_kwin_log(since: datetime) -> str:
    """Return the KWin script output logged since `since`.

    Never raises: a missing journalctl, a failure or a timeout gives "".
    """
    log = get_logger("journal")
    try:
        proc = await asyncio.create_subprocess_exec(
            *journalctl_command(since),
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.DEVNULL,
        )
    except OSError as e:
        log.debug("journalctl not available: %s", e)
        return ""

    try:
        stdout, _ = await asyncio.wait_for(proc.communicate(), timeout=REPLY_TIMEOUT)
    except TimeoutError:
        log.debug("journalctl timed out")
        proc.kill()
        await proc.wait()
        return ""

    if proc.returncode:
        log.debug("journalctl exited with code %s", proc.returncode)
        return ""
    return stdout.decode("utf-8", errors="replace").rstrip()
