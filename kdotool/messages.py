"""Callbacks received from the running script."""

import asyncio
import sys
from collections.abc import Iterable
from typing import TextIO

from .models import Message

__all__ = ["FINISHED_TAG", "MessageLog", "print_messages"]

FINISHED_TAG = "finished"


class MessageLog:
    """Append-only log of `(tag, payload)` callbacks, in arrival order.

    Written by the listener, read once the script is done.
    """

    def __init__(self) -> None:
        self._messages: list[Message] = []
        self._lock = asyncio.Lock()
        self._finished = asyncio.Event()

    async def append(self, tag: str, payload: str) -> None:
        """Record one callback."""
        async with self._lock:
            self._messages.append(Message(tag, payload))
        if tag == FINISHED_TAG:
            self._finished.set()

    @property
    def finished(self) -> bool:
        """True once the script reported the end of the pipeline."""
        return self._finished.is_set()

    async def wait_finished(self, timeout: float) -> bool:
        """Wait for the end of the pipeline, returning False on timeout."""
        try:
            await asyncio.wait_for(self._finished.wait(), timeout=timeout)
        except TimeoutError:
            return False
        return True

    async def drain(self) -> list[Message]:
        """Return every message received so far and empty the log."""
        async with self._lock:
            messages, self._messages = self._messages, []
        return messages

    def __len__(self) -> int:
        return len(self._messages)


def print_messages(messages: Iterable[Message], stdout: TextIO | None = None, stderr: TextIO | None = None) -> None:
    """Print the callbacks the way the user expects them.

    - result: the payload, on stdout
    - error: "ERROR: <payload>", on stderr
    - anything else: "<tag>: <payload>", on stdout
    """
    stdout = stdout or sys.stdout
    stderr = stderr or sys.stderr
    for message in messages:
        match message.tag:
            case "result":
                print(message.payload, file=stdout)
            case "error":
                print(f"ERROR: {message.payload}", file=stderr)
            case tag if tag == FINISHED_TAG:
                pass
            case tag:
                print(f"{tag}: {message.payload}", file=stdout)
