"""Command line tokenizer.

Walks the raw argument list one item at a time, so that global options,
the command chain and every command's own flags can share one cursor:

- `--name` and `--name=value` are `Long` items
- `-abc` is split into `Short("a")`, `Short("b")`, `Short("c")`
- anything else (including everything after `--`) is a `Value`
"""

import re
from collections.abc import Sequence
from dataclasses import dataclass

from .models import ArgumentError

__all__ = ["Long", "Short", "TokenCursor", "Value"]

_NUMBER_RE = re.compile(r"^-\d+%?$")


@dataclass(frozen=True)
class Long:
    """`--name` option."""

    name: str

    def unexpected(self) -> ArgumentError:
        """Error to raise when the option isn't part of the grammar."""
        return ArgumentError(f"invalid option '--{self.name}'")


@dataclass(frozen=True)
class Short:
    """`-x` option."""

    name: str

    def unexpected(self) -> ArgumentError:
        """Error to raise when the option isn't part of the grammar."""
        return ArgumentError(f"invalid option '-{self.name}'")


@dataclass(frozen=True)
class Value:
    """Positional value."""

    text: str

    def unexpected(self) -> ArgumentError:
        """Error to raise when no positional slot is left."""
        return ArgumentError(f"unexpected argument '{self.text}'")

    def as_int(self, name: str) -> int:
        """Parse the value as an integer argument called `name`."""
        try:
            return int(self.text)
        except ValueError:
            msg = f"invalid value '{self.text}' for '{name}'"
            raise ArgumentError(msg) from None


Item = Long | Short | Value


class TokenCursor:
    """Cursor over the raw command line arguments."""

    def __init__(self, args: Sequence[str]) -> None:
        self._args = list(args)
        self._pos = 0
        self._shorts = ""  # pending letters of a "-abc" group
        self._option = ""  # last long option, for error messages
        self._inline: str | None = None  # value given as "--name=value"
        self._finished_opts = False

    @property
    def exhausted(self) -> bool:
        """True when every argument was consumed."""
        return self._pos >= len(self._args) and not self._shorts and self._inline is None

    def remaining(self) -> list[str]:
        """Arguments not consumed yet."""
        return self._args[self._pos :]

    def _check_inline(self) -> None:
        if self._inline is not None:
            value, self._inline = self._inline, None
            msg = f"unexpected value '{value}' for option '--{self._option}'"
            raise ArgumentError(msg)

    def next(self, numbers_as_values: bool = False) -> Item | None:
        """Return the next item, or None when the arguments are exhausted.

        Args:
            numbers_as_values: read "-5" or "-5%" as values instead of short options
        """
        self._check_inline()
        if self._shorts:
            letter, self._shorts = self._shorts[0], self._shorts[1:]
            return Short(letter)
        if self._pos >= len(self._args):
            return None

        arg = self._args[self._pos]
        self._pos += 1

        if self._finished_opts:
            return Value(arg)
        if arg == "--":
            self._finished_opts = True
            return self.next(numbers_as_values)
        if arg.startswith("--"):
            name, sep, inline = arg[2:].partition("=")
            self._option = name
            if sep:
                self._inline = inline
            return Long(name)
        if arg.startswith("-") and len(arg) > 1:
            if numbers_as_values and _NUMBER_RE.match(arg):
                return Value(arg)
            self._shorts = arg[2:]
            return Short(arg[1])
        return Value(arg)

    def value(self) -> Value:
        """Return the value of the option that was just read.

        Accepts both "--name=value" and "--name value".
        """
        if self._inline is not None:
            value, self._inline = self._inline, None
            return Value(value)
        if self._shorts:
            value, self._shorts = self._shorts, ""
            return Value(value)
        if self._pos >= len(self._args):
            msg = f"missing value for option '--{self._option}'"
            raise ArgumentError(msg)
        arg = self._args[self._pos]
        self._pos += 1
        return Value(arg)
