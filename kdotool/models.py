"""Data model shared by the compiler and the D-Bus session."""

from collections.abc import Iterator, Mapping
from dataclasses import asdict, dataclass
from enum import Enum, IntEnum, StrEnum
from types import MappingProxyType
from typing import Any

__all__ = [
    "ArgumentError",
    "AxisValue",
    "Bindings",
    "CompileError",
    "ExitCode",
    "GeneratedScript",
    "IpcError",
    "KdotoolError",
    "Message",
    "MissingArgumentError",
    "MutationOp",
    "PropertyMutation",
    "ReferenceKind",
    "RenderError",
    "SessionContext",
    "Step",
    "UnknownCommandError",
    "UnknownPropertyError",
    "WindowReference",
    "format_error",
]


class ExitCode(IntEnum):
    """Process exit codes."""

    SUCCESS = 0
    USAGE_ERROR = 1  # bad command line
    COMMAND_ERROR = 2  # generic failure
    CONNECTION_ERROR = 3  # D-Bus failure or timeout
    INTERNAL_ERROR = 4  # template / binding mismatch


# Errors {{{


class KdotoolError(Exception):
    """Base class of every fatal kdotool error."""

    @property
    def exit_code(self) -> ExitCode:
        """Exit code to use when this error reaches the top level."""
        return ExitCode.COMMAND_ERROR


class ArgumentError(KdotoolError):
    """Malformed flag, unexpected token or unparsable number."""

    @property
    def exit_code(self) -> ExitCode:
        return ExitCode.USAGE_ERROR


class MissingArgumentError(ArgumentError):
    """A required argument was not provided."""

    def __init__(self, name: str) -> None:
        super().__init__(f"missing argument '{name}'")
        self.name = name


class UnknownCommandError(ArgumentError):
    """The command name is not part of the command table."""

    def __init__(self, command: str) -> None:
        super().__init__(f"Unknown command: {command}")
        self.command = command


class UnknownPropertyError(ArgumentError):
    """`windowstate` was given a property it doesn't know."""

    def __init__(self, key: str) -> None:
        super().__init__(f"unsupported property '{key}'")
        self.key = key


class CompileError(KdotoolError):
    """Adds the command name to an error raised while compiling it."""

    def __init__(self, command: str) -> None:
        super().__init__(f"in command '{command}'")
        self.command = command

    @property
    def exit_code(self) -> ExitCode:
        cause = self.__cause__
        if isinstance(cause, KdotoolError):
            return cause.exit_code
        return ExitCode.COMMAND_ERROR


class RenderError(KdotoolError):
    """A fragment references a variable that isn't bound (internal bug)."""

    @property
    def exit_code(self) -> ExitCode:
        return ExitCode.INTERNAL_ERROR


class IpcError(KdotoolError):
    """D-Bus connection failure, error reply or reply timeout."""

    @property
    def exit_code(self) -> ExitCode:
        return ExitCode.CONNECTION_ERROR


def format_error(err: BaseException) -> str:
    """Join an exception and its chain of causes into one line.

    Eg:
        "in command 'windowmove': invalid value 'abc' for 'x'"
    """
    parts = []
    current: BaseException | None = err
    while current is not None:
        text = str(current) or type(current).__name__
        parts.append(text)
        current = current.__cause__
    return ": ".join(parts)


# }}}

# Bindings {{{


class Bindings(Mapping[str, Any]):
    """Immutable template binding record.

    `extend` returns a new record layered on top of this one, the original
    is never modified.
    """

    __slots__ = ("_values",)

    def __init__(self, values: Mapping[str, Any] | None = None) -> None:
        self._values = MappingProxyType(dict(values or {}))

    def extend(self, **values: Any) -> "Bindings":  # noqa: ANN401
        """Return a copy of the record with `values` added or overridden."""
        return Bindings({**self._values, **values})

    def __getitem__(self, key: str) -> Any:  # noqa: ANN401
        return self._values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"Bindings({dict(self._values)!r})"


@dataclass(frozen=True)
class SessionContext:
    """Process-wide settings, fixed once the command line is parsed."""

    debug: bool = False
    kde5: bool = False
    marker: str = ""
    dbus_addr: str = ""
    script_name: str = ""
    shortcut: str = ""
    cmdline: str = ""

    def bindings(self) -> Bindings:
        """Base bindings for every fragment."""
        return Bindings(asdict(self))


# }}}

# Compilation products {{{


@dataclass(frozen=True)
class Step:
    """One compiled directive."""

    script: str
    is_query: bool = False
    pushed_back_token: str | None = None


class ReferenceKind(Enum):
    """How a window action addresses its target."""

    EXPLICIT_ID = "explicit-id"
    STACK_INDEX = "stack-index"
    ALL_STACK = "all-stack"


@dataclass(frozen=True)
class WindowReference:
    """Target of a window action."""

    kind: ReferenceKind
    window_id: str = ""
    index: int = 1

    @classmethod
    def explicit(cls, window_id: str) -> "WindowReference":
        """Window given by its KWin id."""
        return cls(ReferenceKind.EXPLICIT_ID, window_id=window_id)

    @classmethod
    def stack_item(cls, index: int = 1) -> "WindowReference":
        """Nth window of the current stack (1-based)."""
        return cls(ReferenceKind.STACK_INDEX, index=index)

    @classmethod
    def all_stack(cls) -> "WindowReference":
        """Every window of the current stack."""
        return cls(ReferenceKind.ALL_STACK)


class MutationOp(StrEnum):
    """`windowstate` operations."""

    SET = "set"
    UNSET = "unset"
    TOGGLE = "toggle"


@dataclass(frozen=True)
class PropertyMutation:
    """One `--add/--remove/--toggle <property>` flag of `windowstate`."""

    op: MutationOp
    prop: str  # KWin property name, eg: "keepAbove"


@dataclass(frozen=True)
class AxisValue:
    """One coordinate of `windowmove` / `windowsize`."""

    value: int | None = None  # None leaves the axis unchanged
    percent: bool = False


@dataclass(frozen=True)
class GeneratedScript:
    """Compiled pipeline: header, one fragment per step, optional last result, footer."""

    header: str
    steps: tuple[Step, ...]
    last_output: str
    footer: str

    @property
    def text(self) -> str:
        """The whole script."""
        return self.header + "".join(step.script for step in self.steps) + self.last_output + self.footer


# }}}


@dataclass(frozen=True)
class Message:
    """A callback received from the running script."""

    tag: str  # "result", "error", or any other label
    payload: str
