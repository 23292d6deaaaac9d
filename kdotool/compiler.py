"""Pipeline compiler.

Turns the command chain into one KWin script:

    header
    step 1
    ...
    step N
    [last output]  only when step N is a query
    footer
"""

from enum import Enum

from .logging_setup import get_logger
from .models import CompileError, GeneratedScript, KdotoolError, MissingArgumentError, SessionContext, Step
from .parser import DirectiveParser
from .templates import Fragment, TemplateRenderer
from .tokens import TokenCursor, Value

__all__ = ["CompilerState", "PipelineCompiler"]


class CompilerState(Enum):
    """Compilation states."""

    AWAITING_COMMAND = "awaiting-command"
    COMPILING = "compiling"
    DONE = "done"


class PipelineCompiler:
    """Compiles a chain of directives into a `GeneratedScript`."""

    def __init__(self, renderer: TemplateRenderer | None = None) -> None:
        self.renderer = renderer or TemplateRenderer()
        self.parser = DirectiveParser(self.renderer)
        self.log = get_logger("compiler")

    def compile(self, cursor: TokenCursor, context: SessionContext, first_command: str | None = None) -> GeneratedScript:
        """Compile every directive left in `cursor`.

        Args:
            cursor: the command line, positioned on the first directive (or its arguments)
            context: session settings, bound into every fragment
            first_command: name of the first directive, when already read from the cursor

        Raises:
            CompileError: a directive failed to parse, the cause is attached
            ArgumentError: an option was given where a directive name was expected
            MissingArgumentError: the chain is empty
        """
        bindings = context.bindings()
        steps: list[Step] = []
        pending = first_command
        state = CompilerState.AWAITING_COMMAND

        while state is not CompilerState.DONE:
            match state:
                case CompilerState.AWAITING_COMMAND:
                    if pending is None:
                        item = cursor.next()
                        match item:
                            case None:
                                state = CompilerState.DONE
                                continue
                            case Value(text):
                                pending = text
                            case _:
                                raise item.unexpected()
                    state = CompilerState.COMPILING
                case CompilerState.COMPILING:
                    name, pending = pending, None
                    assert name is not None
                    self.log.debug("compiling %s", name)
                    try:
                        step = self.parser.parse(name, cursor, bindings)
                    except KdotoolError as e:
                        raise CompileError(name) from e
                    steps.append(step)
                    pending = step.pushed_back_token
                    state = CompilerState.AWAITING_COMMAND

        if not steps:
            raise MissingArgumentError("command")

        last_output = self.renderer.render(Fragment.LAST_OUTPUT, bindings) if steps[-1].is_query else ""
        return GeneratedScript(
            header=self.renderer.render(Fragment.HEADER, bindings),
            steps=tuple(steps),
            last_output=last_output,
            footer=self.renderer.render(Fragment.FOOTER, bindings),
        )
