"""kdotool - run xdotool-like window commands on KWin (entry point)."""

import asyncio
import sys

from .client import run_client
from .logging_setup import get_logger, init_logger
from .models import ExitCode, KdotoolError, format_error

__all__ = ["main"]


def main() -> None:
    """Run the command."""
    init_logger()
    try:
        exit_code = asyncio.run(run_client(sys.argv[1:]))
    except KeyboardInterrupt:
        exit_code = ExitCode.COMMAND_ERROR
    except KdotoolError as e:
        get_logger("startup").debug("Command failed:", exc_info=True)
        print(f"ERROR: {format_error(e)}", file=sys.stderr)
        exit_code = e.exit_code
    except Exception:  # pylint: disable=W0718
        get_logger("startup").critical("Unhandled exception:", exc_info=True)
        exit_code = ExitCode.INTERNAL_ERROR
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
