"""
Exec command implementation.

Runs spacectl in exit mode: its JSON output is printed and a failure exits
with spacectl's own exit code.
"""

import logging
import sys

from spacekit.core.exceptions import ExecError
from spacekit.tool.executor import CommandExecutor, ExecMode

logger = logging.getLogger(__name__)


def run(args) -> int:
    """
    Run the exec command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success)
    """
    tool_args = list(args.tool_args)
    if tool_args[:1] == ["--"]:
        tool_args = tool_args[1:]

    executor = CommandExecutor(bin_path=args.bin_path, mode=ExecMode.EXIT)
    try:
        result = executor.run(tool_args, cwd=args.cwd)
    except ExecError as e:
        # Only raised when the binary could not be started
        logger.error(e.message)
        return e.exit_code

    sys.stdout.write(result.stdout)
    sys.stdout.flush()
    return 0
