"""
Invocation of the tool binary.

Every invocation appends ``--output=json`` so the tool reports results as JSON
on stdout. With that flag the tool writes workflow commands (``::debug::``,
``::add-mask::`` ...) to stderr instead, so stderr is both captured and
forwarded verbatim to the host's stdout where the CI runner picks them up.

Two failure modes share the same capture and error parsing:
- ``ExecMode.RAISE`` raises ``ExecError`` (library use)
- ``ExecMode.EXIT`` logs the error and exits with the child's exit code
  (script use)
"""

import json
import logging
import os
import subprocess
import sys
import threading
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import BinaryIO, Dict, List, Optional, Sequence, Union

from spacekit.core.exceptions import ExecError, VersionReportError
from spacekit.core.platform import DEFAULT_TOOL_NAME
from spacekit.release.version import normalize_version

logger = logging.getLogger(__name__)

OUTPUT_FLAG = "--output=json"
CHUNK_SIZE = 8192


class ExecMode(Enum):
    """How a non-zero exit code is reported."""

    RAISE = "raise"
    EXIT = "exit"


@dataclass
class ExecResult:
    """Captured outcome of one invocation."""

    exit_code: int
    stdout: str
    stderr: str


class CommandExecutor:
    """
    Runs the tool with JSON output and demultiplexed stderr.

    Example:
        >>> executor = CommandExecutor(bin_path="/usr/local/bin/spacectl")
        >>> result = executor.run(["version"])
        >>> json.loads(result.stdout)["version"]
        '0.0.42'
    """

    def __init__(
        self,
        bin_path: Optional[Union[str, Path]] = None,
        mode: ExecMode = ExecMode.RAISE,
        forward_to: Optional[BinaryIO] = None,
    ):
        """
        Initialize executor.

        Args:
            bin_path: Default binary (default: tool name resolved via PATH)
            mode: Default failure mode
            forward_to: Binary stream receiving the child's stderr
                (default: host stdout)
        """
        self.bin_path = str(bin_path) if bin_path else DEFAULT_TOOL_NAME
        self.mode = mode
        self.forward_to = forward_to

    def run(
        self,
        args: Sequence[str],
        bin_path: Optional[Union[str, Path]] = None,
        cwd: Optional[Union[str, Path]] = None,
        env: Optional[Dict[str, str]] = None,
        mode: Optional[ExecMode] = None,
    ) -> ExecResult:
        """
        Run the tool and capture its output.

        Args:
            args: Tool arguments (``--output=json`` is appended)
            bin_path: Binary to run (default: executor's binary)
            cwd: Working directory
            env: Environment variables layered over the current environment
            mode: Failure mode (default: executor's mode)

        Returns:
            ExecResult for a zero exit code

        Raises:
            ExecError: On non-zero exit in ``ExecMode.RAISE``, or if the
                binary cannot be started
            SystemExit: On non-zero exit in ``ExecMode.EXIT``
        """
        binary = str(bin_path) if bin_path else self.bin_path
        mode = mode or self.mode
        exec_args = [*args, OUTPUT_FLAG]
        command = " ".join([binary, *exec_args])

        logger.debug(f"Running {command}")
        exit_code, stdout, stderr = self._spawn(binary, exec_args, cwd, env, command)

        if exit_code == 0:
            return ExecResult(exit_code=exit_code, stdout=stdout, stderr=stderr)

        error = ExecError(
            _error_message(stdout, command, exit_code),
            exit_code=exit_code,
            stdout=stdout,
            stderr=stderr,
            command=command,
        )
        if mode == ExecMode.EXIT:
            logger.error(error.message)
            sys.exit(exit_code)
        raise error

    def _spawn(
        self,
        binary: str,
        exec_args: List[str],
        cwd: Optional[Union[str, Path]],
        env: Optional[Dict[str, str]],
        command: str,
    ):
        """Start the child, pump its pipes and wait for it to exit."""
        child_env = {**os.environ, **env} if env else None

        try:
            proc = subprocess.Popen(
                [binary, *exec_args],
                cwd=str(cwd) if cwd else None,
                env=child_env,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
            )
        except OSError as e:
            exit_code = 126 if isinstance(e, PermissionError) else 127
            raise ExecError(
                f"Failed to start '{command}': {e}",
                exit_code=exit_code,
                stdout="",
                stderr="",
                command=command,
            ) from e

        stderr_chunks: List[bytes] = []
        pump = threading.Thread(
            target=self._pump_stderr,
            args=(proc.stderr, stderr_chunks),
            daemon=True,
        )
        pump.start()

        try:
            stdout_bytes = proc.stdout.read()
            pump.join()
            exit_code = proc.wait()
        finally:
            proc.stdout.close()
            proc.stderr.close()

        return (
            exit_code,
            stdout_bytes.decode("utf-8", errors="replace"),
            b"".join(stderr_chunks).decode("utf-8", errors="replace"),
        )

    def _pump_stderr(self, stream: BinaryIO, chunks: List[bytes]) -> None:
        """Accumulate stderr and forward every chunk unmodified."""
        target = self.forward_to or getattr(sys.stdout, "buffer", None)

        while True:
            chunk = stream.read1(CHUNK_SIZE)
            if not chunk:
                break
            chunks.append(chunk)
            if target is not None:
                target.write(chunk)
                target.flush()
            else:
                sys.stdout.write(chunk.decode("utf-8", errors="replace"))
                sys.stdout.flush()


def _error_message(stdout: str, command: str, exit_code: int) -> str:
    """Pick the tool's JSON ``message`` or fall back to a generic message."""
    try:
        payload = json.loads(stdout.strip())
    except ValueError:
        payload = None

    if isinstance(payload, dict) and payload.get("message"):
        return str(payload["message"])
    return f"'{command}' failed with exit code {exit_code}"


def run(
    args: Sequence[str],
    bin_path: Optional[Union[str, Path]] = None,
    cwd: Optional[Union[str, Path]] = None,
    env: Optional[Dict[str, str]] = None,
    mode: ExecMode = ExecMode.RAISE,
    forward_to: Optional[BinaryIO] = None,
) -> ExecResult:
    """Run the tool once; see ``CommandExecutor.run``."""
    executor = CommandExecutor(bin_path=bin_path, mode=mode, forward_to=forward_to)
    return executor.run(args, cwd=cwd, env=env)


@dataclass
class BinaryHandle:
    """A binary together with the version it reports."""

    path: Path
    version: str


def get_binary_version(
    bin_path: Union[str, Path], executor: Optional[CommandExecutor] = None
) -> str:
    """
    Ask a binary for its version.

    Args:
        bin_path: Binary to query
        executor: Executor to use (default: new ``CommandExecutor``)

    Returns:
        Normalized version reported by the binary

    Raises:
        ExecError: If the binary cannot be run or exits non-zero
        VersionReportError: If the output has no parseable version
    """
    executor = executor or CommandExecutor()
    result = executor.run(["version"], bin_path=bin_path, mode=ExecMode.RAISE)

    try:
        payload = json.loads(result.stdout.strip())
        version = payload["version"]
    except (ValueError, KeyError, TypeError) as e:
        logger.debug(f"Failed to parse version output: {e}")
        raise VersionReportError(
            f"Failed to read version reported by {bin_path}"
        ) from e

    if not isinstance(version, str) or not version.strip():
        raise VersionReportError(f"Binary at {bin_path} reported no version")

    return normalize_version(version)


def inspect_binary(
    bin_path: Union[str, Path], executor: Optional[CommandExecutor] = None
) -> BinaryHandle:
    """Run ``version`` on a binary and pair the result with its path."""
    return BinaryHandle(path=Path(bin_path), version=get_binary_version(bin_path, executor))
