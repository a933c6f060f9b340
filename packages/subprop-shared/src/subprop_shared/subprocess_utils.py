"""Subprocess helpers shared by all CLI-backed gateways.

Every git, gh and az invocation goes through run_subprocess_with_context so
failures carry the command, exit code and stderr, and so timings show up in
debug logs.
"""

import logging
import os
import subprocess
import time
from collections.abc import Mapping, Sequence
from pathlib import Path

logger = logging.getLogger(__name__)

# gh and az occasionally hang on network stalls; bound them
_REVIEW_CLI_TIMEOUT = 120


class SubprocessCommandError(RuntimeError):
    """A subprocess exited with a non-zero status.

    Attributes:
        cmd: The command that was executed
        returncode: Its exit status
        stdout: Captured standard output
        stderr: Captured standard error
    """

    def __init__(
        self,
        *,
        cmd: Sequence[str],
        returncode: int,
        stdout: str,
        stderr: str,
        operation_context: str,
    ) -> None:
        self.cmd = list(cmd)
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
        self.operation_context = operation_context
        detail = stderr.strip() or stdout.strip() or "no output"
        super().__init__(
            f"Failed to {operation_context} (exit code {returncode})\n"
            f"Command: {_build_timing_description(self.cmd)}\n"
            f"{detail}"
        )


def _build_timing_description(cmd: Sequence[str]) -> str:
    """Describe a command for logs, collapsing long multi-line arguments."""
    parts = []
    for arg in cmd:
        if "\n" in arg and len(arg) > 80:
            parts.append(f"<{len(arg)} chars>")
        else:
            parts.append(arg)
    return " ".join(parts)


def copied_env_for_git_subprocess() -> dict[str, str]:
    """Copy the environment with interactive git prompts disabled.

    A credential prompt would block a propagation run forever, so git must
    fail instead of asking.
    """
    env = os.environ.copy()
    env["GIT_TERMINAL_PROMPT"] = "0"
    return env


def run_subprocess_with_context(
    cmd: Sequence[str],
    *,
    operation_context: str,
    cwd: Path | None = None,
    env: Mapping[str, str] | None = None,
    input: str | None = None,
    check: bool = True,
    timeout: float | None = None,
) -> subprocess.CompletedProcess[str]:
    """Run a command, capturing text output.

    Args:
        cmd: Command and arguments
        operation_context: Human readable description used in error messages,
            phrased to follow "Failed to ..."
        cwd: Working directory
        env: Environment (defaults to the current process environment)
        input: Text passed on stdin
        check: Raise SubprocessCommandError on a non-zero exit status
        timeout: Seconds before the command is killed

    Returns:
        The completed process with text stdout/stderr

    Raises:
        SubprocessCommandError: If the executable is missing, the command times
            out, or check is True and the command fails
    """
    description = _build_timing_description(cmd)
    logger.debug("Running: %s (cwd=%s)", description, cwd)
    started = time.monotonic()
    try:
        result = subprocess.run(
            list(cmd),
            cwd=cwd,
            env=dict(env) if env is not None else None,
            input=input,
            capture_output=True,
            text=True,
            check=False,
            timeout=timeout,
        )
    except FileNotFoundError as e:
        raise SubprocessCommandError(
            cmd=cmd,
            returncode=127,
            stdout="",
            stderr=f"{cmd[0]}: command not found",
            operation_context=operation_context,
        ) from e
    except subprocess.TimeoutExpired as e:
        raise SubprocessCommandError(
            cmd=cmd,
            returncode=-1,
            stdout="",
            stderr=f"Timed out after {timeout}s",
            operation_context=operation_context,
        ) from e
    logger.debug(
        "Finished in %.2fs with exit code %d: %s",
        time.monotonic() - started,
        result.returncode,
        description,
    )

    if check and result.returncode != 0:
        raise SubprocessCommandError(
            cmd=cmd,
            returncode=result.returncode,
            stdout=result.stdout,
            stderr=result.stderr,
            operation_context=operation_context,
        )
    return result


def execute_review_cli_command(
    cmd: Sequence[str], *, operation_context: str, cwd: Path | None
) -> str:
    """Run a gh/az command and return its stdout.

    Raises:
        SubprocessCommandError: If the CLI is missing or the command fails
    """
    result = run_subprocess_with_context(
        cmd,
        operation_context=operation_context,
        cwd=cwd,
        timeout=_REVIEW_CLI_TIMEOUT,
    )
    return result.stdout
