"""Command execution utilities using sh library.

Commands are always passed as an explicit argument vector and never through
a shell, so series paths with quotes, spaces or `$` survive untouched.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Any

import sh
from sh import ErrorReturnCode

logger = logging.getLogger(__name__)


@dataclass
class CmdResult:
    """Result of a command execution."""

    argv: tuple[str, ...]
    stdout: str
    stderr: str
    exit_code: int

    @property
    def ok(self) -> bool:
        """True if command succeeded (exit code 0)."""
        return self.exit_code == 0


class CmdError(Exception):
    """Raised when a command fails."""

    def __init__(
        self,
        *,
        argv: Sequence[str],
        exit_code: int,
        stdout: str | bytes,
        stderr: str | bytes,
    ) -> None:
        self.argv = tuple(argv)
        self.exit_code = exit_code
        self.stdout = _to_text(stdout)
        self.stderr = _to_text(stderr)

        msg = f"Command failed with exit code {exit_code}: {' '.join(argv)}"
        if self.stderr:
            msg += f"\nStderr: {self.stderr[:500]}"  # Truncate long errors
        super().__init__(msg)


class CommandNotFoundError(CmdError):
    """Raised when the command could not be spawned at all."""

    def __init__(self, *, argv: Sequence[str], reason: str) -> None:
        super().__init__(argv=argv, exit_code=-1, stdout="", stderr=reason)
        self.reason = reason


def _to_text(data: str | bytes | Any) -> str:
    """Convert sh output to text string."""
    if isinstance(data, bytes):
        return data.decode("utf-8", errors="replace")
    if isinstance(data, str):
        return data
    # sh command objects have stdout property
    if hasattr(data, "stdout"):
        return _to_text(data.stdout)
    return str(data)


def run(
    argv: Sequence[str],
    *,
    timeout: float | int | None = None,
    ok_codes: Iterable[int] = (0,),
    capture_output: bool = True,
    **kwargs: Any,
) -> CmdResult:
    """Run external command via sh with better error handling.

    Args:
        argv: Command and arguments as list (e.g., ["ffmpeg", "-version"])
        timeout: Optional timeout in seconds
        ok_codes: Exit codes considered successful (default: (0,))
        capture_output: If True, capture stdout/stderr (default: True)
        **kwargs: Additional arguments passed to sh.Command

    Returns:
        CmdResult with stdout, stderr, and exit code

    Raises:
        CommandNotFoundError: If the binary is missing or cannot be executed
        CmdError: If command fails (exit code not in ok_codes) or times out

    Example:
        result = run(["ffmpeg", "-hide_banner", "-version"])
        print(result.stdout)
    """
    if not argv:
        raise ValueError("argv cannot be empty")

    cmd_name, *cmd_args = argv

    sh_kwargs: dict[str, Any] = {
        "_ok_code": list(ok_codes),
        "_tty_out": False,
        **kwargs,
    }
    if timeout is not None:
        sh_kwargs["_timeout"] = timeout
    if capture_output:
        sh_kwargs["_return_cmd"] = True

    try:
        cmd = sh.Command(cmd_name)
    except sh.CommandNotFound as e:
        raise CommandNotFoundError(argv=argv, reason=f"Command not found: {cmd_name}") from e

    logger.debug("Running: %s", " ".join(argv))
    try:
        result = cmd(*cmd_args, **sh_kwargs)
    except ErrorReturnCode as e:
        raise CmdError(
            argv=argv,
            exit_code=e.exit_code,
            stdout=e.stdout,
            stderr=e.stderr,
        ) from e
    except sh.TimeoutException as e:
        raise CmdError(
            argv=argv,
            exit_code=-1,
            stdout=b"",
            stderr=f"Command timed out after {timeout}s".encode(),
        ) from e
    except OSError as e:
        # exec() itself failed: permission denied, bad interpreter, ...
        raise CommandNotFoundError(argv=argv, reason=str(e)) from e

    return CmdResult(
        argv=tuple(argv),
        stdout=_to_text(result),
        stderr=_to_text(getattr(result, "stderr", "")),
        exit_code=getattr(result, "exit_code", 0),
    )

