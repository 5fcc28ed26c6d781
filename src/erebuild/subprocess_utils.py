"""Subprocess helpers for running external build tools.

Wraps subprocess.run so every tool invocation:
- never inherits the console input handle (stdin=DEVNULL)
- does not flash a console window on Windows (CREATE_NO_WINDOW)
- captures combined stdout/stderr for diagnostics
- reports spawn failures and nonzero exits as SubprocessError
"""

import logging
import subprocess
import sys
from pathlib import Path
from typing import Any, Mapping, Optional, Sequence

from .errors import SubprocessError

logger = logging.getLogger(__name__)


def get_subprocess_creation_flags() -> int:
    """Get platform-specific subprocess creation flags.

    Returns:
        - Windows: subprocess.CREATE_NO_WINDOW (prevents console window)
        - Other platforms: 0 (no special flags)
    """
    if sys.platform == "win32":
        return subprocess.CREATE_NO_WINDOW
    return 0


def safe_run(cmd: Sequence[str], **kwargs: Any) -> subprocess.CompletedProcess:
    """Execute subprocess.run with platform-specific flags.

    If 'creationflags' is given it is OR'd with the platform default. If
    'stdin' is given it is used as-is, otherwise stdin is redirected to
    subprocess.DEVNULL.

    Args:
        cmd: Command and arguments (same as subprocess.run)
        **kwargs: Additional arguments passed to subprocess.run

    Returns:
        CompletedProcess result from subprocess.run
    """
    default_flags = get_subprocess_creation_flags()

    if "creationflags" in kwargs:
        kwargs["creationflags"] = kwargs["creationflags"] | default_flags
    elif default_flags:
        kwargs["creationflags"] = default_flags

    if "stdin" not in kwargs:
        kwargs["stdin"] = subprocess.DEVNULL

    return subprocess.run(list(cmd), **kwargs)


def run_tool(
    cmd: Sequence[str],
    label: str,
    cwd: Optional[Path] = None,
    env: Optional[Mapping[str, str]] = None,
) -> str:
    """Run an external tool to completion and return its output.

    Blocks until the process exits. There is no timeout: a hung tool hangs
    the caller.

    Args:
        cmd: Command and arguments
        label: Dependency or job name used in error messages
        cwd: Working directory for the child process only; the parent's
            working directory is never changed
        env: Optional environment for the child process

    Returns:
        Combined stdout/stderr text

    Raises:
        SubprocessError: If the tool cannot be started or exits nonzero
    """
    cmd = [str(part) for part in cmd]
    logger.debug("[%s] running %s (cwd=%s)", label, " ".join(cmd), cwd)

    try:
        result = safe_run(
            cmd,
            cwd=str(cwd) if cwd is not None else None,
            env=dict(env) if env is not None else None,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            encoding="utf-8",
            errors="replace",
            check=False,
        )
    except OSError as e:
        raise SubprocessError(label, cmd, None, "", reason=str(e)) from e

    output = result.stdout or ""
    if result.returncode != 0:
        raise SubprocessError(label, cmd, result.returncode, output)

    logger.debug("[%s] %s exited 0", label, cmd[0])
    return output
