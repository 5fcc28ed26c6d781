"""Error types raised by erebuild build stages.

Every stage raises a subclass of OrchestrationError. The orchestrator stops
at the first one and hands it back to its caller unchanged.
"""

from pathlib import Path
from typing import Optional, Sequence

# Number of trailing output lines quoted in a SubprocessError message
_OUTPUT_TAIL_LINES = 20


class OrchestrationError(Exception):
    """Base class for all build stage failures."""

    pass


class FileSystemError(OrchestrationError):
    """Raised when a directory, copy or existence check fails."""

    def __init__(self, message: str, path: Optional[Path] = None):
        super().__init__(message)
        self.path = path


class PathResolutionError(OrchestrationError):
    """Raised when a path that must exist cannot be canonicalized."""

    def __init__(self, path: Path, reason: str = "path does not exist"):
        super().__init__(f"Cannot resolve {path}: {reason}")
        self.path = path
        self.reason = reason


class BuildEnvironmentError(OrchestrationError):
    """Raised when a required environment value is absent or malformed."""

    def __init__(self, variable: str, message: str):
        super().__init__(f"{variable}: {message}")
        self.variable = variable


class SubprocessError(OrchestrationError):
    """Raised when an external tool cannot be spawned or exits nonzero.

    Attributes:
        dependency: Name of the dependency or job the tool was run for
        command: Full command line
        returncode: Exit status, or None if the process never started
        output: Combined stdout/stderr captured from the tool
    """

    def __init__(
        self,
        dependency: str,
        command: Sequence[str],
        returncode: Optional[int],
        output: str,
        reason: Optional[str] = None,
    ):
        self.dependency = dependency
        self.command = list(command)
        self.returncode = returncode
        self.output = output
        self.reason = reason
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        tool = self.command[0] if self.command else "<empty command>"
        if self.returncode is None:
            header = f"[{self.dependency}] failed to start {tool}"
            if self.reason:
                header += f": {self.reason}"
        else:
            header = f"[{self.dependency}] {tool} exited with status {self.returncode}"

        tail = self.output.strip().splitlines()[-_OUTPUT_TAIL_LINES:]
        if not tail:
            return header
        return header + "\n" + "\n".join(tail)
