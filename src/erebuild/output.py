"""
Timestamped progress output for erebuild.

Every line is prefixed with the time elapsed since the run started, in
MM:SS.cc format, so slow dependency builds are easy to spot in build logs.

Progress goes to stderr by default: stdout is the directive channel read by
the host build system and must only carry directive lines.

Example output:
    00:00.01 PROFILE=release GENERATOR=Ninja
    00:00.02 [2/7] Building protobuf...
    03:41.87       Done (221.85s)
    03:41.88 [3/7] Generating schema bindings...
    03:41.88       Skipped: client/cpp/src/proto already present

Usage:
    from erebuild.output import log, log_phase, log_detail, TimedLogger

    log_phase(2, 7, "Building protobuf...")
    log_detail("Source: external/protobuf/cmake")

    with TimedLogger("Building sdl", phase=(5, 7)):
        builder.build(dep, profile)
"""

import sys
import time
from types import TracebackType
from typing import Optional, TextIO

# Global state for the timer
_start_time: Optional[float] = None
_output_stream: Optional[TextIO] = None
_verbose: bool = False


def init_timer(output_stream: Optional[TextIO] = None) -> None:
    """
    Initialize the run timer.

    Called automatically on the first log line if not called explicitly.

    Args:
        output_stream: Optional output stream (defaults to sys.stderr)
    """
    global _start_time, _output_stream
    _start_time = time.time()
    if output_stream is not None:
        _output_stream = output_stream


def set_output_stream(output_stream: Optional[TextIO]) -> None:
    """Redirect progress output. None restores the sys.stderr default."""
    global _output_stream
    _output_stream = output_stream


def set_verbose(verbose: bool) -> None:
    """
    Set verbose mode for logging.

    Args:
        verbose: If True, verbose_only messages are printed too.
    """
    global _verbose
    _verbose = verbose


def get_elapsed() -> float:
    """Seconds elapsed since init_timer()."""
    if _start_time is None:
        init_timer()
    return time.time() - _start_time  # type: ignore


def format_timestamp() -> str:
    """
    Format the current elapsed time as MM:SS.cc.

    Returns:
        Formatted timestamp string
    """
    elapsed = get_elapsed()
    minutes = int(elapsed // 60)
    seconds = elapsed % 60
    return f"{minutes:02d}:{seconds:05.2f}"


def _print(message: str) -> None:
    stream = _output_stream if _output_stream is not None else sys.stderr
    stream.write(f"{format_timestamp()} {message}\n")
    stream.flush()


def log(message: str, verbose_only: bool = False) -> None:
    """
    Log a message with timestamp.

    Args:
        message: Message to log
        verbose_only: If True, only print if verbose mode is enabled
    """
    if verbose_only and not _verbose:
        return
    _print(message)


def log_phase(phase: int, total: int, message: str, verbose_only: bool = False) -> None:
    """
    Log a pipeline phase message formatted as ``[N/M] message``.

    Args:
        phase: Current phase number
        total: Total number of phases
        message: Phase description
        verbose_only: If True, only print if verbose mode is enabled
    """
    if verbose_only and not _verbose:
        return
    _print(f"[{phase}/{total}] {message}")


def log_detail(message: str, indent: int = 6, verbose_only: bool = False) -> None:
    """
    Log an indented detail line under the current phase.

    Args:
        message: Detail message
        indent: Number of spaces to indent (default 6)
        verbose_only: If True, only print if verbose mode is enabled
    """
    if verbose_only and not _verbose:
        return
    _print(f"{' ' * indent}{message}")


def log_skip(reason: str) -> None:
    """Log that a stage found its artifacts and did nothing."""
    log_detail(f"Skipped: {reason}")


def log_header(title: str, version: str) -> None:
    _print(f"{title} v{version}")


def log_build_complete(build_time: float) -> None:
    _print(f"Dependencies ready in {build_time:.2f}s")


def log_error(message: str) -> None:
    _print(f"ERROR: {message}")


def log_warning(message: str) -> None:
    _print(f"WARNING: {message}")


class TimedLogger:
    """
    Context manager that logs a stage header and its duration.

    The duration line is only written when the block exits cleanly; a failing
    stage is reported by whoever handles the exception.

    Usage:
        with TimedLogger("Building protobuf", phase=(2, 7)) as stage:
            stage.detail("Source: external/protobuf/cmake")
    """

    def __init__(self, operation: str, phase: Optional[tuple[int, int]] = None, verbose_only: bool = False):
        self.operation = operation
        self.phase = phase
        self.verbose_only = verbose_only
        self.start_time = 0.0
        self.elapsed = 0.0

    def __enter__(self) -> "TimedLogger":
        self.start_time = time.time()
        if self.phase:
            log_phase(self.phase[0], self.phase[1], f"{self.operation}...", self.verbose_only)
        else:
            log(f"{self.operation}...", self.verbose_only)
        return self

    def __exit__(
        self,
        exc_type: Optional[type[BaseException]],
        exc_val: Optional[BaseException],
        exc_tb: Optional[TracebackType],
    ) -> None:
        del exc_val, exc_tb  # Unused
        self.elapsed = time.time() - self.start_time
        if exc_type is None:
            log_detail(f"Done ({self.elapsed:.2f}s)", verbose_only=self.verbose_only)
        return None

    def detail(self, message: str) -> None:
        """Log a detail message within this operation."""
        log_detail(message, verbose_only=self.verbose_only)

    def skip(self, reason: str) -> None:
        """Log that this operation had nothing to do."""
        log_skip(reason)
