"""Canonical path handling.

All paths that end up in comparisons or subprocess arguments go through
canonicalize() first: absolute, symlinks resolved, and on Windows without the
verbatim ``\\\\?\\`` prefix that most native tools reject.
"""

import os
from pathlib import Path
from typing import Union

from .errors import PathResolutionError

_VERBATIM_PREFIX = "\\\\?\\"
_VERBATIM_UNC_PREFIX = "\\\\?\\UNC\\"

PathLike = Union[str, "os.PathLike[str]"]


def strip_verbatim_prefix(path: str) -> str:
    """Turn a Windows verbatim path back into a regular one."""
    if path.startswith(_VERBATIM_UNC_PREFIX):
        return "\\\\" + path[len(_VERBATIM_UNC_PREFIX):]
    if path.startswith(_VERBATIM_PREFIX):
        return path[len(_VERBATIM_PREFIX):]
    return path


def canonicalize(path: PathLike) -> Path:
    """Resolve an existing path to its absolute, symlink-free form.

    Args:
        path: Path to resolve (relative paths resolve against the current
            working directory)

    Returns:
        Canonical Path

    Raises:
        PathResolutionError: If the path does not exist or cannot be resolved
    """
    raw = Path(path)
    try:
        resolved = raw.resolve(strict=True)
    except FileNotFoundError:
        raise PathResolutionError(raw)
    except (OSError, RuntimeError) as e:
        raise PathResolutionError(raw, str(e))
    return Path(strip_verbatim_prefix(str(resolved)))


def current_directory() -> Path:
    """Canonical form of the process working directory.

    Raises:
        PathResolutionError: If the working directory was removed or is unreadable
    """
    try:
        cwd = os.getcwd()
    except FileNotFoundError:
        raise PathResolutionError(Path("."), "current working directory does not exist")
    except OSError as e:
        raise PathResolutionError(Path("."), str(e))
    return canonicalize(cwd)
