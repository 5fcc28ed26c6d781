"""Artifact existence checks.

The probe is the only place that decides whether a dependency stage has work
to do, so tests can swap it for a fake and verify idempotency without
touching the filesystem.
"""

import logging
import stat
from pathlib import Path
from typing import Iterable, List

from ..errors import FileSystemError

logger = logging.getLogger(__name__)


class ArtifactProbe:
    """Side-effect-free queries for build outputs.

    A file that is simply absent is reported as missing. Anything that makes
    the answer unknowable (permission denied, I/O error, a path component
    that is a regular file) raises FileSystemError instead, so a broken
    environment is never mistaken for "not built yet".
    """

    def exists(self, path: Path) -> bool:
        """Return True if ``path`` is an existing regular file.

        Raises:
            FileSystemError: If the path or its parent cannot be statted
        """
        mode = self._stat_mode(Path(path))
        found = mode is not None and stat.S_ISREG(mode)
        logger.debug("probe file %s -> %s", path, found)
        return found

    def exists_dir(self, path: Path) -> bool:
        """Return True if ``path`` is an existing directory.

        Raises:
            FileSystemError: If the path or its parent cannot be statted
        """
        mode = self._stat_mode(Path(path))
        found = mode is not None and stat.S_ISDIR(mode)
        logger.debug("probe dir %s -> %s", path, found)
        return found

    def missing(self, paths: Iterable[Path]) -> List[Path]:
        """Return the paths that do not exist as files, in input order."""
        return [p for p in paths if not self.exists(p)]

    def _stat_mode(self, path: Path):
        try:
            return path.stat().st_mode
        except FileNotFoundError:
            self._check_parent(path)
            return None
        except NotADirectoryError as e:
            raise FileSystemError(f"A parent of {path} is not a directory: {e}", path) from e
        except OSError as e:
            raise FileSystemError(f"Cannot stat {path}: {e}", path) from e

    def _check_parent(self, path: Path) -> None:
        parent = path.parent
        try:
            mode = parent.stat().st_mode
        except FileNotFoundError:
            # Intermediate output directories (bin/, lib/) appear with the first build
            return
        except OSError as e:
            raise FileSystemError(f"Cannot stat directory {parent}: {e}", parent) from e
        if not stat.S_ISDIR(mode):
            raise FileSystemError(f"Expected a directory at {parent}", parent)
