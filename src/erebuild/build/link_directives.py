"""Link directives for the host build system.

The host reads our stdout line by line. Lines starting with the directive
prefix are instructions; everything else is ignored. Two instructions link a
library:

    cargo:rustc-link-search=native=/abs/build/protobuf/lib
    cargo:rustc-link-lib=static=libprotobuf

and one surfaces a message in the host's own output:

    cargo:warning=compiling protobuf
"""

import logging
import sys
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import List, Optional, TextIO

from ..errors import FileSystemError

logger = logging.getLogger(__name__)

DEFAULT_DIRECTIVE_PREFIX = "cargo:"


class LinkKind(Enum):
    """How a library is linked. Values are the host's spelling."""

    STATIC = "static"
    DYNAMIC = "dylib"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class LinkDirective:
    """Where to find a library and how to link it."""

    search_path: Path
    library_name: str
    kind: LinkKind

    def lines(self, prefix: str = DEFAULT_DIRECTIVE_PREFIX) -> List[str]:
        """Render as host directive lines, search path first."""
        return [
            f"{prefix}rustc-link-search=native={self.search_path}",
            f"{prefix}rustc-link-lib={self.kind.value}={self.library_name}",
        ]


class LinkDirectiveEmitter:
    """Writes directives to the host's directive channel.

    Args:
        stream: Directive channel (defaults to sys.stdout at write time)
        prefix: Directive prefix understood by the host
    """

    def __init__(self, stream: Optional[TextIO] = None, prefix: str = DEFAULT_DIRECTIVE_PREFIX):
        self._stream = stream
        self.prefix = prefix
        self.emitted: List[LinkDirective] = []

    def emit(self, search_path: Path, library_name: str, kind: LinkKind) -> LinkDirective:
        """Emit the search-path and link directives for one library.

        Args:
            search_path: Canonical directory containing the library
            library_name: Library name as the linker expects it
            kind: Static or dynamic linking

        Returns:
            The emitted LinkDirective

        Raises:
            FileSystemError: If the directive channel cannot be written
        """
        directive = LinkDirective(search_path=Path(search_path), library_name=library_name, kind=kind)
        self._write(directive.lines(self.prefix))
        self.emitted.append(directive)
        logger.debug("emitted link directive %s", directive)
        return directive

    def warning(self, message: str) -> None:
        """Forward a message to the host as one warning per line."""
        lines = [line for line in message.splitlines() if line.strip()]
        self._write([f"{self.prefix}warning={line}" for line in lines])

    def _write(self, lines: List[str]) -> None:
        stream = self._stream if self._stream is not None else sys.stdout
        try:
            for line in lines:
                stream.write(line + "\n")
            stream.flush()
        except (OSError, ValueError) as e:
            # ValueError: write to a closed stream
            raise FileSystemError(f"Cannot write to the host directive channel: {e}") from e
