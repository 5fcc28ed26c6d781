"""Compile unit assembly.

The compile unit is the complete request the host build system needs to run
the native compiler and archiver for the client: sources, include
directories, preprocessor defines, flags and the output library name.

Usage:
    unit = (
        CompileUnitAssembler(base_dir=client_dir)
        .cpp()
        .static_crt()
        .file("cpp/src/main.cpp")
        .include("cpp/src")
        .define("WIN32_LEAN_AND_MEAN")
        .flag("/EHsc")
        .assemble("ere")
    )
    Path(out_dir, "compile_unit.json").write_text(unit.to_json())
"""

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from ..errors import FileSystemError, PathResolutionError
from ..paths import canonicalize

PathArg = Union[str, Path]


@dataclass(frozen=True)
class CompileUnitSpec:
    """Immutable compile request handed to the host build system.

    Attributes:
        output_name: Name of the produced library (without prefix/suffix)
        sources: Canonical source files, in compile order
        includes: Canonical include directories, first occurrence wins
        defines: Preprocessor defines as (name, value) pairs; None means ``-DNAME``
        flags: Extra compiler flags, in order
        cpp: Compile as C++
        static_crt: Link the C runtime statically
        shared_flag: Build position-independent code for a shared library
    """

    output_name: str
    sources: Tuple[Path, ...]
    includes: Tuple[Path, ...]
    defines: Tuple[Tuple[str, Optional[str]], ...]
    flags: Tuple[str, ...]
    cpp: bool = False
    static_crt: bool = False
    shared_flag: bool = False

    @property
    def define_map(self) -> Dict[str, Optional[str]]:
        return dict(self.defines)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize with a stable key order."""
        return {
            "output_name": self.output_name,
            "cpp": self.cpp,
            "static_crt": self.static_crt,
            "shared_flag": self.shared_flag,
            "sources": [str(p) for p in self.sources],
            "includes": [str(p) for p in self.includes],
            "defines": [{"name": name, "value": value} for name, value in self.defines],
            "flags": list(self.flags),
        }

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent) + "\n"


class CompileUnitAssembler:
    """Collects compile settings incrementally and validates them on assemble().

    Relative paths are taken relative to ``base_dir`` (the current directory
    if not given). Nothing touches the filesystem until assemble().
    """

    def __init__(self, base_dir: Optional[Path] = None):
        self.base_dir = Path(base_dir) if base_dir is not None else None
        self._sources: List[Path] = []
        self._includes: List[Path] = []
        self._defines: Dict[str, Optional[str]] = {}
        self._flags: List[str] = []
        self._cpp = False
        self._static_crt = False
        self._shared_flag = False

    def file(self, path: PathArg) -> "CompileUnitAssembler":
        self._sources.append(self._absolute(path))
        return self

    def files(self, paths: Iterable[PathArg]) -> "CompileUnitAssembler":
        for path in paths:
            self.file(path)
        return self

    def include(self, path: PathArg) -> "CompileUnitAssembler":
        self._includes.append(self._absolute(path))
        return self

    def includes(self, paths: Iterable[PathArg]) -> "CompileUnitAssembler":
        for path in paths:
            self.include(path)
        return self

    def define(self, name: str, value: Optional[str] = None) -> "CompileUnitAssembler":
        """Add a define. Redefining a name keeps its position and the latest value."""
        if not name:
            raise ValueError("define name must not be empty")
        self._defines[name] = value
        return self

    def flag(self, flag: str) -> "CompileUnitAssembler":
        self._flags.append(flag)
        return self

    def flags(self, flags: Iterable[str]) -> "CompileUnitAssembler":
        for flag in flags:
            self.flag(flag)
        return self

    def cpp(self, enabled: bool = True) -> "CompileUnitAssembler":
        self._cpp = enabled
        return self

    def static_crt(self, enabled: bool = True) -> "CompileUnitAssembler":
        self._static_crt = enabled
        return self

    def shared_flag(self, enabled: bool = True) -> "CompileUnitAssembler":
        self._shared_flag = enabled
        return self

    def assemble(self, output_name: str) -> CompileUnitSpec:
        """Validate the collected settings and freeze them.

        Raises:
            ValueError: If output_name is empty or no source was added
            FileSystemError: If a source file or include directory is missing
        """
        if not output_name:
            raise ValueError("output_name must not be empty")
        if not self._sources:
            raise ValueError("compile unit has no source files")

        sources = _unique(self._existing(p, want_dir=False) for p in self._sources)
        includes = _unique(self._existing(p, want_dir=True) for p in self._includes)

        return CompileUnitSpec(
            output_name=output_name,
            sources=sources,
            includes=includes,
            defines=tuple(self._defines.items()),
            flags=tuple(self._flags),
            cpp=self._cpp,
            static_crt=self._static_crt,
            shared_flag=self._shared_flag,
        )

    def _absolute(self, path: PathArg) -> Path:
        path = Path(path)
        if path.is_absolute() or self.base_dir is None:
            return path
        return self.base_dir / path

    def _existing(self, path: Path, want_dir: bool) -> Path:
        kind = "Include directory" if want_dir else "Source file"
        try:
            resolved = canonicalize(path)
        except PathResolutionError as e:
            raise FileSystemError(f"{kind} not found: {path}", path) from e
        if want_dir and not resolved.is_dir():
            raise FileSystemError(f"{kind} is not a directory: {resolved}", resolved)
        if not want_dir and not resolved.is_file():
            raise FileSystemError(f"{kind} is not a file: {resolved}", resolved)
        return resolved


def _unique(paths: Iterable[Path]) -> Tuple[Path, ...]:
    seen = set()
    result = []
    for path in paths:
        if path not in seen:
            seen.add(path)
            result.append(path)
    return tuple(result)


def assemble_compile_unit(
    sources: Iterable[PathArg],
    includes: Iterable[PathArg],
    defines: Mapping[str, Optional[str]],
    flags: Iterable[str],
    output_name: str,
    base_dir: Optional[Path] = None,
    cpp: bool = False,
    static_crt: bool = False,
    shared_flag: bool = False,
) -> CompileUnitSpec:
    """One-shot form of CompileUnitAssembler.

    Raises:
        ValueError: If output_name is empty or sources is empty
        FileSystemError: If a source file or include directory is missing
    """
    assembler = CompileUnitAssembler(base_dir=base_dir).files(sources).includes(includes).flags(flags)
    for name, value in defines.items():
        assembler.define(name, value)
    return assembler.cpp(cpp).static_crt(static_crt).shared_flag(shared_flag).assemble(output_name)
