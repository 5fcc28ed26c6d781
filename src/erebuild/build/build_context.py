"""Build Context - paths and configuration for one orchestration run.

This module defines:
- ArtifactNames: per-platform file names of the dependency artifacts
- ExternalDependencySpec: one external dependency (sources, outputs, artifacts)
- BuildLayout: every path of the repository, derived from the client directory
- ClientUnitConfig: the fixed compile unit of the client application
- BuildParams: layout plus environment-provided settings

Design:
    BuildParams flows from the CLI (or a host build script) into the
    Orchestrator. Dependency specs are created by the Orchestrator once the
    output directories exist, so their paths can be canonicalized.
"""

import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional, Tuple

from ..errors import BuildEnvironmentError, PathResolutionError
from ..paths import canonicalize
from .build_profiles import DEFAULT_PROFILE, BuildProfile
from .link_directives import LinkKind

# Environment variables read by erebuild
OUT_DIR_VAR = "OUT_DIR"
CMAKE_VAR = "EREBUILD_CMAKE"
GENERATOR_VAR = "EREBUILD_CMAKE_GENERATOR"

PROTOBUF = "protobuf"
SDL = "sdl"


@dataclass(frozen=True)
class ArtifactNames:
    """File names of the artifacts each dependency build installs.

    Attributes:
        protoc: Schema compiler executable under bin/
        protobuf_lib: Protobuf static archive under lib/
        protobuf_link_name: Name passed to the linker for protobuf
        sdl_lib: SDL2 static archive under lib/
        sdl_link_name: Name passed to the linker for SDL2
        sdl_runtime: SDL2 shared library, relative to the SDL output directory
    """

    protoc: str
    protobuf_lib: str
    protobuf_link_name: str
    sdl_lib: str
    sdl_link_name: str
    sdl_runtime: Tuple[str, str]

    @classmethod
    def for_platform(cls, platform: Optional[str] = None) -> "ArtifactNames":
        platform = platform if platform is not None else sys.platform
        if platform == "win32":
            return cls(
                protoc="protoc.exe",
                protobuf_lib="libprotobuf.lib",
                protobuf_link_name="libprotobuf",
                sdl_lib="SDL2.lib",
                sdl_link_name="SDL2",
                sdl_runtime=("bin", "SDL2.dll"),
            )
        if platform == "darwin":
            return cls(
                protoc="protoc",
                protobuf_lib="libprotobuf.a",
                protobuf_link_name="protobuf",
                sdl_lib="libSDL2.a",
                sdl_link_name="SDL2",
                sdl_runtime=("lib", "libSDL2.dylib"),
            )
        return cls(
            protoc="protoc",
            protobuf_lib="libprotobuf.a",
            protobuf_link_name="protobuf",
            sdl_lib="libSDL2.a",
            sdl_link_name="SDL2",
            sdl_runtime=("lib", "libSDL2.so"),
        )


@dataclass(frozen=True)
class ExternalDependencySpec:
    """An external native dependency built with CMake.

    Attributes:
        name: Short dependency name (used in logs and errors)
        source_dir: CMake source directory
        output_dir: Install prefix; build tree lives in output_dir/build
        artifacts: Files whose presence means the dependency is built
        link_name: Library name for the link directive
        link_kind: Static or dynamic linking
        runtime_artifact: Shared library that must ship next to the host output
        cmake_defines: Extra CMake cache entries for the configure step
    """

    name: str
    source_dir: Path
    output_dir: Path
    artifacts: Tuple[Path, ...]
    link_name: str
    link_kind: LinkKind = LinkKind.STATIC
    runtime_artifact: Optional[Path] = None
    cmake_defines: Tuple[Tuple[str, str], ...] = ()

    @property
    def build_dir(self) -> Path:
        return self.output_dir / "build"

    @property
    def lib_dir(self) -> Path:
        return self.output_dir / "lib"

    @property
    def bin_dir(self) -> Path:
        return self.output_dir / "bin"


@dataclass(frozen=True)
class BuildLayout:
    """Repository paths, all derived from the client directory.

    The client lives in ``<root>/client``; dependencies are vendored in
    ``<root>/external`` and built into ``<root>/build``.
    """

    client_dir: Path
    repo_root: Path
    protobuf_source: Path
    protobuf_output: Path
    sdl_source: Path
    sdl_output: Path
    schema_files: Tuple[Path, ...]
    bindings_output: Path

    @classmethod
    def create(cls, client_dir: Path) -> "BuildLayout":
        """Derive the layout from an existing client directory.

        Raises:
            PathResolutionError: If client_dir does not exist
        """
        client_dir = canonicalize(client_dir)
        repo_root = client_dir.parent
        external = repo_root / "external"
        build = repo_root / "build"
        return cls(
            client_dir=client_dir,
            repo_root=repo_root,
            protobuf_source=external / "protobuf" / "cmake",
            protobuf_output=build / "protobuf",
            sdl_source=external / "sdl",
            sdl_output=build / "sdl",
            # Schema paths are relative to repo_root, the schema compiler's working directory
            schema_files=(Path("proto") / "rocktree.proto",),
            bindings_output=Path(client_dir.name) / "cpp" / "src",
        )

    @property
    def output_dirs(self) -> Tuple[Path, Path]:
        return (self.protobuf_output, self.sdl_output)

    @property
    def bindings_dir(self) -> Path:
        """Directory the schema compiler generates; its presence skips the step."""
        return self.client_dir / "cpp" / "src" / "proto"

    def protobuf_spec(self, output_dir: Path, names: ArtifactNames) -> ExternalDependencySpec:
        lib_dir = output_dir / "lib"
        return ExternalDependencySpec(
            name=PROTOBUF,
            source_dir=self.protobuf_source,
            output_dir=output_dir,
            artifacts=(output_dir / "bin" / names.protoc, lib_dir / names.protobuf_lib),
            link_name=names.protobuf_link_name,
            cmake_defines=(("protobuf_BUILD_TESTS", "OFF"),),
        )

    def sdl_spec(self, output_dir: Path, names: ArtifactNames) -> ExternalDependencySpec:
        runtime_subdir, runtime_name = names.sdl_runtime
        return ExternalDependencySpec(
            name=SDL,
            source_dir=self.sdl_source,
            output_dir=output_dir,
            artifacts=(output_dir / "lib" / names.sdl_lib,),
            link_name=names.sdl_link_name,
            runtime_artifact=output_dir / runtime_subdir / runtime_name,
        )


@dataclass(frozen=True)
class ClientUnitConfig:
    """The client's compile unit. Paths are relative to the client directory.

    ``includes`` is the header search order passed to the compiler. The
    groups partition it so the assembled include set can be checked against
    its sources: the client's own headers, the two dependencies' public
    headers, and header-only third-party code bundled in external/.
    """

    sources: Tuple[str, ...] = ("cpp/src/crn/crn.cc", "cpp/src/main.cpp")
    includes: Tuple[str, ...] = (
        "cpp/src/crn",
        "cpp/src",
        "cpp/include",
        "../external",
        "../external/eigen",
        "../external/protobuf/src",
        "../external/gl2/include",
        "../external/sdl/include",
    )
    own_includes: Tuple[str, ...] = ("cpp/src/crn", "cpp/src", "cpp/include")
    dependency_includes: Tuple[str, ...] = ("../external/protobuf/src", "../external/sdl/include")
    third_party_includes: Tuple[str, ...] = ("../external", "../external/eigen", "../external/gl2/include")
    defines: Tuple[Tuple[str, Optional[str]], ...] = (
        ("_CRT_SECURE_NO_WARNINGS", None),
        ("WIN32_LEAN_AND_MEAN", None),
    )
    flags: Tuple[str, ...] = ("/std:c++14", "/EHsc")
    output_name: str = "ere"
    cpp: bool = True
    static_crt: bool = True
    shared_flag: bool = False


def read_out_dir(environ: Mapping[str, str]) -> Path:
    """Read and canonicalize the host output directory.

    Raises:
        BuildEnvironmentError: If OUT_DIR is unset, empty, or not a directory
    """
    value = environ.get(OUT_DIR_VAR, "")
    if not value.strip():
        raise BuildEnvironmentError(OUT_DIR_VAR, "not set; the host build system must provide it")
    try:
        out_dir = canonicalize(value)
    except PathResolutionError as e:
        raise BuildEnvironmentError(OUT_DIR_VAR, f"{e.reason}: {value}") from e
    if not out_dir.is_dir():
        raise BuildEnvironmentError(OUT_DIR_VAR, f"not a directory: {out_dir}")
    return out_dir


@dataclass(frozen=True)
class BuildParams:
    """Everything the Orchestrator needs for one run.

    Attributes:
        layout: Repository layout
        out_dir: Canonical host output directory (from OUT_DIR)
        profile: Dependency build profile, always RELEASE from from_environment()
        names: Artifact file names for the current platform
        unit: Client compile unit configuration
        cmake: CMake executable
        generator: Optional CMake generator
    """

    layout: BuildLayout
    out_dir: Path
    profile: BuildProfile = DEFAULT_PROFILE
    names: ArtifactNames = field(default_factory=ArtifactNames.for_platform)
    unit: ClientUnitConfig = field(default_factory=ClientUnitConfig)
    cmake: str = "cmake"
    generator: Optional[str] = None

    @classmethod
    def from_environment(
        cls,
        client_dir: Path,
        environ: Optional[Mapping[str, str]] = None,
    ) -> "BuildParams":
        """Create BuildParams from the client directory and the environment.

        Raises:
            BuildEnvironmentError: If OUT_DIR is missing or malformed
            PathResolutionError: If client_dir does not exist
        """
        environ = environ if environ is not None else os.environ
        return cls(
            layout=BuildLayout.create(client_dir),
            out_dir=read_out_dir(environ),
            cmake=environ.get(CMAKE_VAR) or "cmake",
            generator=environ.get(GENERATOR_VAR) or None,
        )
