"""CMake-driven builds of external dependencies.

Build Process:
    1. Configure: cmake -S <source> -B <output>/build
                  -DCMAKE_INSTALL_PREFIX=<output> -DCMAKE_BUILD_TYPE=<profile>
    2. Build and install: cmake --build <output>/build --config <profile>
                          --target install

Artifacts land under the output directory (bin/, lib/, include/), which is
the layout ExternalDependencySpec.artifacts refers to.
"""

import logging
from dataclasses import replace
from typing import List, Optional

from ..errors import FileSystemError
from ..paths import canonicalize
from ..subprocess_utils import run_tool
from .build_context import ExternalDependencySpec
from .build_profiles import DEFAULT_PROFILE, BuildProfile, cmake_definitions, get_profile

logger = logging.getLogger(__name__)


class ToolchainBuilder:
    """Configures, builds and installs a dependency with CMake.

    Each call blocks until CMake exits. Nothing is cached here: callers
    decide whether a build is needed (see ArtifactProbe).
    """

    def __init__(self, cmake: str = "cmake", generator: Optional[str] = None):
        """
        Args:
            cmake: CMake executable name or path
            generator: Optional CMake generator (e.g. "Ninja")
        """
        self.cmake = cmake
        self.generator = generator

    def configure_command(self, dep: ExternalDependencySpec, profile: BuildProfile) -> List[str]:
        cmd = [
            self.cmake,
            "-S",
            str(dep.source_dir),
            "-B",
            str(dep.build_dir),
        ]
        if self.generator:
            cmd += ["-G", self.generator]
        cmd.append(f"-DCMAKE_INSTALL_PREFIX={dep.output_dir}")
        cmd += cmake_definitions(profile, dict(dep.cmake_defines))
        return cmd

    def build_command(self, dep: ExternalDependencySpec, profile: BuildProfile) -> List[str]:
        return [
            self.cmake,
            "--build",
            str(dep.build_dir),
            "--config",
            get_profile(profile).cmake_build_type,
            "--target",
            "install",
        ]

    def build(self, dep: ExternalDependencySpec, profile: BuildProfile = DEFAULT_PROFILE) -> str:
        """Build and install one dependency.

        Args:
            dep: Dependency to build
            profile: Build profile

        Returns:
            Combined output of both CMake invocations

        Raises:
            PathResolutionError: If the source directory does not exist
            FileSystemError: If the build directory cannot be created
            SubprocessError: If either CMake step fails to start or exits nonzero
        """
        dep = replace(dep, source_dir=canonicalize(dep.source_dir))

        try:
            dep.build_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise FileSystemError(f"Cannot create build directory {dep.build_dir}: {e}", dep.build_dir) from e

        configure_output = run_tool(self.configure_command(dep, profile), dep.name)
        build_output = run_tool(self.build_command(dep, profile), dep.name)
        logger.debug("[%s] installed into %s", dep.name, dep.output_dir)
        return configure_output + build_output

