"""Build Profile Configuration.

This module maps erebuild build profiles to the CMake settings used when
building external dependencies.

Design:
    Profiles declare every CMake cache entry they control. The toolchain
    builder turns them into ``-D`` arguments and never adds profile-specific
    settings of its own. Dependency builds always use RELEASE; DEBUG exists
    for local investigation of dependency crashes.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Mapping, Optional


class BuildProfile(Enum):
    """Build profile enum for type-safe profile selection."""

    RELEASE = "release"
    DEBUG = "debug"

    def __str__(self) -> str:
        """Return the string value for directory names and display."""
        return self.value


@dataclass(frozen=True)
class ProfileSettings:
    """CMake settings for a build profile.

    Attributes:
        name: Profile identifier (matches BuildProfile enum value)
        description: Human-readable profile description
        cmake_build_type: Value for CMAKE_BUILD_TYPE and ``--config``
        cmake_defines: Extra cache entries, as ordered (name, value) pairs
    """

    name: str
    description: str
    cmake_build_type: str
    cmake_defines: tuple[tuple[str, str], ...]


# Profile configurations - keyed by BuildProfile enum
PROFILES: Dict[BuildProfile, ProfileSettings] = {
    BuildProfile.RELEASE: ProfileSettings(
        name="release",
        description="Optimized dependency build (default)",
        cmake_build_type="Release",
        cmake_defines=(),
    ),
    BuildProfile.DEBUG: ProfileSettings(
        name="debug",
        description="Unoptimized dependency build with debug info",
        cmake_build_type="Debug",
        cmake_defines=(),
    ),
}

# Profile used for every orchestrated dependency build
DEFAULT_PROFILE = BuildProfile.RELEASE


def get_profile(profile: BuildProfile) -> ProfileSettings:
    """Get profile settings by enum.

    Args:
        profile: BuildProfile enum value

    Returns:
        ProfileSettings for the requested profile
    """
    return PROFILES[profile]


def cmake_definitions(profile: BuildProfile, extra: Optional[Mapping[str, str]] = None) -> List[str]:
    """Build the ``-D`` arguments for a CMake configure step.

    Profile entries come first; ``extra`` entries follow in insertion order
    and may not override CMAKE_BUILD_TYPE.

    Args:
        profile: BuildProfile enum value
        extra: Additional per-dependency cache entries

    Returns:
        List of ``-DNAME=VALUE`` arguments
    """
    settings = get_profile(profile)
    entries: Dict[str, str] = {"CMAKE_BUILD_TYPE": settings.cmake_build_type}
    entries.update(settings.cmake_defines)
    for name, value in (extra or {}).items():
        if name == "CMAKE_BUILD_TYPE":
            continue
        entries[name] = value
    return [f"-D{name}={value}" for name, value in entries.items()]


def format_profile_banner(profile: BuildProfile, generator: Optional[str] = None) -> str:
    """Format a build profile banner for display.

    Args:
        profile: BuildProfile enum value
        generator: CMake generator name (optional)

    Returns:
        Formatted banner string
    """
    parts = [f"PROFILE={profile.value}"]
    if generator:
        parts.append(f"GENERATOR={generator}")

    return " ".join(parts)


def print_profile_banner(profile: BuildProfile, generator: Optional[str] = None) -> None:
    """Print the build profile banner through the erebuild output module."""
    from ..output import log

    log(format_profile_banner(profile, generator=generator))
