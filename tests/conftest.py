"""Pytest configuration and fixtures for erebuild tests.

Most pipeline tests run against a throwaway repository created under
tmp_path:

    repo/
      client/cpp/src/crn/crn.cc, client/cpp/src/main.cpp, client/cpp/include/
      external/protobuf/{cmake,src}/, external/sdl/include/,
      external/eigen/, external/gl2/include/
      proto/rocktree.proto
    out/                       (OUT_DIR)

CMake and protoc are replaced by fakes that create the files the real tools
would install.
"""

import io
import sys
import warnings
from pathlib import Path
from typing import Callable, List, Optional

import pytest

from erebuild import output
from erebuild.build.build_context import ArtifactNames, BuildLayout, BuildParams, ExternalDependencySpec
from erebuild.build.build_profiles import BuildProfile
from erebuild.build.link_directives import LinkDirectiveEmitter
from erebuild.build.schema_compiler import SchemaCompileJob
from erebuild.errors import SubprocessError

# Suppress ResourceWarnings from file cleanup in Python 3.13
if sys.version_info >= (3, 13):
    warnings.filterwarnings("ignore", category=ResourceWarning)

LINUX_NAMES = ArtifactNames.for_platform("linux")


@pytest.fixture(autouse=True)
def _quiet_output():
    """Send progress output to a buffer instead of the captured stderr."""
    buffer = io.StringIO()
    output.set_output_stream(buffer)
    output.set_verbose(False)
    yield buffer
    output.set_output_stream(None)


def _touch(path: Path, content: str = "") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    return path


@pytest.fixture
def repo(tmp_path) -> Path:
    """Create a repository skeleton and return its root."""
    root = tmp_path / "repo"
    client = root / "client"
    _touch(client / "cpp" / "src" / "crn" / "crn.cc", "// crn\n")
    _touch(client / "cpp" / "src" / "main.cpp", "int main() { return 0; }\n")
    (client / "cpp" / "include").mkdir(parents=True)
    for sub in ("protobuf/cmake", "protobuf/src", "sdl/include", "eigen", "gl2/include"):
        (root / "external" / sub).mkdir(parents=True)
    _touch(root / "proto" / "rocktree.proto", 'syntax = "proto2";\npackage geo_globetrotter_proto_rocktree;\n')
    return root


@pytest.fixture
def out_dir(tmp_path) -> Path:
    path = tmp_path / "out"
    path.mkdir()
    return path


@pytest.fixture
def params(repo, out_dir) -> BuildParams:
    return BuildParams(
        layout=BuildLayout.create(repo / "client"),
        out_dir=out_dir.resolve(),
        profile=BuildProfile.RELEASE,
        names=LINUX_NAMES,
    )


@pytest.fixture
def emitter() -> LinkDirectiveEmitter:
    return LinkDirectiveEmitter(stream=io.StringIO())


def install_artifacts(dep: ExternalDependencySpec) -> None:
    """Create every file a successful CMake install of ``dep`` leaves behind."""
    for artifact in dep.artifacts:
        _touch(artifact, "artifact")
    if dep.runtime_artifact is not None:
        _touch(dep.runtime_artifact, "runtime")


@pytest.fixture
def prebuilt(params) -> Callable[..., None]:
    """Return a helper that pre-populates dependency outputs."""

    def _prebuild(protobuf: bool = True, sdl: bool = True, bindings: bool = True) -> None:
        layout = params.layout
        if protobuf:
            install_artifacts(layout.protobuf_spec(layout.protobuf_output, params.names))
        if sdl:
            install_artifacts(layout.sdl_spec(layout.sdl_output, params.names))
        if bindings:
            _touch(layout.bindings_dir / "rocktree.pb.h")

    return _prebuild


class FakeBuilder:
    """Stands in for ToolchainBuilder; installs artifacts instead of running CMake."""

    def __init__(self, fail_for: Optional[str] = None, install: bool = True):
        self.fail_for = fail_for
        self.install = install
        self.calls: List[str] = []
        self.profiles: List[BuildProfile] = []

    def build(self, dep: ExternalDependencySpec, profile: BuildProfile) -> str:
        self.calls.append(dep.name)
        self.profiles.append(profile)
        if dep.name == self.fail_for:
            raise SubprocessError(dep.name, ["cmake", "--build", str(dep.build_dir)], 2, "error: boom\n")
        if self.install:
            install_artifacts(dep)
        return ""


class FakeSchemaCompiler:
    """Stands in for SchemaCompiler; creates the bindings directory."""

    def __init__(self, error: Optional[Exception] = None, output_text: str = ""):
        self.error = error
        self.output_text = output_text
        self.jobs: List[SchemaCompileJob] = []

    def compile(self, job: SchemaCompileJob) -> str:
        self.jobs.append(job)
        if self.error is not None:
            raise self.error
        _touch(job.working_directory / job.output_dir / "proto" / "rocktree.pb.h")
        return self.output_text


@pytest.fixture
def fake_builder() -> FakeBuilder:
    return FakeBuilder()


@pytest.fixture
def fake_schema_compiler() -> FakeSchemaCompiler:
    return FakeSchemaCompiler()
