"""Tests for error types."""

from pathlib import Path

from erebuild.errors import (
    BuildEnvironmentError,
    FileSystemError,
    OrchestrationError,
    PathResolutionError,
    SubprocessError,
)


def test_hierarchy():
    for cls in (FileSystemError, PathResolutionError, BuildEnvironmentError, SubprocessError):
        assert issubclass(cls, OrchestrationError)


def test_build_environment_error_does_not_shadow_os_error():
    assert not issubclass(BuildEnvironmentError, OSError)


def test_subprocess_error_message_quotes_output_tail():
    output = "\n".join(f"line {i}" for i in range(100))
    error = SubprocessError("protobuf", ["cmake", "--build", "."], 1, output)

    message = str(error)
    assert message.startswith("[protobuf] cmake exited with status 1")
    assert "line 99" in message
    assert "line 10\n" not in message
    assert error.output == output


def test_subprocess_error_spawn_failure():
    error = SubprocessError("sdl", ["cmake"], None, "", reason="No such file or directory")
    assert str(error) == "[sdl] failed to start cmake: No such file or directory"


def test_path_resolution_error():
    error = PathResolutionError(Path("proto/rocktree.proto"))
    assert "rocktree.proto" in str(error)
    assert error.reason == "path does not exist"
