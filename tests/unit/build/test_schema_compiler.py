"""Tests for SchemaCompiler."""

import os
import subprocess
import sys
from pathlib import Path
from unittest.mock import patch

import pytest

from erebuild.build.schema_compiler import SchemaCompileJob, SchemaCompiler
from erebuild.errors import PathResolutionError, SubprocessError


@pytest.fixture
def workspace(tmp_path):
    root = tmp_path / "repo"
    (root / "proto").mkdir(parents=True)
    (root / "proto" / "rocktree.proto").write_text('syntax = "proto2";\n')
    (root / "client").mkdir()
    protoc = tmp_path / "bin" / "protoc"
    protoc.parent.mkdir()
    protoc.write_text("")
    return root.resolve(), protoc.resolve()


def _job(root, protoc, **overrides):
    fields = dict(
        compiler=protoc,
        schema_files=(Path("proto/rocktree.proto"),),
        output_dir=Path("client/cpp/src"),
        working_directory=root,
        original_working_directory=Path.cwd(),
    )
    fields.update(overrides)
    return SchemaCompileJob(**fields)


def test_command(workspace):
    root, protoc = workspace
    cmd = SchemaCompiler().command(_job(root, protoc), protoc)

    assert cmd == [str(protoc), "--cpp_out=client/cpp/src", "proto/rocktree.proto"]


@patch("erebuild.build.schema_compiler.run_tool", return_value="")
def test_runs_in_working_directory(mock_run, workspace):
    root, protoc = workspace
    cwd = os.getcwd()

    SchemaCompiler().compile(_job(root, protoc))

    assert mock_run.call_args.kwargs["cwd"] == root
    assert (root / "client" / "cpp" / "src").is_dir()
    assert os.getcwd() == cwd


@patch("erebuild.build.schema_compiler.run_tool")
def test_working_directory_unchanged_after_failure(mock_run, workspace):
    root, protoc = workspace
    mock_run.side_effect = SubprocessError("schema", [str(protoc)], 1, "rocktree.proto:1:1: error")
    cwd = os.getcwd()

    with pytest.raises(SubprocessError):
        SchemaCompiler().compile(_job(root, protoc))

    assert os.getcwd() == cwd


@pytest.mark.parametrize("target", ["repo", "repo/client", "repo/proto"])
def test_working_directory_unchanged_for_any_target(workspace, target, tmp_path):
    root, protoc = workspace
    working = (tmp_path / target).resolve()
    schema = Path(os.path.relpath(root / "proto" / "rocktree.proto", working))
    cwd = os.getcwd()

    with patch("erebuild.build.schema_compiler.run_tool", return_value=""):
        SchemaCompiler().compile(_job(root, protoc, working_directory=working, schema_files=(schema,)))

    assert os.getcwd() == cwd


def test_missing_schema_file(workspace):
    root, protoc = workspace
    (root / "proto" / "rocktree.proto").unlink()

    with pytest.raises(PathResolutionError):
        SchemaCompiler().compile(_job(root, protoc))


def test_missing_working_directory(workspace, tmp_path):
    root, protoc = workspace

    with pytest.raises(PathResolutionError):
        SchemaCompiler().compile(_job(root, protoc, working_directory=tmp_path / "gone"))


def test_missing_original_working_directory(workspace, tmp_path):
    root, protoc = workspace

    with pytest.raises(PathResolutionError):
        SchemaCompiler().compile(_job(root, protoc, original_working_directory=tmp_path / "gone"))


def test_missing_compiler(workspace, tmp_path):
    root, _ = workspace

    with pytest.raises(PathResolutionError):
        SchemaCompiler().compile(_job(root, tmp_path / "bin" / "nope"))


def test_requires_a_schema_file(workspace):
    root, protoc = workspace

    with pytest.raises(ValueError):
        SchemaCompiler().compile(_job(root, protoc, schema_files=()))


@pytest.mark.skipif(sys.platform == "win32", reason="uses a POSIX shell script as a stand-in compiler")
def test_real_process_sees_working_directory(workspace):
    root, _ = workspace
    script = root / "fake_protoc.sh"
    script.write_text('#!/bin/sh\npwd\nexit 0\n')
    script.chmod(0o755)

    output = SchemaCompiler().compile(_job(root, script))

    assert Path(output.strip()).resolve() == root


@patch("erebuild.subprocess_utils.subprocess.run")
def test_nonzero_exit(mock_run, workspace):
    root, protoc = workspace
    mock_run.return_value = subprocess.CompletedProcess([], returncode=1, stdout="proto/rocktree.proto: not found\n")

    with pytest.raises(SubprocessError) as exc_info:
        SchemaCompiler().compile(_job(root, protoc))

    assert exc_info.value.dependency == "schema"
    assert "not found" in exc_info.value.output
