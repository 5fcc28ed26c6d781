"""Tests for canonical path handling."""

import os
import sys

import pytest

from erebuild.errors import PathResolutionError
from erebuild.paths import canonicalize, current_directory, strip_verbatim_prefix


def test_canonicalize_makes_absolute(tmp_path, monkeypatch):
    (tmp_path / "build").mkdir()
    monkeypatch.chdir(tmp_path)

    result = canonicalize("build")

    assert result.is_absolute()
    assert result == (tmp_path / "build").resolve()


def test_canonicalize_removes_dot_dot(tmp_path):
    (tmp_path / "a" / "b").mkdir(parents=True)
    assert canonicalize(tmp_path / "a" / "b" / "..") == (tmp_path / "a").resolve()


@pytest.mark.skipif(sys.platform == "win32", reason="symlinks need privileges on Windows")
def test_canonicalize_resolves_symlinks(tmp_path):
    target = tmp_path / "real"
    target.mkdir()
    link = tmp_path / "link"
    os.symlink(target, link)

    assert canonicalize(link) == target.resolve()


def test_canonicalize_missing_path(tmp_path):
    with pytest.raises(PathResolutionError) as exc_info:
        canonicalize(tmp_path / "missing")
    assert exc_info.value.path == tmp_path / "missing"


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("\\\\?\\C:\\repo\\build", "C:\\repo\\build"),
        ("\\\\?\\UNC\\server\\share\\x", "\\\\server\\share\\x"),
        ("C:\\repo", "C:\\repo"),
        ("/usr/lib", "/usr/lib"),
    ],
)
def test_strip_verbatim_prefix(raw, expected):
    assert strip_verbatim_prefix(raw) == expected


def test_current_directory(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    assert current_directory() == tmp_path.resolve()


@pytest.mark.skipif(sys.platform == "win32", reason="Windows cannot remove the working directory")
def test_current_directory_removed(tmp_path, monkeypatch):
    gone = tmp_path / "gone"
    gone.mkdir()
    monkeypatch.chdir(gone)
    gone.rmdir()

    with pytest.raises(PathResolutionError) as exc_info:
        current_directory()
    assert "does not exist" in exc_info.value.reason
