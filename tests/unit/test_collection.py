"""Every test directory must be reachable by a plain `pytest` run."""

from fnmatch import fnmatch
from pathlib import Path

TESTS_ROOT = Path(__file__).resolve().parents[1]


def _test_directories():
    return [d for d in TESTS_ROOT.rglob("*") if d.is_dir() and d.name != "__pycache__"]


def test_no_test_directory_matches_norecursedirs(pytestconfig):
    patterns = pytestconfig.getini("norecursedirs")

    excluded = [d for d in _test_directories() if any(fnmatch(d.name, p) for p in patterns)]

    assert excluded == []


def test_build_tests_are_in_a_collected_directory(pytestconfig):
    build_tests = TESTS_ROOT / "unit" / "build"
    patterns = pytestconfig.getini("norecursedirs")

    assert build_tests in _test_directories()
    assert not any(fnmatch("build", p) for p in patterns)
