"""Test configuration ensuring the project source tree is importable."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parent.parent
TESTS = ROOT / "tests"

root_str = str(ROOT)
if root_str not in sys.path:
    sys.path.insert(0, root_str)
else:
    idx = sys.path.index(root_str)
    if idx != 0:
        sys.path.insert(0, sys.path.pop(idx))

if str(TESTS) in sys.path:
    sys.path.pop(sys.path.index(str(TESTS)))
sys.path.insert(1, str(TESTS))

from fixtures.bytecode_builder import sample_module_bytes  # noqa: E402

from luau_lift.container import parse_module  # noqa: E402


@pytest.fixture
def sample_bytes() -> bytes:
    """Two functions: the entry function 0 and a closure target 1."""

    return sample_module_bytes()


@pytest.fixture
def sample_module(sample_bytes):
    return parse_module(sample_bytes)


@pytest.fixture
def sample_file(tmp_path, sample_bytes) -> Path:
    path = tmp_path / "sample.luauc"
    path.write_bytes(sample_bytes)
    return path
