from __future__ import annotations

import json
from pathlib import Path

import pytest

from luau_lift.config import LUAU_VERSION, LiftConfig, ParserConfig, load_config
from luau_lift.exceptions import ConfigError


def test_defaults() -> None:
    config = LiftConfig()
    assert config.parser == ParserConfig(expected_version=LUAU_VERSION)
    assert config.stop_on_decode_error is False
    assert config.debug_dir is None


def test_load_json(tmp_path) -> None:
    path = tmp_path / "lift.json"
    path.write_text(
        json.dumps(
            {
                "parser": {"expected_version": "0x02"},
                "stop_on_decode_error": True,
                "debug_dir": "out/debug",
            }
        )
    )
    config = load_config(path)
    assert config.parser.expected_version == 2
    assert config.stop_on_decode_error is True
    assert config.debug_dir == Path("out/debug")


def test_load_yaml(tmp_path) -> None:
    path = tmp_path / "lift.yaml"
    path.write_text("parser:\n  expected_version: 3\nstop_on_decode_error: false\n")
    config = load_config(path)
    assert config.parser.expected_version == 3
    assert config.stop_on_decode_error is False


def test_empty_files_give_defaults(tmp_path) -> None:
    for name in ("empty.yml", "empty.json"):
        path = tmp_path / name
        path.write_text("")
        assert load_config(path) == LiftConfig()


@pytest.mark.parametrize(
    "payload",
    [
        {"unknown": 1},
        {"parser": []},
        {"parser": {"expected_version": True}},
        {"parser": {"expected_version": 256}},
        {"parser": {"expected_version": "two"}},
        {"stop_on_decode_error": "yes"},
        {"parser": 0},
        {"debug_dir": 5},
        {"debug_dir": ["out"]},
    ],
)
def test_invalid_values(payload) -> None:
    with pytest.raises(ConfigError):
        LiftConfig.from_mapping(payload)


def test_non_mapping_root(tmp_path) -> None:
    path = tmp_path / "list.yaml"
    path.write_text("- 1\n- 2\n")
    with pytest.raises(ConfigError):
        load_config(path)


def test_malformed_and_missing_files(tmp_path) -> None:
    bad = tmp_path / "bad.json"
    bad.write_text("{")
    with pytest.raises(ConfigError):
        load_config(bad)
    with pytest.raises(ConfigError):
        load_config(tmp_path / "missing.yaml")


def test_null_sections_fall_back_to_defaults() -> None:
    config = LiftConfig.from_mapping({"parser": None, "debug_dir": None})
    assert config == LiftConfig()
