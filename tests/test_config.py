from __future__ import annotations

import json

import pytest

from pumpgeom import _config
from pumpgeom._config import GenerationLimits, get_generation_limits, get_unit_settings


def test_defaults_written_on_first_use(config_home):
    units = get_unit_settings()
    assert units.name == "millimeters"
    assert units.label == "mm"
    written = json.loads((config_home / "pumpgeom.cfg").read_text())
    assert written["limits"] == {"max_blades": 64, "max_segments": 512}


def test_existing_config_is_not_overwritten(config_home):
    config_home.mkdir(parents=True)
    _config.CONFIG_FILE.write_text(json.dumps({"units": "in"}))
    _config.ensure_user_config()
    assert json.loads(_config.CONFIG_FILE.read_text()) == {"units": "in"}


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("mm", "millimeters"),
        ("Meters", "meters"),
        (" inch ", "inches"),
        ("furlongs", "millimeters"),
    ],
)
def test_unit_aliases(config_home, raw, expected):
    config_home.mkdir(parents=True)
    _config.CONFIG_FILE.write_text(json.dumps({"units": raw}))
    assert get_unit_settings().name == expected


def test_inch_scale(config_home):
    config_home.mkdir(parents=True)
    _config.CONFIG_FILE.write_text(json.dumps({"units": "inches"}))
    assert get_unit_settings().scale_to_mm == pytest.approx(25.4)


def test_limits_from_config(config_home):
    config_home.mkdir(parents=True)
    _config.CONFIG_FILE.write_text(json.dumps({"limits": {"max_blades": 30, "max_segments": 128}}))
    assert get_generation_limits() == GenerationLimits(max_blades=30, max_segments=128)


@pytest.mark.parametrize(
    "limits",
    [
        {"max_blades": 0, "max_segments": "lots"},
        {"max_blades": True, "max_segments": 2},
        {"max_blades": 12.5},
    ],
)
def test_bad_limit_entries_fall_back(config_home, limits):
    config_home.mkdir(parents=True)
    _config.CONFIG_FILE.write_text(json.dumps({"limits": limits}))
    assert get_generation_limits() == GenerationLimits()


def test_unreadable_config_uses_defaults(config_home):
    config_home.mkdir(parents=True)
    _config.CONFIG_FILE.write_text("{not json")
    assert get_unit_settings().name == "millimeters"
    assert get_generation_limits() == _config.DEFAULT_LIMITS


def test_non_object_config_uses_defaults(config_home):
    config_home.mkdir(parents=True)
    _config.CONFIG_FILE.write_text(json.dumps(["units", "meters"]))
    assert get_unit_settings().name == "millimeters"


def test_limits_validate_themselves():
    with pytest.raises(ValueError):
        GenerationLimits(max_blades=0)
    with pytest.raises(ValueError):
        GenerationLimits(max_segments=2)
