"""Tests for Settings.from_env()."""
from __future__ import annotations

from pathlib import Path

import pytest

from buildora.config import DEFAULT_COMPRESSION_LEVEL, DEFAULT_EXPORT_DIR, Settings
from buildora.tree import NameConflicts


def test_defaults():
    settings = Settings.from_env({})
    assert settings.compression_level == DEFAULT_COMPRESSION_LEVEL == 6
    assert settings.export_dir == DEFAULT_EXPORT_DIR
    assert settings.strict_data_uris is False
    assert settings.name_conflicts is NameConflicts.REJECT


def test_values_from_env(tmp_path):
    settings = Settings.from_env({
        "BUILDORA_DB_PATH": str(tmp_path / "p.db"),
        "BUILDORA_EXPORT_DIR": str(tmp_path / "out"),
        "BUILDORA_COMPRESSION_LEVEL": "9",
        "BUILDORA_STRICT_DATA_URIS": "true",
        "BUILDORA_NAME_CONFLICTS": "Suffix",
    })
    assert settings.db_path == tmp_path / "p.db"
    assert settings.export_dir == tmp_path / "out"
    assert settings.compression_level == 9
    assert settings.strict_data_uris is True
    assert settings.name_conflicts is NameConflicts.SUFFIX


@pytest.mark.parametrize("raw,expected", [("-3", 0), ("0", 0), ("42", 9)])
def test_compression_level_is_clamped(raw, expected):
    assert Settings.from_env({"BUILDORA_COMPRESSION_LEVEL": raw}).compression_level == expected


@pytest.mark.parametrize("env,message", [
    ({"BUILDORA_COMPRESSION_LEVEL": "fast"}, "expected an integer"),
    ({"BUILDORA_STRICT_DATA_URIS": "maybe"}, "expected a boolean"),
    ({"BUILDORA_NAME_CONFLICTS": "overwrite"}, "unknown value"),
])
def test_invalid_values(env, message):
    with pytest.raises(ValueError, match=message):
        Settings.from_env(env)


def test_empty_strict_flag_means_false():
    assert Settings.from_env({"BUILDORA_STRICT_DATA_URIS": ""}).strict_data_uris is False


def test_paths_are_expanded():
    settings = Settings(db_path="~/x.db")
    assert settings.db_path == Path.home() / "x.db"
