"""
Runtime settings read from the environment (and .env, loaded by the CLI).

    BUILDORA_DB_PATH            sqlite file for the project store
    BUILDORA_EXPORT_DIR         where archives are written
    BUILDORA_COMPRESSION_LEVEL  deflate level 0-9 (default 6)
    BUILDORA_STRICT_DATA_URIS   "1"/"true": malformed data URIs abort export
    BUILDORA_NAME_CONFLICTS     "reject" (default) or "suffix"
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional

from .tree import NameConflicts

DEFAULT_DB_PATH = Path.home() / ".buildora" / "projects.db"
DEFAULT_EXPORT_DIR = Path("exports")
DEFAULT_COMPRESSION_LEVEL = 6

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off", ""}


def _parse_bool(key: str, raw: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ValueError(f"{key}: expected a boolean, got {raw!r}")


@dataclass
class Settings:
    db_path: Path = field(default_factory=lambda: DEFAULT_DB_PATH)
    export_dir: Path = field(default_factory=lambda: DEFAULT_EXPORT_DIR)
    compression_level: int = DEFAULT_COMPRESSION_LEVEL
    strict_data_uris: bool = False
    name_conflicts: NameConflicts = NameConflicts.REJECT

    def __post_init__(self) -> None:
        self.db_path = Path(self.db_path).expanduser()
        self.export_dir = Path(self.export_dir).expanduser()
        self.compression_level = min(9, max(0, int(self.compression_level)))
        self.name_conflicts = NameConflicts(self.name_conflicts)

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if env is None else env
        kwargs: dict = {}
        if env.get("BUILDORA_DB_PATH"):
            kwargs["db_path"] = Path(env["BUILDORA_DB_PATH"])
        if env.get("BUILDORA_EXPORT_DIR"):
            kwargs["export_dir"] = Path(env["BUILDORA_EXPORT_DIR"])
        if env.get("BUILDORA_COMPRESSION_LEVEL"):
            raw = env["BUILDORA_COMPRESSION_LEVEL"]
            try:
                kwargs["compression_level"] = int(raw)
            except ValueError:
                raise ValueError(
                    f"BUILDORA_COMPRESSION_LEVEL: expected an integer, got {raw!r}"
                ) from None
        if "BUILDORA_STRICT_DATA_URIS" in env:
            kwargs["strict_data_uris"] = _parse_bool(
                "BUILDORA_STRICT_DATA_URIS", env["BUILDORA_STRICT_DATA_URIS"]
            )
        if env.get("BUILDORA_NAME_CONFLICTS"):
            raw = env["BUILDORA_NAME_CONFLICTS"].strip().lower()
            try:
                kwargs["name_conflicts"] = NameConflicts(raw)
            except ValueError:
                valid = [c.value for c in NameConflicts]
                raise ValueError(
                    f"BUILDORA_NAME_CONFLICTS: unknown value {raw!r}. Valid values: {valid}"
                ) from None
        return cls(**kwargs)
