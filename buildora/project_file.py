"""
Project File Loader — build a Project from a YAML manifest
==========================================================
Schema (only `name` is required):

    name: "My Site"
    type: html                    # html | php, default html
    files:
      - path: index.html
        content: |
          <!DOCTYPE html>
          ...
      - path: assets/logo.png     # intermediate folders are created
        source: ./logo.png        # read from disk, relative to the manifest
      - path: fonts/              # trailing slash → empty directory
      - path: data/config.json
        kind: json                # optional; inferred from the name otherwise

`content` and `source` are mutually exclusive. Binary kinds loaded through
`source` are stored as data URIs (see importer.read_payload).
"""
from __future__ import annotations

from pathlib import Path
from typing import Any, Optional

import yaml

from .errors import ProjectFileError, TreeError
from .importer import read_payload
from .models import ROOT_ID, FileKind, Project, ProjectType, new_id
from .tree import NameConflicts, TreeManager


def load_project_file(
    path: str | Path,
    name_conflicts: NameConflicts | str = NameConflicts.REJECT,
) -> Project:
    """
    Parse a YAML manifest and return a new Project.

    Raises
    ------
    FileNotFoundError  — manifest or a `source` file doesn't exist
    ProjectFileError   — required fields missing or values invalid
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Project file not found: {path}")

    with open(path, encoding="utf-8") as f:
        try:
            raw = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ProjectFileError(f"'{path}': invalid YAML: {e}") from e
    if not isinstance(raw, dict):
        raise ProjectFileError(f"'{path}': top level must be a mapping")

    # ── Required fields ───────────────────────────────────────────────────────
    name = str(raw.get("name") or "").strip()
    if not name:
        raise ProjectFileError(f"'{path}': 'name' field is required")

    type_raw = str(raw.get("type") or ProjectType.HTML.value).strip().lower()
    try:
        project_type = ProjectType(type_raw)
    except ValueError:
        valid = [t.value for t in ProjectType]
        raise ProjectFileError(
            f"'{path}': unknown project type '{type_raw}'. Valid values: {valid}"
        ) from None

    project = Project(id=new_id(), name=name, type=project_type)
    tree = TreeManager(project, name_conflicts=name_conflicts)

    # ── Files ─────────────────────────────────────────────────────────────────
    entries = raw.get("files") or []
    if not isinstance(entries, list):
        raise ProjectFileError(f"'{path}': 'files' must be a list")
    folders: dict[str, str] = {}   # "a/b" -> directory id
    for i, entry in enumerate(entries):
        _add_entry(tree, folders, entry, i, path)

    return project


# ─────────────────────────────────────────────────────────────────────────────
# Internal helpers
# ─────────────────────────────────────────────────────────────────────────────

def _add_entry(
    tree: TreeManager,
    folders: dict[str, str],
    entry: Any,
    index: int,
    manifest: Path,
) -> None:
    where = f"'{manifest}': files[{index}]"
    if not isinstance(entry, dict) or not entry.get("path"):
        raise ProjectFileError(f"{where}: each entry needs a 'path'")

    rel = str(entry["path"]).replace("\\", "/").strip()
    is_dir = rel.endswith("/")
    parts = [p for p in rel.split("/") if p]
    if not parts or any(p in (".", "..") for p in parts):
        raise ProjectFileError(f"{where}: invalid path '{rel}'")
    if "content" in entry and "source" in entry:
        raise ProjectFileError(f"{where}: use either 'content' or 'source', not both")

    try:
        parent_id = _ensure_folders(tree, folders, parts[:-1])
        if is_dir:
            _ensure_folders(tree, folders, parts)
            return
        kind = _parse_kind(entry.get("kind"), where)
        content = _entry_content(entry, manifest, parts[-1])
        tree.add_file(parent_id, parts[-1], content=content, kind=kind)
    except TreeError as e:
        raise ProjectFileError(f"{where}: {e}") from e


def _ensure_folders(tree: TreeManager, folders: dict[str, str], parts: list[str]) -> str:
    parent_id = ROOT_ID
    for depth in range(1, len(parts) + 1):
        key = "/".join(parts[:depth])
        if key not in folders:
            folders[key] = tree.add_file(parent_id, parts[depth - 1], is_directory=True).id
        parent_id = folders[key]
    return parent_id


def _parse_kind(raw: Any, where: str) -> Optional[FileKind]:
    if raw is None:
        return None
    try:
        return FileKind(str(raw).strip().lower())
    except ValueError:
        valid = [k.value for k in FileKind]
        raise ProjectFileError(f"{where}: unknown kind '{raw}'. Valid values: {valid}") from None


def _entry_content(entry: dict, manifest: Path, name: str) -> str:
    if "source" in entry:
        source = (manifest.parent / str(entry["source"])).resolve()
        if not source.is_file():
            raise FileNotFoundError(f"Source file not found: {source}")
        return read_payload(source, name)
    return str(entry.get("content") or "")
