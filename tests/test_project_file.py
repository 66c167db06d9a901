"""
Tests for buildora/project_file.py — YAML manifests.
"""
from __future__ import annotations

import base64
import textwrap

import pytest

from buildora.errors import ProjectFileError
from buildora.models import FileKind, ProjectType
from buildora.project_file import load_project_file
from buildora.tree import NameConflicts, TreeManager

PNG_BYTES = b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR"


def _write(tmp_path, body: str):
    path = tmp_path / "site.yaml"
    path.write_text(textwrap.dedent(body), encoding="utf-8")
    return path


# ─────────────────────────────────────────────────────────────────────────────
# Valid manifests
# ─────────────────────────────────────────────────────────────────────────────

def test_minimal_manifest(tmp_path):
    project = load_project_file(_write(tmp_path, "name: Empty\n"))
    assert project.name == "Empty"
    assert project.type == ProjectType.HTML
    assert project.files == []


def test_full_manifest(tmp_path):
    (tmp_path / "logo.png").write_bytes(PNG_BYTES)
    path = _write(tmp_path, """
        name: My Site
        type: php
        files:
          - path: index.php
            content: "<?php echo 1; ?>"
          - path: assets/img/logo.png
            source: ./logo.png
          - path: fonts/
          - path: data/config.txt
            kind: json
            content: "{}"
    """)

    project = load_project_file(path)
    tree = TreeManager(project)

    assert project.type == ProjectType.PHP
    paths = {p: f for p, f in tree.walk()}
    assert set(paths) == {
        "index.php", "assets", "assets/img", "assets/img/logo.png",
        "fonts", "data", "data/config.txt",
    }
    assert paths["fonts"].is_directory
    assert paths["data/config.txt"].kind == FileKind.JSON
    logo = paths["assets/img/logo.png"]
    assert logo.kind == FileKind.IMAGE
    assert base64.b64decode(logo.content.split(",", 1)[1]) == PNG_BYTES
    assert tree.problems() == []


def test_folders_are_shared_between_entries(tmp_path):
    path = _write(tmp_path, """
        name: Shared
        files:
          - path: css/a.css
          - path: css/b.css
    """)
    tree = TreeManager(load_project_file(path))
    assert len([f for f in tree.project.files if f.is_directory]) == 1


def test_duplicate_paths_with_suffix_mode(tmp_path):
    path = _write(tmp_path, """
        name: Dupes
        files:
          - path: a.css
          - path: a.css
    """)
    project = load_project_file(path, name_conflicts=NameConflicts.SUFFIX)
    assert sorted(f.name for f in project.files) == ["a (1).css", "a.css"]


# ─────────────────────────────────────────────────────────────────────────────
# Errors
# ─────────────────────────────────────────────────────────────────────────────

def test_missing_manifest(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_project_file(tmp_path / "nope.yaml")


def test_missing_source_file(tmp_path):
    path = _write(tmp_path, """
        name: X
        files:
          - path: logo.png
            source: missing.png
    """)
    with pytest.raises(FileNotFoundError):
        load_project_file(path)


@pytest.mark.parametrize("body,message", [
    ("files: []\n", "'name' field is required"),
    ("- a\n- b\n", "top level must be a mapping"),
    ("name: X\ntype: java\n", "unknown project type"),
    ("name: X\nfiles: {a: 1}\n", "'files' must be a list"),
    ("name: X\nfiles:\n  - content: x\n", "needs a 'path'"),
    ("name: X\nfiles:\n  - path: ../evil.html\n", "invalid path"),
    ("name: X\nfiles:\n  - path: a.css\n    kind: sass\n", "unknown kind"),
    ("name: X\nfiles:\n  - path: a.css\n    content: x\n    source: y\n", "not both"),
    ("name: X\nfiles:\n  - path: a.css\n  - path: a.css\n", "already exists"),
    ("name: [unclosed\n", "invalid YAML"),
])
def test_invalid_manifests(tmp_path, body, message):
    path = tmp_path / "bad.yaml"
    path.write_text(body, encoding="utf-8")
    with pytest.raises(ProjectFileError, match=message):
        load_project_file(path)
