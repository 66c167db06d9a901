"""
Buildora — Core Models & Types
==============================
File and Project records, the kind enum, id generation and the JSON
(de)serializers shared by the store, the manifest loader and the tests.

Files are kept as a flat list on the Project; the tree is reconstructed from
``parent_id`` links (see tree.py).
"""

from __future__ import annotations

import copy
import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

ROOT_ID = "root"


# ─────────────────────────────────────────────
# Enums
# ─────────────────────────────────────────────

class FileKind(str, Enum):
    HTML = "html"
    CSS = "css"
    JAVASCRIPT = "javascript"
    JSON = "json"
    XML = "xml"
    PHP = "php"
    IMAGE = "image"
    FONT = "font"

    @property
    def is_binary(self) -> bool:
        return self in (FileKind.IMAGE, FileKind.FONT)


class ProjectType(str, Enum):
    HTML = "html"
    PHP = "php"


# Extension → kind. Anything unknown is treated as markup text.
_EXT_KIND: dict[str, FileKind] = {
    ".html": FileKind.HTML, ".htm": FileKind.HTML,
    ".css": FileKind.CSS,
    ".js": FileKind.JAVASCRIPT, ".mjs": FileKind.JAVASCRIPT,
    ".json": FileKind.JSON,
    ".xml": FileKind.XML,
    ".php": FileKind.PHP,
    ".png": FileKind.IMAGE, ".jpg": FileKind.IMAGE, ".jpeg": FileKind.IMAGE,
    ".gif": FileKind.IMAGE, ".svg": FileKind.IMAGE, ".webp": FileKind.IMAGE,
    ".ico": FileKind.IMAGE, ".bmp": FileKind.IMAGE,
    ".ttf": FileKind.FONT, ".otf": FileKind.FONT,
    ".woff": FileKind.FONT, ".woff2": FileKind.FONT,
}


def kind_for_name(name: str) -> FileKind:
    """Infer a FileKind from the file extension (case-insensitive)."""
    dot = name.rfind(".")
    if dot <= 0:
        return FileKind.HTML
    return _EXT_KIND.get(name[dot:].lower(), FileKind.HTML)


def new_id() -> str:
    return uuid.uuid4().hex


def now_ms() -> int:
    return int(time.time() * 1000)


# ─────────────────────────────────────────────
# Records
# ─────────────────────────────────────────────

@dataclass
class File:
    """
    One node of a project tree.

    ``content`` holds UTF-8 text for code, or a base64 data URI for images
    and fonts. Directories ignore ``content`` and ``kind``.
    """
    id: str
    name: str
    content: str = ""
    kind: FileKind = FileKind.HTML
    parent_id: str = ROOT_ID
    is_directory: bool = False
    is_open: bool = False


@dataclass
class Project:
    id: str
    name: str
    type: ProjectType = ProjectType.HTML
    last_modified: int = field(default_factory=now_ms)
    files: list[File] = field(default_factory=list)
    thumbnail: Optional[str] = None

    def touch(self) -> None:
        """Bump last_modified; never moves backwards even if the clock does."""
        self.last_modified = max(now_ms(), self.last_modified + 1)

    def snapshot(self) -> "Project":
        """Point-in-time deep copy, safe to hand to a background export."""
        return copy.deepcopy(self)


def duplicate_project(project: Project, name: Optional[str] = None) -> Project:
    """
    Deep-copy ``project`` with a new project id and a fresh id for every File.

    Parent links are remapped through the old→new id table, so the copy has
    the same shape as the original while sharing no File ids with it.
    """
    id_map = {f.id: new_id() for f in project.files}
    files = [
        File(
            id=id_map[f.id],
            name=f.name,
            content=f.content,
            kind=f.kind,
            parent_id=id_map.get(f.parent_id, f.parent_id),
            is_directory=f.is_directory,
            is_open=f.is_open,
        )
        for f in project.files
    ]
    return Project(
        id=new_id(),
        name=name if name is not None else f"{project.name} Copy",
        type=project.type,
        last_modified=now_ms(),
        files=files,
        thumbnail=project.thumbnail,
    )


# ─────────────────────────────────────────────
# JSON serializers / deserializers
# ─────────────────────────────────────────────

def file_to_dict(f: File) -> dict:
    return {
        "id": f.id,
        "name": f.name,
        "content": f.content,
        "kind": f.kind.value,
        "parent_id": f.parent_id,
        "is_directory": f.is_directory,
        "is_open": f.is_open,
    }


def file_from_dict(d: dict) -> File:
    return File(
        id=d["id"],
        name=d["name"],
        content=d.get("content", ""),
        kind=FileKind(d.get("kind", FileKind.HTML.value)),
        parent_id=d.get("parent_id", ROOT_ID),
        is_directory=d.get("is_directory", False),
        is_open=d.get("is_open", False),
    )


def project_to_dict(p: Project) -> dict:
    return {
        "id": p.id,
        "name": p.name,
        "type": p.type.value,
        "last_modified": p.last_modified,
        "files": [file_to_dict(f) for f in p.files],
        "thumbnail": p.thumbnail,
    }


def project_from_dict(d: dict) -> Project:
    return Project(
        id=d["id"],
        name=d["name"],
        type=ProjectType(d.get("type", ProjectType.HTML.value)),
        last_modified=d.get("last_modified", 0),
        files=[file_from_dict(f) for f in d.get("files", [])],
        thumbnail=d.get("thumbnail"),
    )
