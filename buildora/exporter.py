"""
Export Serializer — project tree → zip archive
==============================================
Archive layout:

    <SanitizedName>.zip
    └── <SanitizedName>/
        ├── index.html             # text kinds → UTF-8 verbatim
        ├── style.css
        └── assets/
            └── logo.png           # image/font data URIs → decoded bytes

Single-file mode (see merger.py) writes only ``<SanitizedName>/index.html``.

The archive is built in memory and handed back whole: a failed export never
exposes a partial archive, and write_archive() only renames a fully written
temporary file into place. Entry timestamps come from
``Project.last_modified`` so the same tree always yields the same bytes.
"""
from __future__ import annotations

import asyncio
import base64
import binascii
import io
import logging
import os
import re
import tempfile
import time
import zipfile
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional

from .config import Settings
from .errors import (
    ArchiveGenerationError, ExportError, MalformedDataURI,
    NoProjectLoaded, RootFolderCreationFailed, TreeError, TreeTooDeep,
)
from .merger import ENTRY_POINT, merge_single_file
from .models import ROOT_ID, File, Project
from .tree import TreeManager, unique_name

logger = logging.getLogger("buildora.exporter")

DEFAULT_ROOT_NAME = "Project"
DEFAULT_COMPRESSION_LEVEL = 6
MAX_DEPTH = 128
DATA_URI_PREFIX = "data:"

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9_\s-]")


# ─────────────────────────────────────────────────────────────────────────────
# Naming
# ─────────────────────────────────────────────────────────────────────────────

def sanitize_project_name(name: Optional[str]) -> str:
    """
    Keep letters, digits, "-", "_" and whitespace; trim; fall back to
    "Project". Applying it twice gives the same result as applying it once.
    """
    cleaned = _UNSAFE_CHARS.sub("", name or "").strip()
    return cleaned or DEFAULT_ROOT_NAME


def archive_filename(name: Optional[str]) -> str:
    return f"{sanitize_project_name(name)}.zip"


# ─────────────────────────────────────────────────────────────────────────────
# Result types
# ─────────────────────────────────────────────────────────────────────────────

class ExportStatus(str, Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    DONE = "done"


@dataclass
class ExportResult:
    filename: str                  # "<root_name>.zip"
    root_name: str
    data: bytes
    entries: list[str] = field(default_factory=list)   # archive paths, in write order
    skipped: list[str] = field(default_factory=list)   # leaves with malformed data URIs
    unreachable: list[str] = field(default_factory=list)   # file ids not reachable from root
    single_file: bool = False

    @property
    def size(self) -> int:
        return len(self.data)


# ─────────────────────────────────────────────────────────────────────────────
# Payload decoding
# ─────────────────────────────────────────────────────────────────────────────

def decode_data_uri(content: str) -> Optional[bytes]:
    """
    Bytes of a ``<metadata>,<base64>`` data URI, or None when there is no
    comma or the payload is not valid base64.
    """
    _, sep, payload = content.partition(",")
    if not sep:
        return None
    try:
        return base64.b64decode(payload)
    except (binascii.Error, ValueError):
        return None


def leaf_payload(node: File) -> Optional[bytes]:
    """Archive bytes for a leaf; None means the entry must be skipped."""
    if node.kind.is_binary and node.content.startswith(DATA_URI_PREFIX):
        return decode_data_uri(node.content)
    return node.content.encode("utf-8")


# ─────────────────────────────────────────────────────────────────────────────
# Archive building (synchronous)
# ─────────────────────────────────────────────────────────────────────────────

class _ArchiveBuilder:
    """Wraps one in-memory ZipFile with the entry bookkeeping both modes share."""

    def __init__(self, project: Project, compression_level: int) -> None:
        self.root_name = sanitize_project_name(project.name)
        if self.root_name in (".", "..") or "/" in self.root_name:
            raise RootFolderCreationFailed(self.root_name)
        self.level = compression_level
        self.date_time = _zip_date_time(project.last_modified)
        self.entries: list[str] = []
        self.skipped: list[str] = []
        self.unreachable: list[str] = []
        self._buf = io.BytesIO()
        self._zip = zipfile.ZipFile(
            self._buf, "w", compression=zipfile.ZIP_DEFLATED,
            compresslevel=compression_level,
        )

    def add_dir(self, path: str) -> None:
        info = zipfile.ZipInfo(f"{path}/", self.date_time)
        info.external_attr = (0o40755 << 16) | 0x10
        self._zip.writestr(info, b"")
        self.entries.append(f"{path}/")

    def add_file(self, path: str, data: bytes) -> None:
        info = zipfile.ZipInfo(path, self.date_time)
        info.external_attr = 0o644 << 16
        self._zip.writestr(
            info, data, compress_type=zipfile.ZIP_DEFLATED, compresslevel=self.level,
        )
        self.entries.append(path)

    def finish(self, single_file: bool = False) -> ExportResult:
        self._zip.close()
        return ExportResult(
            filename=f"{self.root_name}.zip",
            root_name=self.root_name,
            data=self._buf.getvalue(),
            entries=self.entries,
            skipped=self.skipped,
            unreachable=self.unreachable,
            single_file=single_file,
        )

    def abort(self) -> None:
        self._zip.close()
        self._buf.close()


def build_archive(
    project: Optional[Project],
    compression_level: int = DEFAULT_COMPRESSION_LEVEL,
    strict_data_uris: bool = False,
) -> ExportResult:
    """
    Serialize the whole tree depth-first from ``root`` in list_children order.

    Sibling entries whose names collide (possible in projects loaded from
    storage) keep the first name and get " (n)" suffixes afterwards. Nodes
    that cannot be reached from root (dangling parent, parent cycle) are
    left out and their ids listed in ``ExportResult.unreachable``.

    Raises
    ------
    NoProjectLoaded          — project is None
    RootFolderCreationFailed — sanitized name unusable as a folder
    MalformedDataURI         — only with strict_data_uris=True
    TreeTooDeep              — folders nested deeper than MAX_DEPTH
    TreeError                — two records share one file id
    ArchiveGenerationError   — zip/zlib/memory failure
    """
    if project is None:
        raise NoProjectLoaded()
    builder = _ArchiveBuilder(project, compression_level)
    tree = TreeManager(project)
    seen: set[str] = set()
    try:
        builder.add_dir(builder.root_name)
        _write_folder(builder, tree, ROOT_ID, builder.root_name, strict_data_uris, seen, 0)
        for node in project.files:
            if node.id not in seen:
                logger.warning(
                    "Skipping %s (%s): not reachable from %s", node.name, node.id, ROOT_ID
                )
                builder.unreachable.append(node.id)
        result = builder.finish()
    except (ExportError, TreeError):
        builder.abort()
        raise
    except (OSError, MemoryError, zipfile.LargeZipFile, ValueError) as e:
        builder.abort()
        raise ArchiveGenerationError(str(e)) from e

    logger.info(
        "Built %s: %d entries, %d skipped, %d bytes",
        result.filename, len(result.entries), len(result.skipped), result.size,
    )
    return result


def _write_folder(
    builder: _ArchiveBuilder,
    tree: TreeManager,
    parent_id: str,
    prefix: str,
    strict: bool,
    seen: set[str],
    depth: int,
) -> None:
    if depth > MAX_DEPTH:
        raise TreeTooDeep(parent_id, MAX_DEPTH)
    taken: set[str] = set()
    for node in tree.list_children(parent_id):
        if node.id in seen:
            raise TreeError(f"Duplicate file id '{node.id}'")
        seen.add(node.id)

        name = unique_name(node.name, taken)
        taken.add(name)
        path = f"{prefix}/{name}"

        if node.is_directory:
            builder.add_dir(path)
            _write_folder(builder, tree, node.id, path, strict, seen, depth + 1)
            continue

        data = leaf_payload(node)
        if data is None:
            if strict:
                raise MalformedDataURI(node.id, node.name)
            logger.warning("Skipping %s: malformed data URI", path)
            builder.skipped.append(path)
            continue
        builder.add_file(path, data)


def build_single_file_archive(
    project: Optional[Project],
    compression_level: int = DEFAULT_COMPRESSION_LEVEL,
) -> ExportResult:
    """Archive holding only ``<root>/index.html`` with styles and scripts inlined."""
    html = merge_single_file(project)
    builder = _ArchiveBuilder(project, compression_level)
    try:
        builder.add_dir(builder.root_name)
        builder.add_file(f"{builder.root_name}/{ENTRY_POINT}", html.encode("utf-8"))
        result = builder.finish(single_file=True)
    except (OSError, MemoryError, zipfile.LargeZipFile, ValueError) as e:
        builder.abort()
        raise ArchiveGenerationError(str(e)) from e
    logger.info("Built single-file %s (%d bytes)", result.filename, result.size)
    return result


def _zip_date_time(last_modified_ms: int) -> tuple[int, int, int, int, int, int]:
    # Zip timestamps cannot predate 1980.
    t = time.gmtime(max(last_modified_ms, 0) / 1000)
    if t.tm_year < 1980:
        return (1980, 1, 1, 0, 0, 0)
    return (t.tm_year, t.tm_mon, t.tm_mday, t.tm_hour, t.tm_min, t.tm_sec)


# ─────────────────────────────────────────────────────────────────────────────
# Writing to disk
# ─────────────────────────────────────────────────────────────────────────────

def write_archive(result: ExportResult, dest_dir: str | Path) -> Path:
    """
    Write ``result`` to ``dest_dir/<filename>``. The bytes go to a temporary
    file in the same directory first and are renamed into place, so an
    interrupted write leaves nothing behind under the final name.
    """
    out = Path(dest_dir)
    out.mkdir(parents=True, exist_ok=True)
    dest = out / result.filename
    fd, tmp_name = tempfile.mkstemp(dir=out, prefix=f".{result.root_name}-", suffix=".part")
    try:
        with os.fdopen(fd, "wb") as fh:
            fh.write(result.data)
        os.replace(tmp_name, dest)
    except OSError as e:
        Path(tmp_name).unlink(missing_ok=True)
        raise ArchiveGenerationError(str(e)) from e
    logger.info("Archive written to: %s", dest.resolve())
    return dest


# ─────────────────────────────────────────────────────────────────────────────
# ProjectExporter (async)
# ─────────────────────────────────────────────────────────────────────────────

class ProjectExporter:
    """
    Runs an export off the event loop on a snapshot of the project.

    ``status`` moves NOT_STARTED → IN_PROGRESS → DONE (DONE also after a
    failure; the exception tells the caller what went wrong). There is no
    cancellation and no partial result. Guarding against a second export while
    one is running is left to the caller.
    """

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self.settings = settings or Settings()
        self.status = ExportStatus.NOT_STARTED

    async def export(
        self, project: Optional[Project], single_file: bool = False
    ) -> ExportResult:
        if project is None:
            raise NoProjectLoaded()
        snapshot = project.snapshot()
        self.status = ExportStatus.IN_PROGRESS
        try:
            if single_file:
                return await asyncio.to_thread(
                    build_single_file_archive, snapshot, self.settings.compression_level,
                )
            return await asyncio.to_thread(
                build_archive,
                snapshot,
                self.settings.compression_level,
                self.settings.strict_data_uris,
            )
        finally:
            self.status = ExportStatus.DONE

    async def export_to(
        self,
        project: Optional[Project],
        dest_dir: Optional[str | Path] = None,
        single_file: bool = False,
    ) -> tuple[ExportResult, Path]:
        """Export and write the archive; returns the result and its path."""
        result = await self.export(project, single_file=single_file)
        target = Path(dest_dir) if dest_dir is not None else self.settings.export_dir
        path = await asyncio.to_thread(write_archive, result, target)
        return result, path
