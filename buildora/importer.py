"""
Importer — local files → project tree nodes
===========================================
Reads files from disk off the event loop and feeds them to
TreeManager.add_file() the way the editor's file picker does:

  image / font kinds → base64 data URI ("data:<mime>;base64,<payload>")
  everything else    → UTF-8 text

Directories are imported recursively (entries sorted by name). A failure to
read one file is recorded in ImportReport.failed and the rest carry on; tree
errors (InvalidParent, DuplicateName, ...) propagate to the caller.
"""
from __future__ import annotations

import asyncio
import base64
import logging
import mimetypes
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Iterable, Optional

from .models import ROOT_ID, File, kind_for_name
from .tree import TreeManager

logger = logging.getLogger("buildora.importer")

ProgressCallback = Callable[[int, int, str], None]

_FALLBACK_MIME = {
    ".woff": "font/woff",
    ".woff2": "font/woff2",
    ".ttf": "font/ttf",
    ".otf": "font/otf",
    ".webp": "image/webp",
    ".svg": "image/svg+xml",
}


@dataclass
class ImportReport:
    added: list[File] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)   # path -> error text


def to_data_uri(data: bytes, name: str) -> str:
    """Encode ``data`` as a base64 data URI with a media type guessed from ``name``."""
    mime, _ = mimetypes.guess_type(name)
    if mime is None:
        mime = _FALLBACK_MIME.get(Path(name).suffix.lower(), "application/octet-stream")
    return f"data:{mime};base64,{base64.b64encode(data).decode('ascii')}"


def read_payload(path: Path, name: Optional[str] = None) -> str:
    """
    Content string for ``path`` as the tree stores it. ``name`` (default: the
    file name on disk) decides between data URI and text.
    """
    name = name or path.name
    if kind_for_name(name).is_binary:
        return to_data_uri(path.read_bytes(), name)
    return path.read_text(encoding="utf-8")


def _count_files(paths: Iterable[Path]) -> int:
    total = 0
    for p in paths:
        if p.is_dir():
            total += sum(1 for c in p.rglob("*") if c.is_file())
        else:
            total += 1
    return total


async def import_paths(
    tree: TreeManager,
    paths: Iterable[str | Path],
    parent_id: str = ROOT_ID,
    on_progress: Optional[ProgressCallback] = None,
) -> ImportReport:
    """
    Import files and directories under ``parent_id``.

    ``on_progress(done, total, name)`` is called once per file, whether the
    read succeeded or not.
    """
    items = [Path(p) for p in paths]
    total = _count_files(items)
    report = ImportReport()
    done = 0

    async def _import(path: Path, target: str) -> None:
        nonlocal done
        if path.is_dir():
            folder = tree.add_file(target, path.name, is_directory=True)
            report.added.append(folder)
            for child in sorted(path.iterdir(), key=lambda c: c.name):
                await _import(child, folder.id)
            return
        try:
            content = await asyncio.to_thread(read_payload, path)
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Failed to load %s: %s", path, e)
            report.failed[str(path)] = str(e)
        else:
            report.added.append(tree.add_file(target, path.name, content=content))
        done += 1
        if on_progress is not None:
            on_progress(done, total, path.name)

    for item in items:
        await _import(item, parent_id)

    logger.info(
        "Imported %d node(s), %d failure(s)", len(report.added), len(report.failed)
    )
    return report
