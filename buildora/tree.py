"""
Tree Manager — CRUD and traversal over a project's file tree
============================================================
A Project stores its Files as a flat list linked by ``parent_id``. The
TreeManager keeps an id → File index over that list (arena with index) and
derives child listings on demand, so there is never a real object cycle.

Every mutation validates first and only then touches state: a failed call
leaves the project exactly as it was. Successful mutations bump
``Project.last_modified``. Persistence is the caller's job (see store.py).

Sibling name collisions are handled per ``NameConflicts``:
  REJECT — raise DuplicateName (default)
  SUFFIX — auto-rename to "name (1).ext", "name (2).ext", ...
"""
from __future__ import annotations

import logging
from collections import defaultdict
from enum import Enum
from typing import Iterator, Optional

from .errors import (
    CycleDetected, DuplicateName, InvalidName, InvalidParent, NotFound, TreeError,
)
from .models import ROOT_ID, File, FileKind, Project, kind_for_name, new_id

logger = logging.getLogger("buildora.tree")


class NameConflicts(str, Enum):
    REJECT = "reject"
    SUFFIX = "suffix"


def unique_name(name: str, taken: set[str]) -> str:
    """
    Return ``name`` or the first "stem (n).ext" variant not in ``taken``.
    Dotfiles such as ".env" are treated as having no extension.
    """
    if name not in taken:
        return name
    stem, dot, ext = name.rpartition(".")
    if not stem:
        stem, dot, ext = name, "", ""
    n = 1
    while True:
        candidate = f"{stem} ({n}){dot}{ext}"
        if candidate not in taken:
            return candidate
        n += 1


def sort_key(f: File) -> tuple[bool, str]:
    # Directories first, then ordinal (case-sensitive) name order.
    return (not f.is_directory, f.name)


class TreeManager:
    """
    Mutating view over one Project.

    Usage:
        tree = TreeManager(project)
        assets = tree.add_file(ROOT_ID, "assets", is_directory=True)
        tree.add_file(assets.id, "logo.png", content=data_uri)
        tree.list_children(ROOT_ID)
    """

    def __init__(
        self,
        project: Project,
        name_conflicts: NameConflicts | str = NameConflicts.REJECT,
    ) -> None:
        self.project = project
        self.name_conflicts = NameConflicts(name_conflicts)
        self._index: dict[str, File] = {}
        self.reindex()

    def reindex(self) -> None:
        """Rebuild the id index after ``project.files`` was replaced externally."""
        self._index = {f.id: f for f in self.project.files}

    # ── Lookup ────────────────────────────────────────────────────────────────

    def get(self, file_id: str) -> File:
        try:
            return self._index[file_id]
        except KeyError:
            raise NotFound(file_id) from None

    def __contains__(self, file_id: str) -> bool:
        return file_id in self._index

    def __len__(self) -> int:
        return len(self.project.files)

    def find_by_name(
        self, name: str, is_directory: Optional[bool] = None
    ) -> Optional[File]:
        """
        First File named exactly ``name`` anywhere in the project, in
        ``project.files`` order. ``is_directory`` restricts the match to
        directories (True) or leaves (False).
        """
        for f in self.project.files:
            if f.name != name:
                continue
            if is_directory is None or f.is_directory == is_directory:
                return f
        return None

    def list_children(self, parent_id: str = ROOT_ID) -> list[File]:
        children = [f for f in self.project.files if f.parent_id == parent_id]
        children.sort(key=sort_key)
        return children

    def path_of(self, file_id: str) -> str:
        """Slash-joined path from the root, e.g. "assets/img/logo.png"."""
        parts: list[str] = []
        seen: set[str] = set()
        current: Optional[str] = file_id
        while current != ROOT_ID:
            if current in seen:
                raise CycleDetected(current)
            seen.add(current)
            node = self.get(current)
            parts.append(node.name)
            current = node.parent_id
        return "/".join(reversed(parts))

    def walk(self, parent_id: str = ROOT_ID) -> Iterator[tuple[str, File]]:
        """
        Depth-first, pre-order ``(path, file)`` pairs below ``parent_id`` in
        list_children order. Raises CycleDetected if a node is reached twice.
        """
        children = self._child_map()
        seen: set[str] = set()
        stack: list[tuple[str, File]] = [
            (f.name, f) for f in reversed(children.get(parent_id, []))
        ]
        while stack:
            path, node = stack.pop()
            if node.id in seen:
                raise CycleDetected(node.id)
            seen.add(node.id)
            yield path, node
            if node.is_directory:
                for child in reversed(children.get(node.id, [])):
                    stack.append((f"{path}/{child.name}", child))

    def descendants(self, file_id: str) -> list[File]:
        """All transitive descendants of ``file_id`` in post-order."""
        self.get(file_id)
        children = self._child_map()
        order: list[File] = []
        seen: set[str] = {file_id}
        # (node, expanded) pairs; a node is emitted after its children
        stack: list[tuple[File, bool]] = [
            (c, False) for c in reversed(children.get(file_id, []))
        ]
        while stack:
            node, expanded = stack.pop()
            if expanded:
                order.append(node)
                continue
            if node.id in seen:
                raise CycleDetected(node.id)
            seen.add(node.id)
            stack.append((node, True))
            for child in reversed(children.get(node.id, [])):
                stack.append((child, False))
        return order

    # ── Mutations ─────────────────────────────────────────────────────────────

    def add_file(
        self,
        parent_id: str,
        name: str,
        content: str = "",
        is_directory: bool = False,
        kind: Optional[FileKind] = None,
    ) -> File:
        name = self._check_name(name)
        self._require_directory(parent_id)
        name = self._resolve_name(parent_id, name)
        if kind is None:
            kind = kind_for_name(name)
        node = File(
            id=new_id(),
            name=name,
            content="" if is_directory else content,
            kind=FileKind(kind),
            parent_id=parent_id,
            is_directory=is_directory,
        )
        self.project.files.append(node)
        self._index[node.id] = node
        self.project.touch()
        logger.debug(
            "Added %s %s under %s", "dir" if is_directory else "file", name, parent_id
        )
        return node

    def delete_file(self, file_id: str) -> list[File]:
        """
        Remove ``file_id`` and, for directories, every descendant.
        Returns the removed nodes, descendants first and the target last.
        """
        target = self.get(file_id)
        removed = self.descendants(file_id) if target.is_directory else []
        removed.append(target)
        gone = {f.id for f in removed}
        self.project.files = [f for f in self.project.files if f.id not in gone]
        for fid in gone:
            self._index.pop(fid, None)
        self.project.touch()
        logger.debug("Deleted %s (%d node(s))", target.name, len(removed))
        return removed

    def rename_file(self, file_id: str, new_name: str) -> File:
        node = self.get(file_id)
        new_name = self._check_name(new_name)
        if new_name == node.name:
            return node
        node.name = self._resolve_name(node.parent_id, new_name, exclude=file_id)
        self.project.touch()
        return node

    def move_file(self, file_id: str, new_parent_id: str) -> File:
        node = self.get(file_id)
        if new_parent_id == file_id or file_id in self._ancestors(new_parent_id):
            raise CycleDetected(file_id, new_parent_id)
        self._require_directory(new_parent_id)
        if new_parent_id == node.parent_id:
            return node
        node.name = self._resolve_name(new_parent_id, node.name, exclude=file_id)
        node.parent_id = new_parent_id
        self.project.touch()
        logger.debug("Moved %s under %s", node.name, new_parent_id)
        return node

    def update_content(self, file_id: str, content: str) -> File:
        node = self.get(file_id)
        if node.is_directory:
            raise TreeError(f"'{node.name}' is a directory and has no content")
        node.content = content
        self.project.touch()
        return node

    def set_open(self, file_id: str, is_open: bool = True) -> File:
        # Editor-tab state only; not a project modification.
        node = self.get(file_id)
        node.is_open = is_open
        return node

    # ── Integrity ─────────────────────────────────────────────────────────────

    def problems(self) -> list[TreeError]:
        """
        Every invariant violation in the current file set. Useful for
        projects loaded from storage, which bypassed the mutation checks.
        """
        found: list[TreeError] = []
        ids: set[str] = set()
        for f in self.project.files:
            if f.id == ROOT_ID:
                found.append(TreeError(f"'{ROOT_ID}' used as a file id"))
            if f.id in ids:
                found.append(TreeError(f"Duplicate file id '{f.id}'"))
            ids.add(f.id)

        for f in self.project.files:
            if f.parent_id == ROOT_ID:
                continue
            parent = self._index.get(f.parent_id)
            if parent is None:
                found.append(InvalidParent(f.parent_id, f"dangling parent of '{f.id}'"))
            elif not parent.is_directory:
                found.append(InvalidParent(f.parent_id, f"parent of '{f.id}' is a file"))

        reported: set[str] = set()
        for f in self.project.files:
            chain: list[str] = []
            current = f.id
            while current != ROOT_ID and current in self._index:
                if current in chain:
                    loop = frozenset(chain[chain.index(current):])
                    if not loop & reported:
                        found.append(CycleDetected(current))
                        reported |= loop
                    break
                chain.append(current)
                current = self._index[current].parent_id
        return found

    def check(self) -> None:
        """Raise the first invariant violation, if any."""
        found = self.problems()
        if found:
            raise found[0]

    # ── Internal helpers ──────────────────────────────────────────────────────

    def _child_map(self) -> dict[str, list[File]]:
        children: dict[str, list[File]] = defaultdict(list)
        for f in self.project.files:
            children[f.parent_id].append(f)
        for group in children.values():
            group.sort(key=sort_key)
        return children

    def _ancestors(self, file_id: str) -> set[str]:
        found: set[str] = set()
        current = file_id
        while current != ROOT_ID and current in self._index:
            if current in found:
                raise CycleDetected(current)
            found.add(current)
            current = self._index[current].parent_id
        return found

    def _require_directory(self, parent_id: str) -> None:
        if parent_id == ROOT_ID:
            return
        parent = self._index.get(parent_id)
        if parent is None:
            raise InvalidParent(parent_id)
        if not parent.is_directory:
            raise InvalidParent(parent_id, "not a directory")

    @staticmethod
    def _check_name(name: str) -> str:
        cleaned = (name or "").strip()
        if not cleaned or cleaned in (".", "..") or "/" in cleaned or "\\" in cleaned:
            raise InvalidName(name)
        return cleaned

    def _resolve_name(
        self, parent_id: str, name: str, exclude: Optional[str] = None
    ) -> str:
        taken = {
            f.name for f in self.project.files
            if f.parent_id == parent_id and f.id != exclude
        }
        if name not in taken:
            return name
        if self.name_conflicts is NameConflicts.SUFFIX:
            return unique_name(name, taken)
        raise DuplicateName(name, parent_id)
