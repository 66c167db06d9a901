"""
Error taxonomy
==============
Structural errors come from TreeManager mutations and are raised before any
state changes. Export errors abort a whole export. Callers own presentation;
nothing here logs.
"""
from __future__ import annotations

from typing import Optional


# ─────────────────────────────────────────────────────────────────────────────
# Structural
# ─────────────────────────────────────────────────────────────────────────────

class TreeError(Exception):
    """Base class for structural violations of a project tree."""


class NotFound(TreeError, KeyError):
    def __init__(self, file_id: str):
        self.file_id = file_id
        super().__init__(f"No file with id '{file_id}'")

    def __str__(self) -> str:
        # KeyError.__str__ would repr() the message
        return self.args[0]


class InvalidParent(TreeError):
    def __init__(self, parent_id: str, reason: str = "not an existing directory"):
        self.parent_id = parent_id
        self.reason = reason
        super().__init__(f"Invalid parent '{parent_id}': {reason}")


class InvalidName(TreeError, ValueError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Invalid file name: {name!r}")


class DuplicateName(TreeError):
    def __init__(self, name: str, parent_id: str):
        self.name = name
        self.parent_id = parent_id
        super().__init__(f"'{name}' already exists in '{parent_id}'")


class CycleDetected(TreeError):
    """
    Raised when a move would make a node its own ancestor, or when a walk
    finds a parent chain that loops back on itself.
    """
    def __init__(self, file_id: str, parent_id: Optional[str] = None):
        self.file_id = file_id
        self.parent_id = parent_id
        if parent_id is None:
            msg = f"Cycle in parent chain at '{file_id}'"
        else:
            msg = f"Moving '{file_id}' under '{parent_id}' would create a cycle"
        super().__init__(msg)


# ─────────────────────────────────────────────────────────────────────────────
# Export
# ─────────────────────────────────────────────────────────────────────────────

class ExportError(Exception):
    """Base class for failures that abort an export."""


class NoProjectLoaded(ExportError):
    def __init__(self):
        super().__init__("No project loaded")


class RootFolderCreationFailed(ExportError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Could not create root folder {name!r}")


class MissingEntryPoint(ExportError):
    def __init__(self, entry: str = "index.html"):
        self.entry = entry
        super().__init__(
            f"Project must contain '{entry}' for single file conversion"
        )


class MalformedDataURI(ExportError):
    def __init__(self, file_id: str, name: str):
        self.file_id = file_id
        self.name = name
        super().__init__(f"Malformed data URI in '{name}' ({file_id})")


class TreeTooDeep(ExportError):
    def __init__(self, file_id: str, limit: int):
        self.file_id = file_id
        self.limit = limit
        super().__init__(f"Folder '{file_id}' is nested deeper than {limit} levels")


class ArchiveGenerationError(ExportError):
    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Failed to generate archive: {reason}")


class ProjectFileError(ValueError):
    """Raised for invalid project manifest contents."""
