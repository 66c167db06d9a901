"""
Buildora
========
Virtual file trees for small web projects (HTML/CSS/JS/PHP plus binary
assets) and the engine that exports them as zip archives, optionally merged
into one self-contained HTML document.

Basic usage:
    from buildora import create_project, TreeManager, ProjectExporter, write_archive

    project = create_project("My Site")
    tree = TreeManager(project)
    assets = tree.add_file("root", "assets", is_directory=True)
    tree.add_file(assets.id, "logo.png", content="data:image/png;base64,iVBORw0K...")

    result = asyncio.run(ProjectExporter().export(project))
    write_archive(result, "exports")            # exports/My Site.zip

Single-file mode:
    result = asyncio.run(ProjectExporter().export(project, single_file=True))
"""

from .models import (
    ROOT_ID, File, FileKind, Project, ProjectType,
    duplicate_project, kind_for_name, project_from_dict, project_to_dict,
)
from .errors import (
    TreeError, NotFound, InvalidParent, InvalidName, DuplicateName, CycleDetected,
    ExportError, NoProjectLoaded, RootFolderCreationFailed, MissingEntryPoint,
    MalformedDataURI, TreeTooDeep, ArchiveGenerationError, ProjectFileError,
)
from .tree import NameConflicts, TreeManager
from .config import Settings
from .exporter import (
    ExportResult, ExportStatus, ProjectExporter,
    archive_filename, build_archive, build_single_file_archive,
    sanitize_project_name, write_archive,
)
from .merger import merge_single_file
from .importer import ImportReport, import_paths, to_data_uri
from .project_file import load_project_file
from .scaffold import create_project
from .store import ProjectStore

__all__ = [
    # ── Model ────────────────────────────────────────────────────────────────
    "ROOT_ID", "File", "FileKind", "Project", "ProjectType",
    "duplicate_project", "kind_for_name", "project_from_dict", "project_to_dict",
    # ── Errors ───────────────────────────────────────────────────────────────
    "TreeError", "NotFound", "InvalidParent", "InvalidName", "DuplicateName",
    "CycleDetected", "ExportError", "NoProjectLoaded", "RootFolderCreationFailed",
    "MissingEntryPoint", "MalformedDataURI", "TreeTooDeep", "ArchiveGenerationError",
    "ProjectFileError",
    # ── Tree, export, persistence ────────────────────────────────────────────
    "NameConflicts", "TreeManager", "Settings",
    "ExportResult", "ExportStatus", "ProjectExporter", "archive_filename",
    "build_archive", "build_single_file_archive", "sanitize_project_name",
    "write_archive", "merge_single_file",
    "ImportReport", "import_paths", "to_data_uri",
    "load_project_file", "create_project", "ProjectStore",
]
