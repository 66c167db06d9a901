#!/usr/bin/env python3
"""
CLI Entry Point — manage and export projects from the terminal
==============================================================
Usage:
    python -m buildora new "My Site" --type html
    python -m buildora load site.yaml
    python -m buildora list
    python -m buildora show <project_id>
    python -m buildora add <project_id> about.html --content "<h1>About</h1>"
    python -m buildora mkdir <project_id> assets
    python -m buildora import <project_id> ./logo.png --parent <dir_id>
    python -m buildora mv <project_id> <file_id> <new_parent_id|root>
    python -m buildora rename <project_id> <file_id> new-name.css
    python -m buildora rm <project_id> <file_id>
    python -m buildora export <project_id> [--single-file] [--output-dir DIR]
    python -m buildora duplicate <project_id>
    python -m buildora delete <project_id>

Every mutating command loads the project from the store, applies one
TreeManager operation and saves the new snapshot.
"""

import argparse
import asyncio
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Awaitable, Callable, Optional

from dotenv import load_dotenv
load_dotenv(override=True)  # override=True: .env values win over empty system env vars

from .config import Settings
from .errors import ExportError, ProjectFileError, TreeError
from .exporter import ProjectExporter
from .importer import import_paths
from .models import ROOT_ID, Project, ProjectType
from .project_file import load_project_file
from .scaffold import create_project
from .store import ProjectStore
from .tree import TreeManager


def setup_logging(verbose: bool = False):
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%H:%M:%S",
        force=True,  # re-apply even if already configured
    )


def _settings(args) -> Settings:
    settings = Settings.from_env()
    if getattr(args, "db", None):
        settings.db_path = Path(args.db).expanduser()
    return settings


async def _with_store(args, fn: Callable[[ProjectStore, Settings], Awaitable[None]]) -> None:
    settings = _settings(args)
    store = ProjectStore(settings.db_path)
    try:
        await fn(store, settings)
    finally:
        await store.close()


async def _require_project(store: ProjectStore, project_id: str) -> Project:
    project = await store.load_project(project_id)
    if project is None:
        raise LookupError(f"No project with id '{project_id}'")
    return project


def _print_tree(tree: TreeManager) -> None:
    for path, node in tree.walk():
        depth = path.count("/")
        label = f"{node.name}/" if node.is_directory else node.name
        kind = "" if node.is_directory else f"  [{node.kind.value}]"
        print(f"{'  ' * depth}{label}{kind}  ({node.id})")


# ── Commands ─────────────────────────────────────────────────────────────────

async def _cmd_new(args) -> None:
    async def run(store: ProjectStore, settings: Settings) -> None:
        project = create_project(args.name, args.type)
        await store.save_project(project)
        print(f"Created project {project.id} ({project.name}, {len(project.files)} files)")
    await _with_store(args, run)


async def _cmd_load(args) -> None:
    async def run(store: ProjectStore, settings: Settings) -> None:
        project = load_project_file(args.manifest, name_conflicts=settings.name_conflicts)
        await store.save_project(project)
        print(f"Loaded project {project.id} ({project.name}, {len(project.files)} files)")
    await _with_store(args, run)


async def _cmd_list(args) -> None:
    async def run(store: ProjectStore, settings: Settings) -> None:
        projects = await store.list_projects()
        if not projects:
            print("No saved projects.")
            return
        print(f"{'ID':<34} {'Name':<24} {'Type':<5} {'Files':>5}  {'Updated'}")
        print("-" * 88)
        for p in projects:
            updated = datetime.fromtimestamp(p["updated_at"]).strftime("%Y-%m-%d %H:%M")
            print(
                f"{p['project_id']:<34} {p['name'][:24]:<24} {p['type']:<5} "
                f"{p['file_count']:>5}  {updated}"
            )
    await _with_store(args, run)


async def _cmd_show(args) -> None:
    async def run(store: ProjectStore, settings: Settings) -> None:
        project = await _require_project(store, args.project_id)
        print(f"{project.name} ({project.type.value}) — {len(project.files)} node(s)")
        tree = TreeManager(project)
        _print_tree(tree)
        for problem in tree.problems():
            print(f"  ! {problem}")
    await _with_store(args, run)


def _mutation(apply: Callable[[TreeManager, argparse.Namespace], str]) -> Callable:
    """Build a command that loads the project, applies ``apply`` and saves it."""
    async def command(args) -> None:
        async def run(store: ProjectStore, settings: Settings) -> None:
            project = await _require_project(store, args.project_id)
            tree = TreeManager(project, name_conflicts=settings.name_conflicts)
            message = apply(tree, args)
            await store.save_project(project)
            print(message)
        await _with_store(args, run)
    return command


def _apply_add(tree: TreeManager, args) -> str:
    content = args.content or ""
    if args.from_file:
        content = Path(args.from_file).read_text(encoding="utf-8")
    node = tree.add_file(args.parent, args.name, content=content)
    return f"Added {tree.path_of(node.id)} ({node.id})"


def _apply_mkdir(tree: TreeManager, args) -> str:
    node = tree.add_file(args.parent, args.name, is_directory=True)
    return f"Created {tree.path_of(node.id)}/ ({node.id})"


def _apply_rm(tree: TreeManager, args) -> str:
    removed = tree.delete_file(args.file_id)
    return f"Removed {len(removed)} node(s)"


def _apply_rename(tree: TreeManager, args) -> str:
    node = tree.rename_file(args.file_id, args.name)
    return f"Renamed to {tree.path_of(node.id)}"


def _apply_mv(tree: TreeManager, args) -> str:
    node = tree.move_file(args.file_id, args.parent_id)
    return f"Moved to {tree.path_of(node.id)}"


async def _cmd_import(args) -> None:
    async def run(store: ProjectStore, settings: Settings) -> None:
        project = await _require_project(store, args.project_id)
        tree = TreeManager(project, name_conflicts=settings.name_conflicts)

        def progress(done: int, total: int, name: str) -> None:
            pct = round(done / total * 100) if total else 100
            print(f"  [{pct:3d}%] {name}")

        report = await import_paths(tree, args.paths, args.parent, on_progress=progress)
        await store.save_project(project)
        print(f"Imported {len(report.added)} node(s)")
        for path, err in report.failed.items():
            print(f"  FAILED {path}: {err}", file=sys.stderr)
    await _with_store(args, run)


async def _cmd_export(args) -> None:
    async def run(store: ProjectStore, settings: Settings) -> None:
        project = await _require_project(store, args.project_id)
        if args.output_dir:
            settings.export_dir = Path(args.output_dir)
        exporter = ProjectExporter(settings)
        result, path = await exporter.export_to(project, single_file=args.single_file)
        print(f"Export successful: {path} ({result.size:,} bytes, {len(result.entries)} entries)")
        for skipped in result.skipped:
            print(f"  skipped (malformed data URI): {skipped}")
        for file_id in result.unreachable:
            print(f"  skipped (not reachable from root): {file_id}")
    await _with_store(args, run)


async def _cmd_duplicate(args) -> None:
    async def run(store: ProjectStore, settings: Settings) -> None:
        copy = await store.duplicate_project(args.project_id)
        if copy is None:
            raise LookupError(f"No project with id '{args.project_id}'")
        print(f"Duplicated as {copy.id} ({copy.name})")
    await _with_store(args, run)


async def _cmd_delete(args) -> None:
    async def run(store: ProjectStore, settings: Settings) -> None:
        if not await store.delete_project(args.project_id):
            raise LookupError(f"No project with id '{args.project_id}'")
        print(f"Deleted project {args.project_id}")
    await _with_store(args, run)


# ── Parser ───────────────────────────────────────────────────────────────────

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Buildora — build small web projects and export them as zip archives"
    )
    parser.add_argument("--db", type=str, default="",
                        help="Project database path (default: $BUILDORA_DB_PATH or ~/.buildora/projects.db)")
    parser.add_argument("--verbose", "-v", action="store_true")
    sub = parser.add_subparsers(dest="subcommand", metavar="SUBCOMMAND", required=True)

    p = sub.add_parser("new", help="Create a project from a starter template")
    p.add_argument("name")
    p.add_argument("--type", choices=[t.value for t in ProjectType], default="html")
    p.set_defaults(func=_cmd_new)

    p = sub.add_parser("load", help="Create a project from a YAML manifest")
    p.add_argument("manifest")
    p.set_defaults(func=_cmd_load)

    p = sub.add_parser("list", help="List saved projects")
    p.set_defaults(func=_cmd_list)

    p = sub.add_parser("show", help="Print a project's file tree")
    p.add_argument("project_id")
    p.set_defaults(func=_cmd_show)

    p = sub.add_parser("add", help="Add a text file")
    p.add_argument("project_id")
    p.add_argument("name")
    p.add_argument("--parent", default=ROOT_ID, help="Parent directory id (default: root)")
    src = p.add_mutually_exclusive_group()
    src.add_argument("--content", default="", help="File content")
    src.add_argument("--from-file", default="", help="Read content from this local file")
    p.set_defaults(func=_mutation(_apply_add))

    p = sub.add_parser("mkdir", help="Add a directory")
    p.add_argument("project_id")
    p.add_argument("name")
    p.add_argument("--parent", default=ROOT_ID, help="Parent directory id (default: root)")
    p.set_defaults(func=_mutation(_apply_mkdir))

    p = sub.add_parser("rm", help="Delete a file or a directory with all its contents")
    p.add_argument("project_id")
    p.add_argument("file_id")
    p.set_defaults(func=_mutation(_apply_rm))

    p = sub.add_parser("rename", help="Rename a file or directory")
    p.add_argument("project_id")
    p.add_argument("file_id")
    p.add_argument("name")
    p.set_defaults(func=_mutation(_apply_rename))

    p = sub.add_parser("mv", help="Move a file or directory under another directory")
    p.add_argument("project_id")
    p.add_argument("file_id")
    p.add_argument("parent_id", help="Target directory id, or 'root'")
    p.set_defaults(func=_mutation(_apply_mv))

    p = sub.add_parser("import", help="Import local files or folders")
    p.add_argument("project_id")
    p.add_argument("paths", nargs="+")
    p.add_argument("--parent", default=ROOT_ID, help="Parent directory id (default: root)")
    p.set_defaults(func=_cmd_import)

    p = sub.add_parser("export", help="Export a project as <Name>.zip")
    p.add_argument("project_id")
    p.add_argument("--single-file", action="store_true",
                   help="Merge style.css and script.js into index.html and export only that")
    p.add_argument("--output-dir", "-o", default="",
                   help="Where to write the archive (default: $BUILDORA_EXPORT_DIR or ./exports)")
    p.set_defaults(func=_cmd_export)

    p = sub.add_parser("duplicate", help="Copy a project with fresh ids")
    p.add_argument("project_id")
    p.set_defaults(func=_cmd_duplicate)

    p = sub.add_parser("delete", help="Delete a saved project")
    p.add_argument("project_id")
    p.set_defaults(func=_cmd_delete)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(getattr(args, "verbose", False))
    try:
        asyncio.run(args.func(args))
    except (TreeError, ExportError, ProjectFileError, LookupError,
            FileNotFoundError, ValueError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
