"""
Project Store — async SQLite-backed persistence for projects
===========================================================
One row per project, keyed by project id, holding the JSON form of the whole
Project (see models.project_to_dict). JSON rather than pickle: safe for
untrusted DB files and readable when debugging.

The tree and export code never call this module; the CLI (or any other
caller) loads a snapshot, mutates it through TreeManager and saves it back.
"""

from __future__ import annotations

import asyncio
import json
import logging
import time
from pathlib import Path
from typing import Optional

import aiosqlite

from .config import DEFAULT_DB_PATH
from .models import Project, duplicate_project, project_from_dict, project_to_dict

logger = logging.getLogger("buildora.store")


class ProjectStore:
    """
    Persistent aiosqlite connection with one-time schema init.

    Usage:
        store = ProjectStore(Path("projects.db"))
        await store.save_project(project)
        project = await store.load_project(project.id)
        await store.close()
    """

    def __init__(self, db_path: Path = DEFAULT_DB_PATH):
        db_path = Path(db_path)
        db_path.parent.mkdir(parents=True, exist_ok=True)
        self._db_path = str(db_path)
        self._conn: Optional[aiosqlite.Connection] = None
        self._lock: Optional[asyncio.Lock] = None  # lazy — created inside event loop

    async def _get_conn(self) -> aiosqlite.Connection:
        if self._lock is None:
            self._lock = asyncio.Lock()
        if self._conn is None:
            async with self._lock:
                if self._conn is None:
                    self._conn = await aiosqlite.connect(self._db_path)
                    await self._conn.execute("PRAGMA journal_mode=WAL")
                    await self._conn.executescript("""
                        CREATE TABLE IF NOT EXISTS projects (
                            project_id TEXT PRIMARY KEY,
                            name       TEXT NOT NULL,
                            type       TEXT NOT NULL,
                            data       TEXT NOT NULL,
                            file_count INTEGER NOT NULL,
                            created_at REAL NOT NULL,
                            updated_at REAL NOT NULL
                        );
                    """)
                    await self._conn.commit()
        return self._conn

    async def save_project(self, project: Project) -> None:
        now = time.time()
        blob = json.dumps(project_to_dict(project), ensure_ascii=False)
        db = await self._get_conn()
        await db.execute(
            """INSERT OR REPLACE INTO projects
               (project_id, name, type, data, file_count, created_at, updated_at)
               VALUES (?, ?, ?, ?, ?, COALESCE(
                   (SELECT created_at FROM projects WHERE project_id = ?), ?
               ), ?)""",
            (project.id, project.name, project.type.value, blob,
             len(project.files), project.id, now, now)
        )
        await db.commit()
        logger.debug("Saved project %s (%d files)", project.id, len(project.files))

    async def load_project(self, project_id: str) -> Optional[Project]:
        db = await self._get_conn()
        async with db.execute(
            "SELECT data FROM projects WHERE project_id = ?", (project_id,)
        ) as cursor:
            row = await cursor.fetchone()
        if row:
            return project_from_dict(json.loads(row[0]))
        return None

    async def list_projects(self) -> list[dict]:
        db = await self._get_conn()
        async with db.execute(
            "SELECT project_id, name, type, file_count, created_at, updated_at "
            "FROM projects ORDER BY updated_at DESC"
        ) as cursor:
            rows = await cursor.fetchall()
        return [
            {"project_id": r[0], "name": r[1], "type": r[2], "file_count": r[3],
             "created_at": r[4], "updated_at": r[5]}
            for r in rows
        ]

    async def delete_project(self, project_id: str) -> bool:
        db = await self._get_conn()
        cursor = await db.execute(
            "DELETE FROM projects WHERE project_id = ?", (project_id,)
        )
        await db.commit()
        return cursor.rowcount > 0

    async def duplicate_project(self, project_id: str) -> Optional[Project]:
        """Save and return a copy named "<name> Copy" with fresh ids, or None."""
        original = await self.load_project(project_id)
        if original is None:
            return None
        copy = duplicate_project(original)
        await self.save_project(copy)
        logger.info("Duplicated project %s → %s", project_id, copy.id)
        return copy

    async def close(self):
        """Close the aiosqlite connection gracefully before the event loop shuts down."""
        if self._conn is not None:
            try:
                await self._conn.close()
                # Yield control so the aiosqlite background thread can finish
                # its final callbacks before asyncio.run() closes the loop.
                await asyncio.sleep(0)
            finally:
                self._conn = None
