"""
Local file-based project storage.

Projects are kept the way a browser keeps them in localStorage: one
well-known key holding the whole serialized project array. The key-value
file itself is a JSON object mapping keys to serialized string values, so
other keys can live beside the projects.

Every operation loads and rewrites the full array. Writers are serialized
per store with an ``asyncio.Lock``, so concurrent tasks in one event loop
never drop each other's records.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

import aiofiles
import aiofiles.os

from ..exceptions import StorageIOError
from ..id_utils import generate_project_id
from ..models import Project, ProjectData, build_project, normalize_updates
from ..timestamps import latest_iso, parse_timestamp, utc_now_iso

logger = logging.getLogger(__name__)

STORAGE_KEY = "user-story-projects"


class JsonFileKeyValueStore:
    """Persistent string key-value store backed by a single JSON file.

    Each write goes to its own temporary sibling file which then replaces
    the original, so readers never observe a half-written file.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self._lock = asyncio.Lock()

    async def _load(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            async with aiofiles.open(self.path, encoding="utf-8") as f:
                content = await f.read()
        except OSError as e:
            raise StorageIOError("read", str(self.path), e) from e

        if not content.strip():
            return {}
        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            logger.error(f"Local store {self.path} is not valid JSON, ignoring it: {e}")
            return {}
        if not isinstance(data, dict):
            logger.error(f"Local store {self.path} does not hold a JSON object, ignoring it")
            return {}
        return data

    async def _save(self, data: dict[str, str]) -> None:
        try:
            await aiofiles.os.makedirs(self.path.parent, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                dir=self.path.parent,
                prefix=f".tmp_{self.path.name}_",
                suffix=".json",
            )
            os.close(fd)
        except OSError as e:
            raise StorageIOError("write", str(self.path), e) from e

        try:
            async with aiofiles.open(tmp_path, "w", encoding="utf-8") as f:
                await f.write(json.dumps(data, indent=2))
            await aiofiles.os.replace(tmp_path, self.path)
        except OSError as e:
            try:
                await aiofiles.os.remove(tmp_path)
            except OSError:
                pass
            raise StorageIOError("write", str(self.path), e) from e

    async def get_item(self, key: str) -> str | None:
        """Get the value stored under key, or None."""
        return (await self._load()).get(key)

    async def set_item(self, key: str, value: str) -> None:
        """Store value under key, replacing any previous value."""
        async with self._lock:
            data = await self._load()
            data[key] = value
            await self._save(data)

    async def remove_item(self, key: str) -> None:
        """Remove key if present."""
        async with self._lock:
            data = await self._load()
            if data.pop(key, None) is not None:
                await self._save(data)


class LocalProjectStore:
    """Project CRUD over the single-key local array.

    Projects returned from this store always have ``synced_to_cloud=False``.
    """

    def __init__(self, kv: JsonFileKeyValueStore, key: str = STORAGE_KEY) -> None:
        """Initialize local storage.

        Args:
            kv: Key-value store holding the serialized array
            key: Key the array is stored under
        """
        self.kv = kv
        self.key = key
        self._lock = asyncio.Lock()

    @classmethod
    def at_path(cls, path: Path | str) -> LocalProjectStore:
        """Create a store backed by the JSON file at path."""
        return cls(JsonFileKeyValueStore(Path(path).expanduser()))

    async def _read_all(self) -> list[dict[str, Any]]:
        stored = await self.kv.get_item(self.key)
        if not stored:
            return []
        try:
            projects = json.loads(stored)
        except json.JSONDecodeError as e:
            logger.error(f"Error loading projects: {e}")
            return []
        if not isinstance(projects, list):
            logger.error("Error loading projects: stored value is not a list")
            return []
        return projects

    async def _write_all(self, projects: list[dict[str, Any]]) -> None:
        await self.kv.set_item(self.key, json.dumps(projects))

    @staticmethod
    def _to_project(raw: dict[str, Any]) -> Project:
        project = Project.from_dict(raw)
        project.synced_to_cloud = False
        return project

    @staticmethod
    def _to_raw(project: Project) -> dict[str, Any]:
        data = project.to_dict()
        data["syncedToFirestore"] = False
        return data

    async def all_projects(self) -> list[Project]:
        """Every stored project, archived included, in storage order."""
        return [self._to_project(raw) for raw in await self._read_all()]

    async def list_projects(self) -> list[Project]:
        """Non-archived projects, most recently updated first."""
        projects = [p for p in await self.all_projects() if not p.archived]
        projects.sort(key=_updated_sort_key, reverse=True)
        return projects

    async def save_project(
        self,
        draft: ProjectData,
        document_content: str | None = None,
        document_file_name: str | None = None,
    ) -> Project:
        """Save a new project.

        A stored project with the same ``product.description`` is replaced
        in place instead of adding a duplicate.
        """
        project = build_project(
            generate_project_id(),
            draft,
            created_at=utc_now_iso(),
            document_content=document_content,
            document_file_name=document_file_name,
        )
        raw = self._to_raw(project)
        description = draft.product.description

        async with self._lock:
            projects = await self._read_all()
            existing_index = next(
                (
                    i
                    for i, stored in enumerate(projects)
                    if (stored.get("product") or {}).get("description") == description
                ),
                None,
            )
            if existing_index is not None:
                replaced_id = projects[existing_index].get("id")
                logger.debug(f"Replacing local project {replaced_id} with {project.id}")
                projects[existing_index] = raw
            else:
                projects.append(raw)
            await self._write_all(projects)

        return project

    async def load_project(self, project_id: str) -> Project | None:
        """Load a project by id, or None."""
        for raw in await self._read_all():
            if raw.get("id") == project_id:
                return self._to_project(raw)
        return None

    async def update_project(self, project_id: str, updates: dict[str, Any]) -> Project | None:
        """Merge updates into a stored project and stamp ``updated_at``.

        Returns:
            The updated project, or None if no project has this id
        """
        normalize_updates(updates, project_id=project_id)

        async with self._lock:
            projects = await self._read_all()
            for i, raw in enumerate(projects):
                if raw.get("id") != project_id:
                    continue
                current = self._to_project(raw)
                updated = current.with_updates(updates)
                updated.updated_at = latest_iso(utc_now_iso(), current.updated_at)
                projects[i] = self._to_raw(updated)
                await self._write_all(projects)
                return updated
        return None

    async def delete_project(self, project_id: str) -> bool:
        """Remove a project. Deleting an unknown id is a no-op.

        Returns:
            True if a project was removed
        """
        async with self._lock:
            projects = await self._read_all()
            remaining = [raw for raw in projects if raw.get("id") != project_id]
            if len(remaining) == len(projects):
                return False
            await self._write_all(remaining)
        return True

    async def find_similar_project(self, description: str) -> Project | None:
        """Find a project whose description contains, or is contained in, the given text.

        Case-insensitive; used for duplicate detection before saving.
        """
        needle = description.lower()
        for project in await self.all_projects():
            existing = project.product.description.lower()
            if needle in existing or existing in needle:
                return project
        return None


def _updated_sort_key(project: Project) -> float:
    try:
        parsed = parse_timestamp(project.updated_at or project.created_at)
    except ValueError:
        return 0.0
    return parsed.timestamp() if parsed else 0.0
