"""
In-memory store for tests, the CLI and offline development.
"""

import copy
import uuid
from collections import defaultdict
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from vadis.core.exceptions import ProjectNotFoundError
from vadis.core.logging_config import get_logger

from .base import ProjectStore, Tables

logger = get_logger("storage.memory")


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _matches(row: Dict[str, Any], match: Optional[Dict[str, Any]]) -> bool:
    return all(row.get(key) == value for key, value in (match or {}).items())


class MemoryStore(ProjectStore):
    """Dict-of-lists store. Returned rows are copies."""

    def __init__(self):
        self._tables: Dict[str, List[Dict[str, Any]]] = defaultdict(list)

    async def insert(self, table: str, rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        stored = []
        for row in rows:
            record = copy.deepcopy(row)
            record.setdefault("id", str(uuid.uuid4()))
            record.setdefault("created_at", _now())
            self._tables[table].append(record)
            stored.append(copy.deepcopy(record))
        logger.debug(f"Inserted {len(stored)} rows into {table}")
        return stored

    async def update_by_project_id(
        self,
        table: str,
        project_id: str,
        values: Dict[str, Any],
        match: Optional[Dict[str, Any]] = None
    ) -> List[Dict[str, Any]]:
        updated = []
        for row in self._tables[table]:
            if row.get("project_id") == project_id and _matches(row, match):
                row.update(copy.deepcopy(values))
                updated.append(copy.deepcopy(row))
        return updated

    async def select_by_project_id(
        self,
        table: str,
        project_id: str,
        match: Optional[Dict[str, Any]] = None
    ) -> List[Dict[str, Any]]:
        return [
            copy.deepcopy(row)
            for row in self._tables[table]
            if row.get("project_id") == project_id and _matches(row, match)
        ]

    async def create_project(self, values: Dict[str, Any]) -> Dict[str, Any]:
        rows = await self.insert(Tables.PROJECTS, [values])
        return rows[0]

    async def get_project(self, project_id: str) -> Dict[str, Any]:
        for row in self._tables[Tables.PROJECTS]:
            if row["id"] == project_id:
                return copy.deepcopy(row)
        raise ProjectNotFoundError(project_id)

    async def update_project(self, project_id: str, values: Dict[str, Any]) -> Dict[str, Any]:
        for row in self._tables[Tables.PROJECTS]:
            if row["id"] == project_id:
                row.update(copy.deepcopy(values))
                return copy.deepcopy(row)
        raise ProjectNotFoundError(project_id)

    def count(self, table: str) -> int:
        """Total rows in a table across all projects."""
        return len(self._tables[table])
