"""
Supabase-backed store.

The supabase client is synchronous; each request runs in a worker thread so
the analysis event loop is not blocked.
"""

import asyncio
from functools import lru_cache
from typing import Any, Callable, Dict, List, Optional

from supabase import Client, create_client

from vadis.core.exceptions import ConfigurationError, PersistenceError, ProjectNotFoundError
from vadis.core.logging_config import get_logger
from vadis.core.settings import Settings

from .base import ProjectStore, Tables

logger = get_logger("storage.supabase")


@lru_cache()
def get_supabase_client(url: str, key: str) -> Client:
    """Get a cached Supabase client."""
    return create_client(url, key)


class SupabaseStore(ProjectStore):
    """Store backed by Supabase tables named after `Tables`."""

    def __init__(self, client: Client):
        self.client = client

    @classmethod
    def from_settings(cls, settings: Settings) -> 'SupabaseStore':
        if not settings.supabase_url or not settings.supabase_key:
            raise ConfigurationError(
                "Supabase storage selected but VADIS_SUPABASE_URL / VADIS_SUPABASE_KEY are not set"
            )
        return cls(get_supabase_client(settings.supabase_url, settings.supabase_key))

    async def _execute(self, table: str, request: Callable[[], Any]) -> List[Dict[str, Any]]:
        try:
            response = await asyncio.to_thread(request)
        except Exception as e:
            logger.error(f"Supabase request on {table} failed: {e}")
            raise PersistenceError(table, str(e)) from e
        return response.data or []

    def _scoped(self, query, project_id: str, match: Optional[Dict[str, Any]]):
        query = query.eq("project_id", project_id)
        for key, value in (match or {}).items():
            query = query.eq(key, value)
        return query

    async def insert(self, table: str, rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        if not rows:
            return []
        return await self._execute(
            table, lambda: self.client.table(table).insert(rows).execute()
        )

    async def update_by_project_id(
        self,
        table: str,
        project_id: str,
        values: Dict[str, Any],
        match: Optional[Dict[str, Any]] = None
    ) -> List[Dict[str, Any]]:
        query = self._scoped(self.client.table(table).update(values), project_id, match)
        return await self._execute(table, query.execute)

    async def select_by_project_id(
        self,
        table: str,
        project_id: str,
        match: Optional[Dict[str, Any]] = None
    ) -> List[Dict[str, Any]]:
        query = self._scoped(self.client.table(table).select("*"), project_id, match)
        return await self._execute(table, query.order("created_at").execute)

    async def create_project(self, values: Dict[str, Any]) -> Dict[str, Any]:
        rows = await self.insert(Tables.PROJECTS, [values])
        if not rows:
            raise PersistenceError(Tables.PROJECTS, "insert returned no row")
        return rows[0]

    async def get_project(self, project_id: str) -> Dict[str, Any]:
        query = self.client.table(Tables.PROJECTS).select("*").eq("id", project_id)
        rows = await self._execute(Tables.PROJECTS, query.execute)
        if not rows:
            raise ProjectNotFoundError(project_id)
        return rows[0]

    async def update_project(self, project_id: str, values: Dict[str, Any]) -> Dict[str, Any]:
        query = self.client.table(Tables.PROJECTS).update(values).eq("id", project_id)
        rows = await self._execute(Tables.PROJECTS, query.execute)
        if not rows:
            raise ProjectNotFoundError(project_id)
        return rows[0]
