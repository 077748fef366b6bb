"""
Vadis Storage Module

Store interface, the in-memory and Supabase implementations, and the typed
repository the pipeline writes through.
"""

from vadis.core.exceptions import ConfigurationError

from .base import ProjectStore, Tables
from .memory_store import MemoryStore
from .repository import AnalysisRepository

__all__ = [
    'ProjectStore',
    'Tables',
    'MemoryStore',
    'AnalysisRepository',
    'create_store',
]


def create_store(backend: str = "memory", settings=None) -> ProjectStore:
    """Build the store named by the settings' storage backend."""
    if backend == "memory":
        return MemoryStore()
    if backend == "supabase":
        from .supabase_store import SupabaseStore
        return SupabaseStore.from_settings(settings)
    raise ConfigurationError(f"Unknown storage backend: {backend!r}")
