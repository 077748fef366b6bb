"""
API Dependencies

Shared store, generation client and pipeline factories for route handlers.
Tests replace get_store / get_client through app.dependency_overrides.
"""

from functools import lru_cache
from pathlib import Path
from typing import Dict

from fastapi import Depends
from slowapi import Limiter
from slowapi.util import get_remote_address

from vadis.core.config import load_config
from vadis.core.logging_config import get_logger
from vadis.core.settings import get_settings
from vadis.llm.generation_client import GenerationClient
from vadis.pipelines.analysis_pipeline import ScriptAnalysisPipeline
from vadis.storage import ProjectStore, create_store

logger = get_logger("api.deps")

# Rate limiter for the generation-backed routes
limiter = Limiter(key_func=get_remote_address)

# Full-analysis runs in flight, keyed by project id
running_pipelines: Dict[str, ScriptAnalysisPipeline] = {}


def analysis_rate_limit() -> str:
    return get_settings().analysis_rate_limit


@lru_cache()
def get_store() -> ProjectStore:
    """Get the process-wide store."""
    settings = get_settings()
    logger.info(f"Using {settings.storage_backend} storage")
    return create_store(settings.storage_backend, settings)


@lru_cache()
def get_client() -> GenerationClient:
    """Get the process-wide generation client."""
    settings = get_settings()
    config_path = Path(settings.analysis_config_path) if settings.analysis_config_path else None
    config = load_config(config_path)
    return GenerationClient(config, offline=True if settings.offline else None)


def get_pipeline(
    store: ProjectStore = Depends(get_store),
    client: GenerationClient = Depends(get_client),
) -> ScriptAnalysisPipeline:
    """A fresh pipeline per request so cancellation stays scoped to one run."""
    return ScriptAnalysisPipeline(client, store)
