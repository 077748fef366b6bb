"""
Vadis Store Interface

Relational store keyed by project id. Every table except `projects` carries a
`project_id` column; rows are plain dicts with JSON-compatible values.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional


class Tables:
    """Table names, one family per analysis record type."""
    PROJECTS = "projects"
    SCENES = "scenes"
    CHARACTERS = "characters"
    CHARACTER_RELATIONSHIPS = "character_relationships"
    ACTOR_SUGGESTIONS = "actor_suggestions"
    VFX_NEEDS = "vfx_needs"
    PRODUCT_PLACEMENTS = "product_placements"
    LOCATION_SUGGESTIONS = "location_suggestions"
    FINANCIAL_PLANS = "financial_plans"
    ANALYSIS_RESULTS = "analysis_results"
    CASTING_SELECTIONS = "casting_selections"


class ProjectStore(ABC):
    """
    Minimal persistence contract used by the pipeline.

    No operation spans tables; each insert is independent and there is no
    rollback of earlier writes.
    """

    @abstractmethod
    async def insert(self, table: str, rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """Insert rows and return them as stored (with generated ids)."""
        pass

    @abstractmethod
    async def update_by_project_id(
        self,
        table: str,
        project_id: str,
        values: Dict[str, Any],
        match: Optional[Dict[str, Any]] = None
    ) -> List[Dict[str, Any]]:
        """Update rows of a project (optionally narrowed by match) and return them."""
        pass

    @abstractmethod
    async def select_by_project_id(
        self,
        table: str,
        project_id: str,
        match: Optional[Dict[str, Any]] = None
    ) -> List[Dict[str, Any]]:
        """Rows of a project in insertion order."""
        pass

    @abstractmethod
    async def create_project(self, values: Dict[str, Any]) -> Dict[str, Any]:
        pass

    @abstractmethod
    async def get_project(self, project_id: str) -> Dict[str, Any]:
        """Raises ProjectNotFoundError when the project does not exist."""
        pass

    @abstractmethod
    async def update_project(self, project_id: str, values: Dict[str, Any]) -> Dict[str, Any]:
        """Raises ProjectNotFoundError when the project does not exist."""
        pass
