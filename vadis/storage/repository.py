"""
Vadis Analysis Repository

Maps typed analysis records to store rows. Stage outputs are append-only,
except the financial plan, per-stage results and casting selections, which
are replaced in place.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from vadis.analysis.models import (
    ActorCandidate,
    ActorSuggestion,
    Character,
    FinancialPlan,
    LocationSuggestion,
    ProductPlacement,
    RelationshipEdge,
    Scene,
    VFXNeed,
)
from vadis.core.constants import ProjectStatus, StageName, StageStatus
from vadis.core.logging_config import get_logger

from .base import ProjectStore, Tables

logger = get_logger("storage.repository")

# Columns added by the store rather than the record
_ROW_COLUMNS = ("id", "project_id", "created_at", "updated_at")


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _record(row: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in row.items() if k not in _ROW_COLUMNS}


class AnalysisRepository:
    """Typed access to one store."""

    def __init__(self, store: ProjectStore):
        self.store = store

    async def _append(self, table: str, project_id: str, records: List[Dict[str, Any]]) -> int:
        rows = [dict(record, project_id=project_id) for record in records]
        if rows:
            await self.store.insert(table, rows)
        logger.debug(f"Saved {len(rows)} rows to {table} for project {project_id}")
        return len(rows)

    async def _replace(
        self,
        table: str,
        project_id: str,
        values: Dict[str, Any],
        match: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """Update the matching row, inserting it if none exists."""
        values = dict(values, updated_at=_now())
        rows = await self.store.update_by_project_id(table, project_id, values, match)
        if rows:
            return rows[0]
        inserted = await self.store.insert(table, [dict(values, project_id=project_id, **(match or {}))])
        return inserted[0]

    # =========================================================================
    # PROJECTS
    # =========================================================================

    async def create_project(self, title: str, script_content: str = "") -> Dict[str, Any]:
        return await self.store.create_project({
            "title": title,
            "script_content": script_content,
            "status": ProjectStatus.PENDING.value,
            "workflow_status": None,
            "analysis_progress": 0,
            "reader_report": None,
            "error_message": None,
        })

    async def get_project(self, project_id: str) -> Dict[str, Any]:
        return await self.store.get_project(project_id)

    async def update_project(self, project_id: str, **values: Any) -> Dict[str, Any]:
        return await self.store.update_project(project_id, dict(values, updated_at=_now()))

    # =========================================================================
    # SCENES AND CHARACTERS
    # =========================================================================

    async def save_scenes(self, project_id: str, scenes: List[Scene]) -> int:
        records = []
        for scene in scenes:
            record = scene.to_dict()
            record["scene_id"] = record.pop("id")
            records.append(record)
        return await self._append(Tables.SCENES, project_id, records)

    async def load_scenes(self, project_id: str) -> List[Scene]:
        rows = await self.store.select_by_project_id(Tables.SCENES, project_id)
        scenes = []
        for row in rows:
            record = _record(row)
            record["id"] = record.pop("scene_id")
            scenes.append(Scene.from_dict(record))
        return sorted(scenes, key=lambda s: s.scene_number)

    async def save_characters(self, project_id: str, characters: List[Character]) -> int:
        return await self._append(Tables.CHARACTERS, project_id, [c.to_dict() for c in characters])

    async def load_characters(self, project_id: str) -> List[Character]:
        rows = await self.store.select_by_project_id(Tables.CHARACTERS, project_id)
        return [Character.from_dict(_record(row)) for row in rows]

    async def save_relationships(self, project_id: str, edges: List[RelationshipEdge]) -> int:
        return await self._append(
            Tables.CHARACTER_RELATIONSHIPS, project_id, [e.to_dict() for e in edges]
        )

    async def load_relationships(self, project_id: str) -> List[RelationshipEdge]:
        rows = await self.store.select_by_project_id(Tables.CHARACTER_RELATIONSHIPS, project_id)
        return [RelationshipEdge.from_dict(_record(row)) for row in rows]

    # =========================================================================
    # CASTING
    # =========================================================================

    async def save_actor_suggestions(self, project_id: str, suggestions: List[ActorSuggestion]) -> int:
        return await self._append(
            Tables.ACTOR_SUGGESTIONS, project_id, [s.to_dict() for s in suggestions]
        )

    async def load_actor_suggestions(self, project_id: str) -> List[ActorSuggestion]:
        rows = await self.store.select_by_project_id(Tables.ACTOR_SUGGESTIONS, project_id)
        return [ActorSuggestion.from_dict(_record(row)) for row in rows]

    async def append_actor_candidate(
        self,
        project_id: str,
        character_name: str,
        candidate: ActorCandidate
    ) -> ActorSuggestion:
        """Add a candidate to a character's list, leaving existing entries untouched."""
        match = {"character_name": character_name}
        rows = await self.store.select_by_project_id(Tables.ACTOR_SUGGESTIONS, project_id, match)

        if rows:
            suggestion = ActorSuggestion.from_dict(_record(rows[-1])).with_candidate(candidate)
            await self.store.update_by_project_id(
                Tables.ACTOR_SUGGESTIONS,
                project_id,
                {"candidates": [c.to_dict() for c in suggestion.candidates]},
                {"id": rows[-1]["id"]},
            )
            return suggestion

        suggestion = ActorSuggestion(character_name=character_name, candidates=[candidate])
        await self.save_actor_suggestions(project_id, [suggestion])
        return suggestion

    async def select_actor(
        self,
        project_id: str,
        character_name: str,
        actor_name: str,
        reasoning: str = ""
    ) -> Dict[str, Any]:
        """Record the chosen actor for a role, one selection per character."""
        return await self._replace(
            Tables.CASTING_SELECTIONS,
            project_id,
            {"actor_name": actor_name, "reasoning": reasoning},
            {"character_name": character_name},
        )

    async def load_casting_selections(self, project_id: str) -> List[Dict[str, Any]]:
        rows = await self.store.select_by_project_id(Tables.CASTING_SELECTIONS, project_id)
        return [_record(row) for row in rows]

    # =========================================================================
    # PRODUCTION RECORDS
    # =========================================================================

    async def save_vfx_needs(self, project_id: str, needs: List[VFXNeed]) -> int:
        return await self._append(Tables.VFX_NEEDS, project_id, [n.to_dict() for n in needs])

    async def load_vfx_needs(self, project_id: str) -> List[VFXNeed]:
        rows = await self.store.select_by_project_id(Tables.VFX_NEEDS, project_id)
        return [VFXNeed.from_dict(_record(row)) for row in rows]

    async def save_product_placements(self, project_id: str, placements: List[ProductPlacement]) -> int:
        return await self._append(
            Tables.PRODUCT_PLACEMENTS, project_id, [p.to_dict() for p in placements]
        )

    async def load_product_placements(self, project_id: str) -> List[ProductPlacement]:
        rows = await self.store.select_by_project_id(Tables.PRODUCT_PLACEMENTS, project_id)
        return [ProductPlacement.from_dict(_record(row)) for row in rows]

    async def save_location_suggestions(self, project_id: str, suggestions: List[LocationSuggestion]) -> int:
        return await self._append(
            Tables.LOCATION_SUGGESTIONS, project_id, [s.to_dict() for s in suggestions]
        )

    async def load_location_suggestions(self, project_id: str) -> List[LocationSuggestion]:
        rows = await self.store.select_by_project_id(Tables.LOCATION_SUGGESTIONS, project_id)
        return [LocationSuggestion.from_dict(_record(row)) for row in rows]

    async def save_financial_plan(self, project_id: str, plan: FinancialPlan) -> Dict[str, Any]:
        """Replace the project's financial plan."""
        return await self._replace(Tables.FINANCIAL_PLANS, project_id, plan.to_dict())

    async def load_financial_plan(self, project_id: str) -> Optional[FinancialPlan]:
        rows = await self.store.select_by_project_id(Tables.FINANCIAL_PLANS, project_id)
        if not rows:
            return None
        return FinancialPlan.from_dict(_record(rows[-1]))

    # =========================================================================
    # STAGE RESULTS
    # =========================================================================

    async def mark_stage(
        self,
        project_id: str,
        stage: StageName,
        status: StageStatus,
        error_message: Optional[str] = None,
        result_count: Optional[int] = None
    ) -> Dict[str, Any]:
        values: Dict[str, Any] = {"status": status.value, "error_message": error_message}
        if result_count is not None:
            values["result_count"] = result_count
        return await self._replace(
            Tables.ANALYSIS_RESULTS, project_id, values, {"analysis_type": stage.value}
        )

    async def load_stage_results(self, project_id: str) -> Dict[str, Dict[str, Any]]:
        rows = await self.store.select_by_project_id(Tables.ANALYSIS_RESULTS, project_id)
        return {row["analysis_type"]: _record(row) for row in rows}
