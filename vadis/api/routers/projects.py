"""Projects router for Vadis API.

Project records, full-analysis runs in the background, stage status and
read access to the persisted analysis records.
"""

from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Request
from pydantic import BaseModel

from vadis.api.dependencies import (
    analysis_rate_limit,
    get_pipeline,
    get_store,
    limiter,
    running_pipelines,
)
from vadis.core.logging_config import get_logger
from vadis.pipelines.analysis_pipeline import ScriptAnalysisPipeline
from vadis.storage import AnalysisRepository, ProjectStore

logger = get_logger("api.projects")

router = APIRouter()


class ProjectCreate(BaseModel):
    title: str
    script_content: str = ""


class AnalyzeRequest(BaseModel):
    script_content: Optional[str] = None
    resume: bool = False


class CastingSelection(BaseModel):
    character_name: str
    actor_name: str
    reasoning: str = ""


def get_repository(store: ProjectStore = Depends(get_store)) -> AnalysisRepository:
    return AnalysisRepository(store)


async def execute_analysis(pipeline: ScriptAnalysisPipeline, project_id: str, script_content: Optional[str], resume: bool):
    """Run the full analysis; the outcome is recorded on the project."""
    try:
        result = await pipeline.analyze(project_id, script_content, resume=resume)
        logger.info(f"Analysis for {project_id} finished: {result.status.value}")
    finally:
        running_pipelines.pop(project_id, None)


@router.post("")
async def create_project(project: ProjectCreate, repository: AnalysisRepository = Depends(get_repository)):
    """Create a project from a title and script text."""
    record = await repository.create_project(project.title, project.script_content)
    logger.info(f"Created project {record['id']}: {project.title}")
    return record


@router.get("/{project_id}")
async def get_project(project_id: str, repository: AnalysisRepository = Depends(get_repository)):
    return await repository.get_project(project_id)


@router.post("/{project_id}/analyze")
@limiter.limit(analysis_rate_limit)
async def analyze_project(
    request: Request,
    project_id: str,
    background_tasks: BackgroundTasks,
    body: Optional[AnalyzeRequest] = None,
    pipeline: ScriptAnalysisPipeline = Depends(get_pipeline),
    repository: AnalysisRepository = Depends(get_repository),
):
    """Start a full analysis run in the background."""
    body = body or AnalyzeRequest()
    await repository.get_project(project_id)

    if project_id in running_pipelines:
        return {"success": False, "project_id": project_id, "message": "Analysis already running"}

    running_pipelines[project_id] = pipeline
    background_tasks.add_task(execute_analysis, pipeline, project_id, body.script_content, body.resume)
    return {"success": True, "project_id": project_id, "message": "Analysis started"}


@router.post("/{project_id}/cancel")
async def cancel_analysis(project_id: str):
    """Stop a running analysis before its next stage."""
    pipeline = running_pipelines.get(project_id)
    if pipeline is None:
        return {"success": False, "message": "No analysis running for this project"}
    pipeline.cancel()
    return {"success": True, "message": "Cancellation requested"}


@router.get("/{project_id}/analysis")
async def get_analysis_status(project_id: str, repository: AnalysisRepository = Depends(get_repository)):
    """Project status plus one result row per stage that has started."""
    project = await repository.get_project(project_id)
    return {
        "project_id": project_id,
        "status": project.get("status"),
        "workflow_status": project.get("workflow_status"),
        "analysis_progress": project.get("analysis_progress", 0),
        "error_message": project.get("error_message"),
        "running": project_id in running_pipelines,
        "stages": await repository.load_stage_results(project_id),
    }


@router.get("/{project_id}/scenes")
async def list_scenes(project_id: str, repository: AnalysisRepository = Depends(get_repository)):
    await repository.get_project(project_id)
    return [s.to_dict() for s in await repository.load_scenes(project_id)]


@router.get("/{project_id}/characters")
async def list_characters(project_id: str, repository: AnalysisRepository = Depends(get_repository)):
    await repository.get_project(project_id)
    return [c.to_dict() for c in await repository.load_characters(project_id)]


@router.get("/{project_id}/relationships")
async def list_relationships(project_id: str, repository: AnalysisRepository = Depends(get_repository)):
    await repository.get_project(project_id)
    return [r.to_dict() for r in await repository.load_relationships(project_id)]


@router.get("/{project_id}/actor_suggestions")
async def list_actor_suggestions(project_id: str, repository: AnalysisRepository = Depends(get_repository)):
    await repository.get_project(project_id)
    return [s.to_dict() for s in await repository.load_actor_suggestions(project_id)]


@router.get("/{project_id}/vfx_needs")
async def list_vfx_needs(project_id: str, repository: AnalysisRepository = Depends(get_repository)):
    await repository.get_project(project_id)
    return [n.to_dict() for n in await repository.load_vfx_needs(project_id)]


@router.get("/{project_id}/product_placements")
async def list_product_placements(project_id: str, repository: AnalysisRepository = Depends(get_repository)):
    await repository.get_project(project_id)
    return [p.to_dict() for p in await repository.load_product_placements(project_id)]


@router.get("/{project_id}/location_suggestions")
async def list_location_suggestions(project_id: str, repository: AnalysisRepository = Depends(get_repository)):
    await repository.get_project(project_id)
    return [s.to_dict() for s in await repository.load_location_suggestions(project_id)]


@router.get("/{project_id}/financial_plan")
async def get_financial_plan(project_id: str, repository: AnalysisRepository = Depends(get_repository)):
    await repository.get_project(project_id)
    plan = await repository.load_financial_plan(project_id)
    return plan.to_dict() if plan else None


@router.post("/{project_id}/casting/select")
async def select_actor(
    project_id: str,
    selection: CastingSelection,
    repository: AnalysisRepository = Depends(get_repository),
):
    """Record the chosen actor for a character, replacing any earlier choice."""
    await repository.get_project(project_id)
    record = await repository.select_actor(
        project_id, selection.character_name, selection.actor_name, selection.reasoning
    )
    return {"success": True, "selection": record}


@router.get("/{project_id}/casting/select")
async def list_casting_selections(project_id: str, repository: AnalysisRepository = Depends(get_repository)):
    await repository.get_project(project_id)
    return await repository.load_casting_selections(project_id)
