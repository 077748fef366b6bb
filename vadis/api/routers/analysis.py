"""Script analysis router for Vadis API.

One endpoint per analysis stage. Each reads its upstream records from the
store, runs the stage, persists the result and returns it with aggregates
computed here. Aggregates are never stored.
"""

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel

from vadis.api.dependencies import analysis_rate_limit, get_pipeline, limiter
from vadis.core.logging_config import get_logger
from vadis.pipelines.analysis_pipeline import ScriptAnalysisPipeline

logger = get_logger("api.analysis")

router = APIRouter()


class ProjectRequest(BaseModel):
    project_id: str


class SceneExtractionRequest(ProjectRequest):
    script_content: str = ""


class UserActorRequest(ProjectRequest):
    character_name: str
    suggested_actor: str


@router.post("/scene_extraction")
@limiter.limit(analysis_rate_limit)
async def scene_extraction(
    request: Request,
    body: SceneExtractionRequest,
    pipeline: ScriptAnalysisPipeline = Depends(get_pipeline),
):
    """Segment the script into scenes."""
    scenes = await pipeline.run_scene_extraction(body.project_id, body.script_content or None)
    return {
        "success": True,
        "scenes": [s.to_dict() for s in scenes],
        "total_scenes": len(scenes),
        "estimated_duration": sum(s.duration for s in scenes),
    }


@router.post("/character_analysis")
@limiter.limit(analysis_rate_limit)
async def character_analysis(
    request: Request,
    body: ProjectRequest,
    pipeline: ScriptAnalysisPipeline = Depends(get_pipeline),
):
    """Profile the characters appearing in the extracted scenes."""
    analysis = await pipeline.run_character_analysis(body.project_id)
    return {
        "success": True,
        "characters": [c.to_dict() for c in analysis.characters],
        "relationships": [r.to_dict() for r in analysis.relationships],
        "total_characters": len(analysis.characters),
    }


@router.post("/casting_suggestions")
@limiter.limit(analysis_rate_limit)
async def casting_suggestions(
    request: Request,
    body: ProjectRequest,
    pipeline: ScriptAnalysisPipeline = Depends(get_pipeline),
):
    """Suggest actors for each analyzed character."""
    suggestions = await pipeline.run_casting(body.project_id)
    return {
        "success": True,
        "casting_suggestions": [s.to_dict() for s in suggestions],
        "total_candidates": sum(len(s.candidates) for s in suggestions),
    }


@router.post("/vfx_analysis")
@limiter.limit(analysis_rate_limit)
async def vfx_analysis(
    request: Request,
    body: ProjectRequest,
    pipeline: ScriptAnalysisPipeline = Depends(get_pipeline),
):
    needs = await pipeline.run_vfx_analysis(body.project_id)
    return {
        "success": True,
        "vfx_needs": [n.to_dict() for n in needs],
        "total_estimated_cost": sum(n.estimated_cost for n in needs),
    }


@router.post("/product_placement")
@limiter.limit(analysis_rate_limit)
async def product_placement(
    request: Request,
    body: ProjectRequest,
    pipeline: ScriptAnalysisPipeline = Depends(get_pipeline),
):
    placements = await pipeline.run_product_placement(body.project_id)
    return {
        "success": True,
        "product_placements": [p.to_dict() for p in placements],
        "total_estimated_value": sum(p.estimated_value for p in placements),
    }


@router.post("/location_analysis")
@limiter.limit(analysis_rate_limit)
async def location_analysis(
    request: Request,
    body: ProjectRequest,
    pipeline: ScriptAnalysisPipeline = Depends(get_pipeline),
):
    suggestions = await pipeline.run_location_analysis(body.project_id)
    return {
        "success": True,
        "location_suggestions": [s.to_dict() for s in suggestions],
        "total_options": sum(len(s.options) for s in suggestions),
    }


@router.post("/financial_planning")
@limiter.limit(analysis_rate_limit)
async def financial_planning(
    request: Request,
    body: ProjectRequest,
    pipeline: ScriptAnalysisPipeline = Depends(get_pipeline),
):
    """Build the budget and revenue plan from everything analyzed so far."""
    plan = await pipeline.run_financial_planning(body.project_id)
    return {"success": True, "financial_plan": plan.to_dict()}


@router.post("/project_summary")
@limiter.limit(analysis_rate_limit)
async def project_summary(
    request: Request,
    body: ProjectRequest,
    pipeline: ScriptAnalysisPipeline = Depends(get_pipeline),
):
    """Write the executive summary. An unavailable model yields an empty summary."""
    summary = await pipeline.run_executive_summary(body.project_id)
    return {"success": True, "executive_summary": summary}


@router.post("/analyze_user_actor")
@limiter.limit(analysis_rate_limit)
async def analyze_user_actor(
    request: Request,
    body: UserActorRequest,
    pipeline: ScriptAnalysisPipeline = Depends(get_pipeline),
):
    """Evaluate a user's actor suggestion and add it to the character's list."""
    candidate, suggestion = await pipeline.add_user_actor(
        body.project_id, body.character_name, body.suggested_actor
    )
    return {
        "success": True,
        "candidate": candidate.to_dict(),
        "casting_suggestion": suggestion.to_dict(),
    }
