"""
Financial plan synthesis stage.

Feeds the cost and revenue figures produced upstream (VFX, casting fees,
locations, placements) into the prompt and asks the model for the bulk
categories. The returned plan always carries every bucket; the arithmetic
of the model's estimate is not reconciled.
"""

from typing import Any, Dict, List

from vadis.analysis.models import (
    ActorSuggestion,
    Character,
    FinancialPlan,
    LocationSuggestion,
    ProductPlacement,
    Scene,
    VFXNeed,
)
from vadis.core.constants import StageName
from vadis.core.exceptions import PreconditionNotMet
from vadis.core.logging_config import get_logger
from vadis.llm.generation_client import GenerationClient
from vadis.llm.response_normalizer import ParsedObject

from .prompts import StagePromptLibrary

logger = get_logger("stages.financials")

NO_SCENES_MESSAGE = "No scenes found. Please run scene extraction first."


def production_facts(
    scenes: List[Scene],
    characters: List[Character],
    vfx_needs: List[VFXNeed],
    actor_suggestions: List[ActorSuggestion],
    locations: List[LocationSuggestion],
    product_placements: List[ProductPlacement],
) -> Dict[str, Any]:
    """Upstream totals used as prompt inputs."""
    # First candidate is the best fit; its fee stands in for the role
    cast_cost = sum(
        s.candidates[0].estimated_fee for s in actor_suggestions if s.candidates
    )
    return {
        "scene_count": len(scenes),
        "runtime": sum(s.duration for s in scenes),
        "character_count": len(characters),
        "lead_count": sum(1 for c in characters if c.importance == "lead"),
        "vfx_count": len(vfx_needs),
        "vfx_cost": sum(v.estimated_cost for v in vfx_needs),
        "cast_cost": cast_cost,
        "location_cost": sum(loc.total_estimated_cost for loc in locations),
        "placement_value": sum(p.estimated_value for p in product_placements),
    }


async def plan_financials(
    client: GenerationClient,
    scenes: List[Scene],
    characters: List[Character],
    vfx_needs: List[VFXNeed],
    actor_suggestions: List[ActorSuggestion],
    locations: List[LocationSuggestion],
    product_placements: List[ProductPlacement],
) -> FinancialPlan:
    """
    Build the project's financial plan.

    Raises:
        PreconditionNotMet: no scenes to budget
    """
    if not scenes:
        raise PreconditionNotMet(StageName.FINANCIAL_PLANNING.value, NO_SCENES_MESSAGE)

    facts = production_facts(
        scenes, characters, vfx_needs, actor_suggestions, locations, product_placements
    )

    prompt = StagePromptLibrary.get(StageName.FINANCIAL_PLANNING)
    result = await client.generate(StageName.FINANCIAL_PLANNING, prompt.template, facts)

    if not isinstance(result, ParsedObject):
        logger.warning("No usable financial plan from model, returning an empty plan")
        return FinancialPlan()

    plan = FinancialPlan.from_dict(result.value)
    logger.info(f"Financial plan: budget ${plan.total_budget:,}, ROI {plan.roi:.2f}")
    return plan
