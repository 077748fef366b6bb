"""
Executive summary stage.

Best-effort prose synthesis. Any failure degrades to an empty summary
instead of failing the run.
"""

import json
from typing import List

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
from vadis.core.exceptions import VadisError
from vadis.core.logging_config import get_logger
from vadis.llm.generation_client import GenerationClient

from .prompts import StagePromptLibrary

logger = get_logger("stages.summary")


def _scene_lines(scenes: List[Scene]) -> str:
    return "\n".join(
        f"{s.scene_number}. {s.location} ({s.time_of_day}): {s.description}" for s in scenes
    )


def _character_lines(characters: List[Character]) -> str:
    return "\n".join(
        f"- {c.name} [{c.importance}]: {c.description}" for c in characters
    ) or "None identified"


def _casting_lines(suggestions: List[ActorSuggestion]) -> str:
    return "\n".join(
        f"- {s.character_name}: {', '.join(c.name for c in s.candidates[:3])}"
        for s in suggestions
    ) or "No suggestions"


async def write_executive_summary(
    client: GenerationClient,
    scenes: List[Scene],
    characters: List[Character],
    actor_suggestions: List[ActorSuggestion],
    vfx_needs: List[VFXNeed],
    product_placements: List[ProductPlacement],
    locations: List[LocationSuggestion],
    financial_plan: FinancialPlan,
) -> str:
    """Write the reader's report; returns "" if it cannot be produced."""
    prompt = StagePromptLibrary.get(StageName.PROJECT_SUMMARY)
    inputs = {
        "scene_count": len(scenes),
        "runtime": sum(s.duration for s in scenes),
        "scenes": _scene_lines(scenes),
        "characters": _character_lines(characters),
        "casting": _casting_lines(actor_suggestions),
        "vfx_count": len(vfx_needs),
        "vfx_cost": sum(v.estimated_cost for v in vfx_needs),
        "placement_count": len(product_placements),
        "placement_value": sum(p.estimated_value for p in product_placements),
        "location_count": len(locations),
        "financials": json.dumps(financial_plan.to_dict(), indent=1),
    }

    try:
        text = await client.generate(StageName.PROJECT_SUMMARY, prompt.template, inputs)
    except VadisError as e:
        logger.warning(f"Executive summary unavailable: {e}")
        return ""

    if not isinstance(text, str):
        logger.warning(f"Executive summary returned {type(text).__name__}, expected text")
        return ""

    summary = text.strip()
    logger.info(f"Executive summary written ({len(summary)} chars)")
    return summary
