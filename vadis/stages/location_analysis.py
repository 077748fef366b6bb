"""
Location suggestion stage.
"""

from typing import List

from vadis.analysis.models import LocationOption, LocationSuggestion, Scene, pick
from vadis.core.constants import StageName
from vadis.core.exceptions import PreconditionNotMet
from vadis.core.logging_config import get_logger
from vadis.llm.generation_client import GenerationClient
from vadis.llm.response_normalizer import result_items

from .base import SceneIndex, dict_items, serialize_scenes
from .prompts import StagePromptLibrary

logger = get_logger("stages.locations")

NO_SCENES_MESSAGE = "No scenes found. Please run scene extraction first."


async def suggest_locations(client: GenerationClient, scenes: List[Scene]) -> List[LocationSuggestion]:
    """
    Suggest filming locations per scene.

    Raises:
        PreconditionNotMet: no scenes to scout for
    """
    if not scenes:
        raise PreconditionNotMet(StageName.LOCATION_ANALYSIS.value, NO_SCENES_MESSAGE)

    prompt = StagePromptLibrary.get(StageName.LOCATION_ANALYSIS)
    result = await client.generate(
        StageName.LOCATION_ANALYSIS,
        prompt.template,
        {"scene_count": len(scenes), "scenes": serialize_scenes(scenes)},
    )

    index = SceneIndex(scenes)
    suggestions = []
    for item in result_items(result):
        scene = index.resolve(item)
        if scene is None:
            logger.warning(f"Dropping location suggestion with unknown scene reference: {item.get('scene_id')!r}")
            continue

        options = [
            LocationOption.from_llm(o)
            for o in dict_items(pick(item, 'options', 'suggested_locations', 'locations'))
        ]
        suggestions.append(LocationSuggestion(
            scene_id=scene.id,
            scene_number=scene.scene_number,
            location_type=str(pick(item, 'location_type', 'type', default=scene.location)).strip(),
            options=[o for o in options if o is not None],
        ))

    logger.info(f"Location suggestions for {len(suggestions)}/{len(scenes)} scenes")
    return suggestions
