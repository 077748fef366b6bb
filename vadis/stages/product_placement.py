"""
Product placement analysis stage.
"""

from typing import List

from vadis.analysis.models import ProductPlacement, Scene
from vadis.core.constants import StageName
from vadis.core.logging_config import get_logger
from vadis.llm.generation_client import GenerationClient
from vadis.llm.response_normalizer import result_items

from .base import SceneIndex, serialize_scenes
from .prompts import StagePromptLibrary

logger = get_logger("stages.placement")


async def analyze_product_placement(client: GenerationClient, scenes: List[Scene]) -> List[ProductPlacement]:
    if not scenes:
        logger.info("No scenes provided, skipping product placement analysis")
        return []

    prompt = StagePromptLibrary.get(StageName.PRODUCT_PLACEMENT)
    result = await client.generate(
        StageName.PRODUCT_PLACEMENT,
        prompt.template,
        {"scene_count": len(scenes), "scenes": serialize_scenes(scenes)},
    )

    index = SceneIndex(scenes)
    placements = []
    for item in result_items(result):
        scene = index.resolve(item)
        if scene is None:
            logger.warning(f"Dropping placement with unknown scene reference: {item.get('scene_id')!r}")
            continue
        placements.append(ProductPlacement.from_llm(item, scene))

    logger.info(f"Found {len(placements)} product placement opportunities")
    return placements
