"""
VFX needs analysis stage.
"""

from typing import List

from vadis.analysis.models import Scene, VFXNeed
from vadis.core.constants import StageName
from vadis.core.logging_config import get_logger
from vadis.llm.generation_client import GenerationClient
from vadis.llm.response_normalizer import result_items

from .base import SceneIndex, serialize_scenes
from .prompts import StagePromptLibrary

logger = get_logger("stages.vfx")


async def analyze_vfx(client: GenerationClient, scenes: List[Scene]) -> List[VFXNeed]:
    """Identify visual effects per scene. Zero scenes yields zero needs."""
    if not scenes:
        logger.info("No scenes provided, skipping VFX analysis")
        return []

    prompt = StagePromptLibrary.get(StageName.VFX_ANALYSIS)
    result = await client.generate(
        StageName.VFX_ANALYSIS,
        prompt.template,
        {"scene_count": len(scenes), "scenes": serialize_scenes(scenes)},
    )

    index = SceneIndex(scenes)
    needs = []
    for item in result_items(result):
        scene = index.resolve(item)
        if scene is None:
            logger.warning(f"Dropping VFX need with unknown scene reference: {item.get('scene_id')!r}")
            continue
        needs.append(VFXNeed.from_llm(item, scene))

    logger.info(f"Found {len(needs)} VFX needs")
    return needs
