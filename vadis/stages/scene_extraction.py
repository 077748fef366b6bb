"""
Scene extraction stage.

The only stage with a deterministic fallback: when the model call fails, is
unavailable, or yields no usable scenes, the basic regex parser segments the
script instead.
"""

from typing import List

from vadis.analysis.models import Scene
from vadis.core.constants import MAX_SCRIPT_CHARS, StageName
from vadis.core.exceptions import CapabilityUnavailable, GenerationFailed
from vadis.core.logging_config import get_logger
from vadis.llm.generation_client import GenerationClient
from vadis.llm.response_normalizer import result_items
from vadis.parsing.basic_scene_parser import BasicSceneParser
from vadis.parsing.script_text import clean_screenplay_text

from .prompts import StagePromptLibrary

logger = get_logger("stages.scenes")


async def extract_scenes(client: GenerationClient, script_text: str) -> List[Scene]:
    """
    Segment a screenplay into scenes.

    Args:
        client: Generation client
        script_text: Raw screenplay text

    Returns:
        Scenes in script order (possibly empty for scripts without headings)
    """
    script = clean_screenplay_text(script_text or "")
    if not script:
        logger.info("Empty script text, no scenes to extract")
        return []

    if len(script) > MAX_SCRIPT_CHARS:
        logger.info(f"Script truncated from {len(script)} to {MAX_SCRIPT_CHARS} chars for the model")

    prompt = StagePromptLibrary.get(StageName.SCENE_EXTRACTION)
    try:
        result = await client.generate(
            StageName.SCENE_EXTRACTION,
            prompt.template,
            {"script": script[:MAX_SCRIPT_CHARS]},
        )
    except (CapabilityUnavailable, GenerationFailed) as e:
        logger.warning(f"Scene extraction model call failed, using basic parser: {e}")
        return BasicSceneParser().parse(script)

    scenes = [
        Scene.from_llm(item, position)
        for position, item in enumerate(result_items(result), start=1)
    ]

    if not scenes:
        logger.warning("Model returned no usable scenes, using basic parser")
        return BasicSceneParser().parse(script)

    logger.info(f"Extracted {len(scenes)} scenes")
    return scenes
