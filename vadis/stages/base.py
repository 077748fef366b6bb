"""
Shared helpers for stage functions: prompt serialization and scene lookup.
"""

import json
import re
from typing import Any, Dict, Iterable, List, Optional

from vadis.analysis.models import Character, Scene, pick, to_int
from vadis.core.constants import MAX_SCENE_CONTENT_CHARS

_SCENE_REF_PATTERN = re.compile(r"(\d+)")


def serialize_scenes(scenes: Iterable[Scene], content_limit: int = MAX_SCENE_CONTENT_CHARS) -> str:
    """Compact JSON listing of scenes for prompts."""
    return json.dumps(
        [
            {
                "scene_id": scene.id,
                "scene_number": scene.scene_number,
                "location": scene.location,
                "time_of_day": scene.time_of_day,
                "description": scene.description,
                "characters": scene.characters,
                "content": scene.content[:content_limit],
            }
            for scene in scenes
        ],
        indent=1,
    )


def serialize_characters(characters: Iterable[Character]) -> str:
    """Compact JSON listing of characters for prompts."""
    return json.dumps(
        [
            {
                "name": c.name,
                "description": c.description,
                "age": c.age,
                "gender": c.gender,
                "personality": c.personality,
                "importance": c.importance,
            }
            for c in characters
        ],
        indent=1,
    )


class SceneIndex:
    """Resolves the loose scene references models emit to persisted scenes."""

    def __init__(self, scenes: Iterable[Scene]):
        self._by_id: Dict[str, Scene] = {}
        self._by_number: Dict[int, Scene] = {}
        for scene in scenes:
            self._by_id[scene.id.lower()] = scene
            self._by_number[scene.scene_number] = scene

    def __len__(self) -> int:
        return len(self._by_id)

    def resolve(self, payload: Dict[str, Any]) -> Optional[Scene]:
        """Find the scene a payload refers to by id or number."""
        ref = pick(payload, 'scene_id', 'scene', 'scene_number')
        if ref is None:
            return None
        if isinstance(ref, bool):
            return None
        if isinstance(ref, (int, float)):
            number = to_int(ref, -1)
            return self._by_number.get(number) if number >= 0 else None
        ref = str(ref).strip()
        scene = self._by_id.get(ref.lower())
        if scene:
            return scene
        match = _SCENE_REF_PATTERN.search(ref)
        if match:
            return self._by_number.get(int(match.group(1)))
        return None


def dict_items(value: Any) -> List[Dict[str, Any]]:
    """Dict entries of a list payload; anything else yields nothing."""
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, dict)]
