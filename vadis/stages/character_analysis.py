"""
Character analysis stage.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple

from vadis.analysis.models import (
    Character,
    CharacterRelationship,
    RelationshipEdge,
    Scene,
    pick,
)
from vadis.core.constants import StageName
from vadis.core.logging_config import get_logger
from vadis.llm.generation_client import GenerationClient
from vadis.llm.response_normalizer import ParsedArray, ParsedObject

from .base import dict_items, serialize_scenes
from .prompts import StagePromptLibrary

logger = get_logger("stages.characters")


@dataclass
class CharacterAnalysis:
    """Characters plus the relationship graph between them."""
    characters: List[Character] = field(default_factory=list)
    relationships: List[RelationshipEdge] = field(default_factory=list)


def stub_characters(scenes: List[Scene]) -> List[Character]:
    """One minor-tier character per distinct name in the scenes' cue lists."""
    stubs: Dict[str, Character] = {}
    for scene in scenes:
        for name in scene.characters:
            key = name.strip().lower()
            if not key:
                continue
            if key not in stubs:
                stubs[key] = Character.stub(name.strip())
            stubs[key].screen_time += scene.duration
    return list(stubs.values())


def _split_payload(value: Any) -> Tuple[List[Dict], List[Dict]]:
    if isinstance(value, ParsedObject):
        payload = value.value
        characters = dict_items(pick(payload, 'characters'))
        if not characters and pick(payload, 'name'):
            characters = [payload]
        edges = dict_items(pick(payload, 'relationship_graph', 'relationships', default=[]))
        return characters, edges
    if isinstance(value, ParsedArray):
        return list(value.items), []
    return [], []


def _merge_relationships(characters: List[Character], edges: List[RelationshipEdge]) -> List[RelationshipEdge]:
    """Fill each side of the character/edge pair from the other when missing."""
    by_name = {c.name.lower(): c for c in characters}

    for edge in edges:
        source = by_name.get(edge.from_character.lower())
        if source is not None and not any(
            r.character.lower() == edge.to_character.lower() for r in source.relationships
        ):
            source.relationships.append(
                CharacterRelationship(edge.to_character, edge.relationship, edge.strength)
            )

    if edges:
        return edges

    return [
        RelationshipEdge(c.name, r.character, r.relationship, r.strength)
        for c in characters
        for r in c.relationships
    ]


async def analyze_characters(client: GenerationClient, scenes: List[Scene]) -> CharacterAnalysis:
    """
    Analyze characters across the scenes.

    When the model yields nothing usable, every name from the scenes' cue
    lists is returned as a stub so downstream stages still have roles to work
    with.
    """
    if not scenes:
        logger.info("No scenes provided, skipping character analysis")
        return CharacterAnalysis()

    prompt = StagePromptLibrary.get(StageName.CHARACTER_ANALYSIS)
    result = await client.generate(
        StageName.CHARACTER_ANALYSIS,
        prompt.template,
        {"scene_count": len(scenes), "scenes": serialize_scenes(scenes)},
    )

    raw_characters, raw_edges = _split_payload(result)

    characters: List[Character] = []
    seen = set()
    for item in raw_characters:
        character = Character.from_llm(item)
        if character is None or character.name.lower() in seen:
            continue
        seen.add(character.name.lower())
        characters.append(character)

    if not characters:
        stubs = stub_characters(scenes)
        logger.warning(f"No characters from model, using {len(stubs)} stubs from scene cues")
        return CharacterAnalysis(characters=stubs)

    edges = [RelationshipEdge.from_dict(e) for e in raw_edges]
    edges = [e for e in edges if e.from_character and e.to_character]
    edges = _merge_relationships(characters, edges)

    logger.info(f"Analyzed {len(characters)} characters, {len(edges)} relationships")
    return CharacterAnalysis(characters=characters, relationships=edges)
