"""
Casting suggestion stage, plus evaluation of a user-suggested actor.
"""

from typing import Dict, List

from vadis.analysis.models import ActorCandidate, ActorSuggestion, Character, pick
from vadis.core.constants import StageName
from vadis.core.exceptions import PreconditionNotMet
from vadis.core.logging_config import get_logger
from vadis.llm.generation_client import GenerationClient
from vadis.llm.response_normalizer import ParsedObject, result_items

from .base import dict_items, serialize_characters
from .prompts import StagePromptLibrary

logger = get_logger("stages.casting")

NO_CHARACTERS_MESSAGE = "No characters found. Please run character analysis first."


def _candidates_for(item: Dict) -> List[ActorCandidate]:
    raw = dict_items(pick(item, 'candidates', 'actors', 'suggested_actors'))
    if not raw and pick(item, 'actor_name', 'actor'):
        # Flat form: one actor per item
        raw = [item]
    candidates = [ActorCandidate.from_llm(c) for c in raw]
    return [c for c in candidates if c is not None]


async def suggest_casting(client: GenerationClient, characters: List[Character]) -> List[ActorSuggestion]:
    """
    Suggest actors for each character.

    Raises:
        PreconditionNotMet: no characters to cast
    """
    if not characters:
        raise PreconditionNotMet(StageName.CASTING_SUGGESTIONS.value, NO_CHARACTERS_MESSAGE)

    prompt = StagePromptLibrary.get(StageName.CASTING_SUGGESTIONS)
    result = await client.generate(
        StageName.CASTING_SUGGESTIONS,
        prompt.template,
        {"character_count": len(characters), "characters": serialize_characters(characters)},
    )

    known = {c.name.lower(): c.name for c in characters}
    merged: Dict[str, List[ActorCandidate]] = {}

    for item in result_items(result):
        requested = str(pick(item, 'character_name', 'character', 'role', default="")).strip()
        name = known.get(requested.lower())
        if name is None:
            logger.warning(f"Dropping casting for unknown character: {requested!r}")
            continue
        merged.setdefault(name, []).extend(_candidates_for(item))

    suggestions = [
        ActorSuggestion(character_name=c.name, candidates=merged[c.name])
        for c in characters
        if merged.get(c.name)
    ]
    logger.info(f"Casting suggestions for {len(suggestions)}/{len(characters)} characters")
    return suggestions


def recommendation_for(fit_score: int) -> str:
    if fit_score >= 85:
        return "excellent"
    if fit_score >= 70:
        return "good"
    if fit_score >= 50:
        return "fair"
    return "poor"


async def evaluate_user_actor(
    client: GenerationClient,
    character: Character,
    actor_name: str
) -> ActorCandidate:
    """
    Evaluate an actor a user proposed for a role.

    A soft failure still returns a candidate, with neutral scores, so the
    user's suggestion is never lost.
    """
    prompt = StagePromptLibrary.get(StageName.USER_ACTOR_EVALUATION)
    result = await client.generate(
        StageName.USER_ACTOR_EVALUATION,
        prompt.template,
        {
            "actor_name": actor_name,
            "character_name": character.name,
            "character_description": character.description or "Not described",
            "importance": character.importance,
            "personality": ", ".join(character.personality) or "Not described",
        },
    )

    candidate = None
    if isinstance(result, ParsedObject):
        candidate = ActorCandidate.from_llm(result.value, name=actor_name, user_suggested=True)

    if candidate is None:
        logger.warning(f"No evaluation for user-suggested actor {actor_name!r}, using defaults")
        candidate = ActorCandidate(
            name=actor_name,
            reasoning="Evaluation unavailable",
            user_suggested=True,
        )

    if not candidate.recommendation:
        candidate.recommendation = recommendation_for(candidate.fit_score)
    return candidate
