"""
Pytest Configuration and Fixtures

Shared fixtures for all tests.
"""

import asyncio
import json
import shutil
import tempfile
from pathlib import Path
from typing import Callable, Dict, List, Optional, Union

import pytest

from vadis.core.constants import LLMProvider
from vadis.core.exceptions import ProviderError
from vadis.llm.generation_client import GenerationClient
from vadis.llm.providers import BaseLLMProvider
from vadis.pipelines.analysis_pipeline import ScriptAnalysisPipeline
from vadis.storage import MemoryStore


SAMPLE_SCRIPT = """FADE IN:

INT. OFFICE - DAY

SARAH sits at her desk, staring at a laptop.

SARAH
We need to talk about the merger.

TOM
Not now.

EXT. STREET - NIGHT

Rain hammers the pavement. An explosion lights up the sky.

TOM (V.O.)
She never called back.

FADE OUT.
"""


# Markers are the opening words of each stage prompt
STAGE_MARKERS = {
    "scene_extraction": "Break the following screenplay",
    "character_analysis": "Analyze the characters",
    "casting_suggestions": "Suggest casting",
    "vfx_analysis": "Identify the visual effects",
    "product_placement": "Find natural product-placement",
    "location_analysis": "Suggest real filming locations",
    "financial_planning": "Build a financial plan",
    "project_summary": "Write a professional reader's report",
    "analyze_user_actor": "Evaluate ",
}


class FakeProvider(BaseLLMProvider):
    """
    Provider double that never touches the network.

    `responses` is either a list consumed in order (an Exception entry is
    raised instead of returned) or a callable taking the prompt.
    """

    def __init__(
        self,
        provider: LLMProvider = LLMProvider.OPENAI,
        responses: Union[List, Callable[[str], str], None] = None,
        delay: float = 0.0,
        api_key: Optional[str] = "test-key",
    ):
        self.provider = provider
        super().__init__(api_key=api_key)
        self._responses = responses if responses is not None else []
        self.delay = delay
        self.calls: List[Dict] = []

    async def generate(self, prompt, model, system_prompt="", temperature=None, max_tokens=None):
        self.calls.append({
            "prompt": prompt,
            "model": model,
            "system_prompt": system_prompt,
            "temperature": temperature,
            "max_tokens": max_tokens,
        })
        if self.delay:
            await asyncio.sleep(self.delay)

        if callable(self._responses):
            response = self._responses(prompt)
        elif self._responses:
            response = self._responses.pop(0)
        else:
            raise ProviderError(self.provider.value, "no scripted response")

        if isinstance(response, Exception):
            raise response
        return response


def stage_responder(responses: Dict[str, object]) -> Callable[[str], str]:
    """Answer each stage prompt with the scripted response for that stage."""
    def respond(prompt: str):
        for stage, marker in STAGE_MARKERS.items():
            if prompt.startswith(marker) and stage in responses:
                value = responses[stage]
                if isinstance(value, Exception):
                    return value
                return value if isinstance(value, str) else json.dumps(value)
        return ProviderError("openai", "no scripted response for prompt")
    return respond


def client_with(provider: FakeProvider, **kwargs) -> GenerationClient:
    """A client whose only provider is the given fake."""
    return GenerationClient(providers={provider.provider: provider}, **kwargs)


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    temp_path = tempfile.mkdtemp()
    yield Path(temp_path)
    shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def sample_script() -> str:
    """Two-scene script: an office by day and a street by night."""
    return SAMPLE_SCRIPT


@pytest.fixture
def two_page_script() -> str:
    """One INT. scene spanning two pages with two character cues."""
    action = [f"Marcus paces the room, beat {i}." for i in range(1, 61)]
    return "\n".join(
        ["INT. WAREHOUSE - NIGHT", ""]
        + action[:30]
        + ["MARCUS", "They should be here by now.", "ELENA", "Patience."]
        + action[30:]
    )


@pytest.fixture
def memory_store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def offline_client() -> GenerationClient:
    """Client with the generation capability disabled."""
    return GenerationClient(offline=True)


@pytest.fixture
def unconfigured_client() -> GenerationClient:
    """Client with no provider credentials at all."""
    return GenerationClient(providers={})


@pytest.fixture
def offline_pipeline(offline_client, memory_store) -> ScriptAnalysisPipeline:
    return ScriptAnalysisPipeline(offline_client, memory_store)


@pytest.fixture
def scripted_responses() -> Dict[str, object]:
    """Well-formed model answers for every stage of SAMPLE_SCRIPT."""
    return {
        "scene_extraction": {"scenes": [
            {"scene_number": 1, "location": "OFFICE", "time_of_day": "DAY",
             "description": "Sarah confronts Tom", "characters": ["SARAH", "TOM"],
             "page_start": 1, "page_end": 1, "duration": 1},
            {"scene_number": 2, "location": "STREET", "time_of_day": "NIGHT",
             "description": "An explosion in the rain", "characters": ["TOM"],
             "page_start": 1, "page_end": 2, "duration": 2, "vfx_needs": ["explosion"]},
        ]},
        "character_analysis": {
            "characters": [
                {"name": "SARAH", "description": "Driven executive", "age": "35",
                 "importance": "lead", "personality": ["determined", "blunt"],
                 "relationships": [{"character": "TOM", "relationship": "colleague", "strength": 7}]},
                {"name": "TOM", "description": "Evasive partner", "importance": "supporting"},
            ],
            "relationship_graph": [
                {"from": "SARAH", "to": "TOM", "type": "colleague", "strength": 7},
            ],
        },
        "casting_suggestions": {"suggestions": [
            {"character_name": "SARAH", "candidates": [
                {"name": "Actor One", "fit_score": 92, "estimated_fee": "$2,000,000"},
                {"name": "Actor Two", "fit_score": 80},
            ]},
            {"character_name": "TOM", "candidates": [{"name": "Actor Three", "fit_score": 75}]},
            {"character_name": "NOBODY", "candidates": [{"name": "Actor Four"}]},
        ]},
        "vfx_analysis": {"vfx_needs": [
            {"scene_id": "scene_2", "effect_type": "explosion", "complexity": "high",
             "estimated_cost": 150000},
            {"scene_id": "scene_99", "effect_type": "ghost"},
        ]},
        "product_placement": {"placements": [
            {"scene_number": 1, "brand": "Apple", "product": "laptop",
             "visibility": "featured", "estimated_value": 50000},
        ]},
        "location_analysis": {"locations": [
            {"scene_id": "scene_1", "location_type": "office", "options": [
                {"name": "Downtown tower", "city": "Atlanta", "estimated_cost": 20000},
                {"name": "Studio set", "city": "Atlanta", "estimated_cost": 12000},
            ]},
        ]},
        "financial_planning": {
            "total_budget": 5000000,
            "budget_breakdown": {"pre_production": 500000, "production": 3000000},
            "revenue_projections": {"domestic": 8000000, "streaming": 2000000},
            "roi": 1.5,
            "break_even_point": 6000000,
        },
        "project_summary": "A taut corporate drama with one big set piece.",
        "analyze_user_actor": {"fit_score": 88, "reasoning": "Strong dramatic range"},
    }


@pytest.fixture
def scripted_provider(scripted_responses) -> FakeProvider:
    return FakeProvider(LLMProvider.OPENAI, stage_responder(scripted_responses))


@pytest.fixture
def scripted_client(scripted_provider) -> GenerationClient:
    return client_with(scripted_provider)


@pytest.fixture
def scripted_pipeline(scripted_client, memory_store) -> ScriptAnalysisPipeline:
    return ScriptAnalysisPipeline(scripted_client, memory_store)


@pytest.fixture
def make_provider():
    """Factory for FakeProvider instances."""
    return FakeProvider


@pytest.fixture
def make_client():
    """Factory for clients backed by a single FakeProvider."""
    return client_with


@pytest.fixture
def responder():
    """Factory for per-stage prompt responders."""
    return stage_responder
