"""
Tests for Scene Extraction Stage

Tests for vadis/stages/scene_extraction.py
"""

import pytest

from vadis.core.constants import LLMProvider
from vadis.core.exceptions import ProviderError
from vadis.stages import extract_scenes


class TestExtractScenes:
    """Tests for extract_scenes."""

    @pytest.mark.asyncio
    async def test_model_scenes(self, scripted_client, sample_script):
        """Test scenes come from the model answer."""
        scenes = await extract_scenes(scripted_client, sample_script)

        assert [s.location for s in scenes] == ["OFFICE", "STREET"]
        assert scenes[0].characters == ["SARAH", "TOM"]
        assert scenes[1].vfx_needs == ["explosion"]

    @pytest.mark.asyncio
    async def test_numbering_follows_position(self, make_provider, make_client, responder, sample_script):
        """Test duplicate model scene numbers are renumbered in order."""
        provider = make_provider(LLMProvider.OPENAI, responder({"scene_extraction": {"scenes": [
            {"scene_number": 4, "location": "A"},
            {"scene_number": 4, "location": "B"},
            {"scene_number": 1, "location": "C"},
        ]}}))

        scenes = await extract_scenes(make_client(provider), sample_script)

        assert [s.scene_number for s in scenes] == [1, 2, 3]
        assert [s.id for s in scenes] == ["scene_1", "scene_2", "scene_3"]

    @pytest.mark.asyncio
    async def test_offline_uses_basic_parser(self, offline_client, sample_script):
        """Test the regex parser runs when generation is disabled."""
        scenes = await extract_scenes(offline_client, sample_script)

        assert len(scenes) == 2
        assert scenes[0].description == "INT. OFFICE - DAY"

    @pytest.mark.asyncio
    async def test_no_credentials_uses_basic_parser(self, unconfigured_client, sample_script):
        """Test missing credentials do not block scene extraction."""
        scenes = await extract_scenes(unconfigured_client, sample_script)

        assert [s.location for s in scenes] == ["OFFICE", "STREET"]

    @pytest.mark.asyncio
    async def test_provider_failure_uses_basic_parser(self, make_provider, make_client, sample_script):
        """Test a failed call falls back to the regex parser."""
        provider = make_provider(LLMProvider.OPENAI, [ProviderError("openai", "500")])

        scenes = await extract_scenes(make_client(provider), sample_script)

        assert len(scenes) == 2

    @pytest.mark.asyncio
    async def test_empty_model_answer_uses_basic_parser(self, make_provider, make_client, sample_script):
        """Test an empty scene list from the model is not trusted."""
        provider = make_provider(LLMProvider.OPENAI, ['{"scenes": []}'])

        scenes = await extract_scenes(make_client(provider), sample_script)

        assert len(scenes) == 2

    @pytest.mark.asyncio
    async def test_empty_script(self, scripted_client, scripted_provider):
        """Test empty text yields no scenes and no model call."""
        assert await extract_scenes(scripted_client, "   ") == []
        assert scripted_provider.calls == []
