"""
Tests for Generation Client

Tests for vadis/llm/generation_client.py
"""

import pytest

from vadis.core.config import get_default_config
from vadis.core.constants import LLMProvider, OutputShape, StageName
from vadis.core.exceptions import (
    CapabilityUnavailable,
    ContentBlockedError,
    GenerationFailed,
    ProviderError,
)
from vadis.llm.generation_client import GenerationClient
from vadis.llm.providers import FALLBACK_MODELS
from vadis.llm.response_normalizer import ParsedArray, ParseFailure

TEMPLATE = "List the effects for: {scenes}"


class TestGenerate:
    """Tests for a single successful call."""

    @pytest.mark.asyncio
    async def test_primary_provider_used(self, make_provider):
        """Test the configured provider and model receive the prompt."""
        google = make_provider(LLMProvider.GOOGLE, ['{"vfx_needs": [{"scene_id": "scene_1"}]}'])
        client = GenerationClient(providers={LLMProvider.GOOGLE: google})

        result = await client.generate(StageName.VFX_ANALYSIS, TEMPLATE, {"scenes": "one scene"})

        stage_config = client.stage_config(StageName.VFX_ANALYSIS)
        assert result == ParsedArray([{"scene_id": "scene_1"}])
        assert google.calls[0]["model"] == stage_config.model
        assert google.calls[0]["max_tokens"] == stage_config.max_tokens
        assert google.calls[0]["prompt"] == "List the effects for: one scene"

    @pytest.mark.asyncio
    async def test_overrides(self, make_provider):
        """Test per-call shape and token budget overrides."""
        openai = make_provider(LLMProvider.OPENAI, ["plain prose"])
        client = GenerationClient(providers={LLMProvider.OPENAI: openai})

        result = await client.generate(
            StageName.CASTING_SUGGESTIONS, "Hi {name}", {"name": "x"},
            output_shape=OutputShape.TEXT, token_budget=50,
        )

        assert result == "plain prose"
        assert openai.calls[0]["max_tokens"] == 50

    @pytest.mark.asyncio
    async def test_text_stage_returns_raw(self, make_provider):
        """Test the summary stage gets text, not a parsed value."""
        openai = make_provider(LLMProvider.OPENAI, ["  A fine script.  "])
        client = GenerationClient(providers={LLMProvider.OPENAI: openai})

        result = await client.generate(StageName.PROJECT_SUMMARY, "Summarize", {})

        assert result == "  A fine script.  "

    @pytest.mark.asyncio
    async def test_unparseable_counts_failure(self, make_provider):
        """Test malformed output becomes a ParseFailure, not an exception."""
        google = make_provider(LLMProvider.GOOGLE, ["Sorry, I can't do that."])
        client = GenerationClient(providers={LLMProvider.GOOGLE: google})

        result = await client.generate(StageName.VFX_ANALYSIS, TEMPLATE, {"scenes": ""})

        assert isinstance(result, ParseFailure)
        assert client.get_stats()["parse_failures"] == 1

    @pytest.mark.asyncio
    async def test_prompt_sanitized(self, make_provider):
        """Test strong language is softened before sending."""
        google = make_provider(LLMProvider.GOOGLE, ["[]"])
        client = GenerationClient(providers={LLMProvider.GOOGLE: google})

        await client.generate(StageName.VFX_ANALYSIS, TEMPLATE, {"scenes": "What the hell, damn it"})

        assert google.calls[0]["prompt"] == "List the effects for: What the heck, darn it"


class TestFallbackChain:
    """Tests for provider fallback."""

    @pytest.mark.asyncio
    async def test_falls_back_on_provider_error(self, make_provider):
        """Test the next provider in the chain answers."""
        google = make_provider(LLMProvider.GOOGLE, [ProviderError("google", "503")])
        openai = make_provider(LLMProvider.OPENAI, ['[{"scene_id": "scene_1"}]'])
        client = GenerationClient(providers={LLMProvider.GOOGLE: google, LLMProvider.OPENAI: openai})

        result = await client.generate(StageName.VFX_ANALYSIS, TEMPLATE, {"scenes": ""})

        assert isinstance(result, ParsedArray)
        assert openai.calls[0]["model"] == FALLBACK_MODELS[LLMProvider.OPENAI]

    @pytest.mark.asyncio
    async def test_falls_back_on_content_block(self, make_provider):
        """Test a safety block moves on to the next provider."""
        google = make_provider(LLMProvider.GOOGLE, [ContentBlockedError("google", "SAFETY")])
        openai = make_provider(LLMProvider.OPENAI, ["[]"])
        client = GenerationClient(providers={LLMProvider.GOOGLE: google, LLMProvider.OPENAI: openai})

        result = await client.generate(StageName.VFX_ANALYSIS, TEMPLATE, {"scenes": ""})

        assert result == ParsedArray([])

    @pytest.mark.asyncio
    async def test_skips_provider_without_key(self, make_provider):
        """Test a provider with no credential is not called."""
        google = make_provider(LLMProvider.GOOGLE, ["[]"], api_key="")
        openai = make_provider(LLMProvider.OPENAI, ["[]"])
        client = GenerationClient(providers={LLMProvider.GOOGLE: google, LLMProvider.OPENAI: openai})

        await client.generate(StageName.VFX_ANALYSIS, TEMPLATE, {"scenes": ""})

        assert google.calls == []
        assert len(openai.calls) == 1

    @pytest.mark.asyncio
    async def test_all_fail(self, make_provider):
        """Test GenerationFailed once the chain is exhausted."""
        google = make_provider(LLMProvider.GOOGLE, [ProviderError("google", "boom")])
        openai = make_provider(LLMProvider.OPENAI, [ProviderError("openai", "bust")])
        client = GenerationClient(providers={LLMProvider.GOOGLE: google, LLMProvider.OPENAI: openai})

        with pytest.raises(GenerationFailed) as exc_info:
            await client.generate(StageName.VFX_ANALYSIS, TEMPLATE, {"scenes": ""})

        assert exc_info.value.details["stage"] == "vfx_analysis"
        assert exc_info.value.details["reason"] == "bust"

    @pytest.mark.asyncio
    async def test_no_credentials(self, make_provider):
        """Test CapabilityUnavailable when nothing in the chain is configured."""
        google = make_provider(LLMProvider.GOOGLE, ["[]"], api_key="")
        client = GenerationClient(providers={LLMProvider.GOOGLE: google})

        with pytest.raises(CapabilityUnavailable):
            await client.generate(StageName.VFX_ANALYSIS, TEMPLATE, {"scenes": ""})


class TestTimeout:
    """Tests for the stage-level deadline."""

    @pytest.mark.asyncio
    async def test_timeout_raises_generation_failed(self, make_provider):
        """Test a slow provider exhausts the stage deadline."""
        config = get_default_config()
        config.stages[StageName.VFX_ANALYSIS].timeout_seconds = 0.05
        slow = make_provider(LLMProvider.GOOGLE, ["[]"], delay=1.0)
        spare = make_provider(LLMProvider.OPENAI, ["[]"])
        client = GenerationClient(config, providers={LLMProvider.GOOGLE: slow, LLMProvider.OPENAI: spare})

        with pytest.raises(GenerationFailed) as exc_info:
            await client.generate(StageName.VFX_ANALYSIS, TEMPLATE, {"scenes": ""})

        assert "timed out" in exc_info.value.details["reason"]
        assert spare.calls == []


class TestOffline:
    """Tests for the disabled capability."""

    @pytest.mark.asyncio
    async def test_structured_stage(self, make_provider):
        """Test offline mode returns the offline failure without calling providers."""
        google = make_provider(LLMProvider.GOOGLE, ["[]"])
        client = GenerationClient(providers={LLMProvider.GOOGLE: google}, offline=True)

        result = await client.generate(StageName.VFX_ANALYSIS, TEMPLATE, {"scenes": ""})

        assert isinstance(result, ParseFailure)
        assert result.is_offline
        assert google.calls == []

    @pytest.mark.asyncio
    async def test_text_stage(self, offline_client):
        """Test offline prose is empty."""
        assert await offline_client.generate(StageName.PROJECT_SUMMARY, "Summarize", {}) == ""

    def test_config_offline_flag(self):
        """Test the config flag is honoured when no override is given."""
        config = get_default_config()
        config.offline = True

        assert GenerationClient(config).offline is True
        assert GenerationClient(config, offline=False).offline is False
