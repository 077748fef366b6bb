"""
Tests for Exceptions Module

Tests for vadis/core/exceptions.py
"""

import pytest

from vadis.core.exceptions import (
    CapabilityUnavailable,
    ContentBlockedError,
    GenerationError,
    GenerationFailed,
    PersistenceError,
    PipelineCancelled,
    PreconditionNotMet,
    ProjectNotFoundError,
    ProviderError,
    StorageError,
    VadisError,
)


class TestVadisError:
    """Tests for the base exception."""

    def test_message_only(self):
        """Test str() without details."""
        error = VadisError("Something broke")

        assert str(error) == "Something broke"
        assert error.details == {}

    def test_message_with_details(self):
        """Test str() appends details."""
        error = VadisError("Something broke", {"stage": "vfx_analysis"})

        assert "Details" in str(error)
        assert "vfx_analysis" in str(error)


class TestGenerationErrors:
    """Tests for generation capability errors."""

    def test_capability_unavailable(self):
        """Test provider and reason are kept."""
        error = CapabilityUnavailable("google", "no credentials")

        assert isinstance(error, GenerationError)
        assert error.details == {"provider": "google", "reason": "no credentials"}

    def test_generation_failed_provider_optional(self):
        """Test the provider detail is only set when given."""
        without = GenerationFailed("vfx_analysis", "timed out")
        with_provider = GenerationFailed("vfx_analysis", "timed out", provider="openai")

        assert "provider" not in without.details
        assert with_provider.details["provider"] == "openai"

    def test_content_blocked_is_provider_error(self):
        """Test blocked content is handled like any provider error."""
        error = ContentBlockedError("google", "SAFETY")

        assert isinstance(error, ProviderError)
        assert isinstance(error, VadisError)


class TestPipelineErrors:
    """Tests for pipeline errors."""

    def test_precondition_message_is_requirement(self):
        """Test the user-facing message is the requirement text."""
        error = PreconditionNotMet("casting_suggestions", "No characters found.")

        assert error.message == "No characters found."
        assert error.details == {"stage": "casting_suggestions"}

    def test_cancelled_message(self):
        """Test cancellation message."""
        assert PipelineCancelled("vfx_analysis").message == "Analysis cancelled"


class TestStorageErrors:
    """Tests for storage errors."""

    @pytest.mark.parametrize("error", [
        PersistenceError("scenes", "connection reset"),
        ProjectNotFoundError("p-1"),
    ])
    def test_storage_hierarchy(self, error):
        """Test storage errors share a base."""
        assert isinstance(error, StorageError)

    def test_project_not_found_details(self):
        """Test the project id is reported."""
        assert ProjectNotFoundError("p-1").details == {"project_id": "p-1"}
