"""
Vadis LLM Module

Provider wrappers, the stage-aware generation client and the response normalizer.
"""

from .generation_client import GenerationClient
from .providers import (
    BaseLLMProvider,
    AnthropicProvider,
    OpenAIProvider,
    GoogleProvider,
    GrokProvider,
    create_provider,
)
from .response_normalizer import (
    NormalizedResult,
    ParsedArray,
    ParsedObject,
    ParseFailure,
    normalize_response,
)

__all__ = [
    'GenerationClient',
    'BaseLLMProvider',
    'AnthropicProvider',
    'OpenAIProvider',
    'GoogleProvider',
    'GrokProvider',
    'create_provider',
    'NormalizedResult',
    'ParsedArray',
    'ParsedObject',
    'ParseFailure',
    'normalize_response',
]
