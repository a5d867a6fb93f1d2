"""Adapters layer providing provider abstraction, caching, rate limiting and
the orchestrator that composes them.
"""

from __future__ import annotations

from .cache import CompletionCache, InMemoryCompletionCache
from .orchestrator import CompletionOrchestrator
from .providers import (
    SYSTEM_INSTRUCTION,
    AnthropicProvider,
    BaseProvider,
    GeminiProvider,
    Message,
    MessageRole,
    OpenAIProvider,
    create_provider,
)
from .ratelimit import InMemoryRateWindowStore, RateDecision, RateLimiter, RateWindowStore

__all__ = [
    "SYSTEM_INSTRUCTION",
    "AnthropicProvider",
    "BaseProvider",
    "CompletionCache",
    "CompletionOrchestrator",
    "GeminiProvider",
    "InMemoryCompletionCache",
    "InMemoryRateWindowStore",
    "Message",
    "MessageRole",
    "OpenAIProvider",
    "RateDecision",
    "RateLimiter",
    "RateWindowStore",
    "create_provider",
]
