"""Completion orchestrator: cache, then rate limit, then provider.

A cache hit returns before the rate limiter is consulted, so repeated
identical requests never spend a caller's budget. Provider failures are
propagated unchanged; nothing here retries or falls back to another backend.
"""
from __future__ import annotations

import logging
from typing import Optional

from creatorbrief.core import metrics
from creatorbrief.core.errors import RateLimitError

from .cache import CompletionCache, InMemoryCompletionCache
from .providers import BaseProvider
from .ratelimit import RateDecision, RateLimiter

__all__ = ["CompletionOrchestrator"]

logger = logging.getLogger(__name__)

RATE_LIMIT_MESSAGE = "Rate limit exceeded. Please try again later."


class CompletionOrchestrator:
    def __init__(
        self,
        provider: BaseProvider,
        cache: Optional[CompletionCache] = None,
        rate_limiter: Optional[RateLimiter] = None,
    ) -> None:
        self.provider = provider
        self.cache = cache or InMemoryCompletionCache()
        self.rate_limiter = rate_limiter or RateLimiter()

    async def get_completion(
        self,
        prompt: str,
        fingerprint: Optional[str] = None,
        caller_id: Optional[str] = None,
    ) -> str:
        if fingerprint:
            cached = await self.cache.get(fingerprint)
            if cached is not None:
                metrics.CACHE_LOOKUPS.labels(result="hit").inc()
                logger.info(f"Completion cache hit for {fingerprint}")
                return cached
            metrics.CACHE_LOOKUPS.labels(result="miss").inc()

        if caller_id and await self.rate_limiter.check(caller_id) == RateDecision.LIMITED:
            metrics.RATE_LIMITED.inc()
            logger.warning(f"Rate limit exceeded for caller {caller_id}")
            raise RateLimitError(RATE_LIMIT_MESSAGE)

        text = await self.provider.generate(prompt)

        if fingerprint:
            await self.cache.put(fingerprint, text)
        if caller_id:
            await self.rate_limiter.record(caller_id)
        return text
