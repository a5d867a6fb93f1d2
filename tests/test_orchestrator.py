"""Tests for the cache / rate-limit / provider composition."""
import pytest

from creatorbrief.core.errors import ProviderError, RateLimitError


class TestCompletionOrchestrator:

    @pytest.mark.asyncio
    async def test_miss_calls_provider_then_caches_and_records(self, orchestrator, stub_provider):
        stub_provider.response = "fresh"

        result = await orchestrator.get_completion("prompt", "brief_1", "alice")

        assert result == "fresh"
        assert stub_provider.calls == 1
        assert await orchestrator.cache.get("brief_1") == "fresh"
        assert await orchestrator.rate_limiter.remaining("alice") == 9

    @pytest.mark.asyncio
    async def test_cache_hit_skips_provider_and_budget(self, orchestrator, stub_provider):
        await orchestrator.get_completion("prompt", "brief_1", "alice")
        await orchestrator.get_completion("prompt", "brief_1", "alice")

        assert stub_provider.calls == 1
        assert await orchestrator.rate_limiter.remaining("alice") == 9

    @pytest.mark.asyncio
    async def test_cache_hit_served_to_limited_caller(self, orchestrator, stub_provider):
        await orchestrator.cache.put("brief_1", "cached")
        for _ in range(10):
            await orchestrator.rate_limiter.record("alice")

        assert await orchestrator.get_completion("prompt", "brief_1", "alice") == "cached"
        assert stub_provider.calls == 0

    @pytest.mark.asyncio
    async def test_limited_caller_never_reaches_provider(self, orchestrator, stub_provider):
        for _ in range(10):
            await orchestrator.rate_limiter.record("alice")

        with pytest.raises(RateLimitError):
            await orchestrator.get_completion("prompt", "brief_2", "alice")
        assert stub_provider.calls == 0

    @pytest.mark.asyncio
    async def test_provider_error_propagates_unchanged(self, orchestrator, stub_provider):
        error = ProviderError("openai API error: HTTP 500")
        stub_provider.error = error

        with pytest.raises(ProviderError) as exc_info:
            await orchestrator.get_completion("prompt", "brief_1", "alice")

        assert exc_info.value is error
        assert stub_provider.calls == 1
        assert await orchestrator.cache.get("brief_1") is None
        assert await orchestrator.rate_limiter.remaining("alice") == 10

    @pytest.mark.asyncio
    async def test_without_keys_nothing_is_cached_or_limited(self, orchestrator, stub_provider):
        for _ in range(12):
            await orchestrator.get_completion("prompt")

        assert stub_provider.calls == 12
        assert len(orchestrator.cache) == 0

    @pytest.mark.asyncio
    async def test_stale_entry_triggers_new_call(self, orchestrator, stub_provider, clock):
        await orchestrator.get_completion("prompt", "brief_1", "alice")
        clock.advance(3600)
        stub_provider.response = "second"

        assert await orchestrator.get_completion("prompt", "brief_1", "alice") == "second"
        assert stub_provider.calls == 2
        assert await orchestrator.rate_limiter.remaining("alice") == 8
