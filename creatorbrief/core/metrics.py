"""Prometheus counters for the brief pipeline."""
import prometheus_client as prom

BRIEFS = prom.Counter(
    'creatorbrief_briefs_total', 'Brief generation attempts by outcome', ['outcome']
)
CACHE_LOOKUPS = prom.Counter(
    'creatorbrief_completion_cache_total', 'Completion cache lookups', ['result']
)
RATE_LIMITED = prom.Counter(
    'creatorbrief_rate_limited_total', 'Requests rejected by the rate limiter'
)
PROVIDER_CALLS = prom.Counter(
    'creatorbrief_provider_calls_total', 'Backend completion calls', ['provider', 'status']
)
