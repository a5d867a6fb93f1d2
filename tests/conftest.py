"""Shared doubles for the brief pipeline tests."""
import copy
import json

import pytest

from creatorbrief.ai.adapters import (
    BaseProvider,
    CompletionOrchestrator,
    InMemoryCompletionCache,
    RateLimiter,
)
from creatorbrief.workflows import BriefWorkflow

VALID_BRIEF = {
    "campaignTitle": "Sip Sustainably",
    "objective": "Drive awareness of the reusable bottle among eco-minded millennials",
    "platforms": ["Instagram", "TikTok"],
    "contentFormats": ["Reels", "Carousel", "Stories"],
    "messagingPillars": ["Plastic-free living", "Design that lasts"],
    "creativeDirection": {
        "visualStyle": "Bright natural light, outdoor settings",
        "toneOfVoice": "Upbeat and authentic",
        "mustHaveElements": ["Product close-up", "Refill moment"],
    },
    "deliverables": {
        "primaryContent": 3,
        "stories": 5,
        "timeline": "30 days",
    },
    "kpis": {
        "primaryMetric": "Engagement rate",
        "targetEngagementRate": "4-6%",
        "expectedReach": "250k",
    },
    "callToAction": "Shop the bottle with code SIP15",
    "complianceNotes": ["Disclose the partnership with #ad"],
    "hashtags": ["#SipSustainably", "#PlasticFree"],
    "budgetRecommendations": {
        "creatorFee": "$2,000 - $5,000",
        "adSpend": "$1,500",
    },
}


class FakeClock:
    """Manually advanced replacement for time.time."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class StubProvider(BaseProvider):
    """Provider double that counts calls instead of hitting the network."""

    name = "stub"
    default_model = "stub-model"

    def __init__(self, response: str = "", error: Exception | None = None):
        super().__init__(api_key="test_key")
        self.response = response
        self.error = error
        self.calls = 0
        self.prompts = []

    async def generate(self, prompt, max_tokens=None, temperature=None):
        self.calls += 1
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.response

    def _endpoint(self):
        return "http://stub.invalid"

    def _headers(self):
        return {}

    def _payload(self, messages, max_tokens, temperature):
        return {}

    def _extract_text(self, data):
        return ""


@pytest.fixture
def valid_brief():
    return copy.deepcopy(VALID_BRIEF)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def stub_provider():
    return StubProvider(json.dumps(VALID_BRIEF))


@pytest.fixture
def orchestrator(stub_provider, clock):
    return CompletionOrchestrator(
        stub_provider,
        InMemoryCompletionCache(ttl_sec=3600, clock=clock),
        RateLimiter(max_requests=10, window_sec=3600, clock=clock),
    )


@pytest.fixture
def workflow(orchestrator):
    return BriefWorkflow(orchestrator)
