"""Creator brief workflow: validate, sanitize, template, complete, parse.

Every call is independent and runs straight through; the only shared state
is the completion cache and rate limiter behind the orchestrator.
"""
from __future__ import annotations

import hashlib
import json
import logging
import re
from typing import Any, Dict, List, Mapping, Optional, Union

import pydantic
from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from creatorbrief.ai.adapters import (
    CompletionOrchestrator,
    InMemoryCompletionCache,
    RateLimiter,
    create_provider,
)
from creatorbrief.core import metrics
from creatorbrief.core.config import Config, get_settings
from creatorbrief.core.errors import (
    BriefGenerationError,
    CreatorBriefError,
    ProviderError,
    RateLimitError,
    ResponseFormatError,
    ValidationError,
)
from creatorbrief.core.logging import setup_logging

from .prompts import BRIEF_GENERATION_PROMPT_TEMPLATE, render

logger = logging.getLogger(__name__)

MAX_PRODUCT_DESCRIPTION = 1000
MAX_TARGET_AUDIENCE = 500

DEFAULT_CAMPAIGN_GOALS = "Increase brand awareness and drive conversions"
DEFAULT_BUDGET = "Not specified"
DEFAULT_PLATFORMS = ("Instagram", "TikTok")
DEFAULT_TIMEFRAME = "30 days"
ANONYMOUS_CALLER = "anonymous"

RATE_LIMIT_USER_MESSAGE = "Too many requests. Please try again in an hour."
PROVIDER_USER_MESSAGE = "Unable to process your request at the moment. Please try again."
FORMAT_USER_MESSAGE = "Failed to process AI response. Please try again."
GENERIC_USER_MESSAGE = "An unexpected error occurred. Please try again."

REQUIRED_TEXT_FIELDS = ("campaignTitle", "objective")
REQUIRED_LIST_FIELDS = ("platforms", "contentFormats", "messagingPillars")
REQUIRED_OBJECT_FIELDS = ("creativeDirection", "deliverables", "kpis")

_FENCE_OPEN_RE = re.compile(r"^```[A-Za-z0-9_+-]*\s*")
_FENCE_CLOSE_RE = re.compile(r"\s*```$")
_NEWLINES_RE = re.compile(r"[\r\n]+")
_ANGLE_BRACKETS_RE = re.compile(r"[<>]")


# ---------------------------------------------------------------------------
# Input
# ---------------------------------------------------------------------------


class BriefInput(BaseModel):
    """Caller-supplied brief request. ``caller_id`` only partitions rate limits."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    product_description: Optional[str] = Field(None, alias="productDescription")
    target_audience: Optional[str] = Field(None, alias="targetAudience")
    campaign_goals: Optional[str] = Field(None, alias="campaignGoals")
    budget: Optional[str] = None
    platforms: Optional[List[str]] = None
    timeframe: Optional[str] = None
    caller_id: Optional[str] = Field(
        ANONYMOUS_CALLER,
        validation_alias=AliasChoices("caller_id", "callerId", "userId"),
    )

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "BriefInput":
        """Build from a request body, reporting bad types as ValidationError."""
        try:
            return cls.model_validate(payload)
        except pydantic.ValidationError as e:
            err = e.errors()[0]
            field = ".".join(str(part) for part in err["loc"]) or "input"
            raise ValidationError(f"Invalid value for {field}: {err['msg']}") from e


# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------


class _BriefSection(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow", frozen=True)


# Sub-field values are passed through as the backend sent them; only the
# structural shape is checked in parse_and_validate_response.
class CreativeDirection(_BriefSection):
    visual_style: Any = Field(None, alias="visualStyle")
    tone_of_voice: Any = Field(None, alias="toneOfVoice")
    must_have_elements: Any = Field(None, alias="mustHaveElements")


class Deliverables(_BriefSection):
    primary_content: Any = Field(None, alias="primaryContent")
    stories: Any = None
    timeline: Any = None


class Kpis(_BriefSection):
    primary_metric: Any = Field(None, alias="primaryMetric")
    target_engagement_rate: Any = Field(None, alias="targetEngagementRate")
    expected_reach: Any = Field(None, alias="expectedReach")


class BudgetRecommendations(_BriefSection):
    creator_fee: Any = Field(None, alias="creatorFee")
    ad_spend: Any = Field(None, alias="adSpend")


class BriefOutput(_BriefSection):
    """The validated campaign brief, serialized with the backend's camelCase keys."""

    campaign_title: Any = Field(
        validation_alias=AliasChoices("campaignTitle", "title", "campaign_title"),
        serialization_alias="campaignTitle",
    )
    objective: Any
    platforms: List[Any]
    content_formats: List[Any] = Field(alias="contentFormats")
    messaging_pillars: List[Any] = Field(alias="messagingPillars")
    creative_direction: CreativeDirection = Field(alias="creativeDirection")
    deliverables: Deliverables
    kpis: Kpis
    call_to_action: Any = Field(None, alias="callToAction")
    compliance_notes: Any = Field(default_factory=list, alias="complianceNotes")
    hashtags: Any = Field(default_factory=list)
    budget_recommendations: Union[BudgetRecommendations, Any] = Field(
        None, alias="budgetRecommendations", union_mode="left_to_right"
    )

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


# ---------------------------------------------------------------------------
# Pure helpers
# ---------------------------------------------------------------------------


def validate_inputs(product_description: Optional[str], target_audience: Optional[str]) -> None:
    if not product_description or not product_description.strip():
        raise ValidationError("Product description is required and cannot be empty")

    if not target_audience or not target_audience.strip():
        raise ValidationError("Target audience is required and cannot be empty")

    if len(product_description) > MAX_PRODUCT_DESCRIPTION:
        raise ValidationError(
            f"Product description must be at most {MAX_PRODUCT_DESCRIPTION} characters"
        )

    if len(target_audience) > MAX_TARGET_AUDIENCE:
        raise ValidationError(
            f"Target audience must be at most {MAX_TARGET_AUDIENCE} characters"
        )


def sanitize_input(value: str) -> str:
    """Make a free-text value safe to splice into the prompt."""
    value = value.strip()
    value = _ANGLE_BRACKETS_RE.sub("", value)
    value = _NEWLINES_RE.sub(" ", value)
    # backslashes first so the quote escapes are not doubled
    value = value.replace("\\", "\\\\")
    value = value.replace('"', '\\"')
    return value


def _text_or_default(value: Optional[str], default: str) -> str:
    if value is None or not value.strip():
        return default
    return sanitize_input(value)


def _platforms(platforms: Optional[List[str]]) -> List[str]:
    cleaned: List[str] = []
    for platform in platforms or ():
        platform = sanitize_input(platform)
        if platform and platform not in cleaned:
            cleaned.append(platform)
    return cleaned or list(DEFAULT_PLATFORMS)


def prepare_fields(brief_input: BriefInput) -> Dict[str, Any]:
    """Sanitized, defaulted templating inputs keyed by prompt placeholder."""
    return {
        "productDescription": sanitize_input(brief_input.product_description or ""),
        "targetAudience": sanitize_input(brief_input.target_audience or ""),
        "campaignGoals": _text_or_default(brief_input.campaign_goals, DEFAULT_CAMPAIGN_GOALS),
        "budget": _text_or_default(brief_input.budget, DEFAULT_BUDGET),
        "platforms": _platforms(brief_input.platforms),
        "timeframe": _text_or_default(brief_input.timeframe, DEFAULT_TIMEFRAME),
    }


def create_fingerprint(fields: Mapping[str, Any]) -> str:
    key_data = json.dumps(fields, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
    return f"brief_{hashlib.sha256(key_data.encode()).hexdigest()}"


def build_prompt(fields: Mapping[str, Any]) -> str:
    values = dict(fields)
    values["platforms"] = ", ".join(fields["platforms"])
    return render(BRIEF_GENERATION_PROMPT_TEMPLATE, values)


def strip_code_fences(text: str) -> str:
    cleaned = text.strip()
    cleaned = _FENCE_OPEN_RE.sub("", cleaned)
    cleaned = _FENCE_CLOSE_RE.sub("", cleaned)
    return cleaned.strip()


def _format_error(message: str, field: Optional[str] = None) -> ResponseFormatError:
    return ResponseFormatError(message, user_message=FORMAT_USER_MESSAGE, field=field)


def parse_and_validate_response(response: str) -> BriefOutput:
    """Parse backend text into a BriefOutput, checking only structural shape."""
    clean_response = strip_code_fences(response)

    try:
        brief = json.loads(clean_response)
    except json.JSONDecodeError as e:
        logger.error(f"JSON parse error: {e}")
        logger.debug(f"Response to parse: {clean_response[:2000]}")
        raise _format_error("Invalid JSON response from AI service") from e

    if not isinstance(brief, dict):
        raise _format_error("AI response must be a valid object")

    for field in REQUIRED_TEXT_FIELDS:
        value = brief.get(field)
        if field == "campaignTitle" and not value:
            value = brief.get("title")
        if not value:
            raise _format_error(f"Missing required field in AI response: {field}", field)

    for field in REQUIRED_LIST_FIELDS:
        if brief.get(field) is None:
            raise _format_error(f"Missing required field in AI response: {field}", field)
        if not isinstance(brief[field], list) or not brief[field]:
            raise _format_error(f"{field} must be a non-empty array", field)

    for field in REQUIRED_OBJECT_FIELDS:
        if not isinstance(brief.get(field), dict):
            raise _format_error(f"{field} must be an object", field)

    return BriefOutput.model_validate(brief)


# ---------------------------------------------------------------------------
# Workflow
# ---------------------------------------------------------------------------


class BriefWorkflow:
    """End-to-end ``generate(input) -> BriefOutput`` over one orchestrator."""

    def __init__(self, orchestrator: CompletionOrchestrator):
        self.orchestrator = orchestrator

    @classmethod
    def from_settings(cls, config: Optional[Config] = None) -> "BriefWorkflow":
        config = config or get_settings()
        app = config.app
        setup_logging(app.LOG_LEVEL, app.LOG_FILE)
        backend = config.backend
        provider = create_provider(
            config.provider_name,
            api_key=app.api_key_for(config.provider_name),
            base_url=backend.base_url,
            model=app.AI_MODEL or backend.model,
            max_tokens=app.AI_MAX_TOKENS,
            temperature=app.AI_TEMPERATURE,
            timeout=app.AI_REQUEST_TIMEOUT,
        )
        cache = InMemoryCompletionCache(ttl_sec=app.CACHE_TTL_SEC, max_size=app.CACHE_MAX_SIZE)
        rate_limiter = RateLimiter(
            max_requests=app.RATE_LIMIT_MAX_REQUESTS,
            window_sec=app.RATE_LIMIT_WINDOW_SEC,
        )
        logger.info(f"Brief workflow using {provider.name} model {provider.model}")
        return cls(CompletionOrchestrator(provider, cache, rate_limiter))

    async def generate(self, brief_input: Union[BriefInput, Mapping[str, Any]]) -> BriefOutput:
        if not isinstance(brief_input, BriefInput):
            brief_input = BriefInput.from_payload(brief_input)

        try:
            validate_inputs(brief_input.product_description, brief_input.target_audience)
        except ValidationError:
            metrics.BRIEFS.labels(outcome="invalid").inc()
            raise

        fields = prepare_fields(brief_input)
        fingerprint = create_fingerprint(fields)
        prompt = build_prompt(fields)

        logger.info("Generating creator brief...")
        try:
            response = await self.orchestrator.get_completion(
                prompt, fingerprint, brief_input.caller_id or ANONYMOUS_CALLER
            )
        except RateLimitError as e:
            metrics.BRIEFS.labels(outcome="rate_limited").inc()
            raise RateLimitError(RATE_LIMIT_USER_MESSAGE) from e
        except ProviderError as e:
            metrics.BRIEFS.labels(outcome="provider_error").inc()
            logger.error(f"Provider failure while generating brief: {e}")
            raise ProviderError(f"AI service failed: {e}", user_message=PROVIDER_USER_MESSAGE) from e
        except CreatorBriefError:
            metrics.BRIEFS.labels(outcome="error").inc()
            raise
        except Exception as e:
            metrics.BRIEFS.labels(outcome="error").inc()
            logger.exception("Error generating creator brief")
            raise BriefGenerationError(
                f"Failed to generate creator brief: {e}", user_message=GENERIC_USER_MESSAGE
            ) from e

        logger.debug(f"Raw AI response: {response[:2000]}")

        try:
            brief = parse_and_validate_response(response)
        except ResponseFormatError:
            metrics.BRIEFS.labels(outcome="format_error").inc()
            raise

        metrics.BRIEFS.labels(outcome="ok").inc()
        logger.info("Successfully generated creator brief")
        return brief


_default_workflow: Optional[BriefWorkflow] = None


def get_workflow() -> BriefWorkflow:
    """Process-wide workflow built from settings on first use."""
    global _default_workflow
    if _default_workflow is None:
        _default_workflow = BriefWorkflow.from_settings()
    return _default_workflow


async def generate_creator_brief(
    brief_input: Union[BriefInput, Mapping[str, Any], None] = None, **fields: Any
) -> BriefOutput:
    """Generate a brief with the default workflow.

    Accepts either a BriefInput / mapping or the fields as keyword arguments.
    """
    if brief_input is None:
        brief_input = fields
    return await get_workflow().generate(brief_input)
