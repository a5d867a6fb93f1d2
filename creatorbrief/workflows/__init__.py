from .generate_brief import (
    BriefInput,
    BriefOutput,
    BriefWorkflow,
    generate_creator_brief,
    parse_and_validate_response,
)
from .prompts import BRIEF_GENERATION_PROMPT_TEMPLATE

__all__ = [
    "BRIEF_GENERATION_PROMPT_TEMPLATE",
    "BriefInput",
    "BriefOutput",
    "BriefWorkflow",
    "generate_creator_brief",
    "parse_and_validate_response",
]
