"""FastAPI front for the brief workflow.

Maps each error kind to its status code and keeps backend details out of
response bodies.
"""
from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import make_asgi_app

from creatorbrief import __version__
from creatorbrief.core.errors import CreatorBriefError, ValidationError
from creatorbrief.workflows.generate_brief import (
    ANONYMOUS_CALLER,
    BriefInput,
    BriefWorkflow,
    get_workflow,
)

logger = logging.getLogger(__name__)

CALLER_HEADERS = ("x-user-id", "x-forwarded-for", "x-real-ip")


def caller_identity(request: Request) -> str:
    """Best-effort caller key; the first forwarded address when proxied."""
    for header in CALLER_HEADERS:
        value = request.headers.get(header)
        if value:
            return value.split(",")[0].strip() or ANONYMOUS_CALLER
    return ANONYMOUS_CALLER


def error_response(exc: CreatorBriefError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "success": False,
            "error": exc.error,
            "message": exc.user_message,
            "code": exc.code,
        },
    )


def create_app(workflow: Optional[BriefWorkflow] = None) -> FastAPI:
    app = FastAPI(
        title='Creator Brief API',
        version=__version__,
        description='Generate creator campaign briefs with an LLM backend',
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["POST", "GET", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )
    app.mount("/metrics", make_asgi_app())

    router = APIRouter(prefix="/api", tags=["Briefs"])

    def _workflow() -> BriefWorkflow:
        return workflow or get_workflow()

    @router.post(
        "/generate-brief",
        summary="Generate a creator brief",
        description="Builds a campaign brief for the given product and audience",
    )
    async def generate_brief(request: Request):
        try:
            body = await request.json()
        except ValueError:
            return error_response(ValidationError("Request body must be valid JSON"))
        if not isinstance(body, dict):
            return error_response(ValidationError("Request body must be a JSON object"))

        user_id = caller_identity(request)
        logger.info(f"Generating brief for user: {user_id}")

        try:
            brief_input = BriefInput.from_payload({**body, "caller_id": user_id})
            brief = await _workflow().generate(brief_input)
        except CreatorBriefError as e:
            logger.error(f"API error [{e.code}]: {e}")
            return error_response(e)

        return {
            "success": True,
            "data": brief.to_dict(),
            "message": "Creator brief generated successfully",
        }

    @router.get("/generate-brief")
    async def describe():
        return {
            "message": "Creator Brief API",
            "version": __version__,
            "endpoints": {
                "POST /api/generate-brief": "Generate a creator campaign brief"
            },
        }

    app.include_router(router)
    return app
