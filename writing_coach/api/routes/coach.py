from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from writing_coach.api.deps import get_pipeline
from writing_coach.core.identity import client_address_from, identity_facts_from
from writing_coach.schemas.coach import CoachRequest, CoachResult
from writing_coach.services.coach_pipeline import CoachPipeline

router = APIRouter(tags=["Coach"])

# The body is read raw so bot and rate-limit checks run before it is parsed.
_COACH_REQUEST_BODY = {
    "requestBody": {
        "required": True,
        "content": {
            "application/json": {
                "schema": {"$ref": f"#/components/schemas/{CoachRequest.__name__}"},
            },
        },
    },
}


@router.post("/coach", response_model=CoachResult, openapi_extra=_COACH_REQUEST_BODY)
async def coach_text(
    request: Request,
    pipeline: CoachPipeline = Depends(get_pipeline),
) -> CoachResult:
    """Coach one piece of writing.

    Runs the admission checks (bot filter, rate limit, validation, model
    access) and then asks the AI provider for corrections, style variants,
    feedback and a phrase bank.

    Returns:
        CoachResult: Structured coaching output in camelCase JSON.

    Raises:
        AppError: Rendered by the global handlers as 400, 403, 429 or 502.
    """
    return await pipeline.submit(
        await request.body(),
        user_agent=request.headers.get("user-agent"),
        identity=identity_facts_from(request),
        client_address=client_address_from(request),
    )
