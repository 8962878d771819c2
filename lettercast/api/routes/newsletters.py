"""
Newsletter publishing endpoint.

POST /newsletters sends one issue to every confirmed subscriber, one at a
time, and reports who was reached.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from lettercast.api.deps import get_broadcast_workflow
from lettercast.components.newsletter import BroadcastWorkflow, PublishInput

router = APIRouter()


class PublishRequest(BaseModel):
    """Request body for publishing an issue."""

    title: str = Field(..., description="Subject line of the issue")
    content: str = Field(..., description="HTML body of the issue")


class PublishResponse(BaseModel):
    delivered: int
    failed: list[str]
    skipped: int


@router.post("", response_model=PublishResponse, summary="Publish a newsletter issue")
def publish_newsletter(
    request_body: PublishRequest,
    workflow: BroadcastWorkflow = Depends(get_broadcast_workflow),
) -> PublishResponse:
    result = workflow.publish(
        PublishInput(title=request_body.title, html_content=request_body.content)
    )
    return PublishResponse(
        delivered=len(result.delivered),
        failed=result.failed,
        skipped=result.skipped,
    )
