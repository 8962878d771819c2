"""
Subscription endpoints.

Endpoints:
- POST /subscriptions - Start the double opt-in flow (form encoded)
- GET /subscriptions/confirm - Confirm a subscription with its token
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Form, Query
from pydantic import BaseModel

from lettercast.api.deps import (
    get_base_url,
    get_confirmation_workflow,
    get_subscription_workflow,
)
from lettercast.components.subscriptions import (
    ConfirmationWorkflow,
    ConfirmInput,
    SubscribeInput,
    SubscriptionWorkflow,
)

router = APIRouter()


# --- Response Models ---


class SubscribeResponse(BaseModel):
    message: str


class ConfirmResponse(BaseModel):
    message: str


class ErrorResponse(BaseModel):
    detail: str


# --- Endpoints ---


@router.post(
    "",
    response_model=SubscribeResponse,
    responses={400: {"model": ErrorResponse, "description": "Invalid name or email"}},
    summary="Subscribe to the newsletter",
)
def subscribe(
    name: str = Form(...),
    email: str = Form(...),
    base_url: str = Depends(get_base_url),
    workflow: SubscriptionWorkflow = Depends(get_subscription_workflow),
) -> SubscribeResponse:
    """
    Record a pending subscriber and send the confirmation email.

    The confirmation link is delivered by email only; it never appears in
    the response.
    """
    workflow.subscribe(SubscribeInput(email=email, name=name, base_url=base_url))
    return SubscribeResponse(message="Please check your email to confirm your subscription")


@router.get(
    "/confirm",
    response_model=ConfirmResponse,
    responses={400: {"model": ErrorResponse, "description": "Missing or unknown token"}},
    summary="Confirm a pending subscription",
)
def confirm(
    subscription_token: str = Query(...),
    workflow: ConfirmationWorkflow = Depends(get_confirmation_workflow),
) -> ConfirmResponse:
    workflow.confirm(ConfirmInput(token=subscription_token))
    return ConfirmResponse(message="Your subscription is confirmed")
