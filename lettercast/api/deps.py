from fastapi import Depends, Request

from lettercast.app_shell.context import ServiceContext
from lettercast.components.newsletter import BroadcastWorkflow
from lettercast.components.subscriptions import ConfirmationWorkflow, SubscriptionWorkflow


# --- Context ---
def get_context(request: Request) -> ServiceContext:
    """The ServiceContext built by create_app()."""
    ctx: ServiceContext = request.app.state.context
    return ctx


def get_base_url(ctx: ServiceContext = Depends(get_context)) -> str:
    return ctx.base_url


# --- Workflows ---
def get_subscription_workflow(
    ctx: ServiceContext = Depends(get_context),
) -> SubscriptionWorkflow:
    return ctx.subscription_workflow()


def get_confirmation_workflow(
    ctx: ServiceContext = Depends(get_context),
) -> ConfirmationWorkflow:
    return ctx.confirmation_workflow()


def get_broadcast_workflow(
    ctx: ServiceContext = Depends(get_context),
) -> BroadcastWorkflow:
    return ctx.broadcast_workflow()
