"""
API routes - Registration endpoint.

This module defines the HTTP endpoints:
- POST /registration - Create a homeserver account from the signup form
"""

from fastapi import APIRouter, Depends, Form

from synapse_signup.api.dependencies import get_actor, get_registration_broker
from synapse_signup.api.models import RegistrationResponse
from synapse_signup.domain.ports import Actor, RegistrationRequest
from synapse_signup.domain.registration import RegistrationBroker

router = APIRouter(tags=["registration"])


@router.post(
    "/registration",
    response_model=RegistrationResponse,
    response_model_by_alias=True,
    response_model_exclude_none=True,
    responses={
        422: {"description": "Missing form field"},
    },
    summary="Register a homeserver account",
    description="Submit the signup form. Every classified result, success or not, "
    "is returned with status 200 and a registrationState tag.",
)
async def register(
    username: str = Form(...),
    password: str = Form(...),
    password_confirmation: str = Form("", alias="passwordConfirmation"),
    token: str = Form(...),
    actor: Actor = Depends(get_actor),
    broker: RegistrationBroker = Depends(get_registration_broker),
) -> RegistrationResponse:
    """
    Register a new account on the homeserver.

    - **username**: Lower-case letters and digits only
    - **password**: Minimum length, no whitespace
    - **passwordConfirmation**: Must equal password
    - **token**: User-facing token handed out by the operator
    """
    submission = RegistrationRequest(
        username=username,
        password=password,
        password_confirmation=password_confirmation,
        token=token,
    )
    outcome = await broker.register(submission, actor)
    return RegistrationResponse.from_outcome(outcome)
