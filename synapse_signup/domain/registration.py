"""
Registration broker - Orchestrates one create-account transaction.

Per-request state machine (terminal states are RegistrationState values):

    START
     -> abuse check
          blocked      -> BLOCKED
     -> validate input
          bad user/pass -> INVALID_USER_OR_PASS
          bad token     -> record failure -> INVALID_TOKEN
     -> homeserver call
          success       -> record success -> REGISTERED
          wrong secret  -> record failure -> WRONG_SHARED_SECRET
          user exists   -> (not counted)  -> USER_EXISTS
          other error   -> record failure -> INTERNAL_ERROR

The abuse check runs first: a blocked actor is answered BLOCKED whatever
it submitted, and never reaches the homeserver.

The broker keeps no state of its own between requests. All shared state
lives in the injected AbuseTracker.
"""

import logging
from dataclasses import dataclass
from typing import assert_never

from .exceptions import (
    AbuseBlocked,
    RegistrationError,
    UpstreamAuthError,
    UpstreamConflict,
    UpstreamError,
    ValidationError,
)
from .ports import (
    AbuseDecision,
    AbuseTracker,
    Actor,
    Homeserver,
    RegistrationOutcome,
    RegistrationRequest,
    RegistrationState,
)
from .validation import validate_submission

logger = logging.getLogger(__name__)


@dataclass
class RegistrationBroker:
    """
    Domain service for gated self-registration.

    Orchestrates validation, abuse gating and the homeserver call,
    and resolves every failure into a RegistrationOutcome.
    """

    homeserver: Homeserver
    abuse_tracker: AbuseTracker
    expected_token: str
    min_password_length: int = 3
    count_user_exists_as_failure: bool = False

    async def register(self, request: RegistrationRequest, actor: Actor) -> RegistrationOutcome:
        """
        Run one registration submission to a classified outcome.

        Never raises for expected failures: validation errors, blocks and
        upstream errors all come back as outcomes.

        Args:
            request: Raw form submission
            actor: Rate-limiting identity of the submitter

        Returns:
            RegistrationOutcome carrying the username only when REGISTERED
        """
        try:
            username = await self._register(request, actor)
        except RegistrationError as exc:
            self._log_failure(exc, actor)
            return RegistrationOutcome.failed(exc.state)

        logger.info("Registered %s for %s", username, actor)
        return RegistrationOutcome.registered(username)

    async def _register(self, request: RegistrationRequest, actor: Actor) -> str:
        if self.abuse_tracker.check(actor) is AbuseDecision.BLOCKED:
            raise AbuseBlocked(str(actor))

        try:
            submission = validate_submission(
                request,
                expected_token=self.expected_token,
                min_password_length=self.min_password_length,
            )
        except ValidationError as exc:
            if exc.state is RegistrationState.INVALID_TOKEN:
                self.abuse_tracker.record_failure(actor)
            raise

        try:
            await self.homeserver.register(submission.username, submission.password)
        except UpstreamConflict:
            if self.count_user_exists_as_failure:
                self.abuse_tracker.record_failure(actor)
            raise
        except UpstreamError:
            self.abuse_tracker.record_failure(actor)
            raise
        except Exception as e:
            self.abuse_tracker.record_failure(actor)
            raise UpstreamError(f"Unexpected homeserver failure: {e!r}") from e

        self.abuse_tracker.record_success(actor)
        return submission.username

    def _log_failure(self, exc: RegistrationError, actor: Actor) -> None:
        state = exc.state
        match state:
            case RegistrationState.WRONG_SHARED_SECRET:
                # Shared secret never comes from the user: this is a deployment bug
                logger.critical("Homeserver rejected registration MAC: %s", exc)
            case RegistrationState.INTERNAL_ERROR:
                logger.error("Registration failed for %s: %r", actor, exc)
            case RegistrationState.BLOCKED:
                logger.warning("Rejected submission from blocked actor %s", actor)
            case RegistrationState.INVALID_TOKEN:
                logger.info("Wrong token from %s", actor)
            case RegistrationState.INVALID_USER_OR_PASS | RegistrationState.USER_EXISTS:
                logger.debug("Registration refused for %s: %s", actor, state.value)
            case RegistrationState.REGISTERED:
                raise ValueError("REGISTERED is not a failure state")
            case _:
                assert_never(state)
