"""
API response models.

Pydantic models for FastAPI endpoint serialization and OpenAPI schema generation.
The registration form itself is url-encoded and parsed with Form() parameters.
"""

from pydantic import BaseModel, ConfigDict, Field

from synapse_signup.domain.ports import RegistrationOutcome, RegistrationState


class RegistrationResponse(BaseModel):
    """Classified result of a registration submission."""

    model_config = ConfigDict(populate_by_name=True)

    registration_state: RegistrationState = Field(..., alias="registrationState")
    username: str | None = Field(
        default=None, description="Registered username, only present when REGISTERED"
    )

    @classmethod
    def from_outcome(cls, outcome: RegistrationOutcome) -> "RegistrationResponse":
        return cls(registration_state=outcome.state, username=outcome.username)


class HealthResponse(BaseModel):
    """Liveness probe response."""

    status: str
