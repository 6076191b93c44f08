"""Models for REST API responses."""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class CredentialResponse(BaseModel):
    """Model representing a credential, the secret is never part of it.

    Attributes:
        id: Credential ID.
        label: Display name.
        status: alive or dead.
        last_tested_at: Time of last health test.
        last_used_at: Time the credential last produced a token.
        use_count: Number of tokens produced.
        created_at: Time of enrollment.
    """

    id: str = Field(..., examples=["a6bd1f5e-0a3f-4f6b-9a51-21fb2d8f3d6b"])
    label: str = Field(..., examples=["@octocat"])
    status: str = Field(..., examples=["alive", "dead"])
    last_tested_at: Optional[datetime] = None
    last_used_at: Optional[datetime] = None
    use_count: int = Field(0, examples=[42])
    created_at: Optional[datetime] = None

    model_config = ConfigDict(
        from_attributes=True,
        json_schema_extra={
            "examples": [
                {
                    "id": "a6bd1f5e-0a3f-4f6b-9a51-21fb2d8f3d6b",
                    "label": "@octocat",
                    "status": "alive",
                    "last_tested_at": "2025-01-01T00:00:00Z",
                    "last_used_at": "2025-01-01T00:10:00Z",
                    "use_count": 42,
                    "created_at": "2024-12-24T12:00:00Z",
                }
            ]
        },
    )


class CredentialsListResponse(BaseModel):
    """Model representing a list of credentials."""

    credentials: list[CredentialResponse] = Field(
        ..., description="Credentials ordered by enrollment time"
    )


class CredentialDeleteResponse(BaseModel):
    """Model representing a response to credential deletion."""

    credential_id: str = Field(..., examples=["a6bd1f5e-0a3f-4f6b-9a51-21fb2d8f3d6b"])
    success: bool = Field(..., examples=[True])
    response: str = Field(..., examples=["Credential deleted successfully"])


class CredentialTestResponse(BaseModel):
    """Model representing outcome of one credential test.

    Attributes:
        credential_id: ID of tested credential.
        label: Display name.
        valid: Whether the exchange succeeded.
        status: Status after the test.
        sku: Subscription SKU reported by the upstream.
        error: Failure kind, one of unauthorized, network, malformed or
            storage.
    """

    credential_id: str
    label: str
    valid: bool
    status: str = Field(..., examples=["alive", "dead"])
    sku: Optional[str] = Field(None, examples=["copilot_for_individuals_subscriber"])
    error: Optional[str] = Field(None, examples=["unauthorized", "network"])

    model_config = ConfigDict(from_attributes=True)


class CredentialTestsResponse(BaseModel):
    """Model representing outcomes of credential tests."""

    results: list[CredentialTestResponse]


class DeviceFlowStartResponse(BaseModel):
    """Model representing started device flow.

    The administrator opens `verification_uri`, enters `user_code` and then
    polls with `device_code` every `interval` seconds.
    """

    device_code: str = Field(..., examples=["3584d83530557fdd1f46af8289938c8ef79f9dc5"])
    user_code: str = Field(..., examples=["WDJB-MJHT"])
    verification_uri: str = Field(..., examples=["https://github.com/login/device"])
    expires_in: Optional[int] = Field(None, examples=[900])
    interval: int = Field(..., examples=[5])

    model_config = ConfigDict(from_attributes=True)


class DeviceFlowPollResponse(BaseModel):
    """Model representing one poll of device flow.

    Attributes:
        status: authorized, pending, slow_down, expired, denied or error.
        error: Error reported by GitHub.
        credential: Enrolled credential once authorized.
    """

    status: str = Field(..., examples=["pending", "authorized"])
    error: Optional[str] = Field(None, examples=["expired_token"])
    credential: Optional[CredentialResponse] = None


class ModelConfigResponse(BaseModel):
    """Model representing configuration of one model."""

    id: str = Field(..., examples=["claude-opus-4"])
    tier: Optional[str] = Field(None, examples=["heavy"])
    daily_limit: Optional[int] = Field(None, examples=[5, 0])
    is_enabled: bool = True
    is_default: bool = False
    custom_label: Optional[str] = Field(None, examples=["Claude Opus"])
    sort_order: int = 0

    model_config = ConfigDict(from_attributes=True)


class ModelsResponse(BaseModel):
    """Model representing a response to models request."""

    models: list[ModelConfigResponse] = Field(
        ..., description="Enabled models ordered by sort order"
    )


class ModelConfigDeleteResponse(BaseModel):
    """Model representing a response to model configuration deletion."""

    model_id: str = Field(..., examples=["claude-opus-4"])
    success: bool = Field(..., examples=[True])
    response: str = Field(..., examples=["Model configuration deleted successfully"])

    model_config = ConfigDict(protected_namespaces=())


class QuotaStatusResponse(BaseModel):
    """Model representing quota of one model for the caller.

    `remaining` and `limit` are -1 when the quota does not apply, `limit` is
    0 for models without a daily limit.
    """

    model_id: str = Field(..., examples=["gpt-4.1"])
    allowed: bool = Field(..., examples=[True])
    remaining: int = Field(..., examples=[12, -1])
    limit: int = Field(..., examples=[15, 0, -1])
    tier: str = Field(..., examples=["standard"])

    model_config = ConfigDict(
        protected_namespaces=(),
        json_schema_extra={
            "examples": [
                {
                    "model_id": "gpt-4.1",
                    "allowed": True,
                    "remaining": 12,
                    "limit": 15,
                    "tier": "standard",
                }
            ]
        },
    )


class ModelUsageResponse(BaseModel):
    """Model representing today's usage of one model."""

    model_id: str
    used: int
    limit: int
    remaining: int
    tier: str

    model_config = ConfigDict(from_attributes=True, protected_namespaces=())


class UsageSummaryResponse(BaseModel):
    """Model representing today's usage of all models by the caller."""

    user_id: str = Field(..., examples=["user-1"])
    usage_date: str = Field(..., examples=["2025-01-01"])
    models: list[ModelUsageResponse]


class InfoResponse(BaseModel):
    """Model representing a response to an info request.

    Attributes:
        name: Service name.
        service_version: Service version.

    Example:
        ```python
        info_response = InfoResponse(name="AI gateway", service_version="0.3.0")
        ```
    """

    name: str = Field(
        description="Service name",
        examples=["AI gateway"],
    )

    service_version: str = Field(
        description="Service version",
        examples=["0.1.0", "0.2.0", "0.3.0"],
    )


class ReadinessResponse(BaseModel):
    """Model representing response to a readiness request.

    Attributes:
        ready: If service is ready.
        reason: The reason for the readiness.
        alive_credentials: Number of credentials usable for rotation.
    """

    ready: bool = Field(
        ...,
        description="Flag indicating if service is ready",
        examples=[True, False],
    )

    reason: str = Field(
        ...,
        description="The reason for the readiness",
        examples=["Service is ready"],
    )

    alive_credentials: int = Field(
        0,
        description="Number of credentials usable for rotation",
        examples=[3],
    )


class LivenessResponse(BaseModel):
    """Model representing a response to a liveness request."""

    alive: bool = Field(
        ...,
        description="Flag indicating that the app is alive",
        examples=[True, False],
    )


class DetailModel(BaseModel):
    """Nested detail model for error responses."""

    response: str = Field(..., description="Short summary of the error")
    cause: str = Field(..., description="Detailed explanation of what caused the error")


class AbstractErrorResponse(BaseModel):
    """Base class for all error responses.

    Contains a nested `detail` field.
    """

    detail: DetailModel

    def dump_detail(self) -> dict[str, Any]:
        """Return dict in FastAPI HTTPException format."""
        return self.detail.model_dump()


class NotFoundResponse(AbstractErrorResponse):
    """404 Not Found - Resource does not exist."""

    def __init__(self, resource: str, resource_id: str):
        """Initialize a NotFoundResponse when a resource cannot be located."""
        super().__init__(
            detail=DetailModel(
                response=f"{resource.title()} not found",
                cause=f"{resource.title()} with ID {resource_id} does not exist.",
            )
        )

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "detail": {
                        "response": "Credential not found",
                        "cause": "Credential with ID 123 does not exist.",
                    }
                }
            ]
        }
    }


class ServiceUnavailableResponse(AbstractErrorResponse):
    """503 Service Unavailable - No inference token can be produced."""

    def __init__(self, cause: str):
        """Initialize a ServiceUnavailableResponse."""
        super().__init__(
            detail=DetailModel(response="No upstream credential available", cause=cause)
        )

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "detail": {
                        "response": "No upstream credential available",
                        "cause": "All 3 credential(s) failed to produce a token",
                    }
                }
            ]
        }
    }


class UpstreamErrorResponse(AbstractErrorResponse):
    """502 Bad Gateway - Upstream service failed."""

    def __init__(self, upstream: str, cause: str):
        """Initialize an UpstreamErrorResponse."""
        super().__init__(
            detail=DetailModel(response=f"{upstream} request failed", cause=cause)
        )

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "detail": {
                        "response": "GitHub request failed",
                        "cause": "GitHub request failed: HTTP 500",
                    }
                }
            ]
        }
    }


class DatabaseErrorResponse(AbstractErrorResponse):
    """500 Internal Server Error - Database is not available."""

    def __init__(self, cause: str):
        """Initialize a DatabaseErrorResponse."""
        super().__init__(
            detail=DetailModel(response="Database operation failed", cause=cause)
        )


class UnauthorizedResponse(AbstractErrorResponse):
    """401 Unauthorized - Missing or invalid credentials."""

    def __init__(self, user_id: str | None = None):
        """Initialize an UnauthorizedResponse when authentication fails."""
        cause_msg = (
            f"User {user_id} is unauthorized"
            if user_id
            else "Missing or invalid credentials provided by client"
        )
        super().__init__(detail=DetailModel(response="Unauthorized", cause=cause_msg))


class ForbiddenResponse(AbstractErrorResponse):
    """403 Forbidden - User is not allowed to perform the action."""

    def __init__(self, action: str):
        """Initialize a ForbiddenResponse."""
        super().__init__(
            detail=DetailModel(
                response="Access denied",
                cause=f"Insufficient permissions for action: {action}",
            )
        )


class QuotaExceededResponse(AbstractErrorResponse):
    """429 Too Many Requests - Daily model quota exceeded."""

    def __init__(self, user_id: str, model_id: str, limit: int):
        """Initialize a QuotaExceededResponse."""
        super().__init__(
            detail=DetailModel(
                response="The quota has been exceeded",
                cause=(
                    f"User {user_id} has used all {limit} daily requests "
                    f"of model {model_id}"
                ),
            )
        )

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "detail": {
                        "response": "The quota has been exceeded",
                        "cause": "User 123 has used all 5 daily requests of model claude-opus-4",
                    }
                }
            ]
        }
    }
