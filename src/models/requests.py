"""Models for REST API requests."""

from typing import Any, Literal, Optional, Self

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    NonNegativeInt,
    SecretStr,
    model_validator,
)

from log import get_logger

logger = get_logger(__name__)


class CredentialEnrollRequest(BaseModel):
    """Model representing a request to enroll new credential.

    Attributes:
        label: Display name of the credential.
        secret: The GitHub OAuth token.

    Example:
        ```python
        request = CredentialEnrollRequest(label="@octocat", secret="gho_xxx")
        ```
    """

    label: str = Field(
        ...,
        min_length=1,
        description="Display name of the credential",
        examples=["@octocat", "Team account"],
    )

    secret: SecretStr = Field(
        ...,
        description="GitHub OAuth token exchanged for inference tokens",
        examples=["gho_0123456789abcdef"],
    )

    model_config = ConfigDict(extra="forbid")

    @model_validator(mode="after")
    def check_secret(self) -> Self:
        """Check that the secret is not blank."""
        if not self.secret.get_secret_value().strip():
            raise ValueError("Credential secret can not be empty")
        return self


class CredentialTestRequest(BaseModel):
    """Model representing a request to test credentials.

    Attributes:
        id: ID of credential to test, all credentials are tested when omitted.
    """

    id: Optional[str] = Field(
        None,
        description="ID of credential to test, all credentials are tested when omitted",
        examples=["a6bd1f5e-0a3f-4f6b-9a51-21fb2d8f3d6b"],
    )

    model_config = ConfigDict(extra="forbid")


class ModelConfigUpdateRequest(BaseModel):
    """Model representing a change of model configuration.

    Only the fields present in the request are changed. `tier` and
    `daily_limit` can be set to null to drop the override.

    Example:
        ```python
        request = ModelConfigUpdateRequest(tier="heavy", daily_limit=0)
        ```
    """

    tier: Optional[Literal["free", "standard", "heavy"]] = Field(
        None,
        description="Quota tier, null derives the tier from model ID",
        examples=["heavy"],
    )

    daily_limit: Optional[NonNegativeInt] = Field(
        None,
        description="Daily request limit, 0 means unlimited, null derives it from tier",
        examples=[0, 5],
    )

    is_enabled: Optional[bool] = Field(None, examples=[True])
    is_default: Optional[bool] = Field(None, examples=[False])
    custom_label: Optional[str] = Field(None, examples=["Claude Opus"])
    sort_order: Optional[int] = Field(None, examples=[10])

    model_config = ConfigDict(extra="forbid")

    @model_validator(mode="after")
    def check_not_nullable(self) -> Self:
        """Check that flags and sort order are not explicitly cleared."""
        for field in ("is_enabled", "is_default", "sort_order"):
            if field in self.model_fields_set and getattr(self, field) is None:
                raise ValueError(f"Field '{field}' can not be null")
        return self

    def changes(self) -> dict[str, Any]:
        """Return the fields sent by the client."""
        return self.model_dump(exclude_unset=True)


class ChatCompletionRequest(BaseModel):
    """Model representing a chat completion request forwarded upstream.

    Fields other than `model` and `messages` are passed through unchanged.

    Example:
        ```python
        request = ChatCompletionRequest(
            model="gpt-4.1",
            messages=[{"role": "user", "content": "Hi"}],
        )
        ```
    """

    model: str = Field(
        ...,
        min_length=1,
        description="Model identifier",
        examples=["gpt-4.1", "claude-sonnet-4"],
    )

    messages: list[dict[str, Any]] = Field(
        ...,
        min_length=1,
        description="Conversation messages in OpenAI format",
        examples=[[{"role": "user", "content": "What is a myocardial infarction?"}]],
    )

    stream: Optional[bool] = Field(
        None,
        description="Streaming is not supported, must be false or omitted",
        examples=[False],
    )

    model_config = ConfigDict(extra="allow")

    @model_validator(mode="after")
    def check_not_streaming(self) -> Self:
        """Check that streaming was not requested."""
        if self.stream:
            raise ValueError("Streaming responses are not supported")
        return self
