"""Exceptions raised by the credential pool."""

from enum import Enum


class ExchangeErrorKind(str, Enum):
    """Classification of token exchange failures."""

    # the upstream rejected the credential, it is revoked or expired
    UNAUTHORIZED = "unauthorized"

    # transport failure, timeout or non-2xx other than 401
    NETWORK = "network"

    # the upstream answered 2xx with an unusable body
    MALFORMED = "malformed"


class ExchangeError(Exception):
    """Token exchange failed."""

    def __init__(self, kind: ExchangeErrorKind, message: str = ""):
        """Initialize the exception with failure kind and detailed message."""
        super().__init__(message or kind.value)
        self.kind = kind

    @property
    def is_unauthorized(self) -> bool:
        """Check if the failure means the credential itself is bad."""
        return self.kind == ExchangeErrorKind.UNAUTHORIZED


class AllCredentialsDeadError(Exception):
    """No credential in the pool was able to produce an inference token."""

    def __init__(self, tried: int):
        """Initialize the exception with number of credentials tried."""
        super().__init__(f"All {tried} credential(s) failed to produce a token")
        self.tried = tried


class NoCredentialsConfiguredError(Exception):
    """The pool is empty and no fallback credential is configured."""


class CredentialNotFoundError(Exception):
    """Credential with given ID does not exist."""

    def __init__(self, credential_id: str):
        """Initialize the exception with ID of missing credential."""
        super().__init__(f"Credential {credential_id} does not exist")
        self.credential_id = credential_id


class DeviceFlowError(Exception):
    """GitHub device flow request failed."""
