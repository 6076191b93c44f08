"""Process-local cache of inference tokens."""

import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional

from cachetools import TLRUCache

import constants


@dataclass(frozen=True)
class InferenceToken:
    """Short-lived token used to call the inference API.

    Attributes:
        value: the token sent as bearer to the inference API
        expires_at: expiration time in seconds since epoch
        source_credential_id: ID of credential the token was exchanged for
    """

    value: str
    expires_at: int
    source_credential_id: str

    def __repr__(self) -> str:
        """Return textual representation without the token value."""
        return (
            f"InferenceToken(expires_at={self.expires_at!r}, "
            f"source_credential_id={self.source_credential_id!r})"
        )


class TokenCache:
    """Inference tokens keyed by the credential they were exchanged for.

    A token is served only while `now < expires_at - margin`, so callers
    never receive a token that is about to expire.
    """

    def __init__(
        self,
        margin: int = constants.DEFAULT_TOKEN_EXPIRY_MARGIN,
        maxsize: int = constants.TOKEN_CACHE_MAX_ENTRIES,
        timer: Callable[[], float] = time.time,
    ) -> None:
        """Initialize empty cache."""
        self.margin = margin
        self._lock = threading.Lock()
        self._cache: TLRUCache[str, InferenceToken] = TLRUCache(
            maxsize=maxsize, ttu=self._time_to_use, timer=timer
        )

    def _time_to_use(self, _key: str, token: InferenceToken, _now: float) -> float:
        """Return time from which the token must not be served."""
        return token.expires_at - self.margin

    def get(self, credential_id: str) -> Optional[InferenceToken]:
        """Return cached token for credential, None on miss or expiry."""
        with self._lock:
            return self._cache.get(credential_id)

    def put(self, token: InferenceToken) -> None:
        """Store token, tokens already inside the margin are not stored."""
        with self._lock:
            self._cache[token.source_credential_id] = token

    def invalidate(self, credential_id: str) -> None:
        """Drop token exchanged for given credential."""
        with self._lock:
            self._cache.pop(credential_id, None)

    def clear(self) -> None:
        """Drop all tokens."""
        with self._lock:
            self._cache.clear()

    def __len__(self) -> int:
        """Return number of tokens that have not expired yet."""
        with self._lock:
            self._cache.expire()
            return len(self._cache)
