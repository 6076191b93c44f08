"""Decorator that makes sure the object is 'connected' according to it's connected predicate."""

from functools import wraps
from typing import Any, Callable


def connection(f: Callable) -> Callable:
    """Decorate a method so that a lost connection is re-established first.

    The decorated object needs to provide `connected()` and `connect()`
    methods.

    Example:
    ```python
    @connection
    def get_count(self, user_id: str) -> int:
        ...
    ```
    """

    @wraps(f)
    def wrapper(connectable: Any, *args: Any, **kwargs: Any) -> Callable:
        if not connectable.connected():
            connectable.connect()
        return f(connectable, *args, **kwargs)

    return wrapper
