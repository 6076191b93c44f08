"""Common types for the project."""

from typing import Any


class Singleton(type):
    """Metaclass making every instantiation return the first instance."""

    _instances: dict[type, Any] = {}

    def __call__(cls, *args: Any, **kwargs: Any) -> Any:
        """Create the instance on first call only."""
        if cls not in cls._instances:
            cls._instances[cls] = super().__call__(*args, **kwargs)
        return cls._instances[cls]
