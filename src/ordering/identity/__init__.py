"""User directory factory.

Provides get_user_directory() / set_user_directory() to swap implementations.
"""

from ordering import config
from ordering.identity.port import UserDirectory

_current_directory: UserDirectory | None = None


def get_user_directory() -> UserDirectory:
    """Return the configured user directory (singleton)."""
    global _current_directory
    if _current_directory is None:
        if config.USER_DIRECTORY_ADAPTER == "memory":
            from ordering.identity.memory_adapter import InMemoryUserDirectory

            _current_directory = InMemoryUserDirectory()
        else:
            raise ValueError(f"Unknown user directory adapter: {config.USER_DIRECTORY_ADAPTER}")
    return _current_directory


def set_user_directory(directory: UserDirectory) -> None:
    """Override the active user directory (useful for tests)."""
    global _current_directory
    _current_directory = directory


def reset_user_directory() -> None:
    """Reset to the default user directory."""
    global _current_directory
    _current_directory = None
