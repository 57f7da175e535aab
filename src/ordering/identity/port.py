"""User directory port (abstract interface).

Authentication and token issuance live outside the ordering core. The core
only needs to turn an opaque caller credential into a user id, and to check
that a user id still refers to a known user.
"""

from abc import ABC, abstractmethod

from ordering.errors import UnauthorizedError


class UserDirectory(ABC):
    """Abstract user directory interface."""

    @abstractmethod
    def resolve(self, credential: str | None) -> str:
        """Return the user id behind ``credential``.

        Raises ``UnauthorizedError`` for a missing or unknown credential and
        ``NotFoundError`` when the credential points at a removed user.
        """
        ...

    @abstractmethod
    def exists(self, user_id: str) -> bool:
        """Check whether ``user_id`` refers to a known user."""
        ...


def bearer_token(authorization: str | None) -> str:
    """Extract the token from an ``Authorization: Bearer <token>`` header value."""
    if not authorization:
        raise UnauthorizedError({"authorization": ["Authentication is required"]})

    scheme, _, token = authorization.strip().partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise UnauthorizedError({"authorization": ["Expected a Bearer token"]})
    return token.strip()
