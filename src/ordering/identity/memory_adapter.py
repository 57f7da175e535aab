"""In-memory user directory for development and testing."""

from ordering.errors import NotFoundError, UnauthorizedError
from ordering.identity.port import UserDirectory


class InMemoryUserDirectory(UserDirectory):
    """Maps tokens to user ids held in plain dictionaries."""

    def __init__(self) -> None:
        self._users: set[str] = set()
        self._tokens: dict[str, str] = {}

    def register(self, user_id: str, token: str | None = None) -> None:
        self._users.add(str(user_id))
        if token:
            self._tokens[token] = str(user_id)

    def remove(self, user_id: str) -> None:
        """Forget the user; tokens issued to it keep resolving to the stale id."""
        self._users.discard(str(user_id))

    def resolve(self, credential: str | None) -> str:
        if not credential or credential not in self._tokens:
            raise UnauthorizedError({"authorization": ["Invalid or expired credential"]})

        user_id = self._tokens[credential]
        if user_id not in self._users:
            raise NotFoundError.user(user_id)
        return user_id

    def exists(self, user_id: str) -> bool:
        return str(user_id) in self._users
