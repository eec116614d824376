import json
import logging
from typing import MutableMapping, Optional

from .error_utils import InvalidCredentialsError
from .models import User

logger = logging.getLogger(__name__)


class SessionHolder:
    """
    Keeps the signed-in user in a key-value store (the Flask session in the app).
    The user is stored serialized under CURRENT_USER_KEY, or the key is absent.
    """

    CURRENT_USER_KEY = "currentUser"

    def __init__(self, storage: MutableMapping):
        self._storage = storage

    def get_current_user(self) -> Optional[User]:
        raw = self._storage.get(self.CURRENT_USER_KEY)
        if not raw:
            return None
        try:
            return User.from_dict(json.loads(raw))
        except (ValueError, KeyError, TypeError):
            # Unreadable entry, treat as signed out
            logger.warning("Discarding unreadable session user entry")
            self._storage.pop(self.CURRENT_USER_KEY, None)
            return None

    def set_current_user(self, user: Optional[User]) -> None:
        if user:
            self._storage[self.CURRENT_USER_KEY] = json.dumps(user.to_dict())
        else:
            self._storage.pop(self.CURRENT_USER_KEY, None)


def authenticate(store, username: str, password: str) -> User:
    """
    Looks the user up in the record store and compares the stored password.

    Raises InvalidCredentialsError if no user matches or the password differs.
    """
    users = store.find_users(username)
    if users and users[0].password == password:
        logger.info(f"User {users[0].id} signed in")
        return users[0]
    logger.info(f"Failed sign in for username {username!r}")
    raise InvalidCredentialsError()


def user_initials(name: str) -> str:
    if not name:
        return ""
    name_parts = name.split()
    if not name_parts:
        return ""
    if len(name_parts) == 1:
        return name_parts[0][0].upper()
    return (name_parts[0][0] + name_parts[-1][0]).upper()
