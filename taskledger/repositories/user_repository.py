"""User repository: registration with uniqueness checks and account bookkeeping."""

import logging
from typing import Any, List, Mapping, Optional, Union

from ..exceptions import DuplicateUserError
from ..models.user import User
from ..schemas import UserCreate
from .base import EntityStore

logger = logging.getLogger(__name__)


class UserRepository(EntityStore[User]):
    """Repository for User records persisted under the ``users`` key.

    Lookups by username and email are linear scans; both values are stored
    lower-cased so the comparison is case-insensitive.
    """

    entity_name = "users"
    model = User

    def create(self, user_data: Union[UserCreate, Mapping[str, Any]]) -> User:
        """Register a new user.

        Raises:
            DuplicateUserError: If the username or email is already taken
            ValueError: If the username is blank or the email is malformed
        """
        if not isinstance(user_data, UserCreate):
            user_data = UserCreate.model_validate(user_data)

        if self.find_by_username(user_data.username):
            raise DuplicateUserError("username", user_data.username)
        if self.find_by_email(user_data.email):
            raise DuplicateUserError("email", user_data.email)

        user = User(**user_data.model_dump(exclude_none=True))
        self._insert(user)

        logger.info(f"Created user {user.id}: {user.username}")
        return user

    def find_by_username(self, username: str) -> Optional[User]:
        normalized = (username or "").strip().lower()
        for user in self._items.values():
            if user.username == normalized:
                return user
        return None

    def find_by_email(self, email: str) -> Optional[User]:
        normalized = (email or "").strip().lower()
        for user in self._items.values():
            if user.email == normalized:
                return user
        return None

    def find_active(self) -> List[User]:
        return [user for user in self._items.values() if user.is_active]

    def record_login(self, user_id: str) -> Optional[User]:
        """Stamp ``last_login_at``; None if the user does not exist."""
        user = self.find_by_id(user_id)
        if user is None:
            logger.warning(f"User {user_id} not found for login")
            return None
        user.record_login()
        self._persist()
        logger.info(f"Recorded login for {user.username}")
        return user

    def update_profile(
        self, user_id: str, full_name: Optional[str] = None, email: Optional[str] = None
    ) -> Optional[User]:
        """Change a user's name and/or email.

        Raises:
            DuplicateUserError: If the new email belongs to another user
        """
        user = self.find_by_id(user_id)
        if user is None:
            return None
        if email:
            owner = self.find_by_email(email)
            if owner is not None and owner.id != user_id:
                raise DuplicateUserError("email", email)
        user.update_profile(full_name=full_name, email=email)
        self._persist()
        return user

    def update_preferences(self, user_id: str, preferences: Mapping[str, Any]) -> Optional[User]:
        user = self.find_by_id(user_id)
        if user is None:
            return None
        user.update_preferences(preferences)
        self._persist()
        return user

    def activate(self, user_id: str) -> Optional[User]:
        return self._set_active(user_id, True)

    def deactivate(self, user_id: str) -> Optional[User]:
        return self._set_active(user_id, False)

    def _set_active(self, user_id: str, active: bool) -> Optional[User]:
        user = self.find_by_id(user_id)
        if user is None:
            return None
        if active:
            user.activate()
        else:
            user.deactivate()
        self._persist()
        logger.info(f"User {user.username} {'activated' if active else 'deactivated'}")
        return user
