from __future__ import annotations

import logging
from typing import List

from .db import DocumentStore
from .errors import AuthenticationError, AuthorizationError, NotFoundError, ValidationError
from .schemas import ROLES, User

logger = logging.getLogger(__name__)

USERS = "users"


def require_role(actor: User, *roles: str) -> None:
    if actor.role not in roles:
        raise AuthorizationError(f"User role '{actor.role}' is not authorized to access this route")


class UserService:
    def __init__(self, store: DocumentStore):
        self.store = store

    def authenticate(self, user_id: str) -> User:
        """Resolve the acting user; session handling lives in front of this service."""
        doc = self.store.get(USERS, user_id) if user_id else None
        if doc is None:
            raise AuthenticationError("Not authorized, user not found")
        return User.model_validate(doc)

    def get_user(self, user_id: str) -> User:
        doc = self.store.get(USERS, user_id)
        if doc is None:
            raise NotFoundError("User not found")
        return User.model_validate(doc)

    def create_user(self, user: User) -> User:
        self.store.insert(USERS, user.to_document())
        return user

    def list_users(self, actor: User) -> List[User]:
        require_role(actor, "admin")
        users = [User.model_validate(d) for d in self.store.all(USERS)]
        users.sort(key=lambda u: u.created_at, reverse=True)
        return users

    def update_role(self, actor: User, user_id: str, role: str) -> User:
        require_role(actor, "admin")
        if role not in ROLES:
            raise ValidationError("Invalid role")
        user = self.get_user(user_id)
        if user.id == actor.id:
            raise ValidationError("You cannot change your own role")
        user.role = role
        self.store.replace(USERS, user.to_document())
        logger.info("User %s role changed to %s by %s", user.id, role, actor.id)
        return user

    def delete_user(self, actor: User, user_id: str) -> None:
        require_role(actor, "admin")
        user = self.get_user(user_id)
        if user.id == actor.id:
            raise ValidationError("You cannot delete your own account")
        self.store.delete(USERS, user.id)
        logger.info("User %s deleted by %s", user.id, actor.id)
