import uuid
from collections.abc import Iterable

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.errors import NotFoundError
from app.models.user import User

class UserDirectory:
    """Id -> user lookups used to resolve assignees, watchers and message names."""

    def __init__(self, db: Session):
        self.db = db

    def get(self, user_id: uuid.UUID) -> User | None:
        return self.db.get(User, user_id)

    def require(self, user_id: uuid.UUID) -> User:
        user = self.get(user_id)
        if user is None:
            raise NotFoundError(f"user {user_id} not found")
        return user

    def require_many(self, user_ids: Iterable[uuid.UUID]) -> list[User]:
        ids = list(dict.fromkeys(user_ids))
        if not ids:
            return []

        found = {u.id: u for u in self.db.scalars(select(User).where(User.id.in_(ids)))}
        missing = [str(i) for i in ids if i not in found]
        if missing:
            raise NotFoundError(f"users not found: {', '.join(missing)}")
        # keep caller order
        return [found[i] for i in ids]
