"""Read-only lookups for users and categories."""

from __future__ import annotations

from sqlalchemy.orm import Session

from civic.core.errors import NotFoundError, ValidationError
from civic.models.reference import Category
from civic.models.user import User


class ReferenceData:
    """Reference-data port backed by the shared database session."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def get_user(self, user_id: int) -> User | None:
        return self.db.get(User, user_id)

    def get_category(self, category_id: int) -> Category | None:
        return self.db.get(Category, category_id)

    def require_user(self, user_id: int) -> User:
        user = self.get_user(user_id)
        if not user:
            raise NotFoundError(f"User {user_id} not found")
        return user

    def require_category(self, category_id: int | None) -> Category:
        """Category referenced by a payload. Missing or unknown ids are input errors."""
        if category_id is None:
            raise ValidationError("category_id is required")
        category = self.get_category(category_id)
        if not category:
            raise ValidationError(f"Category {category_id} does not exist")
        return category
