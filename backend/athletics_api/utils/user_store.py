"""User lookup used by the authentication core"""
from typing import Optional, Protocol

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from athletics_api.models.user import User
from athletics_api.utils.errors import StoreUnavailable
from athletics_api.utils.logger import logger


class UserStore(Protocol):
    """The one capability the auth core needs from persistence."""

    def get_user_by_id(self, user_id: int) -> Optional[User]: ...


class SqlUserStore:
    """UserStore backed by the request's SQLAlchemy session."""

    def __init__(self, db: Session):
        self.db = db

    def get_user_by_id(self, user_id: int) -> Optional[User]:
        """
        Load a user by primary key

        Raises:
            StoreUnavailable: the database query failed.
        """
        try:
            return self.db.get(User, user_id)
        except SQLAlchemyError as exc:
            logger.error(
                "User lookup failed",
                extra={"user_id": user_id, "action": "load_user"},
                exc_info=True,
            )
            raise StoreUnavailable() from exc

    def get_user_by_email(self, email: str) -> Optional[User]:
        """Load a user by email (case-insensitive)"""
        try:
            return self.db.query(User).filter(User.email == email.strip().lower()).first()
        except SQLAlchemyError as exc:
            logger.error("User lookup by email failed", extra={"action": "load_user"}, exc_info=True)
            raise StoreUnavailable() from exc
