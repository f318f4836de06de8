"""User repository."""

import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.result import Err, Ok, Result
from app.models.user import User
from app.repositories.errors import RepositoryError
from app.schemas.user import UserCreate

logger = logging.getLogger(__name__)

RepoResult = Result[User, RepositoryError]


class UserRepository:
    """Persistence for local user records."""

    def __init__(self, db: Session):
        self.db = db

    def find_by_firebase_uid(self, firebase_uid: str) -> RepoResult:
        """
        Get user by identity provider subject id.

        Returns:
            Ok with the user, Err(NOT_FOUND) or Err(DATABASE_ERROR)
        """
        try:
            user = self.db.query(User).filter(User.firebase_uid == firebase_uid).first()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to fetch user by firebase uid: {e}")
            return Err(RepositoryError.database(e))

        if not user:
            return Err(RepositoryError.not_found("User", "firebase_uid", firebase_uid))

        return Ok(user)

    def create(self, data: UserCreate) -> RepoResult:
        """
        Create a new user.

        A unique constraint violation (email or firebase_uid already taken)
        is reported as ALREADY_EXISTS rather than DATABASE_ERROR.

        Args:
            data: User creation data

        Returns:
            Ok with the created user, Err(ALREADY_EXISTS) or Err(DATABASE_ERROR)
        """
        user = User(
            firebase_uid=data.firebase_uid,
            email=data.email,
            display_name=data.display_name,
        )

        try:
            self.db.add(user)
            self.db.commit()
            self.db.refresh(user)
        except IntegrityError as e:
            self.db.rollback()
            logger.warning(f"User for {data.firebase_uid} violates a unique constraint: {e.orig}")
            return Err(RepositoryError.already_exists("User"))
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to create user: {e}")
            return Err(RepositoryError.database(e))

        return Ok(user)
