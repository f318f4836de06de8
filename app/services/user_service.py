"""User service for local user provisioning and lookup."""

import logging

from app.core.result import Err, Ok, Result
from app.models.user import User
from app.repositories.errors import RepositoryErrorType
from app.repositories.user_repository import UserRepository
from app.schemas.user import UserCreate
from app.services.errors import ServiceError, to_service_error

logger = logging.getLogger(__name__)

ServiceResult = Result[User, ServiceError]


class UserService:
    """Service for local user records linked to identity provider accounts."""

    def __init__(self, repository: UserRepository):
        """
        Initialize the user service.

        Args:
            repository: User repository bound to the request's session
        """
        self.repository = repository

    def get_user_by_firebase_uid(self, firebase_uid: str) -> ServiceResult:
        """
        Get user by identity provider subject id.

        Args:
            firebase_uid: Identity provider subject id

        Returns:
            Ok with the user, Err(NOT_FOUND) or Err(INTERNAL_ERROR)
        """
        logger.info(f"Fetching user by firebase uid {firebase_uid}")
        return self.repository.find_by_firebase_uid(firebase_uid).map_err(to_service_error)

    def get_or_create_user(self, data: UserCreate) -> ServiceResult:
        """
        Return the user for ``data.firebase_uid``, creating it if needed.

        An existing record is returned as-is: the first write wins and later
        calls never update email or display name. Creating a user whose email
        already belongs to another subject fails with ALREADY_EXISTS.

        Args:
            data: User creation data

        Returns:
            Ok with the user, Err(ALREADY_EXISTS) or Err(INTERNAL_ERROR)
        """
        logger.info(f"Get or create user for firebase uid {data.firebase_uid}")

        existing = self.repository.find_by_firebase_uid(data.firebase_uid)
        if existing.is_ok():
            return existing
        if existing.error.type != RepositoryErrorType.NOT_FOUND:
            return Err(to_service_error(existing.error))

        created = self.repository.create(data)
        if created.is_ok():
            logger.info(f"Created user {created.value.id} for firebase uid {data.firebase_uid}")
            return created

        if created.error.type == RepositoryErrorType.ALREADY_EXISTS:
            # A concurrent sign-up for the same subject may have won the race
            winner = self.repository.find_by_firebase_uid(data.firebase_uid)
            if winner.is_ok():
                return Ok(winner.value)
            logger.warning(f"Email {data.email} is already bound to another account")

        return Err(to_service_error(created.error))
