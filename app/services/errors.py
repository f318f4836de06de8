"""Error values for the service layer and their mapping from repository errors."""

from dataclasses import dataclass
from enum import Enum as PyEnum

from app.repositories.errors import RepositoryError, RepositoryErrorType

GENERIC_DATABASE_MESSAGE = "A database error occurred."


class ServiceErrorType(str, PyEnum):
    """Enumeration of service failure kinds."""

    NOT_FOUND = "NOT_FOUND"
    ALREADY_EXISTS = "ALREADY_EXISTS"
    INTERNAL_ERROR = "INTERNAL_ERROR"
    # Reserved: input is validated by the entry points
    VALIDATION_ERROR = "VALIDATION_ERROR"


@dataclass(frozen=True)
class ServiceError:
    """A failed service operation."""

    type: ServiceErrorType
    message: str


def to_service_error(error: RepositoryError) -> ServiceError:
    """
    Map a repository error onto the service vocabulary.

    Storage details are dropped; NOT_FOUND and ALREADY_EXISTS keep their
    message.
    """
    if error.type == RepositoryErrorType.NOT_FOUND:
        return ServiceError(ServiceErrorType.NOT_FOUND, error.message)
    if error.type == RepositoryErrorType.ALREADY_EXISTS:
        return ServiceError(ServiceErrorType.ALREADY_EXISTS, error.message)
    if error.type == RepositoryErrorType.DATABASE_ERROR:
        return ServiceError(ServiceErrorType.INTERNAL_ERROR, GENERIC_DATABASE_MESSAGE)
    raise ValueError(f"Unhandled repository error type: {error.type}")
