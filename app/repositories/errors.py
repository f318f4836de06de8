"""Error values returned by the repository layer."""

from dataclasses import dataclass
from enum import Enum as PyEnum


class RepositoryErrorType(str, PyEnum):
    """Enumeration of repository failure kinds."""

    NOT_FOUND = "NOT_FOUND"
    DATABASE_ERROR = "DATABASE_ERROR"
    ALREADY_EXISTS = "ALREADY_EXISTS"


@dataclass(frozen=True)
class RepositoryError:
    """A failed storage operation."""

    type: RepositoryErrorType
    message: str

    @classmethod
    def not_found(cls, resource_type: str, field: str, value: str) -> "RepositoryError":
        return cls(
            type=RepositoryErrorType.NOT_FOUND,
            message=f"{resource_type} with {field} {value} not found",
        )

    @classmethod
    def database(cls, error: Exception) -> "RepositoryError":
        return cls(type=RepositoryErrorType.DATABASE_ERROR, message=str(error) or "Unknown error")

    @classmethod
    def already_exists(cls, resource_type: str) -> "RepositoryError":
        return cls(
            type=RepositoryErrorType.ALREADY_EXISTS,
            message=f"{resource_type} already exists",
        )
