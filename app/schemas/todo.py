"""Pydantic schemas for todo endpoints."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, ConfigDict, StrictBool, StrictStr, field_validator

from app.models.todo import TITLE_MAX_LENGTH


class TodoCreate(BaseModel):
    """Schema for creating a new todo."""

    title: StrictStr = Field(
        ...,
        description="Todo title",
        min_length=1,
        max_length=TITLE_MAX_LENGTH,
    )


class TodoUpdate(BaseModel):
    """Schema for a partial todo update. Absent fields are left unchanged."""

    title: Optional[StrictStr] = Field(
        default=None,
        description="New title",
        min_length=1,
        max_length=TITLE_MAX_LENGTH,
    )
    completed: Optional[StrictBool] = Field(default=None, description="New completion state")

    @field_validator("title", "completed", mode="before")
    @classmethod
    def not_null(cls, value):
        # Omit a field to leave it unchanged; null is not a value for either
        if value is None:
            raise ValueError("Field may not be null.")
        return value

    def changes(self) -> dict:
        """Fields the caller actually supplied."""
        return self.model_dump(exclude_unset=True, exclude_none=True)


class TodoResponse(BaseModel):
    """Schema for todo response."""

    model_config = ConfigDict(from_attributes=True)

    id: str = Field(..., description="Unique todo identifier")
    user_id: str = Field(..., description="Owner user ID")
    title: str = Field(..., description="Todo title")
    completed: bool = Field(..., description="Whether the todo is done")
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: datetime = Field(..., description="Last modification timestamp")


class ActionResponse(BaseModel):
    """Uniform result of a mutating entry point."""

    success: bool = Field(..., description="Whether the action succeeded")
    message: str = Field(..., description="Human-readable outcome")
    errors: Optional[dict[str, list[str]]] = Field(
        default=None,
        description="Validation messages per field",
    )
