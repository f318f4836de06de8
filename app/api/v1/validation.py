"""Input validation for action entry points."""

import json
from typing import Any, Type, TypeVar

from fastapi import Request
from pydantic import BaseModel, ValidationError

from app.core.result import Err, Ok, Result

ModelT = TypeVar("ModelT", bound=BaseModel)

# Key for errors that do not belong to a single field
ROOT_ERROR_KEY = "_root"

ValidationErrors = dict[str, list[str]]


def validation_errors(exc: ValidationError) -> ValidationErrors:
    """Flatten a pydantic ValidationError into field -> messages."""
    errors: ValidationErrors = {}
    for error in exc.errors():
        loc = error.get("loc") or ()
        field = str(loc[0]) if loc else ROOT_ERROR_KEY
        errors.setdefault(field, []).append(error["msg"])
    return errors


async def get_json_payload(request: Request) -> Result[Any, ValidationErrors]:
    """
    Decode the request body for an action.

    Actions answer every bad input with their envelope, so the body is read
    here instead of by FastAPI's body parsing (which would answer 422). An
    empty body decodes to None and is rejected by the schema.

    Returns:
        Ok with the decoded JSON, or Err when the body is not valid JSON
    """
    body = await request.body()
    if not body.strip():
        return Ok(None)

    try:
        return Ok(json.loads(body))
    except ValueError:
        return Err({ROOT_ERROR_KEY: ["Request body is not valid JSON."]})


def validate_input(schema: Type[ModelT], raw: Any) -> Result[ModelT, ValidationErrors]:
    """
    Validate a raw request payload against ``schema``.

    Args:
        schema: Pydantic model to validate against
        raw: Decoded JSON body as received

    Returns:
        Ok with the model instance, or Err with messages per field
    """
    try:
        return Ok(schema.model_validate(raw))
    except ValidationError as e:
        return Err(validation_errors(e))


def validate_payload(
    schema: Type[ModelT], payload: Result[Any, ValidationErrors]
) -> Result[ModelT, ValidationErrors]:
    """Validate the result of ``get_json_payload``; decoding errors pass through."""
    if payload.is_err():
        return payload
    return validate_input(schema, payload.value)
