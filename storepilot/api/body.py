"""JSON request body parsing for guarded routes.

Guarded handlers read their body here, inside the handler, so the route
guard (rate limit, bearer token) has already run when a malformed payload
is rejected. A declared pydantic body parameter is decoded before any
dependency.
"""

from typing import Any, TypeVar

from fastapi import Request
from pydantic import BaseModel, ValidationError

from storepilot.core.error_contract import pydantic_errors_to_details
from storepilot.core.exceptions import ValidationFailedError

ModelT = TypeVar("ModelT", bound=BaseModel)


async def read_json_body(request: Request) -> Any:
    """Decoded JSON body, or None when the body is empty."""
    body = await request.body()
    if not body:
        return None
    try:
        return await request.json()
    except ValueError:
        raise ValidationFailedError(
            details=[{"field": "body", "message": "Malformed JSON"}]
        )


async def parse_json_body(request: Request, model: type[ModelT]) -> ModelT:
    """Validate the JSON body against ``model``.

    Raises:
        ValidationFailedError: Body is malformed or fails validation.
    """
    try:
        return model.model_validate(await read_json_body(request))
    except ValidationError as exc:
        raise ValidationFailedError(details=pydantic_errors_to_details(exc.errors()))
