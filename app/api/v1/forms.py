"""Helpers for multipart form endpoints."""

import json
from typing import Any, TypeVar

from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel, ValidationError

from app.core.exceptions import BadRequestException

ModelT = TypeVar("ModelT", bound=BaseModel)


def build_form_model(
    model: type[ModelT],
    fields: dict[str, str | None],
    json_fields: tuple[str, ...] = (),
) -> ModelT:
    """
    Validate multipart text fields into a schema.

    Blank fields are treated as not sent. Fields listed in ``json_fields``
    arrive JSON-encoded and are decoded before validation.

    Raises:
        BadRequestException: If a JSON field cannot be decoded
        RequestValidationError: If the fields do not satisfy the schema
    """
    data: dict[str, Any] = {}
    for key, value in fields.items():
        if value is None or value.strip() == "":
            continue
        if key in json_fields:
            try:
                data[key] = json.loads(value)
            except json.JSONDecodeError as e:
                raise BadRequestException(f"Field '{key}' must be valid JSON") from e
        else:
            data[key] = value

    try:
        return model.model_validate(data)
    except ValidationError as e:
        errors = e.errors(include_url=False, include_context=False)
        for error in errors:
            error["loc"] = ("body", *error["loc"])
        raise RequestValidationError(errors) from e
