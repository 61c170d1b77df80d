"""Validation utilities for pagesdeploy configuration."""

from pydantic import ValidationError as PydanticValidationError


def flatten_pydantic_errors(exc: PydanticValidationError) -> list[str]:
    """Flatten Pydantic ValidationError into human-readable messages.

    Args:
        exc: Pydantic ValidationError exception

    Returns:
        List of human-readable error messages, one per field error.
        Secret inputs are never echoed back.
    """
    errors: list[str] = []

    for error in exc.errors():
        loc = error.get("loc", ())
        field_path = ".".join(str(item) for item in loc) if loc else "inputs"

        msg = error.get("msg", "Unknown error")
        error_type = error.get("type", "")

        input_val = error.get("input")
        if (
            error_type == "value_error"
            and "api_key" not in field_path
            and not isinstance(input_val, dict)
        ):
            formatted = f"Field '{field_path}': {msg} (received: {input_val!r})"
        else:
            formatted = f"Field '{field_path}': {msg}"

        errors.append(formatted)

    return errors if errors else ["Validation failed with unknown error"]
