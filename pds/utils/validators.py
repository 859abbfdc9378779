from typing import Any

from pds.core.exceptions import ValidationError

MAX_DOCUMENT_NAME_LENGTH = 255

# Characters that would let a name escape its owner directory
_FORBIDDEN_NAME_CHARACTERS = ("/", "\\", "\x00")


def require_non_empty(value: Any, field_name: str) -> str:
    """
    Validate that a value is a non-empty string.

    Args:
        value: Value to validate
        field_name: Field name used in the error message

    Returns:
        The value, unchanged

    Raises:
        ValidationError: If value is not a string or is empty
    """
    if not isinstance(value, str) or not value:
        raise ValidationError(
            f"{field_name} must be a non-empty string", field=field_name
        )
    return value


def require_positive_id(value: Any, field_name: str = "id") -> int:
    """
    Validate that a value is a positive integer identifier.

    Raises:
        ValidationError: If value is not an int greater than zero
    """
    # bool is an int subclass
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ValidationError(
            f"{field_name} must be a positive integer", field=field_name
        )
    return value


def validate_document_name(name: Any) -> str:
    """
    Validate a document name for safe storage.

    The name is used verbatim as a single file name inside the owner's
    directory, so it is rejected rather than sanitized.

    Args:
        name: Document name to validate

    Returns:
        The name, unchanged

    Raises:
        ValidationError: If name is invalid
    """
    name = require_non_empty(name, "name")

    if name in (".", ".."):
        raise ValidationError("name cannot be a relative path marker", field="name")

    if any(char in name for char in _FORBIDDEN_NAME_CHARACTERS):
        raise ValidationError(
            "name cannot contain path separators or NUL characters", field="name"
        )

    if name != name.strip():
        raise ValidationError(
            "name cannot start or end with whitespace", field="name"
        )

    # File systems limit names in bytes, not characters
    if len(name.encode("utf-8")) > MAX_DOCUMENT_NAME_LENGTH:
        raise ValidationError(
            f"name must be at most {MAX_DOCUMENT_NAME_LENGTH} bytes in UTF-8",
            field="name",
        )

    return name


__all__ = [
    "MAX_DOCUMENT_NAME_LENGTH",
    "require_non_empty",
    "require_positive_id",
    "validate_document_name",
]
