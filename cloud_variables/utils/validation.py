import json
from typing import Any, List, Optional

from cloud_variables.core.errors import ValidationError

MAX_KEY_LENGTH = 255
MAX_API_KEY_NAME_LENGTH = 100
MAX_TAGS = 50
MAX_TAG_LENGTH = 100
_KEY_PUNCTUATION = {"_", "-", "."}


def validate_password(password: str) -> None:
    if len(password) < 8:
        raise ValidationError("Password must be at least 8 characters long")
    if not any(c.isdigit() for c in password):
        raise ValidationError("Password must contain at least one number")
    if not any(c.isalpha() for c in password):
        raise ValidationError("Password must contain at least one letter")


def validate_variable_key(key: str) -> None:
    if not key:
        raise ValidationError("Variable key cannot be empty")
    if len(key) > MAX_KEY_LENGTH:
        raise ValidationError(f"Variable key cannot exceed {MAX_KEY_LENGTH} characters")
    # Only allow alphanumeric, underscore, hyphen, and dot
    if not all(c.isalnum() or c in _KEY_PUNCTUATION for c in key):
        raise ValidationError(
            "Variable key can only contain alphanumeric characters, underscore, hyphen, and dot"
        )


def validate_api_key_name(name: str) -> None:
    if not name or not name.strip():
        raise ValidationError("API key name cannot be empty")
    if len(name) > MAX_API_KEY_NAME_LENGTH:
        raise ValidationError(f"API key name cannot exceed {MAX_API_KEY_NAME_LENGTH} characters")


def validate_tags(tags: Optional[List[str]]) -> None:
    if tags is None:
        return
    if len(tags) > MAX_TAGS:
        raise ValidationError(f"A variable can have at most {MAX_TAGS} tags")
    for tag in tags:
        if not isinstance(tag, str) or not tag.strip():
            raise ValidationError("Tags must be non-empty strings")
        if len(tag) > MAX_TAG_LENGTH:
            raise ValidationError(f"Tags cannot exceed {MAX_TAG_LENGTH} characters")


def canonical_json(document: Any) -> str:
    """
    Serialize a document to the canonical text stored in the blob store and used for sizing.
    Raises ValidationError if the value is not representable as strict JSON.
    """
    try:
        return json.dumps(
            document,
            sort_keys=True,
            separators=(",", ":"),
            ensure_ascii=False,
            allow_nan=False,
        )
    except (TypeError, ValueError) as e:
        raise ValidationError("Variable data must be valid JSON") from e


def calculate_json_size(document: Any) -> int:
    """Size in bytes of the document's canonical UTF-8 encoding."""
    return len(canonical_json(document).encode("utf-8"))
