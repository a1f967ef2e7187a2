"""Validation utilities."""
from assessment_api.errors import ValidationError


def validate_id(name: str, value: str) -> str:
    """Validate ID string (non-empty, no path separators)."""
    if not isinstance(value, str):
        raise ValidationError(f"{name} is required")
    cleaned = value.strip()
    if not cleaned:
        raise ValidationError(f"{name} is required")
    if len(cleaned) > 64 or "/" in cleaned or "\\" in cleaned:
        raise ValidationError(f"Invalid {name}")
    return cleaned
