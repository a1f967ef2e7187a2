"""Utility modules."""
from assessment_api.utils.time_utils import as_utc, to_iso
from assessment_api.utils.validation import validate_id

__all__ = [
    "as_utc",
    "to_iso",
    "validate_id",
]
