"""
Import key normalization

Backups written by the browser version of the app use camelCase keys
(dateOfBirth, patientId, exportDate, ...). Storage uses snake_case only,
so every imported record is canonicalized before validation.
"""
import re
from typing import Any, Dict

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])([A-Z])")


def to_snake_case(key: str) -> str:
    """
    dateOfBirth -> date_of_birth; keys already in snake_case are unchanged
    """
    return _CAMEL_BOUNDARY.sub(r"_\1", key).lower()


def canonicalize_record(record: Dict[str, Any]) -> Dict[str, Any]:
    """
    Normalize one record to canonical snake_case keys.

    Canonical keys win: when a record carries both `patient_id` and
    `patientId`, the snake_case value is kept. Lists of mappings (e.g.
    treatment medications) are normalized recursively.
    """
    data = dict(record or {})
    canonical: Dict[str, Any] = {}

    # Canonical keys first so aliases never overwrite them
    for key, value in data.items():
        if to_snake_case(key) == key:
            canonical[key] = _canonicalize_value(value)

    for key, value in data.items():
        snake = to_snake_case(key)
        if snake != key and snake not in canonical:
            canonical[snake] = _canonicalize_value(value)

    return canonical


def _canonicalize_value(value: Any) -> Any:
    if isinstance(value, dict):
        return canonicalize_record(value)
    if isinstance(value, list):
        return [_canonicalize_value(item) for item in value]
    return value


def canonicalize_backup(payload: Dict[str, Any]) -> Dict[str, Any]:
    """
    Normalize a whole backup payload (top-level keys and every collection)
    """
    return canonicalize_record(payload)
