from __future__ import annotations

import json
from typing import Any, Optional

from .errors import FragmentParseError
from .types import JSON_SENTINEL, CaptureResult, FieldMapping, Record


def map_fields(capture: CaptureResult, mapping: FieldMapping) -> tuple[Record, Optional[str]]:
    """Build the initial record from captured groups.

    The sentinel name is not stored; its text is returned as the fragment
    candidate instead. When several entries use the sentinel, the last wins.
    """
    record: Record = {}
    fragment: Optional[str] = None
    for ref, name in mapping:
        text = capture.get(ref)
        if name == JSON_SENTINEL:
            fragment = text
        else:
            record[name] = text
    return record, fragment


def to_field_text(value: Any) -> str:
    """Strings keep their content, anything else becomes compact JSON text."""
    if isinstance(value, str):
        return value
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


def merge_fragment(record: Record, fragment: Optional[str]) -> Record:
    """Merge the top-level keys of a JSON object fragment into the record.

    Fragment keys overwrite mapped fields of the same name. An absent or
    empty fragment leaves the record untouched.
    """
    if not fragment:
        return record
    try:
        parsed = json.loads(fragment)
    except json.JSONDecodeError as e:
        raise FragmentParseError(f"invalid JSON fragment: {e}") from e
    if not isinstance(parsed, dict):
        raise FragmentParseError(
            f"JSON fragment must be an object, got {type(parsed).__name__}"
        )
    merged: Record = dict(record)
    for key, value in parsed.items():
        text = to_field_text(value)
        try:
            key.encode("utf-8")
            text.encode("utf-8")
        except UnicodeEncodeError as e:
            raise FragmentParseError(f"JSON fragment key {key!r} holds text that is not valid UTF-8: {e.reason}") from e
        merged[key] = text
    return merged
