from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Union

# Output name reserved for the embedded JSON object and for whole-record output
JSON_SENTINEL = "json"

# Flat output record: field name -> field value
Record = dict[str, str]

# A capture group addressed by index (1-based, 0 is the whole match) or by name
GroupRef = Union[int, str]


@dataclass(frozen=True)
class FieldMapping:
    """Ordered (group reference, output name) pairs.

    Output names may repeat; later entries win when records are built.
    """
    entries: tuple[tuple[GroupRef, str], ...]

    def names(self) -> set[str]:
        """Return every configured output name, sentinel included."""
        return {name for _, name in self.entries}

    def __iter__(self) -> Iterator[tuple[GroupRef, str]]:
        return iter(self.entries)


@dataclass
class CaptureResult:
    """Captured text of a single match.

    - groups: text per group index, group 0 is the whole match
    - named: text per named group
    Non-participating groups hold the empty string.
    """
    groups: tuple[str, ...]
    named: dict[str, str]

    def get(self, ref: GroupRef) -> str:
        if isinstance(ref, int):
            return self.groups[ref]
        return self.named[ref]
