from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional, Pattern

from .errors import ConfigError
from .types import CaptureResult, GroupRef


def compile_pattern(source: str, flags: int = 0) -> Pattern[str]:
    """Compile the configured regex, turning syntax errors into ConfigError."""
    try:
        return re.compile(source, flags)
    except re.error as e:
        raise ConfigError(f"Invalid regex {source!r}: {e}") from e


@dataclass(frozen=True)
class PatternMatcher:
    """Search a line with a compiled pattern and collect its captures."""
    pattern: Pattern[str]

    def match(self, line: str) -> Optional[CaptureResult]:
        m = self.pattern.search(line)
        if m is None:
            return None
        groups = tuple(m.group(i) or "" for i in range(self.pattern.groups + 1))
        named = {k: (v or "") for k, v in m.groupdict().items()}
        return CaptureResult(groups=groups, named=named)

    def check_group(self, ref: GroupRef) -> None:
        """Fail with ConfigError when the pattern has no such group."""
        if isinstance(ref, int):
            if ref < 0 or ref > self.pattern.groups:
                raise ConfigError(
                    f"Group {ref} does not exist, the regex has {self.pattern.groups} group(s)"
                )
        elif ref not in self.pattern.groupindex:
            known = ", ".join(sorted(self.pattern.groupindex)) or "none"
            raise ConfigError(f"Named group '{ref}' does not exist, named groups are: {known}")
