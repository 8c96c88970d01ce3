from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TextIO

from .errors import LineError, NoMatchError
from .fields import map_fields, merge_fragment
from .matcher import PatternMatcher
from .output import OutputFormat, render
from .types import FieldMapping, Record

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Extractor:
    """Compiled pattern plus field mapping, built once per run."""
    matcher: PatternMatcher
    mapping: FieldMapping

    def names(self) -> set[str]:
        return self.mapping.names()

    def extract(self, line: str) -> Record:
        """Turn one line into a flat record.

        Raises NoMatchError when the pattern does not match and
        FragmentParseError when the JSON fragment is malformed.
        """
        capture = self.matcher.match(line)
        if capture is None:
            raise NoMatchError(line)
        record, fragment = map_fields(capture, self.mapping)
        return merge_fragment(record, fragment)


@dataclass
class ProcessStats:
    lines: int = 0
    emitted: int = 0
    skipped: int = 0


@dataclass
class Processor:
    extractor: Extractor
    output_format: OutputFormat
    # Abort on the first line that fails instead of skipping it
    strict: bool = False

    def process_line(self, line: str) -> str:
        return render(self.extractor.extract(line), self.output_format)

    def process_stream(self, src: TextIO, dst: TextIO) -> ProcessStats:
        stats = ProcessStats()
        for line_number, raw_line in enumerate(src, start=1):
            stats.lines += 1
            line = _strip_line_ending(raw_line)
            try:
                rendered = self.process_line(line)
            except LineError as e:
                e.line = line
                e.line_no = line_number
                if self.strict:
                    raise
                stats.skipped += 1
                if isinstance(e, NoMatchError):
                    logger.debug("Skipping %s", e.describe())
                else:
                    logger.warning("Skipping %s", e.describe())
                continue
            dst.write(rendered + "\n")
            stats.emitted += 1
        return stats


def _strip_line_ending(raw_line: str) -> str:
    line = raw_line[:-1] if raw_line.endswith("\n") else raw_line
    return line[:-1] if line.endswith("\r") else line
