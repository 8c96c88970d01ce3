from __future__ import annotations


class RexfieldsError(Exception):
    """Base class for all rexfields errors."""


class ConfigError(RexfieldsError):
    """Invalid configuration, detected before any line is processed."""


class UnknownFormatError(ConfigError):
    def __init__(self, requested: str, alternatives: list[str]) -> None:
        self.requested = requested
        self.alternatives = alternatives
        super().__init__(
            f"Provided format '{requested}' does not exist, "
            f"allowed values are {', '.join(alternatives)}"
        )


class LineError(RexfieldsError):
    """Failure confined to a single input line.

    Whether it skips the line or aborts the run is up to the processor.
    """
    def __init__(self, message: str, line: str = "", line_no: int | None = None) -> None:
        self.line = line
        self.line_no = line_no
        super().__init__(message)

    def describe(self) -> str:
        where = f"line {self.line_no}" if self.line_no is not None else "line"
        return f"{where}: {self} ({self.line!r})"


class NoMatchError(LineError):
    def __init__(self, line: str = "", line_no: int | None = None) -> None:
        super().__init__("parse failed", line, line_no)


class FragmentParseError(LineError):
    """The JSON fragment capture is not a JSON object."""


class MissingFieldError(LineError):
    def __init__(self, field: str, line: str = "", line_no: int | None = None) -> None:
        self.field = field
        super().__init__(f"field '{field}' is missing from the record", line, line_no)


class TemplateRenderError(LineError):
    """The output template failed at render time for this record."""
