from __future__ import annotations

import logging
import re
from collections import Counter
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from .errors import ConfigError
from .matcher import PatternMatcher, compile_pattern
from .output import OutputFormat, template_format, validate_format
from .processor import Extractor
from .types import JSON_SENTINEL, FieldMapping, GroupRef

logger = logging.getLogger(__name__)


class OutputFormatConfig(BaseModel):
    """Default rendering of matched lines; command line options override it."""
    format: str = Field(default=JSON_SENTINEL, description="'json' for the whole record or a configured field name")
    template: str | None = Field(default=None, description="Jinja2 template rendered with the record's fields")


class Config(BaseModel):
    """Top-level configuration for a rexfields run loaded from YAML.

    - regex: pattern searched in every line
    - flags: regex flags as letters: i (IGNORECASE), m (MULTILINE), s (DOTALL), x (VERBOSE)
    - matches: ordered group reference -> output name. Digit keys are group
      indexes, other keys are named groups. The name 'json' marks a group
      holding a JSON object whose keys are merged into the record.
    """
    description: str | None = Field(default=None, description="Optional description of this config file")
    regex: str
    flags: str | None = Field(default=None, description="Regex flags as letters: i,m,s,x")
    matches: dict[str, str] = Field(default_factory=dict)
    strict: bool = Field(default=False, description="Abort on the first line that cannot be processed")
    output: OutputFormatConfig = Field(default_factory=OutputFormatConfig)

    @field_validator("matches", mode="before")
    @classmethod
    def _stringify_group_refs(cls, v: Any) -> Any:
        # YAML turns `1: first` into an integer key
        if isinstance(v, dict):
            refs: dict[str, Any] = {}
            for k, val in v.items():
                if str(k) in refs:
                    raise ValueError(f"group reference {str(k)!r} is mapped more than once")
                refs[str(k)] = val
            return refs
        return v

    @field_validator("flags")
    @classmethod
    def _validate_flags(cls, v: str | None) -> str | None:
        if v is not None:
            unknown = sorted(set(v.lower()) - set(_FLAGS))
            if unknown:
                raise ValueError(f"unknown regex flag(s): {', '.join(unknown)}")
        return v

    def field_mapping(self) -> FieldMapping:
        return FieldMapping(tuple((_parse_group_ref(k), v) for k, v in self.matches.items()))

    def compile(self) -> Extractor:
        """Compile the regex and check every group reference against it."""
        matcher = PatternMatcher(compile_pattern(self.regex, _parse_flags(self.flags)))
        mapping = self.field_mapping()
        for ref, _ in mapping:
            matcher.check_group(ref)
        duplicates = sorted(name for name, n in Counter(name for _, name in mapping).items() if n > 1)
        if duplicates:
            logger.warning("Output names mapped more than once, later groups win: %s", ", ".join(duplicates))
        return Extractor(matcher=matcher, mapping=mapping)

    def output_format(self, extractor: Extractor, fmt: str | None = None, template: str | None = None) -> OutputFormat:
        """Resolve the output format once; explicit arguments beat the config file."""
        if template is None and fmt is None:
            template = self.output.template
        if template is not None:
            return template_format(template)
        return validate_format(fmt if fmt is not None else self.output.format, extractor.names())


_FLAGS = {
    "i": re.IGNORECASE,
    "m": re.MULTILINE,
    "s": re.DOTALL,
    "x": re.VERBOSE,
}


def _parse_flags(flag_letters: str | None) -> int:
    """Translate simple flag letters into Python regex flags."""
    flag_value = 0
    for ch in flag_letters or "":
        flag_value |= _FLAGS[ch.lower()]
    return flag_value


def _parse_group_ref(key: str) -> GroupRef:
    return int(key) if key.isascii() and key.isdigit() else key


def default_config() -> Config:
    """Config used without a config file: each whole line becomes {"line": ...}."""
    return Config(regex=r"^(.*)$", matches={"1": "line"})


def load_config(path: str | Path) -> Config:
    """Load YAML config from 'path' and validate into a Config model."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except OSError as e:
        raise ConfigError(f"Cannot read config {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e
    try:
        return Config.model_validate(data)
    except ValidationError as e:
        # Re-raise with a cleaner message for CLI users
        raise ConfigError(str(e)) from e
