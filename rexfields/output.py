from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Iterable, Optional

from jinja2 import Template, TemplateRuntimeError, UndefinedError

from .errors import MissingFieldError, TemplateRenderError, UnknownFormatError
from .jinja import compile_template
from .types import JSON_SENTINEL, Record


@dataclass(frozen=True)
class OutputFormat:
    """How a record is rendered to a single output line.

    - name: the sentinel (whole record as JSON) or a single field name
    - template: when set, the record is rendered through it and name is ignored
    """
    name: str = JSON_SENTINEL
    template: Optional[Template] = None

    @property
    def whole_record(self) -> bool:
        return self.template is None and self.name == JSON_SENTINEL


def validate_format(requested: str, configured_names: Iterable[str]) -> OutputFormat:
    """Accept the sentinel or one of the configured output names."""
    names = set(configured_names)
    if requested != JSON_SENTINEL and requested not in names:
        raise UnknownFormatError(requested, sorted(names))
    return OutputFormat(name=requested)


def template_format(source: str) -> OutputFormat:
    return OutputFormat(template=compile_template(source))


def dump_record(record: Record) -> str:
    return json.dumps(record, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def render(record: Record, fmt: OutputFormat) -> str:
    if fmt.template is not None:
        try:
            return fmt.template.render(record)
        except UndefinedError as e:
            raise MissingFieldError(_undefined_name(e)) from e
        except (TemplateRuntimeError, TypeError, ValueError, ArithmeticError) as e:
            raise TemplateRenderError(f"template failed: {e}") from e
    if fmt.whole_record:
        return dump_record(record)
    try:
        return record[fmt.name]
    except KeyError:
        raise MissingFieldError(fmt.name) from None


def _undefined_name(error: UndefinedError) -> str:
    # Jinja2 reports "'age' is undefined"
    message = str(error)
    if message.startswith("'") and "' is undefined" in message:
        return message[1:message.index("' is undefined")]
    return message
