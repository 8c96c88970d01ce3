from __future__ import annotations

from jinja2 import Environment, StrictUndefined, Template, TemplateSyntaxError

from .errors import ConfigError

"""Jinja2 environment used to render records through --template.

StrictUndefined makes a reference to a field the record lacks fail loudly
instead of rendering an empty string.
"""

JINJA_ENV: Environment = Environment(undefined=StrictUndefined, autoescape=False)


def compile_template(source: str) -> Template:
    """Compile a Jinja2 template from a string."""
    try:
        return JINJA_ENV.from_string(source)
    except TemplateSyntaxError as e:
        raise ConfigError(f"Invalid template {source!r}: {e}") from e
