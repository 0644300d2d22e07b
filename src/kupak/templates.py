"""
Compiling and rendering resource templates.

Resource documents are Jinja2 templates with non-default delimiters,
because manifests regularly carry ``{{`` and ``{%`` as literal content:

- ``$(name)`` substitutes a value
- ``$(% if enabled %) ... $(% endif %)`` for blocks
- ``$(# comment #)`` for comments
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from jinja2 import Environment, StrictUndefined, TemplateError, TemplateSyntaxError

from kupak.errors import RenderError, TemplateCompileError
from kupak.models import Pak, ResourceTemplate
from kupak.values import prepare_values

VARIABLE_START = "$("
VARIABLE_END = ")"
BLOCK_START = "$(%"
BLOCK_END = "%)"
COMMENT_START = "$(#"
COMMENT_END = "#)"


def _finalize(value: Any) -> Any:
    # booleans render as YAML literals
    if isinstance(value, bool):
        return "true" if value else "false"
    return value


def create_environment() -> Environment:
    """Create the Jinja2 environment used for resource templates."""
    return Environment(
        variable_start_string=VARIABLE_START,
        variable_end_string=VARIABLE_END,
        block_start_string=BLOCK_START,
        block_end_string=BLOCK_END,
        comment_start_string=COMMENT_START,
        comment_end_string=COMMENT_END,
        autoescape=False,
        undefined=StrictUndefined,
        keep_trailing_newline=True,
        trim_blocks=False,
        lstrip_blocks=False,
        finalize=_finalize,
    )


_environment = create_environment()


def compile_template(address: str, source: str | bytes) -> ResourceTemplate:
    """
    Compile a resource document.

    Raises:
        TemplateCompileError: The document is not UTF-8 text or has
            malformed template syntax
    """
    if isinstance(source, bytes):
        try:
            source = source.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise TemplateCompileError(address, f"not valid UTF-8: {exc.reason}") from exc
    try:
        template = _environment.from_string(source)
    except TemplateSyntaxError as exc:
        raise TemplateCompileError(address, f"line {exc.lineno}: {exc.message}") from exc
    return ResourceTemplate(address=address, template=template)


def render_templates(
    templates: Sequence[ResourceTemplate],
    values: Mapping[str, Any],
) -> list[bytes]:
    """
    Render every template against *values*, preserving order.

    Either every resource renders or :class:`RenderError` is raised for
    the first one that fails.
    """
    outputs: list[bytes] = []
    context = dict(values)
    for resource in templates:
        try:
            text = resource.template.render(context)
        except (TemplateError, TypeError, ValueError, ArithmeticError) as exc:
            raise RenderError(resource.address, str(exc)) from exc
        outputs.append(text.encode("utf-8"))
    return outputs


def render_pak(pak: Pak, values: Mapping[str, Any] | None = None) -> list[bytes]:
    """Prepare *values* against the pak's schema and render all its resources."""
    if len(pak.templates) != len(pak.resource_addresses):
        raise RenderError(pak.source_url, "pak templates are not loaded")
    prepared = prepare_values(pak.properties, values)
    return render_templates(pak.templates, prepared)
