"""Base class, template environment, and registry for package emitters."""

import json
import logging
import shlex
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, select_autoescape

from rulehub.generation.errors import UnsupportedFormatError
from rulehub.generation.models import MatchedRule, OutputFormat, WizardConfiguration

logger = logging.getLogger(__name__)

# Template directory
TEMPLATE_DIR = Path(__file__).parent.parent / "templates"

RULE_VERSION = "1.0.0"

_env: Environment | None = None


def _to_json(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False)


def get_template_env() -> Environment:
    """Get or create the Jinja2 environment shared by all emitters."""
    global _env
    if _env is None:
        _env = Environment(
            loader=FileSystemLoader(str(TEMPLATE_DIR)),
            autoescape=select_autoescape(["html", "xml"]),
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
        )
        _env.filters["json"] = _to_json
        _env.filters["shell"] = shlex.quote
    return _env


def render_template(name: str, **context: Any) -> str:
    return get_template_env().get_template(name).render(**context)


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


class PackageEmitter:
    """Renders a resolved rule set into one output format."""

    output_format: str = ""
    content_type: str = "application/octet-stream"
    file_extension: str = ""

    def emit(self, rules: list[MatchedRule], config: WizardConfiguration) -> bytes:
        """Render the package artifact."""
        raise NotImplementedError


_registry: dict[str, PackageEmitter] = {}


def register_emitter(emitter: PackageEmitter) -> PackageEmitter:
    """Register an emitter for its output format."""
    _registry[emitter.output_format] = emitter
    logger.debug(f"Registered emitter for format: {emitter.output_format}")
    return emitter


def get_emitter(output_format: str | OutputFormat) -> PackageEmitter:
    """Look up the emitter for an output format."""
    key = output_format.value if isinstance(output_format, OutputFormat) else str(output_format)
    emitter = _registry.get(key)
    if emitter is None:
        raise UnsupportedFormatError(key)
    return emitter


def list_formats() -> list[str]:
    return list(_registry)
