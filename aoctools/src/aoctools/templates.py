"""
Solution templates and per-day working directories.

A template describes how a day's solution is laid out and run.  Commands
may reference ``{src}``, which expands to the solution source path
relative to the working directory.  Only the interface lives here; the
files a template scaffolds are provided by the template itself.
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

from pydantic import BaseModel, Field

from .errors import ValidationError


class Template(BaseModel):
    """Normalised template definition."""

    files: List[str] = Field(default_factory=list, description="Files copied into the day directory")
    install_command: Optional[str] = None
    build_command: Optional[str] = None
    run_command: str = Field(..., description="Command that runs the solution, e.g. 'python {src}'")


BUILTIN_TEMPLATES: Dict[str, Template] = {
    "python": Template(files=["main.py"], run_command="python {src}"),
    "node": Template(files=["index.js"], run_command="node {src}"),
    "go": Template(files=["main.go"], build_command="go build -o main {src}", run_command="go run {src}"),
}

_PLACEHOLDER = re.compile(r"\{([^}]+)\}")


def normalize_template(template: Union[str, Template, Mapping[str, Any]]) -> Template:
    """Resolve a builtin template name or validate a custom definition."""
    if isinstance(template, Template):
        return template
    if isinstance(template, str):
        if template not in BUILTIN_TEMPLATES:
            raise ValidationError(f"built-in template '{template}' does not exist")
        return BUILTIN_TEMPLATES[template]
    return Template(**template)


def build_command(command: str, src_path: Union[str, Path], cwd: Optional[Path] = None) -> str:
    """Substitute ``{name}`` placeholders in ``command``.

    Raises:
        ValidationError: a placeholder names an unknown variable.
    """
    base = Path(cwd) if cwd is not None else Path.cwd()
    variables = {"src": os.path.relpath(Path(src_path), base)}

    def replace(match: "re.Match[str]") -> str:
        key = match.group(1)
        if key not in variables:
            raise ValidationError(f"unknown variable '{key}' in template command")
        return variables[key]

    return _PLACEHOLDER.sub(replace, command)


def pad_zero(n: int, length: int = 2) -> str:
    return str(n).rjust(length, "0")


def get_dir_for_day(day: int, cwd: Optional[Path] = None) -> Path:
    """Return the working directory for ``day`` (e.g. ``./03``)."""
    base = Path(cwd) if cwd is not None else Path.cwd()
    return (base / pad_zero(day, 2)).resolve()


__all__ = [
    "BUILTIN_TEMPLATES",
    "Template",
    "build_command",
    "get_dir_for_day",
    "normalize_template",
    "pad_zero",
]
