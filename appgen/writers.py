"""Source file writers.

Each writer owns one generated file: the header is written once, then one
record per design element is rendered through the writer's template, and
format_code() closes the file and checks the result parses.
"""

from __future__ import annotations

import ast
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, Optional, Sequence

import jinja2

from .errors import EmissionError

TEMPLATE_DIR = Path(__file__).parent / "templates"


@dataclass(frozen=True)
class ImportSpec:
    """An import statement of a generated file."""

    module: str
    names: tuple[str, ...] = ()

    @property
    def statement(self) -> str:
        if self.names:
            return f"from {self.module} import {', '.join(self.names)}"
        return f"import {self.module}"


def simple_import(module: str) -> ImportSpec:
    return ImportSpec(module)


def _doc_text(value: Any) -> str:
    """Escape text embedded in a generated docstring."""
    return str(value).replace("\\", "\\\\").replace('"', '\\"')


def _one_line(value: Any) -> str:
    return " ".join(str(value).split())


@lru_cache(maxsize=None)
def get_env() -> jinja2.Environment:
    env = jinja2.Environment(
        loader=jinja2.FileSystemLoader(str(TEMPLATE_DIR)),
        keep_trailing_newline=True,
        trim_blocks=True,
        lstrip_blocks=True,
        undefined=jinja2.StrictUndefined,
    )
    env.filters["pyrepr"] = repr
    env.filters["doc"] = _doc_text
    env.filters["oneline"] = _one_line
    return env


class SourceWriter:
    """Writes one generated Python source file."""

    template_name = ""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self._template = get_env().get_template(self.template_name)
        self._file = open(self.path, "w", encoding="utf-8")

    def __enter__(self) -> SourceWriter:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def write_header(self, title: str, package: str, imports: Optional[Sequence[ImportSpec]]) -> None:
        header = get_env().get_template("header.py.j2")
        self._file.write(header.render(title=title, package=package, imports=list(imports or [])))

    def execute(self, data: Any) -> None:
        """Render data and append it to the file."""
        self._file.write(self._template.render(data=data))

    def close(self) -> None:
        if not self._file.closed:
            self._file.close()

    def format_code(self) -> None:
        """Close the file and check its content is valid Python."""
        self.close()
        source = self.path.read_text(encoding="utf-8")
        try:
            ast.parse(source, filename=str(self.path))
        except SyntaxError as e:
            raise EmissionError(f"generated invalid source in {self.path}: {e}") from e


class ContextsWriter(SourceWriter):
    template_name = "context.py.j2"


class ControllersWriter(SourceWriter):
    template_name = "controller.py.j2"


class ResourcesWriter(SourceWriter):
    template_name = "href.py.j2"


class MediaTypesWriter(SourceWriter):
    template_name = "type.py.j2"


class UserTypesWriter(SourceWriter):
    template_name = "type.py.j2"
