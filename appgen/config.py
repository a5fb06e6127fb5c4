"""Generator configuration.

Output location and target package of a generation run. Defaults can be
overridden through APPGEN_OUTPUT_DIR / APPGEN_TARGET_PACKAGE or the CLI.
"""

from __future__ import annotations

import keyword
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

DEFAULT_OUTPUT_DIR = Path(".")
DEFAULT_TARGET_PACKAGE = "app"
DEFAULT_RUNTIME_MODULE = "appgen.runtime"


def _is_identifier(name: str) -> bool:
    return isinstance(name, str) and name.isidentifier() and not keyword.iskeyword(name)


@dataclass(frozen=True)
class GeneratorConfig:
    output_dir: Path = DEFAULT_OUTPUT_DIR
    target_package: str = DEFAULT_TARGET_PACKAGE
    runtime_module: str = DEFAULT_RUNTIME_MODULE

    def __post_init__(self) -> None:
        if not _is_identifier(self.target_package):
            raise ValueError(f"target package {self.target_package!r} is not a valid Python identifier")
        if not all(_is_identifier(part) for part in self.runtime_module.split(".")):
            raise ValueError(f"runtime module {self.runtime_module!r} is not a valid module path")

    @property
    def app_output_dir(self) -> Path:
        """Directory containing the generated files."""
        return Path(self.output_dir) / self.target_package

    @classmethod
    def from_env(
        cls,
        output_dir: Optional[Path] = None,
        target_package: Optional[str] = None,
    ) -> GeneratorConfig:
        """Build a config from APPGEN_* environment variables.

        Explicit arguments take precedence over the environment.
        """
        if output_dir is None:
            output_dir = Path(os.environ.get("APPGEN_OUTPUT_DIR", str(DEFAULT_OUTPUT_DIR)))
        if target_package is None:
            target_package = os.environ.get("APPGEN_TARGET_PACKAGE", DEFAULT_TARGET_PACKAGE)
        return cls(output_dir=output_dir, target_package=target_package)
