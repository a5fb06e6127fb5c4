"""appgen: generate the boilerplate layer of an HTTP API from its design."""

from .codegen import Generator, generate
from .config import GeneratorConfig
from .errors import AppgenError, EmissionError, GeneratorBug, InvalidDesignError
from .loader import build_design, load_design

__all__ = [
    "Generator",
    "generate",
    "GeneratorConfig",
    "AppgenError",
    "EmissionError",
    "GeneratorBug",
    "InvalidDesignError",
    "build_design",
    "load_design",
]
