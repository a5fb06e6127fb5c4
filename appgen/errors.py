"""Errors raised while generating application code."""

from __future__ import annotations


class AppgenError(Exception):
    """Base class of all generator errors."""


class InvalidDesignError(AppgenError):
    """The design graph is missing or structurally incomplete."""


class EmissionError(AppgenError):
    """A design element cannot be rendered into valid source."""


class GeneratorBug(AppgenError):
    """An internal invariant of the generator does not hold."""
