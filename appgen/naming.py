"""Derive Python identifiers from design element names.

Pattern for action context types: {Action}{Resource}Context

Examples:
  action "show",   resource "Bottle"        -> ShowBottleContext
  action "list",   resource "bottle-review" -> ListBottleReviewContext
  action "get_id", resource "account"       -> GetIDAccountContext

Attribute, method and function names are snake_case:
  "reviewID" -> review_id, "NotFound" -> not_found, "class" -> class_
"""

from __future__ import annotations

import keyword
import logging
import re
from dataclasses import dataclass

from .design import Version
from .errors import GeneratorBug

logger = logging.getLogger(__name__)

CONTEXT_SUFFIX = "Context"

# Words rendered upper-case when exported
_ACRONYMS = {
    "api", "ascii", "cpu", "css", "dns", "eof", "guid", "html", "http",
    "https", "id", "ip", "json", "lhs", "qps", "ram", "rhs", "rpc", "sla",
    "smtp", "sql", "ssh", "tcp", "tls", "ttl", "udp", "ui", "uid", "uuid",
    "uri", "url", "utf8", "vm", "xml", "xsrf", "xss",
}


def _camel_to_snake(name: str) -> str:
    """Convert camelCase or PascalCase to snake_case."""
    s1 = re.sub(r"([A-Z]+)([A-Z][a-z])", r"\1_\2", name)
    return re.sub(r"([a-z\d])([A-Z])", r"\1_\2", s1).lower()


def _split_words(name: str) -> list[str]:
    """Split a design name on separators and camel-case boundaries."""
    words: list[str] = []
    for chunk in re.split(r"[^A-Za-z0-9]+", name):
        if chunk:
            words.extend(w for w in _camel_to_snake(chunk).split("_") if w)
    return words


def goify(name: str, first_upper: bool = True) -> str:
    """Return a CamelCase identifier for name, acronyms upper-cased."""
    parts = []
    for i, word in enumerate(_split_words(name)):
        if i == 0 and not first_upper:
            parts.append(word)
        elif word in _ACRONYMS:
            parts.append(word.upper())
        else:
            parts.append(word.capitalize())
    ident = "".join(parts) or "_"
    if ident[0].isdigit():
        ident = "_" + ident
    return ident


def snake_case(name: str) -> str:
    """Return a snake_case identifier for name."""
    ident = "_".join(_split_words(name)) or "_"
    if ident[0].isdigit():
        ident = "_" + ident
    return ident


def attr_name(name: str, reserved: tuple[str, ...] = ()) -> str:
    """Return a snake_case identifier safe to use as attribute or argument."""
    ident = snake_case(name)
    if keyword.iskeyword(ident) or ident in reserved:
        ident += "_"
    return ident


def context_type_name(action_name: str, resource_name: str) -> str:
    """Build the context type name of an action, e.g. ShowBottleContext."""
    return goify(action_name) + goify(resource_name) + CONTEXT_SUFFIX


def build_context_names(version: Version) -> dict[tuple[str, str], str]:
    """Resolve the context type name of every action of a version.

    Returns a mapping of (resource name, action name) to type name. Distinct
    pairs that sanitize to the same name get a numeric suffix, in traversal
    order, so names stay unique within the version.
    """
    names: dict[tuple[str, str], str] = {}
    taken: set[str] = set()
    for resource in version.resources:
        for action in resource.actions:
            base = context_type_name(action.name, resource.name)
            name = base
            n = 1
            while name in taken:
                n += 1
                name = f"{base[:-len(CONTEXT_SUFFIX)]}{n}{CONTEXT_SUFFIX}"
            if name != base:
                logger.warning(
                    "context name %s of action %r of resource %r is taken, using %s",
                    base, action.name, resource.name, name,
                )
            taken.add(name)
            names[(resource.name, action.name)] = name
    return names


def context_name(names: dict[tuple[str, str], str], resource_name: str, action_name: str) -> str:
    """Look up a resolved context type name."""
    try:
        return names[(resource_name, action_name)]
    except KeyError:
        raise GeneratorBug(
            f"no context name resolved for action {action_name!r} of resource {resource_name!r}"
        ) from None


@dataclass(frozen=True)
class ResourceNames:
    """Identifiers generated for a resource: controller class, functions, constants."""

    type_name: str
    snake: str

    @property
    def const(self) -> str:
        return self.snake.upper()


def build_resource_names(version: Version) -> dict[str, ResourceNames]:
    """Resolve the identifiers derived from every resource name of a version.

    Distinct resource names that sanitize alike ("bottle-review" and
    "BottleReview") get a numeric suffix in traversal order, the same way
    context names do.
    """
    names: dict[str, ResourceNames] = {}
    taken_types: set[str] = set()
    taken_snakes: set[str] = set()
    for resource in version.resources:
        if resource.name in names:
            continue
        base = goify(resource.name)
        base_snake = snake_case(resource.name)
        type_name, snake = base, base_snake
        n = 1
        while type_name in taken_types or snake in taken_snakes:
            n += 1
            type_name, snake = f"{base}{n}", f"{base_snake}{n}"
        if type_name != base:
            logger.warning(
                "name %s of resource %r is taken, using %s", base, resource.name, type_name,
            )
        taken_types.add(type_name)
        taken_snakes.add(snake)
        names[resource.name] = ResourceNames(type_name=type_name, snake=snake)
    return names


def resource_names(names: dict[str, ResourceNames], resource_name: str) -> ResourceNames:
    """Look up the resolved identifiers of a resource."""
    try:
        return names[resource_name]
    except KeyError:
        raise GeneratorBug(f"no names resolved for resource {resource_name!r}") from None
