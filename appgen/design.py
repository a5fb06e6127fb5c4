"""In-memory design graph.

The graph is built once (see loader.py) and only read by the generator.
Nodes form a closed set: API -> Version -> Resource -> Action -> Route, plus
the API level MediaType and UserType definitions.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Callable, Optional

# Matches a wildcard capture in a route path: /:id or /*filepath
WILDCARD_RE = re.compile(r"/(?::|\*)([a-zA-Z0-9_]+)")

PRIMITIVE_SHAPES = ("string", "integer", "number", "boolean", "any")
SHAPES = PRIMITIVE_SHAPES + ("object", "array")

PARAM_LOCATIONS = ("path", "query", "header")


def _join_paths(*parts: str) -> str:
    path = "/".join(p.strip("/") for p in parts if p and p.strip("/"))
    return "/" + path


@dataclass
class Attribute:
    name: str
    type: str = "string"
    required: bool = False
    description: str = ""


@dataclass
class HeaderSpec:
    name: str
    required: bool = False
    description: str = ""


@dataclass
class ResponseSpec:
    name: str
    status: int
    media_type: Optional[str] = None
    description: str = ""


@dataclass
class Param:
    name: str
    type: str = "string"
    required: bool = False
    location: str = "query"


@dataclass
class Route:
    method: str
    path: str
    resource: Optional[Resource] = field(default=None, repr=False, compare=False)

    def full_path(self) -> str:
        """Route path prefixed with the API and resource base paths."""
        base = ""
        res_base = ""
        if self.resource is not None:
            res_base = self.resource.base_path
            if self.resource.api is not None:
                base = self.resource.api.base_path
        if not (base or res_base):
            return self.path or "/"
        return _join_paths(base, res_base, self.path)

    def params(self) -> list[str]:
        """Names of the wildcard captures, left to right."""
        return WILDCARD_RE.findall(self.full_path())


@dataclass
class Action:
    name: str
    description: str = ""
    payload: Optional[str] = None
    params: list[Param] = field(default_factory=list)
    headers: dict[str, HeaderSpec] = field(default_factory=dict)
    responses: dict[str, ResponseSpec] = field(default_factory=dict)
    routes: list[Route] = field(default_factory=list)
    parent: Optional[Resource] = field(default=None, repr=False, compare=False)

    def all_params(self) -> list[Param]:
        """Path params in route capture order, then query, then header params."""
        declared = {p.name: p for p in self.params}
        result: list[Param] = []
        seen: set[str] = set()
        for route in self.routes:
            for name in route.params():
                if name in seen:
                    continue
                seen.add(name)
                param = declared.get(name)
                if param is None:
                    param = Param(name=name, type="string", required=True, location="path")
                elif param.location != "path":
                    param = Param(name=param.name, type=param.type, required=True, location="path")
                result.append(param)
        for location in ("query", "header"):
            for param in self.params:
                if param.name not in seen and param.location == location:
                    seen.add(param.name)
                    result.append(param)
        return result


@dataclass
class Resource:
    name: str
    description: str = ""
    base_path: str = ""
    media_type: Optional[str] = None
    canonical_action_name: str = "show"
    headers: dict[str, HeaderSpec] = field(default_factory=dict)
    responses: dict[str, ResponseSpec] = field(default_factory=dict)
    actions: list[Action] = field(default_factory=list)
    api: Optional[API] = field(default=None, repr=False, compare=False)

    def iterate_actions(self, fn: Callable[[Action], None]) -> None:
        for action in self.actions:
            fn(action)

    def canonical_action(self) -> Optional[Action]:
        for action in self.actions:
            if action.name == self.canonical_action_name:
                return action
        return None

    def uri_template(self) -> str:
        """Full path of the canonical action first route, empty if none."""
        action = self.canonical_action()
        if action is None or not action.routes:
            return ""
        return action.routes[0].full_path()


@dataclass
class Version:
    version: str = ""
    resources: list[Resource] = field(default_factory=list)
    api: Optional[API] = field(default=None, repr=False, compare=False)

    def iterate_resources(self, fn: Callable[[Resource], None]) -> None:
        for resource in self.resources:
            fn(resource)

    def context(self) -> str:
        name = self.api.name if self.api is not None else "API"
        if self.version:
            return f"{name} version {self.version}"
        return name


@dataclass
class UserType:
    type_name: str
    shape: str = "object"
    attributes: list[Attribute] = field(default_factory=list)
    element: Optional[str] = None
    description: str = ""

    def is_object(self) -> bool:
        return self.shape == "object"

    def is_array(self) -> bool:
        return self.shape == "array"


@dataclass
class MediaType(UserType):
    identifier: str = ""


@dataclass
class API:
    name: str
    description: str = ""
    base_path: str = ""
    versions: list[Version] = field(default_factory=list)
    media_types: list[MediaType] = field(default_factory=list)
    user_types: list[UserType] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.link()

    def link(self) -> None:
        """Set the parent back-references of every node."""
        for version in self.versions:
            version.api = self
            for resource in version.resources:
                resource.api = self
                for action in resource.actions:
                    action.parent = resource
                    for route in action.routes:
                        route.resource = resource

    def context(self) -> str:
        return self.name

    def iterate_versions(self, fn: Callable[[Version], None]) -> None:
        for version in self.versions:
            fn(version)

    def iterate_media_types(self, fn: Callable[[MediaType], None]) -> None:
        for mt in sorted(self.media_types, key=lambda m: (m.identifier, m.type_name)):
            fn(mt)

    def iterate_user_types(self, fn: Callable[[UserType], None]) -> None:
        for ut in sorted(self.user_types, key=lambda u: u.type_name):
            fn(ut)

    def media_type_with_identifier(self, identifier: Optional[str]) -> Optional[MediaType]:
        if not identifier:
            return None
        for mt in self.media_types:
            if mt.identifier == identifier:
                return mt
        return None

    def user_type(self, name: str) -> Optional[UserType]:
        for ut in self.user_types:
            if ut.type_name == name:
                return ut
        return None

    def resolve_type(self, name: str) -> Optional[UserType]:
        """Find a user type or media type by type name (or media type identifier)."""
        ut = self.user_type(name)
        if ut is not None:
            return ut
        for mt in self.media_types:
            if mt.type_name == name:
                return mt
        return self.media_type_with_identifier(name)
