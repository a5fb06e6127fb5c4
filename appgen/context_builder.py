"""Build template records from the design graph.

One builder per output artifact: action contexts, controllers, resource
hrefs and type representations. Records are flat dataclasses rendered by the
writers; templates fail on any field a record does not define.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from .design import (
    API,
    SHAPES,
    WILDCARD_RE,
    Action,
    HeaderSpec,
    MediaType,
    Resource,
    Route,
    UserType,
    Version,
)
from .errors import EmissionError
from .merge import merge
from .naming import ResourceNames, attr_name, context_name, goify, resource_names

# Identifier used for resources whose media type cannot be resolved
FALLBACK_IDENTIFIER = "text/plain"

# Placeholder substituted for each wildcard of a canonical template
CANONICAL_PLACEHOLDER = "%v"

# Attributes set by the generated context constructor
_CONTEXT_RESERVED = ("context", "payload")

_PY_TYPES: dict[str, str] = {
    "string": "str",
    "integer": "int",
    "number": "float",
    "boolean": "bool",
    "any": "Any",
    "object": "dict",
    "array": "list",
}


@dataclass
class RouteData:
    method: str
    path: str


@dataclass
class ParamData:
    name: str
    attr: str
    kind: str
    required: bool
    location: str


@dataclass
class ResponseData:
    name: str
    method: str
    status: int
    media_type: Optional[str]
    has_body: bool
    description: str = ""


@dataclass
class ContextData:
    name: str
    resource_name: str
    action_name: str
    description: str
    payload: Optional[str]
    params: list[ParamData]
    headers: list[HeaderSpec]
    responses: list[ResponseData]
    routes: list[RouteData]
    api_name: str
    version: str


@dataclass
class ControllerAction:
    name: str
    method: str
    context: str
    routes: list[RouteData]


@dataclass
class ControllerData:
    resource: str
    snake: str
    version: str
    actions: list[ControllerAction] = field(default_factory=list)


@dataclass
class ResourceData:
    name: str
    snake: str
    const: str
    identifier: str
    description: str
    canonical_template: str
    canonical_params: list[str]
    args: list[str]


@dataclass
class FieldData:
    name: str
    attr: str
    annotation: str
    description: str = ""


@dataclass
class TypeData:
    name: str
    shape: str
    identifier: Optional[str]
    description: str
    fields: list[FieldData]
    element: Optional[str]
    alias: Optional[str]


def _unique(ident: str, taken: set[str]) -> str:
    """Append underscores until ident is not taken, then take it."""
    while ident in taken:
        ident += "_"
    taken.add(ident)
    return ident


def _routes(action: Action) -> list[RouteData]:
    return [RouteData(method=r.method, path=r.full_path()) for r in action.routes]


def _resolve_shape(api: API, type_ref: str) -> str:
    """Return the shape tag a type reference denotes."""
    if type_ref in SHAPES:
        return type_ref
    t = api.resolve_type(type_ref)
    if t is None:
        raise EmissionError(f"unknown type {type_ref!r}")
    if t.shape not in SHAPES:
        raise EmissionError(f"type {t.type_name!r} has unknown shape {t.shape!r}")
    return t.shape


def python_type(api: API, type_ref: str) -> str:
    """Python annotation for a shape tag or a type name."""
    return _PY_TYPES[_resolve_shape(api, type_ref)]


def build_context_data(
    api: API,
    version: Version,
    resource: Resource,
    action: Action,
    names: dict[tuple[str, str], str],
) -> ContextData:
    """Build the record of an action context."""
    if action.payload and api.resolve_type(action.payload) is None:
        raise EmissionError(
            f"payload type {action.payload!r} of action {action.name!r} of resource"
            f" {resource.name!r} is not defined"
        )
    responses: list[ResponseData] = []
    taken = set(_CONTEXT_RESERVED)
    for r in merge(resource.responses, action.responses).values():
        method = _unique(attr_name(r.name), taken)
        responses.append(ResponseData(
            name=r.name,
            method=method,
            status=r.status,
            media_type=r.media_type,
            has_body=r.media_type is not None,
            description=r.description,
        ))
    params = [
        ParamData(
            name=p.name,
            attr=_unique(attr_name(p.name), taken),
            kind=_resolve_shape(api, p.type),
            required=p.required,
            location=p.location,
        )
        for p in action.all_params()
    ]
    return ContextData(
        name=context_name(names, resource.name, action.name),
        resource_name=resource.name,
        action_name=action.name,
        description=action.description,
        payload=action.payload,
        params=params,
        headers=list(merge(resource.headers, action.headers).values()),
        responses=responses,
        routes=_routes(action),
        api_name=api.name,
        version=version.version,
    )


def build_controllers_data(
    version: Version,
    names: dict[tuple[str, str], str],
    rnames: dict[str, ResourceNames],
) -> list[ControllerData]:
    """Build one controller record per resource that has actions."""
    controllers: list[ControllerData] = []

    def add_resource(resource: Resource) -> None:
        rn = resource_names(rnames, resource.name)
        data = ControllerData(
            resource=rn.type_name,
            snake=rn.snake,
            version=version.version,
        )

        def add_action(action: Action) -> None:
            data.actions.append(ControllerAction(
                name=goify(action.name),
                method=attr_name(action.name),
                context=context_name(names, resource.name, action.name),
                routes=_routes(action),
            ))

        resource.iterate_actions(add_action)
        if data.actions:
            controllers.append(data)

    version.iterate_resources(add_resource)
    return controllers


def canonical_template(route: Route) -> str:
    """Replace each wildcard capture of the route full path with a placeholder."""
    return WILDCARD_RE.sub("/" + CANONICAL_PLACEHOLDER, route.full_path())


def build_resource_data(
    api: API,
    resource: Resource,
    rnames: dict[str, ResourceNames],
) -> ResourceData:
    """Build the href record of a resource."""
    rn = resource_names(rnames, resource.name)
    mt = api.media_type_with_identifier(resource.media_type)
    identifier = mt.identifier if mt is not None else FALLBACK_IDENTIFIER

    template = ""
    params: list[str] = []
    action = resource.canonical_action()
    if action is not None and action.routes:
        route = action.routes[0]
        template = canonical_template(route)
        params = route.params()

    taken: set[str] = set()
    args = [_unique(attr_name(p), taken) for p in params]

    return ResourceData(
        name=rn.type_name,
        snake=rn.snake,
        const=rn.const,
        identifier=identifier,
        description=resource.description,
        canonical_template=template,
        canonical_params=params,
        args=args,
    )


def _type_data(api: API, t: UserType, identifier: Optional[str]) -> TypeData:
    fields: list[FieldData] = []
    element = None
    alias = None
    if t.is_object():
        taken: set[str] = set()
        for a in t.attributes:
            fields.append(FieldData(
                name=a.name,
                attr=_unique(attr_name(a.name), taken),
                annotation=f"Optional[{python_type(api, a.type)}]",
                description=a.description,
            ))
    elif t.is_array():
        if not t.element:
            raise EmissionError(f"array type {t.type_name!r} has no element type")
        _resolve_shape(api, t.element)
        element = t.element
    else:
        alias = python_type(api, t.shape)
    return TypeData(
        name=goify(t.type_name),
        shape=t.shape,
        identifier=identifier,
        description=t.description,
        fields=fields,
        element=element,
        alias=alias,
    )


def build_media_type_data(api: API, mt: MediaType) -> Optional[TypeData]:
    """Build the record of a media type, None for primitive shapes."""
    if not (mt.is_object() or mt.is_array()):
        return None
    return _type_data(api, mt, mt.identifier)


def build_user_type_data(api: API, ut: UserType) -> TypeData:
    """Build the record of a user type."""
    return _type_data(api, ut, None)
