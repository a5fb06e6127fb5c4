"""Load an API design from a JSON document.

The document mirrors the design graph: versions own resources, resources own
actions, actions own routes. See tests/conftest.py for a complete example.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from .design import (
    API,
    Action,
    Attribute,
    HeaderSpec,
    MediaType,
    Param,
    ResponseSpec,
    Resource,
    Route,
    UserType,
    Version,
)
from .errors import InvalidDesignError


def load_design(path: Path) -> API:
    """Load and build the design graph from disk."""
    with open(path) as f:
        return build_design(json.load(f))


def _headers(doc: dict[str, Any]) -> dict[str, HeaderSpec]:
    return {
        name: HeaderSpec(
            name=name,
            required=spec.get("required", False),
            description=spec.get("description", ""),
        )
        for name, spec in doc.get("headers", {}).items()
    }


def _status(name: str, value: Any) -> int:
    if isinstance(value, bool):
        raise InvalidDesignError(f"response {name!r} has invalid status {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise InvalidDesignError(f"response {name!r} has invalid status {value!r}") from None


def _responses(doc: dict[str, Any]) -> dict[str, ResponseSpec]:
    return {
        name: ResponseSpec(
            name=name,
            status=_status(name, spec["status"]),
            media_type=spec.get("media_type"),
            description=spec.get("description", ""),
        )
        for name, spec in doc.get("responses", {}).items()
    }


def _params(doc: dict[str, Any], captures: set[str]) -> list[Param]:
    params = []
    for name, spec in doc.get("params", {}).items():
        location = spec.get("location") or ("path" if name in captures else "query")
        params.append(Param(
            name=name,
            type=spec.get("type", "string"),
            required=spec.get("required", False),
            location=location,
        ))
    return params


def _action(doc: dict[str, Any]) -> Action:
    routes = [Route(method=r["method"].upper(), path=r["path"]) for r in doc.get("routes", [])]
    captures = {name for r in routes for name in r.params()}
    return Action(
        name=doc["name"],
        description=doc.get("description", ""),
        payload=doc.get("payload"),
        params=_params(doc, captures),
        headers=_headers(doc),
        responses=_responses(doc),
        routes=routes,
    )


def _resource(doc: dict[str, Any]) -> Resource:
    return Resource(
        name=doc["name"],
        description=doc.get("description", ""),
        base_path=doc.get("base_path", ""),
        media_type=doc.get("media_type"),
        canonical_action_name=doc.get("canonical_action", "show"),
        headers=_headers(doc),
        responses=_responses(doc),
        actions=[_action(a) for a in doc.get("actions", [])],
    )


def _attributes(doc: dict[str, Any]) -> list[Attribute]:
    return [
        Attribute(
            name=name,
            type=spec.get("type", "string"),
            required=spec.get("required", False),
            description=spec.get("description", ""),
        )
        for name, spec in doc.get("attributes", {}).items()
    ]


def _user_type(doc: dict[str, Any]) -> UserType:
    return UserType(
        type_name=doc["type_name"],
        shape=doc.get("shape", "object"),
        attributes=_attributes(doc),
        element=doc.get("element"),
        description=doc.get("description", ""),
    )


def _media_type(doc: dict[str, Any]) -> MediaType:
    return MediaType(
        type_name=doc["type_name"],
        identifier=doc["identifier"],
        shape=doc.get("shape", "object"),
        attributes=_attributes(doc),
        element=doc.get("element"),
        description=doc.get("description", ""),
    )


def build_design(doc: dict[str, Any]) -> API:
    """Build the design graph from a decoded JSON document."""
    try:
        return API(
            name=doc["name"],
            description=doc.get("description", ""),
            base_path=doc.get("base_path", ""),
            versions=[
                Version(
                    version=v.get("version", ""),
                    resources=[_resource(r) for r in v.get("resources", [])],
                )
                for v in doc.get("versions", [])
            ],
            media_types=[_media_type(m) for m in doc.get("media_types", [])],
            user_types=[_user_type(u) for u in doc.get("user_types", [])],
        )
    except KeyError as e:
        raise InvalidDesignError(f"design document is missing required key {e}") from e
    except (AttributeError, TypeError) as e:
        raise InvalidDesignError(f"design document is malformed: {e}") from e
