"""Runtime support imported by generated application code.

Generated contexts wrap a RequestContext, generated controllers mount their
actions on a Router obtained from a version mux. HTTP requests and responses
are httpx objects so the generated application can be driven in-process.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Callable, NamedTuple, Optional, Union

import httpx

logger = logging.getLogger(__name__)

# Request header, then querystring parameter, carrying the targeted API version
VERSION_HEADER = "X-API-Version"
VERSION_PARAM = "api_version"

_WILDCARD_RE = re.compile(r"/(:|\*)([a-zA-Z0-9_]+)")


class Param(NamedTuple):
    """A captured path parameter, e.g. Param("bottleID", "42")."""

    key: str
    value: str


Params = list[Param]

HandleFunc = Callable[[httpx.Request, Params], httpx.Response]


class BadRequestError(Exception):
    """The request parameters or payload are invalid."""

    def __init__(self, message: str, param: Optional[str] = None, value: Any = None):
        super().__init__(message)
        self.param = param
        self.value = value

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"error": "bad_request", "message": str(self)}
        if self.param is not None:
            body["param"] = self.param
        if self.value is not None:
            body["value"] = self.value
        return body


class ResponseAlreadyWrittenError(RuntimeError):
    """A response was already written for the request."""


class VersionError(Exception):
    """No router matches the API version of a request."""


class RequestContext:
    """Access to the request state and helpers to write the response.

    The response is recorded by respond() and its wrappers, which may only be
    called once per request. response() builds the resulting httpx.Response.
    """

    def __init__(
        self,
        request: httpx.Request,
        params: Optional[Params] = None,
        payload: Any = None,
    ) -> None:
        self.request = request
        self.params: Params = list(params or [])
        self.header = httpx.Headers()
        self._payload = payload
        self._status: Optional[int] = None
        self._body = b""

    def get(self, name: str) -> str:
        """Return the path param or querystring value with the given name."""
        for p in self.params:
            if p.key == name:
                return p.value
        return self.request.url.params.get(name, "")

    def get_many(self, name: str) -> tuple[list[str], bool]:
        """Return all path param and querystring values with the given name."""
        values = [p.value for p in self.params if p.key == name]
        values.extend(self.request.url.params.get_list(name))
        return values, bool(values)

    def payload(self) -> Any:
        """Deserialized request body, None if the body is empty."""
        return self._payload

    def respond(self, code: int, body: bytes) -> None:
        if self._status is not None:
            raise ResponseAlreadyWrittenError(
                f"response already written with status {self._status}"
            )
        self._status = code
        self._body = body

    def json(self, code: int, body: Any) -> None:
        self.header["Content-Type"] = "application/json"
        self.respond(code, json.dumps(body).encode())

    def bad_request(self, err: BadRequestError) -> None:
        self.json(400, err.to_dict())

    def bug(self, format: str, *args: Any) -> None:
        """Send a 500 response with a printf style formatted body."""
        body = format % args if args else format
        self.respond(500, body.encode())

    def response_written(self) -> bool:
        return self._status is not None

    def response_status(self) -> int:
        return self._status or 0

    def response_length(self) -> int:
        return len(self._body)

    def response(self) -> httpx.Response:
        return httpx.Response(
            self._status or 200,
            headers=self.header,
            content=self._body,
            request=self.request,
        )


def _parse_bool(raw: str) -> bool:
    lowered = raw.lower()
    if lowered in ("true", "1"):
        return True
    if lowered in ("false", "0"):
        return False
    raise ValueError(raw)


_CONVERTERS: dict[str, Callable[[str], Any]] = {
    "string": str,
    "any": str,
    "integer": int,
    "number": float,
    "boolean": _parse_bool,
    "object": json.loads,
}


def parse_param(
    ctx: RequestContext,
    name: str,
    kind: str,
    required: bool = False,
    location: str = "query",
) -> Any:
    """Read and convert a request parameter, raise BadRequestError if invalid."""
    if location == "header":
        raw = ctx.request.headers.get(name, "")
        values = [v.strip() for v in raw.split(",")] if raw else []
    elif kind == "array":
        values, _ = ctx.get_many(name)
        raw = ",".join(values)
    else:
        raw = ctx.get(name)
        values = [raw] if raw else []

    if not raw:
        if required:
            raise BadRequestError(f"missing required parameter {name!r}", name)
        return None
    if kind == "array":
        return values
    try:
        return _CONVERTERS[kind](raw)
    except ValueError:
        raise BadRequestError(
            f"invalid value {raw!r} for parameter {name!r}, must be {kind}", name, raw
        ) from None


def require_header(ctx: RequestContext, name: str) -> str:
    value = ctx.request.headers.get(name)
    if not value:
        raise BadRequestError(f"missing required header {name!r}", name)
    return value


def fill_template(template: str, *args: Any) -> str:
    """Substitute each %v placeholder of template with the next argument."""
    parts = template.split("%v")
    if len(parts) - 1 != len(args):
        raise ValueError(
            f"template {template!r} expects {len(parts) - 1} values, got {len(args)}"
        )
    out = [parts[0]]
    for arg, part in zip(args, parts[1:]):
        out.append(str(arg))
        out.append(part)
    return "".join(out)


def _compile_path(path: str) -> tuple[re.Pattern[str], list[str]]:
    keys: list[str] = []
    parts: list[str] = []
    pos = 0
    for m in _WILDCARD_RE.finditer(path):
        parts.append(re.escape(path[pos:m.start()]))
        parts.append("/(.*)" if m.group(1) == "*" else "/([^/]+)")
        keys.append(m.group(2))
        pos = m.end()
    parts.append(re.escape(path[pos:]))
    return re.compile("".join(parts)), keys


class Router:
    """Maps (method, path) pairs to handlers, paths may contain :name or *name."""

    def __init__(self) -> None:
        self._routes: list[tuple[str, re.Pattern[str], list[str], HandleFunc]] = []

    def handle(self, method: str, path: str, handle: HandleFunc) -> None:
        pattern, keys = _compile_path(path)
        self._routes.append((method.upper(), pattern, keys, handle))

    def lookup(self, method: str, path: str) -> tuple[Optional[HandleFunc], Params, bool]:
        for route_method, pattern, keys, handle in self._routes:
            if route_method != method.upper():
                continue
            match = pattern.fullmatch(path)
            if match:
                return handle, [Param(k, v) for k, v in zip(keys, match.groups())], True
        return None, [], False

    def serve(self, request: httpx.Request) -> httpx.Response:
        handle, params, found = self.lookup(request.method, request.url.path)
        if not found:
            return httpx.Response(404, request=request)
        return handle(request, params)


def handler(context_class: Callable[[RequestContext], Any], action: Callable[[Any], Any]) -> HandleFunc:
    """Adapt a controller action to a router handle.

    Builds the action context from the request, answers 400 when the request
    is invalid and 500 when the action fails without responding.
    """
    def handle(request: httpx.Request, params: Params) -> httpx.Response:
        payload = None
        if request.content:
            try:
                payload = json.loads(request.content)
            except ValueError as err:
                ctx = RequestContext(request, params)
                ctx.bad_request(BadRequestError(f"invalid JSON payload: {err}"))
                return ctx.response()
        ctx = RequestContext(request, params, payload)
        try:
            action_ctx = context_class(ctx)
        except BadRequestError as err:
            ctx.bad_request(err)
            return ctx.response()
        try:
            action(action_ctx)
        except Exception as err:
            logger.exception("%s %s failed", request.method, request.url.path)
            if not ctx.response_written():
                ctx.bug("internal error: %s", err)
        return ctx.response()

    return handle


class DefaultVersionMux:
    """Selects the router of a request from its X-API-Version header or api_version param."""

    def __init__(self) -> None:
        self.default_mux: Optional[Router] = None
        self.muxes: dict[str, Router] = {}

    def set_default_mux(self, mux: Router) -> None:
        self.default_mux = mux

    def set_mux(self, version: str, mux: Router) -> None:
        self.muxes[version] = mux

    def router(self, version: str) -> Router:
        """Router registered for version, created on first use; "" is the default router."""
        if not version:
            if self.default_mux is None:
                self.default_mux = Router()
            return self.default_mux
        if version not in self.muxes:
            self.muxes[version] = Router()
        return self.muxes[version]

    def get_request_mux(self, request: httpx.Request) -> Router:
        version = request.headers.get(VERSION_HEADER) or request.url.params.get(VERSION_PARAM, "")
        if not version:
            if self.default_mux is None:
                raise VersionError("no version defined in request and no default mux")
            return self.default_mux
        try:
            return self.muxes[version]
        except KeyError:
            raise VersionError(f'no mux registered with version "{version}"') from None

    def serve(self, request: httpx.Request) -> httpx.Response:
        try:
            mux = self.get_request_mux(request)
        except VersionError as err:
            return httpx.Response(404, text=str(err), request=request)
        return mux.serve(request)


class NoVersionMux:
    """Version mux of APIs that declare no version: a single router."""

    def __init__(self) -> None:
        self.mux: Optional[Router] = None

    def set_default_mux(self, mux: Router) -> None:
        self.mux = mux

    def set_mux(self, version: str, mux: Router) -> None:
        raise VersionError("trying to register a version mux with a no version mux")

    def router(self, version: str) -> Router:
        if version:
            raise VersionError(f'cannot mount version "{version}" on a no version mux')
        if self.mux is None:
            self.mux = Router()
        return self.mux

    def get_request_mux(self, request: httpx.Request) -> Router:
        if self.mux is None:
            raise VersionError("no mux registered")
        return self.mux

    def serve(self, request: httpx.Request) -> httpx.Response:
        try:
            mux = self.get_request_mux(request)
        except VersionError as err:
            return httpx.Response(404, text=str(err), request=request)
        return mux.serve(request)


VersionMux = Union[DefaultVersionMux, NoVersionMux]
