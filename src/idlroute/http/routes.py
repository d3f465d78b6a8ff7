"""Install bound routes on a FastAPI router.

Each request's path, query and body parameters are merged into one raw
parameter mapping (query < body < path), the bound route runs in the
threadpool, and per-request failures map to HTTP status codes.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Awaitable, Callable
from typing import Any

from fastapi import APIRouter, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from idlroute.errors import BusinessException, CallError
from idlroute.services.binder import BoundRoute
from idlroute.services.result import ServiceError

logger = logging.getLogger(__name__)

_COLON_PARAM_RE = re.compile(r":(\w+)")


def to_path_template(path: str) -> str:
    """Convert ``/accounts/:id`` to ``/accounts/{id}``."""
    return _COLON_PARAM_RE.sub(r"{\1}", path)


def status_for(exc: CallError) -> int:
    if exc.client_error:
        return 400
    if isinstance(exc, BusinessException):
        return 422
    return 500


def error_response(exc: CallError) -> JSONResponse:
    status = status_for(exc)
    if status >= 500:
        logger.error("%s: %s", exc.code, exc)
    error = ServiceError.from_exception(exc)
    return JSONResponse(status_code=status, content=jsonable_encoder({"error": error}))


def _add(params: dict[str, Any], key: str, value: Any) -> None:
    if key not in params:
        params[key] = value
    elif isinstance(params[key], list):
        params[key].append(value)
    else:
        params[key] = [params[key], value]


async def collect_params(request: Request) -> dict[str, Any]:
    """Merge query, body (JSON object or form) and path parameters.

    Raises:
        ValueError: The body is JSON but not a JSON object.
    """
    params: dict[str, Any] = {}
    for key, value in request.query_params.multi_items():
        _add(params, key, value)

    content_type = request.headers.get("content-type", "")
    if content_type.startswith("application/json"):
        raw = await request.body()
        if raw:
            body = await request.json()
            if not isinstance(body, dict):
                raise ValueError("request body must be a JSON object")
            params.update(body)
    elif content_type.startswith(
        ("application/x-www-form-urlencoded", "multipart/form-data")
    ):
        form = await request.form()
        body_params: dict[str, Any] = {}
        for key, value in form.multi_items():
            _add(body_params, key, value)
        params.update(body_params)

    params.update(request.path_params)
    return params


def _endpoint(route: BoundRoute) -> Callable[[Request], Awaitable[JSONResponse]]:
    async def endpoint(request: Request) -> JSONResponse:
        try:
            params = await collect_params(request)
        except ValueError as exc:
            return JSONResponse(
                status_code=400,
                content={"error": {"code": "INVALID_BODY", "message": str(exc), "detail": {}}},
            )
        try:
            value = await run_in_threadpool(route, params, request=request)
        except CallError as exc:
            return error_response(exc)
        return JSONResponse(content=jsonable_encoder(value))

    endpoint.__name__ = route.method.name
    return endpoint


def install_routes(router: APIRouter, routes: list[BoundRoute]) -> None:
    """Register every bound route on *router*."""
    for route in routes:
        router.add_api_route(
            to_path_template(route.path),
            _endpoint(route),
            methods=[route.verb],
            name=f"{route.service.name}.{route.method.name}",
            summary=route.method.doc.description or None,
            tags=[route.service.name],
        )
        logger.debug("Installed %s %s", route.verb, route.path)
