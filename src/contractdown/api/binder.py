"""Bind typed handlers to HTTP routes described by a descriptor registry.

A handler has the shape ``handler(request, url_params, body) -> result`` and
may be sync or async. Its ``url_params`` and ``body`` types (taken from its
annotations unless given explicitly) drive decoding; raising an exception is
how a handler reports a business error.
"""

from __future__ import annotations

import inspect
import json
import logging
import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any

from fastapi import APIRouter, Request
from pydantic import TypeAdapter, ValidationError
from starlette.concurrency import run_in_threadpool
from starlette.responses import JSONResponse, Response

from contractdown.api.envelope import ResultEnvelope
from contractdown.api.registry import Descriptor, DescriptorRegistry, signature_key
from contractdown.core.errors import BindingError
from contractdown.models import Verb

Handler = Callable[..., Any]

SUPPORTED_VERBS: frozenset[str] = frozenset(v.value for v in Verb)
BODY_VERBS: frozenset[str] = frozenset({Verb.POST.value, Verb.PUT.value, Verb.PATCH.value})

_COLON_SEGMENT = re.compile(r":([A-Za-z_][A-Za-z0-9_]*)")

_NULL_LOGGER = logging.Logger("contractdown.binder.null")
_NULL_LOGGER.addHandler(logging.NullHandler())


@dataclass(frozen=True)
class BoundRoute:
    key: str
    name: str
    path: str
    verb: str


def route_path(name: str) -> str:
    """``pets/:pet_id`` and ``pets/{pet_id}`` both become ``/pets/{pet_id}``."""
    return "/" + _COLON_SEGMENT.sub(r"{\1}", name.lstrip("/"))


class _Decoder:
    """Decoder for one declared type; ``None`` annotations decode to ``None``."""

    def __init__(self, annotation: Any) -> None:
        self.is_none = annotation is None or annotation is type(None)
        self.adapter: TypeAdapter[Any] | None = None if self.is_none else TypeAdapter(annotation)

    def decode_json(self, raw: str | bytes) -> Any:
        if self.adapter is None:
            return None
        return self.adapter.validate_json(raw)

    def fresh(self) -> Any:
        """A newly built empty value, or ``None`` when the type has required fields."""
        if self.adapter is None:
            return None
        try:
            return self.adapter.validate_python({})
        except ValidationError:
            return None

    def dump(self, value: Any) -> Any:
        if self.adapter is None or value is None:
            return None
        return self.adapter.dump_python(value, mode="json")


def _annotations(handler: Handler) -> tuple[Any, Any, Any]:
    try:
        signature = inspect.signature(handler, eval_str=True)
    except (NameError, TypeError) as exc:
        raise BindingError(f"Cannot read the signature of {signature_key(handler)}: {exc}") from exc
    params = list(signature.parameters.values())
    if len(params) != 3:
        raise BindingError(
            f"Handler {signature_key(handler)} must take (request, url_params, body); got {len(params)} parameter(s)"
        )

    def resolved(annotation: Any) -> Any:
        return Any if annotation is inspect.Parameter.empty else annotation

    return resolved(params[1].annotation), resolved(params[2].annotation), resolved(signature.return_annotation)


class HandlerBinder:
    """Install one route per handler on ``router`` following ``registry``."""

    def __init__(
        self,
        router: APIRouter,
        registry: DescriptorRegistry,
        logger: logging.Logger | None = None,
    ) -> None:
        self._router = router
        self._registry = registry
        self._logger = logger or _NULL_LOGGER

    def bind(
        self,
        handler: Handler,
        *,
        params_type: Any = None,
        body_type: Any = None,
        result_type: Any = None,
    ) -> BoundRoute | None:
        """Register ``handler`` under its descriptor's path and verb.

        A handler missing from the registry is a programming error and raises
        ``BindingError``. Descriptors naming a verb outside the supported set
        install nothing and return ``None``.
        """
        key = signature_key(handler)
        descriptor = self._registry.lookup(handler)
        if descriptor is None:
            self._logger.critical("no such api for handler: %s", key)
            raise BindingError(f"No descriptor registered for handler {key}")

        verb = descriptor.verb.upper()
        if verb not in SUPPORTED_VERBS:
            self._logger.debug("skipping %s: unsupported verb %s", key, descriptor.verb)
            return None

        hinted_params, hinted_body, hinted_result = _annotations(handler)
        endpoint = self._make_endpoint(
            handler,
            descriptor,
            verb,
            _Decoder(params_type if params_type is not None else hinted_params),
            _Decoder(body_type if body_type is not None else hinted_body),
            _Decoder(result_type if result_type is not None else hinted_result),
        )
        path = route_path(descriptor.name)
        self._router.add_api_route(path, endpoint, methods=[verb], name=descriptor.name)
        self._logger.info("bound %s %s -> %s", verb, path, key)
        return BoundRoute(key=key, name=descriptor.name, path=path, verb=verb)

    def bind_all(self, handlers: Iterable[Handler]) -> list[BoundRoute]:
        routes: list[BoundRoute] = []
        for handler in handlers:
            route = self.bind(handler)
            if route is not None:
                routes.append(route)
        return routes

    def _make_endpoint(
        self,
        handler: Handler,
        descriptor: Descriptor,
        verb: str,
        params: _Decoder,
        body: _Decoder,
        result: _Decoder,
    ) -> Callable[[Request], Any]:
        logger = self._logger
        name = descriptor.name
        carries_body = verb in BODY_VERBS
        is_async = inspect.iscoroutinefunction(handler)

        async def endpoint(request: Request) -> Response:
            try:
                url_params = params.decode_json(json.dumps(dict(request.path_params)))
            except ValidationError as exc:
                logger.warning("[%s] rejected url params: %s", name, exc)
                return Response(status_code=400)

            payload = body.fresh()
            if carries_body:
                raw = await request.body()
                if raw.strip():
                    try:
                        payload = body.decode_json(raw)
                    except ValidationError as exc:
                        logger.warning("[%s] rejected body: %s", name, exc)
                        return Response(status_code=400)

            try:
                if is_async:
                    value = await handler(request, url_params, payload)
                else:
                    value = await run_in_threadpool(handler, request, url_params, payload)
            except Exception as exc:  # noqa: BLE001
                logger.warning("[%s] handler failed: %s", name, exc)
                envelope = ResultEnvelope.wrap(result.dump(result.fresh()), message=str(exc))
            else:
                envelope = ResultEnvelope.wrap(result.dump(value))

            return JSONResponse(status_code=200, content=envelope.model_dump(mode="json"))

        return endpoint
