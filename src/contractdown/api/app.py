from __future__ import annotations

import importlib
import logging
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Any

from fastapi import APIRouter, FastAPI

from contractdown.api.binder import HandlerBinder
from contractdown.api.registry import DescriptorRegistry, check_against_endpoints, registry_from_endpoints
from contractdown.api.routes.health import router as health_router
from contractdown.api.routes.root import router as root_router
from contractdown.core.extract import load_document

logger = logging.getLogger(__name__)


def load_handlers(target: str) -> Mapping[str, Callable[..., Any]]:
    """Resolve ``package.module:attribute`` to a mapping of endpoint name to handler."""
    module_name, _, attribute = target.partition(":")
    if not module_name or not attribute:
        raise ValueError(f"Handler target must look like 'module:attribute', got '{target}'")
    module = importlib.import_module(module_name)
    try:
        handlers = getattr(module, attribute)
    except AttributeError:
        raise ValueError(f"Module '{module_name}' has no attribute '{attribute}'") from None
    if not isinstance(handlers, Mapping):
        raise ValueError(f"'{target}' must be a mapping of endpoint name to handler")
    return handlers


def create_app(
    document_path: str | Path,
    handlers: Mapping[str, Callable[..., Any]],
    *,
    strict: bool = True,
    registry: DescriptorRegistry | None = None,
) -> FastAPI:
    """Parse the contract document and bind every handler it describes.

    Handlers are paired with endpoints by their mapping key unless a
    ``registry`` loaded from descriptor JSON is given.
    """
    document = load_document(document_path, strict=strict)
    if registry is None:
        registry = registry_from_endpoints(document.endpoints, handlers)
    else:
        check_against_endpoints(registry, document.endpoints)

    app = FastAPI(
        title=str(document.metadata.get("title", "Contract API")),
        description=str(document.metadata.get("description", "")),
        version=str(document.metadata.get("version", "0.1.0")),
    )

    api_router = APIRouter()
    binder = HandlerBinder(api_router, registry, logger=logging.getLogger("contractdown.api.binder"))
    app.state.bound_routes = binder.bind_all(handlers.values())
    logger.info("Bound %d route(s) from %s", len(app.state.bound_routes), document_path)

    app.include_router(root_router, include_in_schema=False)
    app.include_router(health_router, include_in_schema=False)
    app.include_router(api_router)

    return app
