from __future__ import annotations

from fastapi import APIRouter, Request

from contractdown.api.schemas import DiscoveryResponse, RouteRow

router = APIRouter()


@router.get("/", response_model=DiscoveryResponse)
async def root(request: Request) -> DiscoveryResponse:
    """Root discovery endpoint: lists the routes bound from the contract document."""
    bound = getattr(request.app.state, "bound_routes", [])
    return DiscoveryResponse(
        title=request.app.title,
        version=request.app.version,
        routes=[RouteRow(name=r.name, path=r.path, verb=r.verb) for r in bound],
    )
