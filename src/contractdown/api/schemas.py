from __future__ import annotations

from pydantic import BaseModel


class HealthResponse(BaseModel):
    status: str = "ok"


class RouteRow(BaseModel):
    name: str
    path: str
    verb: str


class DiscoveryResponse(BaseModel):
    title: str
    version: str
    routes: list[RouteRow]
