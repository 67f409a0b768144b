from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict


class ResultEnvelope(BaseModel):
    """Response body of every bound route: ``message`` plus the result's fields.

    ``message`` is empty on success and carries the handler's error otherwise.
    Results that do not serialize to an object are nested under ``result``.
    """

    model_config = ConfigDict(extra="allow")

    message: str = ""

    @classmethod
    def wrap(cls, payload: Any, message: str = "") -> ResultEnvelope:
        if payload is None:
            fields: dict[str, Any] = {}
        elif isinstance(payload, Mapping):
            fields = {str(k): v for k, v in payload.items()}
        else:
            fields = {"result": payload}
        fields["message"] = message
        return cls(**fields)
