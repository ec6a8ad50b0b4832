"""JSON-lines protocol messages exchanged with the hosting front end."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Optional

from compass.engine.errors import CompassError


@dataclass
class Request:
    """Incoming request from the front end."""
    id: int
    method: str
    params: dict = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict) -> Request:
        params = data.get("params") or {}
        if not isinstance(params, dict):
            raise ValueError("params must be an object")
        return cls(id=data.get("id", 0), method=data.get("method", ""), params=params)


@dataclass
class Response:
    """Outgoing response. ``error_kind`` names the engine error, if any."""
    id: int
    result: Optional[dict] = None
    error: Optional[str] = None
    error_kind: Optional[str] = None

    @classmethod
    def from_exception(cls, req_id: int, exc: Exception) -> Response:
        kind = exc.kind if isinstance(exc, CompassError) else type(exc).__name__
        return cls(id=req_id, error=str(exc), error_kind=kind)

    def to_json_line(self) -> str:
        d: dict = {"id": self.id}
        if self.error is not None:
            d["error"] = {"message": self.error, "kind": self.error_kind}
        else:
            d["result"] = self.result
        return json.dumps(d) + "\n"


@dataclass
class Notification:
    """Server-initiated message (no id, no response expected)."""
    method: str
    params: dict = field(default_factory=dict)

    def to_json_line(self) -> str:
        return json.dumps({"method": self.method, "params": self.params}) + "\n"
