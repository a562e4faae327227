"""
Admission pipeline: an ordered chain of request checks.

A stage's check() either returns, letting the request continue to the next
stage, or raises Rejection, which ends the request with that status and JSON
body. Raising is the only way to terminate, so a stage can never both pass
the request on and answer it. Once every stage has passed, on_admitted() runs
on each of them.
"""

import json
from typing import Any, Dict, List, Optional

from fastapi import HTTPException, Request

_MISSING = object()


class Rejection(HTTPException):
    """Ends the admission chain. The body is returned verbatim as JSON."""

    def __init__(self, status_code: int, body: Dict[str, Any], headers: Optional[Dict[str, str]] = None):
        super().__init__(status_code=status_code, detail=body, headers=headers)

    @property
    def body(self) -> Dict[str, Any]:
        return self.detail


class Stage:
    """Base class for a single admission check."""

    name = "stage"

    async def check(self, request: Request) -> None:
        raise NotImplementedError

    def on_admitted(self, request: Request) -> None:
        pass

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"


class AdmissionPipeline:
    """Runs stages in order and stops at the first rejection."""

    def __init__(self, name: str, stages: List[Stage]):
        self.name = name
        self.stages = list(stages)

    def extend(self, name: str, *stages: Stage) -> "AdmissionPipeline":
        """A new pipeline that runs this one's stages, then `stages`."""
        return AdmissionPipeline(name, self.stages + list(stages))

    @property
    def stage_names(self) -> List[str]:
        return [stage.name for stage in self.stages]

    async def admit(self, request: Request) -> None:
        for stage in self.stages:
            await stage.check(request)
        for stage in self.stages:
            stage.on_admitted(request)


def get_client_ip(request: Request) -> str:
    """Client address for security bookkeeping, cached on the request."""
    cached = getattr(request.state, "client_ip", _MISSING)
    if cached is not _MISSING:
        return cached

    client_ip = None
    settings = getattr(request.app.state, "settings", None)
    if settings is not None and settings.TRUST_PROXY_HEADERS:
        # Check for forwarded IP (from proxy/load balancer)
        forwarded = request.headers.get("X-Forwarded-For")
        if forwarded:
            # Take the first IP in the chain
            client_ip = forwarded.split(",")[0].strip() or None
    if client_ip is None:
        client_ip = request.client.host if request.client else "unknown"

    request.state.client_ip = client_ip
    return client_ip


async def read_json_body(request: Request) -> Any:
    """
    Parsed JSON body, cached on the request.

    Bodies that are empty or not declared as JSON read as {}.
    """
    cached = getattr(request.state, "json_body", _MISSING)
    if cached is not _MISSING:
        return cached

    data: Any = {}
    raw = await request.body()
    if raw and "json" in request.headers.get("content-type", "").lower():
        try:
            data = json.loads(raw)
        except ValueError:
            raise Rejection(400, {
                "error": "Invalid input",
                "message": "Request body must be valid JSON.",
            })

    request.state.json_body = data
    return data
