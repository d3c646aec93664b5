"""Service status served on every path other than the API."""

from fastapi import Request
from fastapi.responses import JSONResponse

from ...config_loader import resolve_status_payload


async def service_status(request: Request) -> JSONResponse:
    """GET|* /{any path}"""
    payload = getattr(request.app.state, "status_payload", None)
    if payload is None:
        payload = resolve_status_payload({})
    return JSONResponse(payload)
