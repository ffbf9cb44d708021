from __future__ import annotations

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.status import HTTP_413_REQUEST_ENTITY_TOO_LARGE

from ..utils.responses import err


class BodyLimitMiddleware(BaseHTTPMiddleware):
    """Reject request bodies exceeding ``max_mb`` megabytes.

    Inline base64 images travel in JSON bodies, so the ceiling sits well above
    the 5 MB image limit.
    """

    def __init__(self, app, max_mb: int = 10) -> None:
        super().__init__(app)
        self.max_bytes = max_mb * 1024 * 1024

    async def dispatch(self, request: Request, call_next):
        declared = request.headers.get("content-length")
        if declared and declared.isdigit() and int(declared) > self.max_bytes:
            return _too_large()
        if request.method in {"POST", "PUT", "PATCH"}:
            body = await request.body()
            if len(body) > self.max_bytes:
                return _too_large()

            async def receive() -> dict:
                return {"type": "http.request", "body": body, "more_body": False}

            request._receive = receive
        return await call_next(request)


def _too_large() -> JSONResponse:
    return JSONResponse(
        err("PAYLOAD_TOO_LARGE", "Request body too large"),
        status_code=HTTP_413_REQUEST_ENTITY_TOO_LARGE,
    )
