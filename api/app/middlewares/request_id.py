import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

# Context variable used by log filter to inject request id
request_id_ctx: ContextVar[str | None] = ContextVar("request_id", default=None)

MAX_REQUEST_ID_LEN = 64


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Ensure every request carries a request id.

    A client supplied ``X-Request-ID`` is reused (truncated to 64 chars),
    otherwise a UUID4 is generated. The id is echoed on the response.
    """

    async def dispatch(self, request: Request, call_next):
        supplied = request.headers.get("X-Request-ID", "").strip()
        req_id = supplied[:MAX_REQUEST_ID_LEN] or str(uuid.uuid4())
        token = request_id_ctx.set(req_id)
        request.state.request_id = req_id
        try:
            response = await call_next(request)
        finally:
            request_id_ctx.reset(token)
        response.headers["X-Request-ID"] = req_id
        return response
