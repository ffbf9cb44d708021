from __future__ import annotations

from typing import Callable, Iterable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response
from starlette.status import HTTP_204_NO_CONTENT

ALLOW_METHODS = ("GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH")
ALLOW_HEADERS = ("Content-Type", "Authorization", "X-Requested-With")
EXPOSE_HEADERS = ("Content-Type", "Authorization", "X-Request-ID")


class CORSMiddleware(BaseHTTPMiddleware):
    """Open CORS policy: every origin is allowed.

    Any ``OPTIONS`` request is answered here with 204 and never reaches a route.
    """

    def __init__(
        self,
        app: Callable,
        allow_methods: Iterable[str] = ALLOW_METHODS,
        allow_headers: Iterable[str] = ALLOW_HEADERS,
        max_age: int = 3600,
    ) -> None:
        super().__init__(app)
        self.headers = {
            "Access-Control-Allow-Origin": "*",
            "Access-Control-Allow-Methods": ", ".join(allow_methods),
            "Access-Control-Allow-Headers": ", ".join(allow_headers),
            "Access-Control-Expose-Headers": ", ".join(EXPOSE_HEADERS),
        }
        self.max_age = max_age

    async def dispatch(self, request: Request, call_next: Callable) -> Response:  # type: ignore[override]
        if request.method == "OPTIONS":
            response = Response(status_code=HTTP_204_NO_CONTENT)
            response.headers["Access-Control-Max-Age"] = str(self.max_age)
        else:
            response = await call_next(request)
        for key, value in self.headers.items():
            response.headers[key] = value
        return response
