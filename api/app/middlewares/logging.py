"""Structured access log for every request."""

from __future__ import annotations

import json
import logging
import os
import random
import time
import uuid
from datetime import datetime, timezone
from typing import Any

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse

from ..utils.responses import err
from .request_id import request_id_ctx

# Body and query keys whose values never reach the logs.
SECRET_KEYS = {"password", "token", "access_token", "authorization", "image_url"}
LOG_SAMPLE_2XX = float(os.getenv("LOG_SAMPLE_2XX", "0.1"))

logger = logging.getLogger("api")


def _redact(obj: Any) -> Any:
    if isinstance(obj, dict):
        return {
            k: ("***" if k.lower() in SECRET_KEYS else _redact(v))
            for k, v in obj.items()
        }
    if isinstance(obj, list):
        return [_redact(v) for v in obj]
    return obj


def _json_body(request: Request, raw: bytes) -> Any:
    if not raw or not request.headers.get("content-type", "").startswith(
        "application/json"
    ):
        return None
    try:
        return json.loads(raw)
    except ValueError:
        return None


def _now() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ")


def _should_log(status: int) -> bool:
    if 200 <= status < 300:
        return random.random() < LOG_SAMPLE_2XX
    return True


class LoggingMiddleware(BaseHTTPMiddleware):
    """Log one inbound and one outbound JSON record per request.

    Successful responses are sampled at ``LOG_SAMPLE_2XX``; 3xx, 4xx and 5xx
    are always logged. An exception escaping the app becomes a 500 envelope
    carrying an ``error_id`` that also appears in the traceback log.
    """

    async def dispatch(self, request: Request, call_next):
        req_id = getattr(request.state, "request_id", None) or request_id_ctx.get()
        raw = await request.body()

        async def receive() -> dict:
            return {"type": "http.request", "body": raw, "more_body": False}

        # The body has been consumed; replay it for the route.
        request._receive = receive

        inbound: dict[str, Any] = {
            "ts": _now(),
            "level": "INFO",
            "req_id": req_id,
            "method": request.method,
            "path": request.url.path,
            "ip": request.client.host if request.client else None,
            "ua": request.headers.get("user-agent"),
        }
        if request.query_params:
            inbound["query"] = _redact(dict(request.query_params))
        body = _json_body(request, raw)
        if body is not None:
            inbound["body"] = _redact(body)

        error_id = None
        start = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            error_id = str(uuid.uuid4())
            logger.exception(json.dumps({"req_id": req_id, "error_id": error_id}))
            payload = err("INTERNAL_ERROR", "Internal Server Error")
            payload["error_id"] = error_id
            response = JSONResponse(payload, status_code=500)
        latency_ms = int((time.perf_counter() - start) * 1000)

        status = response.status_code
        if _should_log(status):
            outbound: dict[str, Any] = {
                "ts": _now(),
                "level": "ERROR" if status >= 500 else "INFO",
                "req_id": req_id,
                "method": request.method,
                "route": request.url.path,
                "status": status,
                "latency_ms": latency_ms,
            }
            if error_id:
                outbound["error_id"] = error_id
            logger.info(json.dumps(inbound))
            if status >= 500:
                logger.error(json.dumps(outbound))
            else:
                logger.info(json.dumps(outbound))

        if req_id:
            response.headers["X-Request-ID"] = req_id
        return response
