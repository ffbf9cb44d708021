from .body_limit import BodyLimitMiddleware
from .cors import CORSMiddleware
from .logging import LoggingMiddleware
from .request_id import RequestIdMiddleware

__all__ = [
    "BodyLimitMiddleware",
    "CORSMiddleware",
    "LoggingMiddleware",
    "RequestIdMiddleware",
]
