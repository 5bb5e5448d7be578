"""HTTP middleware."""

from transmission_proxy.core.middleware.logging import LoggingMiddleware
from transmission_proxy.core.middleware.request_id import RequestIDMiddleware


__all__ = ["LoggingMiddleware", "RequestIDMiddleware"]
