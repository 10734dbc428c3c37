"""HTTP middleware for the chatsync API."""

from chatsync.middleware.request_id import REQUEST_ID_HEADER, RequestIDMiddleware

__all__ = ["RequestIDMiddleware", "REQUEST_ID_HEADER"]
