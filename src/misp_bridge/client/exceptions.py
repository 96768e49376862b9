# MISP Bridge: Gateway Error Taxonomy
#
# Every failure that leaves the gateway client is one of these classes.
# Callers catch MispError to handle all of them; the ``kind`` attribute
# is the stable name used in structured error payloads.

from typing import Optional


class MispError(Exception):
    """Base exception for MISP gateway failures."""

    kind = "misp_error"

    def to_dict(self):
        return {"kind": self.kind, "message": str(self)}


class HTTPStatusFailure(MispError):
    """A non-2xx response from the platform."""

    kind = "http_status"
    meaning = "HTTP error"

    def __init__(self, status: int, detail: str = ""):
        self.status = status
        self.detail = detail
        super().__init__(f"{self.meaning}: {detail}" if detail else self.meaning)

    def to_dict(self):
        data = super().to_dict()
        data["status"] = self.status
        data["detail"] = self.detail
        return data


class Unauthorized(HTTPStatusFailure):
    """Raised on 401: the API key was rejected."""

    kind = "unauthorized"
    meaning = "Invalid API key or unauthorized"


class Forbidden(HTTPStatusFailure):
    """Raised on 403: the key lacks the required permission."""

    kind = "forbidden"
    meaning = "Insufficient permissions"


class NotFound(HTTPStatusFailure):
    """Raised on 404."""

    kind = "not_found"
    meaning = "Resource not found"


class MethodNotAllowed(HTTPStatusFailure):
    """Raised on 405."""

    kind = "method_not_allowed"
    meaning = "Method not allowed"


class RemoteError(HTTPStatusFailure):
    """Raised on any other non-2xx status."""

    kind = "remote_error"

    def __init__(self, status: int, detail: str = ""):
        self.meaning = f"HTTP {status}"
        super().__init__(status, detail)


class MispTimeout(MispError):
    """Raised when a call exceeds the configured timeout."""

    kind = "timeout"

    def __init__(self, timeout: float):
        self.timeout = timeout
        super().__init__(f"MISP API timeout after {timeout:g}s")

    def to_dict(self):
        data = super().to_dict()
        data["timeout"] = self.timeout
        return data


class TransportFailure(MispError):
    """Raised when the request fails below HTTP (DNS, TLS, refused)."""

    kind = "transport_failure"

    def __init__(self, cause: str):
        self.cause = cause
        super().__init__(f"MISP API request failed: {cause}")


class MalformedResponse(MispError):
    """Raised when a 2xx body cannot be read as the expected structure."""

    kind = "malformed_response"

    def __init__(self, reason: str, snippet: Optional[str] = None):
        self.reason = reason
        self.snippet = snippet
        message = f"Failed to parse MISP response: {reason}"
        if snippet:
            message += f": {snippet}"
        super().__init__(message)


class InvalidRequest(MispError):
    """Raised when caller parameters fail a precondition, before any call."""

    kind = "invalid_request"


_STATUS_ERRORS = {
    401: Unauthorized,
    403: Forbidden,
    404: NotFound,
    405: MethodNotAllowed,
}


def error_for_status(status: int, detail: str = "") -> HTTPStatusFailure:
    """Map a non-success HTTP status to its taxonomy class."""
    cls = _STATUS_ERRORS.get(status)
    if cls is None:
        return RemoteError(status, detail)
    return cls(status, detail)
