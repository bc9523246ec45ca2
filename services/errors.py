"""Error taxonomy shared by the gateways, the editor controller and the routes."""


class CmsError(Exception):
    """Base class. Carries the HTTP status a route should answer with."""

    status = 500
    kind = "error"

    def __init__(self, message: str, status: int | None = None, details: str | None = None):
        super().__init__(message)
        self.message = message
        if status is not None:
            self.status = status
        self.details = details

    def to_dict(self) -> dict:
        data = {"message": self.message, "error": self.kind}
        if self.details:
            data["details"] = self.details
        return data


class ValidationError(CmsError):
    """A required field is empty or malformed. Raised before any network call."""

    status = 400
    kind = "validation"


class UpstreamAuthError(CmsError):
    """Credential missing (500) or rejected by the upstream service (401/403)."""

    status = 403
    kind = "auth"


class UpstreamNotFound(CmsError):
    """Target repository, path or model does not exist upstream."""

    status = 404
    kind = "not_found"


class UpstreamError(CmsError):
    """Any other non-success response from an upstream service."""

    status = 502
    kind = "upstream"


class TransportError(CmsError):
    """Network failure or timeout talking to an upstream service."""

    status = 502
    kind = "transport"


def from_status(status: int, message: str, details: str | None = None) -> CmsError:
    """Map an upstream HTTP status to the matching error class."""
    if status in (401, 403):
        return UpstreamAuthError(message, status=status, details=details)
    if status == 404:
        return UpstreamNotFound(message, details=details)
    if 400 <= status < 600:
        return UpstreamError(message, status=status, details=details)
    return UpstreamError(message, details=details)
