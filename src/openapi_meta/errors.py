"""Error taxonomy for the schema engine.

Every error knows how to render itself as the `{error, details?}` body
the HTTP layer hands back to a caller.
"""


class OpenApiMetaError(Exception):
    """Base class for all errors raised by openapi_meta."""

    label = "Error processing request"

    def __init__(self, message: str, details=None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_body(self) -> dict:
        body = {"error": self.message}
        if self.details is not None:
            body["details"] = self.details
        return body


class ResolutionError(OpenApiMetaError):
    """A reference could not be located, or a reference cycle has no concrete node."""


class ValidationError(OpenApiMetaError):
    """One or more structural rules were violated.

    `findings` holds every violation, not just the first.
    """

    def __init__(self, message: str, findings: list | None = None, details=None):
        self.findings = list(findings or [])
        if details is None and self.findings:
            details = [f.to_dict() for f in self.findings]
        super().__init__(message, details)


class InferenceDegenerate(ValidationError):
    """An empty sample was provided where an observable shape is required."""


class AuthenticationError(OpenApiMetaError):
    """The bearer token could not be verified."""


class PermissionDenied(OpenApiMetaError):
    """The verified caller may not act on the requested resource."""


class DocumentNotFound(OpenApiMetaError):
    """The document store holds nothing under the requested key."""
