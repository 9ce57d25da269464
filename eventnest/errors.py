"""Error taxonomy for the authorization and event-membership core.

Services raise these; ``eventnest.main`` turns them into JSON responses with
the status code carried by each class.
"""


class EventNestError(Exception):
    """Base class for errors that are reported to the client."""

    status_code = 400
    message = "Request failed"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.message)
        self.message = message or self.message


class InvalidCredentials(EventNestError):
    status_code = 401
    message = "Invalid email or password"


class TokenError(EventNestError):
    """Any token failure. Clients only ever see the generic message."""

    status_code = 401
    message = "Invalid or expired token"


class TokenInvalid(TokenError):
    pass


class TokenExpired(TokenError):
    pass


class RefreshTokenStale(TokenError):
    pass


class Forbidden(EventNestError):
    status_code = 403
    message = "You do not have permission to perform this action"


class NotFound(EventNestError):
    """Missing entity, or no membership. The two are deliberately not distinguished."""

    status_code = 404
    message = "Not found"


class InvalidInvitation(NotFound):
    message = "Invalid invitation token"


class Conflict(EventNestError):
    status_code = 409
    message = "Resource already exists"


class CreatorImmutable(EventNestError):
    status_code = 409
    message = "The event creator's access cannot be changed or removed"


class CreatorCannotLeave(EventNestError):
    status_code = 409
    message = "Event creator cannot leave the event. Delete the event instead"


class ValidationFailed(EventNestError):
    status_code = 422
    message = "Validation failed"


class InvalidDate(ValidationFailed):
    message = "Event date cannot be in the past"


class BlobStoreError(EventNestError):
    """The object store could not store or delete a blob."""

    status_code = 502
    message = "Photo storage is unavailable"
