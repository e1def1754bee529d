"""Error taxonomy for login and token verification.

Every error carries the HTTP status it maps to and the message that is safe to
show a client. Errors whose message could reveal internals, or which one part
of the flow must not be distinguishable from another, always expose their
fixed default message.
"""


class AuthServiceError(Exception):
    status_code = 500
    default_message = "Internal server error"
    expose_message = False

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    @property
    def public_message(self) -> str:
        if self.expose_message:
            return self.message
        return self.default_message


class ValidationError(AuthServiceError):
    status_code = 400
    default_message = "Email and password are required"
    expose_message = True


class AuthenticationError(AuthServiceError):
    status_code = 401
    default_message = "Invalid credentials"


class MissingTokenError(AuthServiceError):
    status_code = 401
    default_message = "No token provided"


class InvalidTokenError(AuthServiceError):
    status_code = 401
    default_message = "Invalid token"


class NotFoundError(AuthServiceError):
    status_code = 404
    default_message = "Not found"
    expose_message = True


class InternalError(AuthServiceError):
    status_code = 500
    default_message = "Internal server error"
