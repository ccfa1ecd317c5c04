"""Domain exceptions shared by the enrollment, payment and messaging services.

Every service raises one of these; the HTTP layer maps ``code`` to a status
code in one place (see ``status_for_error``).
"""

from fastapi import status


class CourseGateError(Exception):
    """Base error for all enrollment engine failures."""

    def __init__(self, message: str, code: str = "coursegate_error"):
        self.message = message
        self.code = code
        super().__init__(message)


class NotFoundError(CourseGateError):
    """Course, user, payment intent or message does not exist."""

    def __init__(self, message: str = "Resource not found"):
        super().__init__(message, "not_found")


class ValidationError(CourseGateError):
    """Malformed input (empty message, negative price, ...)."""

    def __init__(self, message: str = "Invalid input"):
        super().__init__(message, "validation_error")


class AuthorizationError(CourseGateError):
    """Actor is not enrolled in, or not assigned to, the course."""

    def __init__(self, message: str = "Not allowed for this course"):
        super().__init__(message, "authorization_error")


class AlreadyEnrolledError(CourseGateError):
    """User is already a member; charging again would double-charge."""

    def __init__(self, message: str = "User is already enrolled in this course"):
        super().__init__(message, "already_enrolled")


class GatewayError(CourseGateError):
    """Payment gateway call failed. Never retried automatically."""

    def __init__(self, message: str = "Payment gateway unavailable"):
        super().__init__(message, "gateway_error")


ERROR_STATUS_MAP: dict[str, int] = {
    "not_found": status.HTTP_404_NOT_FOUND,
    "validation_error": status.HTTP_400_BAD_REQUEST,
    "authorization_error": status.HTTP_403_FORBIDDEN,
    "already_enrolled": status.HTTP_409_CONFLICT,
    "gateway_error": status.HTTP_502_BAD_GATEWAY,
}


def status_for_error(error: CourseGateError) -> int:
    """HTTP status code for a domain error."""
    return ERROR_STATUS_MAP.get(error.code, status.HTTP_500_INTERNAL_SERVER_ERROR)
