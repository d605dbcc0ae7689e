# app/core/exceptions.py

from fastapi import status


class StorefrontError(Exception):
    """
    Base error of the storefront. Every subclass carries the HTTP status
    it is reported with, so the same taxonomy is used by the API handlers
    and by the client that decodes their responses.
    """
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Internal error."

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class Unauthorized(StorefrontError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Could not validate credentials"


class Forbidden(StorefrontError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "You do not have permission to access this resource."


class InvalidArgument(StorefrontError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid request."


class NotFound(StorefrontError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found."


class UpstreamFailure(StorefrontError):
    status_code = status.HTTP_502_BAD_GATEWAY
    default_message = "Upstream service unavailable."


_BY_STATUS = {
    status.HTTP_400_BAD_REQUEST: InvalidArgument,
    status.HTTP_401_UNAUTHORIZED: Unauthorized,
    status.HTTP_403_FORBIDDEN: Forbidden,
    status.HTTP_404_NOT_FOUND: NotFound,
    status.HTTP_422_UNPROCESSABLE_ENTITY: InvalidArgument,
}


def error_for_status(status_code: int, message: str | None = None) -> StorefrontError:
    """Maps an HTTP error status back onto the error taxonomy."""
    error_class = _BY_STATUS.get(status_code, UpstreamFailure)
    return error_class(message)
