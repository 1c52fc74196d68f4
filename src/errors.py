from pydantic import BaseModel

from src.error_codes import (
    VALIDATION_ERROR, DUPLICATE_EMAIL, INVALID_CREDENTIALS,
    MALFORMED_AUTH_HEADER, INVALID_TOKEN, USER_NOT_FOUND, INTERNAL_ERROR,
)


class ErrorBody(BaseModel):
    error: str
    message: str
    code: str
    request_id: str | None = None


def problem(*, error: str, message: str, code: str, request_id: str | None = None) -> ErrorBody:
    return ErrorBody(error=error, message=message, code=code, request_id=request_id)


class ApiError(Exception):
    """Base for every fault a handler maps to a client-facing response."""

    status = 500
    code = INTERNAL_ERROR
    error = "Internal server error"
    message = "Something went wrong. Please try again later."

    def __init__(self, message: str | None = None):
        if message is not None:
            self.message = message
        super().__init__(self.message)


class ValidationFailedError(ApiError):
    status = 400
    code = VALIDATION_ERROR
    error = "Validation error"
    message = "Request body is invalid"


class DuplicateEmailError(ApiError):
    status = 400
    code = DUPLICATE_EMAIL
    error = "User with this email already exists"
    message = "Please use a different email address or try logging in."


class InvalidCredentialsError(ApiError):
    status = 401
    code = INVALID_CREDENTIALS
    error = "Invalid credentials"
    message = "Email or password is incorrect. Please try again."


class MalformedAuthHeaderError(ApiError):
    status = 401
    code = MALFORMED_AUTH_HEADER
    error = "Authorization header missing or malformed"
    message = "Please provide a valid Bearer token in the Authorization header."


class InvalidTokenError(ApiError):
    status = 401
    code = INVALID_TOKEN
    error = "Invalid or expired token"
    message = "Please log in again to get a fresh token."


class UserNotFoundError(ApiError):
    status = 404
    code = USER_NOT_FOUND
    error = "User not found"
    message = "The requested user does not exist."
