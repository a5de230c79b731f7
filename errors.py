class AppError(Exception):
    """Base class for errors that map onto an HTTP response."""

    status_code = 500

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self) -> dict:
        return {"message": self.message}


class ValidationError(AppError):
    status_code = 400


class DuplicateUsername(AppError):
    status_code = 400

    def __init__(self, message: str = "Username already exists"):
        super().__init__(message)


class InvalidCredentials(AppError):
    status_code = 401

    def __init__(self, message: str = "Invalid credentials"):
        super().__init__(message)


class Unauthorized(AppError):
    status_code = 401

    def __init__(self, message: str, expired: bool = False):
        super().__init__(message)
        self.expired = expired

    def to_dict(self) -> dict:
        body = super().to_dict()
        if self.expired:
            body["expired"] = True
        return body


class Forbidden(AppError):
    status_code = 403


class NotFound(AppError):
    status_code = 404


# Raised by token verification; the guard turns these into Unauthorized
class TokenError(Exception):
    pass


class TokenExpired(TokenError):
    pass


class TokenInvalid(TokenError):
    pass
