"""Error taxonomy shared by services and routes.

Services raise these; the handlers registered in ``app.main`` turn them into the
``{"success": false, "error": ...}`` envelope with the matching status code.
"""


class AppError(Exception):
    status_code = 500

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message or self.__class__.__name__


class AuthenticationError(AppError):
    status_code = 401


class AuthorizationError(AppError):
    status_code = 403


class ValidationError(AppError):
    status_code = 400


class ConflictError(AppError):
    status_code = 400


class NotFoundError(AppError):
    status_code = 404


class UpstreamServiceError(AppError):
    """Payment, email or storage provider failure."""

    status_code = 500
