class CustomBaseError(Exception):
    """Base class for all custom exceptions - controls logging behavior in @Logger.io"""

    code: str = 'error'

    def __init__(self, message: str, status_code: int) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class DomainError(CustomBaseError):
    code = 'domain_error'

    def __init__(self, message: str, status_code: int = 400) -> None:
        super().__init__(message, status_code)


class ForbiddenError(CustomBaseError):
    code = 'forbidden'

    def __init__(self, message: str) -> None:
        super().__init__(message, 403)


class NotFoundError(CustomBaseError):
    code = 'not_found'

    def __init__(self, message: str) -> None:
        super().__init__(message, 404)


class ConflictError(CustomBaseError):
    code = 'conflict'

    def __init__(self, message: str) -> None:
        super().__init__(message, 409)


class UnprocessableError(CustomBaseError):
    code = 'unprocessable'

    def __init__(self, message: str) -> None:
        super().__init__(message, 422)


class AuthenticationError(CustomBaseError):
    code = 'unauthenticated'

    def __init__(self, message: str) -> None:
        super().__init__(message, 401)


class UpstreamError(CustomBaseError):
    """A dependency outside this service failed; safe for the caller to retry"""

    code = 'upstream_error'

    def __init__(self, message: str, status_code: int = 502) -> None:
        super().__init__(message, status_code)
