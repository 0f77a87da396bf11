from typing import Optional


class NavigatorError(Exception):
    status_code = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(message)


class RequestValidationFailed(NavigatorError):
    """Malformed or missing input. Raised before any collaborator is called."""

    status_code = 400


class NotConfiguredError(NavigatorError):
    """A credential needed for the collaborator is not set."""

    status_code = 503


class NotFoundError(NavigatorError):
    status_code = 404


class UpstreamError(NavigatorError):
    def __init__(self, message: str, provider: str, status_code: int = 500):
        self.provider = provider
        super().__init__(message, status_code)
