import logging
from contextlib import contextmanager

from navigator.errors import NavigatorError
from navigator.schemas.common import ApiResponse

logger = logging.getLogger(__name__)


def ok(data) -> ApiResponse:
    return ApiResponse(success=True, data=data)


@contextmanager
def failure_message(fallback: str):
    """Turn an unexpected exception into a 500 carrying its message, or ``fallback``."""
    try:
        yield
    except NavigatorError:
        raise
    except Exception as e:
        logger.exception(fallback)
        raise NavigatorError(str(e) or fallback) from e
