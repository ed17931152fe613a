import logging

from rest_framework import status
from rest_framework.response import Response

logger = logging.getLogger(__name__)


class DuplicateError(ValueError):
    """A unique business key (vendor name, product code, variant color/size) is already taken."""

    def __init__(self, message, field=None):
        super().__init__(message)
        self.field = field


class ConflictError(ValueError):
    """The operation clashes with existing records and was rejected as a whole."""


class InsufficientStockError(ConflictError):
    def __init__(self, variant, available, requested):
        self.variant = variant
        self.available = available
        self.requested = requested
        super().__init__(
            f"Insufficient stock for {variant}: available {available}, requested {requested}"
        )


class NotFoundError(ValueError):
    pass


def service_error_response(exc):
    if isinstance(exc, ConflictError):
        status_code = status.HTTP_409_CONFLICT
    elif isinstance(exc, NotFoundError):
        status_code = status.HTTP_404_NOT_FOUND
    else:
        status_code = status.HTTP_400_BAD_REQUEST
    logger.warning("Rejected request: %s", exc)
    return Response({"detail": str(exc)}, status=status_code)
