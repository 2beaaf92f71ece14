# parlour_api/errors.py
from fastapi import status


class ParlourError(Exception):
    """Base error; carries the HTTP status used when it reaches a route."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidArgument(ParlourError):
    status_code = status.HTTP_400_BAD_REQUEST


class Unauthenticated(ParlourError):
    status_code = status.HTTP_401_UNAUTHORIZED


class Forbidden(ParlourError):
    status_code = status.HTTP_403_FORBIDDEN


class NotFound(ParlourError):
    status_code = status.HTTP_404_NOT_FOUND


class Conflict(ParlourError):
    status_code = status.HTTP_409_CONFLICT


class Internal(ParlourError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


def parse_id(raw, what: str = "ID") -> int:
    """Parse a positive integer identifier or raise InvalidArgument."""
    try:
        value = int(str(raw).strip())
    except (TypeError, ValueError):
        raise InvalidArgument(f"Invalid {what} format")
    if value <= 0:
        raise InvalidArgument(f"Invalid {what} format")
    return value
