from fastapi import status


class ServiceError(Exception):
    status_code = status.HTTP_400_BAD_REQUEST


class ValidationError(ServiceError):
    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundError(ServiceError):
    status_code = status.HTTP_404_NOT_FOUND


class SlotConflictError(ServiceError):
    status_code = status.HTTP_409_CONFLICT


class InvalidStateError(ServiceError):
    status_code = status.HTTP_409_CONFLICT


class ServiceUnavailableError(ServiceError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


__all__ = [
    "ServiceError",
    "ValidationError",
    "NotFoundError",
    "SlotConflictError",
    "InvalidStateError",
    "ServiceUnavailableError",
]
