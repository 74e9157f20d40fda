from fastapi import status


class CampusNetError(Exception):
    """Base class for service-layer errors, carries the HTTP status it maps to"""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class NotFound(CampusNetError):
    """Subject or actor does not exist (or was deleted)"""
    status_code = status.HTTP_404_NOT_FOUND


class InvalidKind(CampusNetError):
    """Reaction kind is not allowed for the subject type"""
    status_code = status.HTTP_400_BAD_REQUEST


class ConflictRetry(CampusNetError):
    """Concurrent transaction on the same row could not serialize; retry"""
    status_code = status.HTTP_409_CONFLICT


class Unauthorized(CampusNetError):
    """Actor is not allowed to perform the operation"""
    status_code = status.HTTP_403_FORBIDDEN
