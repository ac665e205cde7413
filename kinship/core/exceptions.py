"""
Error taxonomy shared by every module.

Services raise these; the handlers registered in ``kinship.main`` turn them
into ``{"detail": ...}`` JSON responses with the matching status code.
"""

from fastapi import status


class KinshipError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "Internal server error"

    def __init__(self, detail: str = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class UnauthorizedError(KinshipError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = "Unauthorized"


class NotFoundError(KinshipError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Not found"


class ForbiddenError(KinshipError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "Not enough permissions"


class InvalidInputError(KinshipError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid input"


class ConflictError(KinshipError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Resource already exists"


class InternalError(KinshipError):
    pass
