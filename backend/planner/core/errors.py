"""
Typed errors raised by the service layer.

Each one is an HTTPException so FastAPI renders it directly, while in-process
callers (bulk import jobs, scripts) can still catch the specific kind.
"""

from typing import Optional

from fastapi import HTTPException, status


class PlannerError(HTTPException):
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail: str = "Internal error"

    def __init__(self, detail: Optional[str] = None, headers: Optional[dict] = None):
        super().__init__(
            status_code=self.status_code,
            detail=detail or self.default_detail,
            headers=headers,
        )


class UnauthorizedError(PlannerError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = "Tenant context missing"


class ForbiddenError(PlannerError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "Client not found or access denied"


class NotFoundError(PlannerError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Not found"


class ValidationError(PlannerError):
    status_code = 422
    default_detail = "Invalid input"


class InternalError(PlannerError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "Storage failure"
