"""
Domain errors raised by the forum services.

They subclass HTTPException so FastAPI maps them to responses without
extra exception handlers.
"""

from __future__ import annotations

from fastapi import HTTPException


class ValidationError(HTTPException):
    """Missing or malformed input. Raised before any mutation."""

    def __init__(self, errors: dict[str, list[str]]):
        self.errors = errors
        super().__init__(status_code=422, detail={"message": "The given data was invalid.", "errors": errors})


class NotFoundError(HTTPException):
    def __init__(self, detail: str = "Not found"):
        super().__init__(status_code=404, detail=detail)


class AuthorizationError(HTTPException):
    def __init__(self, detail: str = "This action is unauthorized."):
        super().__init__(status_code=403, detail=detail)
