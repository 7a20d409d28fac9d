# app/core/errors.py
from typing import Any, Dict, Optional
from enum import Enum

class ErrorCode(str, Enum):
    UNAUTHORIZED = "unauthorized"        # 401
    FORBIDDEN = "forbidden"              # 403
    NOT_FOUND = "not_found"              # 404
    CONFLICT = "conflict"                # 409
    VALIDATION_ERROR = "validation_error"# 400 / 422
    RATE_LIMITED = "rate_limited"        # 429
    INTERNAL_ERROR = "internal_error"    # 500
    BAD_REQUEST = "bad_request"          # 400


class AppError(Exception):
    """Application error carrying its own HTTP status and stable code."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int = 400,
        code: ErrorCode = ErrorCode.BAD_REQUEST,
        meta: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.code = code
        self.meta = meta


class TenantSchemaError(AppError):
    """Schema name is malformed or not a known tenant schema."""

    def __init__(self, schema: str, reason: str) -> None:
        super().__init__(
            f"Tenant schema {schema!r} rejected: {reason}",
            status_code=400,
            code=ErrorCode.VALIDATION_ERROR,
            meta={"tenant_schema": schema},
        )
        self.schema = schema
        self.reason = reason


class RegistryUnavailableError(AppError):
    """The shared registry could not be read; nothing was reconciled."""

    def __init__(self, message: str = "Shared user registry is unavailable") -> None:
        super().__init__(message, status_code=503, code=ErrorCode.INTERNAL_ERROR)
