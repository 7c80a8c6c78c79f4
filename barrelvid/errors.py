"""
Error taxonomy shared by the stores, the CSV importer and the payment
adapter. server.py maps each class to an HTTP status:

- ValidationError -> 400 (field errors returned to the caller)
- FormatError     -> 400 (CSV structurally unusable, reason returned)
- AuthError       -> 401
- PaymentError    -> 402 (provider declined / unreachable, retryable)
- NotFoundError   -> 404
- StorageError    -> 500 (logged with detail, generic message returned)
"""
from __future__ import annotations
from typing import Any, Dict, List, Optional


class AppError(Exception):
    status_code = 500
    message = "Internal error"

    def __init__(self, message: Optional[str] = None) -> None:
        super().__init__(message or self.message)
        self.message = message or self.message

    def to_dict(self) -> Dict[str, Any]:
        return {"message": self.message}


class ValidationError(AppError):
    status_code = 400
    message = "Invalid request"

    def __init__(self, message: Optional[str] = None,
                 errors: Optional[List[Dict[str, Any]]] = None) -> None:
        super().__init__(message)
        self.errors = errors or []

    def to_dict(self) -> Dict[str, Any]:
        return {"message": self.message, "errors": self.errors}


class FormatError(AppError):
    status_code = 400
    message = "Invalid CSV"


class AuthError(AppError):
    status_code = 401
    message = "Unauthorized"


class PaymentError(AppError):
    status_code = 402
    message = "Payment failed, please try again"


class NotFoundError(AppError):
    status_code = 404
    message = "Not found"


class StorageError(AppError):
    status_code = 500
    message = "Storage failure"
