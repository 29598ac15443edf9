from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass
class AppError(Exception):
    status_code: int
    code: str
    message: str
    details: Optional[Dict[str, Any]] = None

    def __str__(self) -> str:
        return self.message

    def to_dict(self) -> Dict[str, Any]:
        return error_response(self.code, self.message, self.details)


def not_found(code: str, message: str, **details: Any) -> AppError:
    return AppError(status_code=404, code=code, message=message, details=details or None)


def bad_request(code: str, message: str, **details: Any) -> AppError:
    return AppError(status_code=400, code=code, message=message, details=details or None)


def conflict(code: str, message: str, **details: Any) -> AppError:
    return AppError(status_code=409, code=code, message=message, details=details or None)


def error_response(code: str, message: str, details: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    return {
        "error": {
            "code": code,
            "message": message,
            "details": details or {},
        }
    }
