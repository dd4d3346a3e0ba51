"""Response envelope shared by every API endpoint."""

from __future__ import annotations

from typing import Any


def api_response(data: Any = None, message: str = "Success", status_code: int = 200) -> dict[str, Any]:
    """Build the success envelope: ``{status_code, success, message, data}``."""
    return {
        "status_code": status_code,
        "success": status_code < 400,
        "message": message,
        "data": data if data is not None else {},
    }


def error_body(message: str, status_code: int, **extra: Any) -> dict[str, Any]:
    """Build the error envelope."""
    return {
        "status_code": status_code,
        "success": False,
        "message": message,
        **extra,
    }
