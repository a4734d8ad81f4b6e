"""
Response envelope shared by every JSON endpoint.

    {"success": true, "message": "...", "data": ..., "timestamp": "..."}
    {"success": false, "message": "...", "errors": [...], "timestamp": "..."}
"""

from datetime import datetime, timezone
from typing import Any


def utc_timestamp() -> str:
    """ISO-8601 UTC timestamp with millisecond precision."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def success_response(
    data: Any = None,
    message: str = "Operação realizada com sucesso",
) -> dict[str, Any]:
    return {
        "success": True,
        "message": message,
        "data": data,
        "timestamp": utc_timestamp(),
    }


def error_response(
    message: str = "Erro interno do servidor",
    errors: list[dict[str, Any]] | None = None,
    **extra: Any,
) -> dict[str, Any]:
    body: dict[str, Any] = {
        "success": False,
        "message": message,
        "data": None,
    }
    if errors is not None:
        body["errors"] = errors
    body.update(extra)
    body["timestamp"] = utc_timestamp()
    return body


def paginated(items: list[Any], page: int, limit: int, total: int) -> dict[str, Any]:
    """
    List payload used inside ``data`` by every paginated endpoint.

        {"data": [...], "pagination": {"page", "limit", "total", "totalPages"}}
    """
    return {
        "data": items,
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "totalPages": (total + limit - 1) // limit if limit > 0 else 0,
        },
    }
