"""JSON envelopes and error shortcuts shared by the routes.

Successful responses are ``{"ok": true, "data": ...}``. Failures are raised as
``HTTPException`` whose ``detail`` is an :func:`err` envelope carrying a
machine readable code such as ``ORDER_NOT_FOUND``.
"""

from typing import Any, Dict

from fastapi import HTTPException

from ..middlewares.request_id import request_id_ctx

UNAVAILABLE_MESSAGE = "One or more products are not available at this location"


def ok(data: Any) -> Dict[str, Any]:
    """Return a success envelope."""
    return {"ok": True, "data": data}


def err(code: str, message: str, details: Dict[str, Any] | None = None) -> Dict[str, Any]:
    """Return an error envelope tagged with the current request id."""
    error: Dict[str, Any] = {"code": code, "message": message}
    if details:
        error["details"] = details
    return {"ok": False, "request_id": request_id_ctx.get(None), "error": error}


def api_error(status_code: int, code: str, message: str, **details: Any) -> HTTPException:
    return HTTPException(status_code, detail=err(code, message, details or None))


def not_found(resource: str, resource_id: int) -> HTTPException:
    """404 for a missing ``resource``; the code is ``<RESOURCE>_NOT_FOUND``."""
    return api_error(
        404,
        f"{resource.upper()}_NOT_FOUND",
        f"{resource.capitalize()} {resource_id} not found",
        id=resource_id,
    )


def offering_unavailable(message: str = UNAVAILABLE_MESSAGE) -> HTTPException:
    return api_error(422, "OFFERING_UNAVAILABLE", message)
