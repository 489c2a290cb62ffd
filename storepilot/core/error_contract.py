"""Canonical API error envelope helpers."""

from __future__ import annotations

from typing import Any, Iterable


def build_error_envelope(
    message: str,
    *,
    details: list[dict[str, str]] | None = None,
    extra: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Build the ``{success: false, error, details?}`` payload."""
    payload: dict[str, Any] = {"success": False, "error": message}
    if details:
        payload["details"] = details
    if extra:
        payload.update(extra)
    return payload


def pydantic_errors_to_details(errors: Iterable[dict[str, Any]]) -> list[dict[str, str]]:
    """Flatten pydantic error dicts into ``[{field, message}]``.

    The request-part prefix FastAPI adds to locations (``body``, ``query``)
    is dropped so fields read the same as the JSON payload keys.
    """
    details = []
    for err in errors:
        loc = [str(part) for part in err.get("loc", ())]
        if loc and loc[0] in {"body", "query", "path", "header", "cookie"}:
            loc = loc[1:]
        message = err.get("msg", "Invalid value")
        if err.get("type") == "value_error":
            message = message.removeprefix("Value error, ")
        details.append({"field": ".".join(loc), "message": message})
    return details
