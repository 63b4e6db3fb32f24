"""Stock denial actions."""
from __future__ import annotations

from typing import Any, Callable

from starlette.responses import Response


def forbidden(request: Any) -> Response:
    """Status-only 403 response."""
    return Response(status_code=403)


def deny_with_status(status_code: int) -> Callable[[Any], Response]:
    if not 400 <= status_code <= 599:
        raise ValueError(f"denial status must be a 4xx or 5xx code, got {status_code}")

    def _deny(request: Any) -> Response:
        return Response(status_code=status_code)

    return _deny


__all__ = ["deny_with_status", "forbidden"]
