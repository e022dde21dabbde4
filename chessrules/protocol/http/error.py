from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Type, cast

from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette import status

from ...board.errors import ChessError, GameAlreadyTerminal, IllegalMove, InvalidPosition


logger = logging.getLogger(__name__)

_ERROR_CODES: Dict[int, str] = {
    status.HTTP_400_BAD_REQUEST: "bad_request",
    status.HTTP_404_NOT_FOUND: "not_found",
    status.HTTP_409_CONFLICT: "conflict",
    status.HTTP_422_UNPROCESSABLE_ENTITY: "unprocessable_entity",
}

# Most specific class first
_CHESS_ERROR_STATUS: list[tuple[Type[ChessError], int]] = [
    (GameAlreadyTerminal, status.HTTP_409_CONFLICT),
    (IllegalMove, status.HTTP_400_BAD_REQUEST),
    (InvalidPosition, status.HTTP_400_BAD_REQUEST),
    (ChessError, status.HTTP_400_BAD_REQUEST),
]


def error_envelope(
    *,
    code: str,
    message: str,
    err_type: str,
    request_id: str,
    field_errors: Optional[list[dict[str, str]]] = None,
) -> Dict[str, Any]:
    """Build the JSON body shared by every error response."""
    error: Dict[str, Any] = {
        "code": code,
        "message": message,
        "type": err_type,
        "request_id": request_id,
    }
    if field_errors:
        error["field_errors"] = field_errors
    return {"error": error}


def error_code(status_code: int) -> str:
    if status_code >= 500:
        return "internal_error"
    return _ERROR_CODES.get(status_code, "error")


def chess_error_status(exc: ChessError) -> int:
    for cls, status_code in _CHESS_ERROR_STATUS:
        if isinstance(exc, cls):
            return status_code
    return status.HTTP_400_BAD_REQUEST


def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", "")


def _respond(
    request: Request,
    status_code: int,
    message: str,
    field_errors: Optional[list[dict[str, str]]] = None,
) -> JSONResponse:
    payload = error_envelope(
        code=error_code(status_code),
        message=message,
        err_type="server_error" if status_code >= 500 else "client_error",
        request_id=_request_id(request),
        field_errors=field_errors,
    )
    return JSONResponse(status_code=status_code, content=payload)


async def http_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    http_exc = cast(HTTPException, exc)
    detail = http_exc.detail if isinstance(http_exc.detail, str) else str(http_exc.detail)
    return _respond(request, http_exc.status_code, detail)


async def chess_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Render rules errors: rejected moves and positions as 400, finished games as 409."""
    chess_exc = cast(ChessError, exc)
    status_code = chess_error_status(chess_exc)
    logger.info("%s: %s", type(chess_exc).__name__, chess_exc, extra={"request_id": _request_id(request)})
    return _respond(request, status_code, str(chess_exc))


async def request_validation_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    field_errors = []
    for e in cast(RequestValidationError, exc).errors():
        field_errors.append(
            {
                "field": ".".join(str(p) for p in e.get("loc", []) if p is not None),
                "code": e.get("type", "value_error"),
                "message": e.get("msg", "invalid value"),
            }
        )
    return _respond(
        request,
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        "Validation error",
        field_errors=field_errors or None,
    )


async def exception_handler(request: Request, exc: Exception) -> JSONResponse:
    if isinstance(exc, HTTPException):
        return await http_exception_handler(request, exc)
    if isinstance(exc, ChessError):
        return await chess_error_handler(request, exc)
    logger.exception("Unhandled exception", extra={"request_id": _request_id(request)})
    return _respond(request, status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal Server Error")
