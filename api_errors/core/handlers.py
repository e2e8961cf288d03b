"""
FastAPI exception handlers.

Every failure leaving the app is turned into an `APIError` and rendered as
`{code, message, request_id, meta}`. The internal cause goes to the log,
never into the response body.
"""
from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette import status
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.requests import ClientDisconnect

from api_errors.core.config import settings
from api_errors.core.errors import (
    REQUEST_BODY_PARSE_ERROR_CODE,
    REQUEST_BODY_PARSE_FAILED,
    REQUEST_URL_NOT_FOUND,
    REQUEST_URL_NOT_FOUND_ERROR_CODE,
    APIError,
    new_internal_server_error,
    new_not_found_error,
    new_request_body_parse_error,
    new_request_body_read_error,
    new_request_parameter_error,
    new_request_rejected_error,
)
from api_errors.core.logging import get_logger
from api_errors.schemas.common import FieldError

logger = get_logger(__name__)

_ROUTE_MISS_STATUSES = {
    status.HTTP_404_NOT_FOUND,
    status.HTTP_405_METHOD_NOT_ALLOWED,
}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _request_id(request: Request) -> Any:
    """Correlation ID supplied by middleware or, failing that, a header."""
    request_id = getattr(request.state, "request_id", None)
    if request_id is None:
        request_id = request.headers.get(settings.REQUEST_ID_HEADER)
    return request_id


def _field_errors(exc: RequestValidationError) -> list[dict]:
    return [
        FieldError(
            field=".".join(str(loc) for loc in error["loc"] if loc != "body"),
            message=error["msg"],
            type=error["type"],
        ).model_dump()
        for error in exc.errors()
    ]


def _is_body_error(error: dict) -> bool:
    loc = error.get("loc") or ()
    return bool(loc) and loc[0] == "body"


def render_error(
    request: Request,
    err: APIError,
    headers: Mapping[str, str] | None = None,
) -> JSONResponse:
    """Attach the request ID, log the record and build the JSON response."""
    if not err.request_id:
        request_id = _request_id(request)
        if request_id is not None:
            err.set_request_id(request_id)

    fields = {
        "code": err.code,
        "status": err.status,
        "request_id": err.request_id,
        "path": request.url.path,
        "method": request.method,
        "meta": err.meta,
        "cause": repr(err.cause) if err.cause is not None else None,
    }
    if err.status >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        logger.error("api_error", exc_info=err.cause or err, **fields)
    else:
        logger.warning("api_error", **fields)

    return JSONResponse(
        status_code=err.status,
        content=err.to_dict(),
        headers=dict(headers) if headers else None,
    )


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------

async def api_error_handler(request: Request, exc: APIError) -> JSONResponse:
    return render_error(request, exc)


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    # FastAPI wraps body read and decode failures in a bare 400.
    cause = exc.__cause__
    if exc.status_code == status.HTTP_404_NOT_FOUND:
        err = new_not_found_error(exc)
    elif exc.status_code in _ROUTE_MISS_STATUSES:
        err = APIError(
            REQUEST_URL_NOT_FOUND_ERROR_CODE,
            REQUEST_URL_NOT_FOUND,
            exc.status_code,
            exc,
        )
    elif exc.status_code == status.HTTP_400_BAD_REQUEST and isinstance(
        cause, ClientDisconnect
    ):
        err = new_request_body_read_error(exc)
    elif exc.status_code == status.HTTP_400_BAD_REQUEST and isinstance(
        cause, ValueError
    ):
        err = new_request_body_parse_error(exc)
    elif exc.status_code < status.HTTP_500_INTERNAL_SERVER_ERROR:
        err = new_request_rejected_error(exc.status_code, exc)
    else:
        err = new_internal_server_error(exc)
    return render_error(request, err, headers=getattr(exc, "headers", None))


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Malformed JSON is a 400; a well-formed body with bad fields is a 422.

    Failures confined to path, query, header or cookie parameters are not
    body failures and get their own code.
    """
    errors = exc.errors()
    if not any(_is_body_error(error) for error in errors):
        err = new_request_parameter_error(exc)
    elif any(error["type"] == "json_invalid" for error in errors):
        err = new_request_body_parse_error(exc)
    else:
        err = APIError(
            REQUEST_BODY_PARSE_ERROR_CODE,
            REQUEST_BODY_PARSE_FAILED,
            status.HTTP_422_UNPROCESSABLE_ENTITY,
            exc,
        )
    err.meta["errors"] = _field_errors(exc)
    return render_error(request, err)


async def client_disconnect_handler(
    request: Request, exc: ClientDisconnect
) -> JSONResponse:
    return render_error(request, new_request_body_read_error(exc))


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    return render_error(request, new_internal_server_error(exc))


def register_exception_handlers(app: FastAPI) -> None:
    # Most specific first.
    app.add_exception_handler(APIError, api_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(ClientDisconnect, client_disconnect_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
