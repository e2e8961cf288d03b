"""
Structured error records reported to API clients.

Rule: every HTTP error has a machine-readable `code` string so clients
can branch on it without parsing English messages. Codes follow the
convention of a single letter prefix and a 4-digit number (`J0001`); the
convention is documented, not enforced.

Only `code`, `message`, `request_id` and `meta` ever reach the client.
`status` and `cause` stay on the server for the transport and the logs.
"""
from __future__ import annotations

from typing import Any

from starlette import status as http_status

from api_errors.schemas.common import ErrorResponse


# ---------------------------------------------------------------------------
# Well-known codes and messages
# ---------------------------------------------------------------------------

REQUEST_URL_NOT_FOUND_ERROR_CODE = "J0001"
INTERNAL_SERVER_ERROR_CODE = "J0002"
REQUEST_BODY_READ_ERROR_CODE = "J0003"
REQUEST_BODY_PARSE_ERROR_CODE = "J0004"
REQUEST_REJECTED_ERROR_CODE = "J0005"
REQUEST_PARAMETER_INVALID_ERROR_CODE = "J0006"

# Doesn't explain anything to users except that something went wrong.
SOMETHING_WENT_WRONG = "Something went wrong. Please try again later."

REQUEST_URL_NOT_FOUND = "The requested URL was not found."
REQUEST_BODY_READ_FAILED = "Failed to read the request body."
REQUEST_BODY_PARSE_FAILED = "Failed to parse the request body."
REQUEST_REJECTED = "The request could not be processed."
REQUEST_PARAMETER_INVALID = "The request parameters are invalid."


# ---------------------------------------------------------------------------
# Error record
# ---------------------------------------------------------------------------

class APIError(Exception):
    """Error information reported to clients of the API.

    `message` MUST NOT contain internal error text or debug information.
    The underlying failure belongs in `cause`, which is never serialized.
    """

    def __init__(
        self,
        code: str,
        message: str,
        status: int,
        cause: BaseException | None = None,
    ):
        self.code = code
        self.message = message
        self.request_id = ""
        self.meta: dict[str, Any] = {}
        self._status = status
        self._cause = cause
        super().__init__(message)
        if cause is not None:
            self.__cause__ = cause

    @property
    def status(self) -> int:
        """HTTP status code the transport should answer with."""
        return self._status

    @property
    def cause(self) -> BaseException | None:
        return self._cause

    def set_request_id(self, request_id: Any) -> None:
        """Store the ID of the current request as a decimal string.

        Kept as a string because IDs can exceed 2**53, which JavaScript
        clients cannot represent exactly as numbers.
        """
        self.request_id = str(request_id)

    def to_dict(self) -> dict[str, Any]:
        return ErrorResponse.model_validate(self).model_dump(mode="json")

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(code={self.code!r}, status={self._status}, "
            f"request_id={self.request_id!r})"
        )


# ---------------------------------------------------------------------------
# Constructors for the reserved codes
# ---------------------------------------------------------------------------

def new_internal_server_error(cause: BaseException | None) -> APIError:
    return APIError(
        INTERNAL_SERVER_ERROR_CODE,
        SOMETHING_WENT_WRONG,
        http_status.HTTP_500_INTERNAL_SERVER_ERROR,
        cause,
    )


def new_not_found_error(cause: BaseException | None) -> APIError:
    return APIError(
        REQUEST_URL_NOT_FOUND_ERROR_CODE,
        REQUEST_URL_NOT_FOUND,
        http_status.HTTP_404_NOT_FOUND,
        cause,
    )


def new_request_body_read_error(cause: BaseException | None) -> APIError:
    return APIError(
        REQUEST_BODY_READ_ERROR_CODE,
        REQUEST_BODY_READ_FAILED,
        http_status.HTTP_400_BAD_REQUEST,
        cause,
    )


def new_request_body_parse_error(cause: BaseException | None) -> APIError:
    return APIError(
        REQUEST_BODY_PARSE_ERROR_CODE,
        REQUEST_BODY_PARSE_FAILED,
        http_status.HTTP_400_BAD_REQUEST,
        cause,
    )


def new_request_rejected_error(status: int, cause: BaseException | None) -> APIError:
    """A 4xx the framework raised on its own, e.g. a missing credential."""
    return APIError(REQUEST_REJECTED_ERROR_CODE, REQUEST_REJECTED, status, cause)


def new_request_parameter_error(cause: BaseException | None) -> APIError:
    return APIError(
        REQUEST_PARAMETER_INVALID_ERROR_CODE,
        REQUEST_PARAMETER_INVALID,
        http_status.HTTP_422_UNPROCESSABLE_ENTITY,
        cause,
    )
