from fastapi import HTTPException, status
from starlette.exceptions import HTTPException as StarletteHTTPException

from pricecache.schemas import ErrorCode, ErrorDetail, ErrorResponse


class FetchError(Exception):
    """Upstream fetch failed: network, bad status, or unusable payload."""

    def __init__(self, key: str, reason: str):
        super().__init__(f"{key}: {reason}")
        self.key = key
        self.reason = reason


def http_error(
    code: ErrorCode, message: str, http_status=status.HTTP_400_BAD_REQUEST, hint: str | None = None
):
    detail = ErrorDetail(code=code, message=message, hint=hint)
    return HTTPException(status_code=http_status, detail=detail.model_dump())


def invalid_coin(raw: str) -> HTTPException:
    """400 for a coin id that normalizes to nothing (blank or whitespace only)."""
    return http_error(
        ErrorCode.INVALID_COIN,
        f"coin id {raw!r} is empty after normalization",
        hint="use a CoinGecko id such as 'bitcoin', or a symbol such as 'BTC'",
    )


def envelope_from_http_exception(exc: StarletteHTTPException) -> ErrorResponse:
    """Wrap any HTTPException as {"error": {code, message, hint}}."""
    d = exc.detail
    if isinstance(d, dict) and "code" in d and "message" in d:
        return ErrorResponse(error=d)
    # framework-raised errors (404 on unknown routes, 405, ...) carry a plain string
    code = ErrorCode.NOT_FOUND if exc.status_code == 404 else ErrorCode.INTERNAL_ERROR
    return ErrorResponse(error=ErrorDetail(code=code, message=str(d)))
