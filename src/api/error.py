"""HTTP error mapping

Use cases return ``libs.result.Error``; routes raise ClientError, which the
application renders as ``{"error": {"code", "message"}}``.
"""

from typing import Optional
from fastapi import Request, status
from fastapi.responses import JSONResponse
from libs.result import Error

ERROR_STATUS = {
    "UNAUTHORIZED": status.HTTP_401_UNAUTHORIZED,
    "INVALID_SIGNATURE": status.HTTP_401_UNAUTHORIZED,
    "FORBIDDEN": status.HTTP_403_FORBIDDEN,
    "PRODUCT_NOT_ENABLED": status.HTTP_403_FORBIDDEN,
    "CLIENT_NOT_ACTIVE": status.HTTP_403_FORBIDDEN,
    "INVOICE_PENDING": status.HTTP_409_CONFLICT,
    "INVOICE_NOT_PAYABLE": status.HTTP_409_CONFLICT,
    "NOTHING_TO_INVOICE": status.HTTP_409_CONFLICT,
    "CLIENT_CODE_EXISTS": status.HTTP_409_CONFLICT,
    "INSUFFICIENT_CREDITS": status.HTTP_402_PAYMENT_REQUIRED,
    "GATEWAY_ERROR": status.HTTP_502_BAD_GATEWAY,
    "VALIDATION_ERROR": status.HTTP_400_BAD_REQUEST,
    "INVALID_PAYLOAD": status.HTTP_400_BAD_REQUEST,
}


def status_for(code: str) -> int:
    """HTTP status for an error code; *_NOT_FOUND is 404, anything else 500"""
    if code in ERROR_STATUS:
        return ERROR_STATUS[code]
    if code.endswith("_NOT_FOUND"):
        return status.HTTP_404_NOT_FOUND
    return status.HTTP_500_INTERNAL_SERVER_ERROR


class ClientError(Exception):
    """An Error raised out of a route with its HTTP status"""

    def __init__(self, error: Error, status_code: Optional[int] = None):
        self.error = error
        self.status_code = status_code or status_for(error.code)
        super().__init__(error.message)


async def client_error_handler(request: Request, exc: ClientError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": {"code": exc.error.code, "message": exc.error.message}},
    )

