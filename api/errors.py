"""Maps reservation core errors onto HTTP responses"""
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from domain.exceptions import (
    DuplicateRoomNumber, InvalidStatusTransition, NotFound, ReservationSystemError,
    RoomNotAvailable, StorageFailure, UnauthorizedAccess, ValidationFailure,
)

logger = logging.getLogger(__name__)

# First match wins, so subclasses go before their bases
STATUS_CODES = [
    (ValidationFailure, 400),
    (NotFound, 404),
    (RoomNotAvailable, 409),
    (DuplicateRoomNumber, 409),
    (InvalidStatusTransition, 400),
    (UnauthorizedAccess, 403),
    (StorageFailure, 500),
]


def status_code_for(exc: ReservationSystemError) -> int:
    for exc_type, status_code in STATUS_CODES:
        if isinstance(exc, exc_type):
            return status_code
    return 400


async def reservation_error_handler(request: Request, exc: ReservationSystemError) -> JSONResponse:
    status_code = status_code_for(exc)
    body = exc.to_dict()
    if isinstance(exc, StorageFailure):
        body["context"] = {}
    if status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.code)
    else:
        logger.info("%s %s rejected: %s", request.method, request.url.path, exc.code)
    return JSONResponse(status_code=status_code, content=body)


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ReservationSystemError, reservation_error_handler)
