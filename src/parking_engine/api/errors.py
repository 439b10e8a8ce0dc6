"""Exception handlers mapping engine errors to JSON payloads."""

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ..errors import ParkingError


async def parking_error_handler(_: Request, exc: ParkingError) -> JSONResponse:
    """Convert :class:`ParkingError` exceptions into JSON payloads."""
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def validation_error_handler(_: Request, exc: RequestValidationError) -> JSONResponse:
    """Render request validation failures keyed by field."""
    errors: dict[str, list[str]] = {}
    for error in exc.errors():
        fields = [str(part) for part in error.get("loc", ()) if part != "body"]
        field = fields[-1] if fields else "body"
        errors.setdefault(field, []).append(error.get("msg", "Invalid value"))

    return JSONResponse(
        status_code=422,
        content={
            "code": "validation_error",
            "message": "Request validation failed",
            "errors": errors,
        },
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ParkingError, parking_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
