"""Error rendering shared by the service and the FastAPI exception handlers.

Every failure becomes ``{"error": kind, "message": ..., **details}`` with
the matching HTTP status.
"""

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from protean.exceptions import ValidationError

from supplychain.shipment.errors import ShipmentError


def validation_body(messages: dict) -> dict:
    fields = ", ".join(sorted(messages)) or "payload"
    return {"error": "ValidationError", "message": f"Invalid value for: {fields}", "fields": messages}


def error_response(exc: Exception) -> tuple[int, dict]:
    """Status code and body for a shipment or validation failure."""
    if isinstance(exc, ShipmentError):
        return exc.status_code, exc.to_dict()
    if isinstance(exc, ValidationError):
        return 400, validation_body(exc.messages)
    raise TypeError(f"No error response for {type(exc).__name__}")


def _request_validation_messages(exc: RequestValidationError) -> dict:
    messages: dict[str, list[str]] = {}
    for error in exc.errors():
        # Drop the location prefix ("body", "query", "header")
        key = ".".join(str(part) for part in error["loc"][1:]) or str(error["loc"][0])
        messages.setdefault(key, []).append(error["msg"])
    return messages


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(ShipmentError)
    async def shipment_error_handler(_request: Request, exc: ShipmentError):
        status_code, body = error_response(exc)
        return JSONResponse(status_code=status_code, content=body)

    @app.exception_handler(ValidationError)
    async def validation_error_handler(_request: Request, exc: ValidationError):
        status_code, body = error_response(exc)
        return JSONResponse(status_code=status_code, content=body)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(_request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content=validation_body(_request_validation_messages(exc)))
