"""Exception handlers mapping domain and storage failures to the API error body.

Every failure leaves the API as ``{"success": false, "code", "message", "data"?}``
with the HTTP status of its error class.
"""

import structlog
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from protean.exceptions import ExpectedVersionError, ObjectNotFoundError, ValidationError
from sqlalchemy.exc import IntegrityError

from warehouse.shared.errors import ConcurrentModificationError, WarehouseError, translate_integrity_error

logger = structlog.get_logger(__name__)


def _error_response(status_code: int, code: str, message: str, data: dict | None = None) -> JSONResponse:
    body = {"success": False, "code": code, "message": message}
    if data:
        body["data"] = data
    return JSONResponse(status_code=status_code, content=jsonable_encoder(body))


def _first_message(messages: dict) -> str:
    for field_name, errors in messages.items():
        if isinstance(errors, list) and errors:
            return f"{field_name}: {errors[0]}"
        return f"{field_name}: {errors}"
    return "Invalid request"


def _request_errors(exc: RequestValidationError) -> list[dict]:
    errors = []
    for error in exc.errors():
        location = [str(part) for part in error.get("loc", ()) if part not in ("body", "form", "query", "path")]
        errors.append({"field": ".".join(location), "message": error.get("msg", "Invalid value")})
    return errors


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(WarehouseError)
    async def warehouse_error_handler(request: Request, exc: WarehouseError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("Request failed", path=request.url.path, code=exc.code, message=exc.message)
        return JSONResponse(status_code=exc.status_code, content=jsonable_encoder(exc.to_dict()))

    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
        messages = exc.messages if isinstance(exc.messages, dict) else {"request": [str(exc.messages)]}
        return _error_response(400, "VALIDATION_ERROR", _first_message(messages), {"errors": messages})

    @app.exception_handler(RequestValidationError)
    async def request_validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        errors = _request_errors(exc)
        message = f"{errors[0]['field']}: {errors[0]['message']}" if errors else "Invalid request"
        return _error_response(400, "VALIDATION_ERROR", message, {"errors": errors})

    @app.exception_handler(ObjectNotFoundError)
    async def not_found_handler(request: Request, exc: ObjectNotFoundError) -> JSONResponse:
        return _error_response(404, "NOT_FOUND", str(exc.args[0]) if exc.args else "Resource not found")

    @app.exception_handler(ExpectedVersionError)
    async def concurrent_modification_handler(request: Request, exc: ExpectedVersionError) -> JSONResponse:
        logger.warning("Concurrent modification rejected", path=request.url.path)
        error = ConcurrentModificationError("The resource was modified by another request; reload it and try again")
        return JSONResponse(status_code=error.status_code, content=jsonable_encoder(error.to_dict()))

    @app.exception_handler(IntegrityError)
    async def integrity_error_handler(request: Request, exc: IntegrityError) -> JSONResponse:
        error = translate_integrity_error(exc)
        logger.error("Storage constraint violated", path=request.url.path, code=error.code, sqlstate=error.data.get("sqlstate"))
        return JSONResponse(status_code=error.status_code, content=jsonable_encoder(error.to_dict()))
