from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from ..core.errors import ErrorBody, FieldError, InvalidRequestError, ServiceError


def to_http_exception(exc: ServiceError) -> HTTPException:
    errors = exc.errors if isinstance(exc, InvalidRequestError) else []
    return HTTPException(
        status_code=exc.status_code,
        detail={
            "message": exc.message,
            "errors": [{"field": e.field, "message": e.message} for e in errors],
        },
    )


def _body_from_detail(detail) -> ErrorBody:
    if isinstance(detail, dict):
        return ErrorBody(
            message=str(detail.get("message", "")),
            errors=[FieldError(e["field"], e["message"]) for e in detail.get("errors", [])],
        )
    return ErrorBody(message=str(detail))


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=_body_from_detail(exc.detail).as_dict(),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = []
    for error in exc.errors():
        location = [str(part) for part in error.get("loc", ()) if part != "body"]
        errors.append(FieldError(".".join(location) or "request", error.get("msg", "Invalid value")))
    return JSONResponse(
        status_code=422,
        content=ErrorBody(message="Validation failed", errors=errors).as_dict(),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
