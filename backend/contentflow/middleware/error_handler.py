"""Global error handlers rendering RFC 7807 problem details."""
import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from contentflow.schemas.common import ErrorDetail

logger = structlog.get_logger()


class AppException(Exception):
    def __init__(self, status_code: int, detail: str, error_type: str = "about:blank", title: str = "Error"):
        self.status_code = status_code
        self.detail = detail
        self.error_type = error_type
        self.title = title


def problem(status_code: int, title: str, detail: str, error_type: str = "about:blank", instance: str | None = None) -> JSONResponse:
    body = ErrorDetail(type=error_type, title=title, status=status_code, detail=detail, instance=instance)
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


def setup_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppException)
    async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
        return problem(exc.status_code, exc.title, exc.detail, exc.error_type, request.url.path)

    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError) -> JSONResponse:
        logger.info("bad_request", path=request.url.path, error=str(exc))
        return problem(400, "Bad Request", str(exc), instance=request.url.path)

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error("unhandled_exception", path=request.url.path, error=str(exc), exc_info=True)
        return problem(500, "Internal Server Error", "An unexpected error occurred.", instance=request.url.path)
