import logging

import uvicorn
from fastapi import Depends, FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from s3_gateway.api.deps import get_storage_client, require_api_key
from s3_gateway.api.routers.buckets import router as buckets_router
from s3_gateway.api.routers.files import router as files_router
from s3_gateway.api.routers.transfers import router as transfers_router
from s3_gateway.api.routers.uploads import router as uploads_router
from s3_gateway.common.config import Settings, get_settings
from s3_gateway.common.logging import setup_logging
from s3_gateway.domain.keys import InvalidKeyError
from s3_gateway.infra.observability.metrics import metrics_app
from s3_gateway.infra.observability.middleware import MetricsMiddleware
from s3_gateway.infra.storage.client import StorageClient, StorageError
from s3_gateway.services.base import InvalidRequestError

ERROR_CODE_BY_STATUS = {
    400: "bad_request",
    401: "unauthorized",
    404: "not_found",
    405: "method_not_allowed",
    500: "internal_error",
}


def _resolve_error_code(status_code: int) -> str:
    return ERROR_CODE_BY_STATUS.get(status_code, "unknown_error")


def _collect_storage_metadata(settings: Settings) -> dict[str, object]:
    payload: dict[str, object] = {
        "s3_region": settings.S3_REGION,
        "s3_credentials": "explicit" if settings.S3_ACCESS_KEY_ID else "ambient",
    }
    if settings.S3_ENDPOINT_URL:
        payload["s3_endpoint"] = settings.S3_ENDPOINT_URL
    if settings.S3_BUCKET:
        payload["s3_bucket"] = settings.S3_BUCKET
    return payload


def _format_storage_context(settings: Settings) -> str:
    meta = _collect_storage_metadata(settings)
    return ", ".join(f"{key}={value}" for key, value in meta.items())


def _log_request_error(request: Request, status_code: int, detail: object) -> None:
    logger = logging.getLogger("http")
    logger.log(
        logging.WARNING if status_code < 500 else logging.ERROR,
        "http_error status=%s error_code=%s detail=%s method=%s path=%s request_id=%s",
        status_code,
        _resolve_error_code(status_code),
        detail,
        request.method,
        request.url.path,
        request.headers.get("X-Request-Id"),
        extra={
            "extra": {
                "status": status_code,
                "error_code": _resolve_error_code(status_code),
                "detail": detail,
                "method": request.method,
                "route": request.url.path,
                "request_id": request.headers.get("X-Request-Id"),
            }
        },
    )


def create_app() -> FastAPI:
    settings = get_settings()
    setup_logging(settings.LOG_LEVEL, settings.LOG_FORMAT)
    app = FastAPI(
        title="S3 Gateway",
        version="1.0.0",
        description="REST façade over an S3-compatible object store",
    )

    if settings.CORS_ENABLED:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.CORS_ORIGINS or ["*"],
            allow_credentials=bool(settings.CORS_ORIGINS),
            allow_methods=["*"],
            allow_headers=["*"],
        )

    for router, tag in (
        (files_router, "files"),
        (buckets_router, "buckets"),
        (uploads_router, "uploads"),
        (transfers_router, "transfers"),
    ):
        app.include_router(
            router,
            tags=[tag],
            dependencies=[Depends(require_api_key)],
        )

    if settings.ENABLE_METRICS:
        app.add_middleware(MetricsMiddleware)
        app.mount("/metrics", metrics_app)

    @app.on_event("startup")
    def on_startup() -> None:
        startup_logger = logging.getLogger("s3_gateway.startup")
        startup_logger.info(
            "Storage gateway starting. [event=startup] (%s)",
            _format_storage_context(settings),
        )
        if not settings.S3_BUCKET:
            startup_logger.warning(
                "No default bucket configured; /ready will probe ListBuckets instead."
                " [event=default_bucket_missing]"
            )

    # also catches FastAPI's subclass and router-level 404/405
    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        _log_request_error(request, exc.status_code, exc.detail)
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_exception_handler(
        request: Request, exc: RequestValidationError
    ):
        detail = jsonable_encoder(exc.errors())
        _log_request_error(request, 400, detail)
        return JSONResponse(
            status_code=400,
            content={"error": "Invalid request parameters", "detail": detail},
        )

    @app.exception_handler(InvalidRequestError)
    @app.exception_handler(InvalidKeyError)
    async def invalid_request_exception_handler(request: Request, exc: Exception):
        _log_request_error(request, 400, str(exc))
        return JSONResponse(status_code=400, content={"error": str(exc)})

    @app.exception_handler(StorageError)
    async def storage_exception_handler(request: Request, exc: StorageError):
        logger = logging.getLogger("http")
        logger.error(
            "storage_error method=%s path=%s request_id=%s error=%s "
            "[event=storage_operation_failed]",
            request.method,
            request.url.path,
            request.headers.get("X-Request-Id"),
            exc,
            extra={
                "extra": {
                    "method": request.method,
                    "route": request.url.path,
                    "request_id": request.headers.get("X-Request-Id"),
                    "exception": repr(exc.cause or exc),
                }
            },
        )
        return JSONResponse(status_code=500, content=jsonable_encoder(exc.to_payload()))

    @app.get("/health", tags=["ops"])
    async def health():
        return {"status": "ok"}

    @app.get("/ready", tags=["ops"])
    def ready(storage: StorageClient = Depends(get_storage_client)):
        try:
            if settings.S3_BUCKET:
                storage.head_bucket(bucket=settings.S3_BUCKET)
            else:
                storage.list_buckets()
        except StorageError as exc:
            return {"status": "not_ready", "detail": {"storage": str(exc)}}
        return {"status": "ready"}

    return app


app = create_app()

if __name__ == "__main__":
    _settings = get_settings()
    uvicorn.run("s3_gateway.main:app", host=_settings.HOST, port=_settings.PORT)
