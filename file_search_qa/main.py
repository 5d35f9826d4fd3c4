from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
import time
import uuid

from file_search_qa.api.routes import router
from file_search_qa.config import Settings, load_settings
from file_search_qa.errors import ServiceError, ValidationError
from file_search_qa.llm.gemini_client import FileSearchClient
from file_search_qa.observability.logger import setup_logging, get_logger
from file_search_qa.observability.metrics import MetricsTracker
from file_search_qa.observability.posthog_client import PostHogClient
from file_search_qa.slides.exporter import SlidesExporter


VERSION = "1.0.0"

logger = get_logger(__name__)

# pydantic prefixes messages raised from validators
_VALUE_ERROR_PREFIX = "Value error, "


def request_validation_to_service_error(exc: RequestValidationError) -> ValidationError:
    """
    Flatten FastAPI's request validation errors into one ValidationError.

    Each entry keeps the offending field; the message joins them with "; ".
    """

    errors = []

    for error in exc.errors():

        field = ".".join(str(part) for part in error.get("loc", ()) if part != "body")

        if error.get("type") == "missing":
            message = f"{field} is required"
        else:
            message = str(error.get("msg", "Invalid value"))
            if message.startswith(_VALUE_ERROR_PREFIX):
                message = message[len(_VALUE_ERROR_PREFIX):]

        errors.append({"field": field, "message": message})

    return ValidationError(
        "; ".join(e["message"] for e in errors) or "Invalid request",
        detail={"errors": errors},
    )


def create_app(
    settings: Settings = None,
    file_search_client=None,
    slides_exporter=None,
    posthog=None,
    metrics=None,
    configure_logging: bool = True,
) -> FastAPI:
    """
    Assemble settings and collaborators once and attach them to app.state.

    Every argument may be replaced, which is how tests inject fakes.
    """

    settings = settings or load_settings()

    if configure_logging:
        setup_logging(log_level=settings.log_level, log_dir=settings.log_dir)

    app = FastAPI(
        title="File Search Q&A API",
        description="Document Q&A over Gemini File Search stores with optional slide export",
        version=VERSION,
    )

    app.state.settings = settings
    app.state.metrics = metrics or MetricsTracker()
    app.state.posthog = posthog or PostHogClient(
        api_key=settings.posthog_api_key,
        host=settings.posthog_host,
    )
    app.state.file_search_client = file_search_client or FileSearchClient(settings)
    app.state.slides_exporter = slides_exporter or SlidesExporter(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """
        Log every HTTP request with latency and record request metrics.
        """

        request_id = str(uuid.uuid4())
        request.state.request_id = request_id

        logger.info(
            "request_started",
            extra={
                "request_id": request_id,
                "method": request.method,
                "path": request.url.path,
                "client_ip": request.client.host if request.client else None
            }
        )

        start_time = time.time()

        try:

            response = await call_next(request)

        except Exception as e:

            request.app.state.metrics.record_failure()

            logger.error(
                "request_failed",
                extra={
                    "request_id": request_id,
                    "method": request.method,
                    "path": request.url.path,
                    "latency_seconds": round(time.time() - start_time, 3),
                    "error": str(e),
                    "error_type": type(e).__name__
                },
                exc_info=True
            )

            raise

        latency = time.time() - start_time

        if response.status_code >= 400:
            request.app.state.metrics.record_failure()
        else:
            request.app.state.metrics.record_success(latency)

        response.headers["X-Request-ID"] = request_id

        logger.info(
            "request_completed",
            extra={
                "request_id": request_id,
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "latency_seconds": round(latency, 3)
            }
        )

        return response

    app.include_router(router)

    @app.on_event("startup")
    async def startup_event():

        logger.info(
            "application_startup",
            extra={
                "version": VERSION,
                "model": settings.generation_model,
                "file_poll": [settings.file_poll_max_attempts, settings.file_poll_interval],
                "import_poll": [settings.import_poll_max_attempts, settings.import_poll_interval],
            },
        )

        if not settings.gemini_api_key:
            logger.warning(
                "missing_api_key",
                extra={"warning_detail": "GEMINI_API_KEY not set. API calls will fail."}
            )

    @app.on_event("shutdown")
    async def shutdown_event():

        logger.info("application_shutdown")

    @app.exception_handler(ServiceError)
    async def service_error_handler(request: Request, exc: ServiceError):

        request_id = getattr(request.state, "request_id", "unknown")

        logger.warning(
            "service_error",
            extra={
                "request_id": request_id,
                "path": request.url.path,
                "error": exc.message,
                "error_code": exc.code,
                "error_type": type(exc).__name__,
                "status_code": exc.http_status,
            }
        )

        request.app.state.posthog.track_error(
            distinct_id=request_id,
            error_type=type(exc).__name__,
            error_message=exc.message,
            endpoint=request.url.path,
            error_code=exc.code,
        )

        return JSONResponse(
            status_code=exc.http_status,
            content={**exc.to_dict(), "request_id": request_id},
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        """Malformed request bodies and parameters are answered as ValidationError (400)."""

        return await service_error_handler(request, request_validation_to_service_error(exc))

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):

        request_id = getattr(request.state, "request_id", "unknown")

        logger.error(
            "unhandled_exception",
            extra={
                "request_id": request_id,
                "path": request.url.path,
                "error": str(exc),
                "error_type": type(exc).__name__
            },
            exc_info=True
        )

        request.app.state.posthog.track_error(
            distinct_id=request_id,
            error_type=type(exc).__name__,
            error_message=str(exc),
            endpoint=request.url.path,
        )

        return JSONResponse(
            status_code=500,
            content={
                "detail": "An internal error occurred. Please try again.",
                "request_id": request_id,
                "error_type": type(exc).__name__
            }
        )

    @app.get("/")
    async def root():

        return {
            "message": "File Search Q&A API",
            "version": VERSION,
            "docs": "/docs",
            "health": "/health",
            "metrics": "/metrics"
        }

    return app

