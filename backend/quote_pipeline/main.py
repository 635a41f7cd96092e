# backend/quote_pipeline/main.py

import logging
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse

from . import models  # noqa: F401  (registers tables on Base.metadata)
from .api import api_pricing, api_quote_pdf
from .api.cors import CORS_HEADERS
from .core.config import Settings, get_settings
from .core.observability import setup_logging
from .database import Base, make_engine, make_session_factory
from .utils.errors import QuotePipelineError, error_payload

logger = logging.getLogger(__name__)


def _with_cors(response):
    for header, value in CORS_HEADERS.items():
        response.headers.setdefault(header, value)
    return response


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    setup_logging(settings)

    # Always use ORJSONResponse for JSON payloads to ensure consistent, fast
    # serialization across all endpoints.
    app = FastAPI(title="Quote Pipeline API", default_response_class=ORJSONResponse)
    app.state.settings = settings
    engine = make_engine(settings.SQLALCHEMY_DATABASE_URL)
    app.state.engine = engine
    app.state.session_factory = make_session_factory(engine)
    Base.metadata.create_all(bind=engine)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=False,
        allow_methods=["POST", "OPTIONS"],
        allow_headers=["authorization", "x-client-info", "apikey", "content-type"],
    )
    logger.info("CORS origins set to: %s", settings.CORS_ORIGINS)

    @app.middleware("http")
    async def catch_exceptions(request: Request, call_next):
        """Turn anything unhandled into a JSON 500 that still carries CORS headers."""
        try:
            response = await call_next(request)
        except Exception as exc:
            logger.exception("Unhandled error at %s: %s", request.url.path, exc)
            response = ORJSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content={"error": str(exc) or "Internal Server Error"},
            )
        return _with_cors(response)

    @app.exception_handler(QuotePipelineError)
    async def pipeline_error_handler(request: Request, exc: QuotePipelineError):
        return ORJSONResponse(status_code=exc.status_code, content=error_payload(exc))

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Malformed request bodies are reported as 400 with a readable message."""
        errors = exc.errors()
        logger.warning("Validation error at %s: %s", request.url.path, errors)
        messages = []
        for err in errors:
            loc = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
            messages.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
        return ORJSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": "; ".join(messages) or "Invalid request body"},
        )

    @app.get("/healthz", tags=["health"])
    async def healthz():
        return {"status": "ok"}

    app.include_router(api_pricing.router, prefix=settings.API_PREFIX)
    app.include_router(api_quote_pdf.router, prefix=settings.API_PREFIX)
    return app
