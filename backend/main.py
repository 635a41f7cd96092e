import os

from fastapi.openapi.utils import get_openapi
from dotenv import load_dotenv

# Load environment variables for development
load_dotenv()  # This reads .env into os.environ

from quote_pipeline import __version__  # noqa: E402
from quote_pipeline.main import create_app  # noqa: E402

app = create_app()


def custom_openapi() -> dict:
    """Return OpenAPI schema with project metadata."""
    if app.openapi_schema:
        return app.openapi_schema
    app.openapi_schema = get_openapi(
        title="Quote Pipeline API",
        version=__version__,
        description="Quote totals calculation and PDF document generation.",
        routes=app.routes,
    )
    return app.openapi_schema


app.openapi = custom_openapi

if __name__ == "__main__":
    import uvicorn

    workers = int(os.getenv("UVICORN_WORKERS", "1"))
    keepalive = int(os.getenv("UVICORN_KEEPALIVE", "65"))
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", "8000")),
        workers=workers,
        timeout_keep_alive=keepalive,
    )
