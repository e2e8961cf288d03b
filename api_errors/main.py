from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api_errors.core.config import settings
from api_errors.core.handlers import register_exception_handlers
from api_errors.core.logging import configure_logging
from api_errors.schemas.common import ErrorResponse

configure_logging()

app = FastAPI(
    title="API Errors",
    description=(
        "Structured, user-safe error responses.\n\n"
        "All error responses follow the `{code, message, request_id, meta}` envelope. "
        "Quote `request_id` when reporting a problem."
    ),
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    responses={
        404: {"model": ErrorResponse},
        422: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)

# --- CORS ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# --- Exception handlers ---
register_exception_handlers(app)


@app.get("/health", tags=["health"], summary="Health check")
def health():
    """Returns `{"status": "ok"}` while the API is up."""
    return {"status": "ok", "env": settings.APP_ENV}
