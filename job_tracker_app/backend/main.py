from dotenv import load_dotenv

load_dotenv()

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .api import application, health, interview, recruiter, reminder
from .config.settings import get_settings
from .errors import TrackerError
from .models.db.database import get_document_store
from .utils.logging_config import setup_logging, get_logger

# Initialize settings
settings = get_settings()

# Setup logging configuration
setup_logging(
    level=settings.log_level,
    log_file=settings.log_file
)
logger = get_logger(__name__)

# Validate configuration on startup
missing_settings = settings.validate_required_settings()
if missing_settings:
    for setting in missing_settings:
        logger.error("Configuration error: %s", setting)
    if settings.is_production():
        raise RuntimeError("Invalid configuration for production environment")

app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    docs_url="/docs" if settings.api_docs_enabled else None,
    redoc_url="/redoc" if settings.api_docs_enabled else None,
)

# Add CORS middleware if enabled
if settings.cors_enabled:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


@app.exception_handler(TrackerError)
async def tracker_error_handler(request: Request, exc: TrackerError):
    if exc.status_code >= 500:
        # Keep store and driver details out of the response
        logger.error("%s %s failed: %s", request.method, request.url.path, exc, exc_info=exc)
        return JSONResponse(status_code=exc.status_code, content={"message": "Internal server error"})
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    error = exc.errors()[0]
    loc = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
    field = ".".join(loc) or None
    message = f"{field}: {error['msg']}" if field else error["msg"]
    body = {"message": message}
    if field:
        body["field"] = field
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=body)


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"message": "Internal server error"},
    )


# Routers
app.include_router(health.router, prefix="/api", tags=["Health Check"])
app.include_router(application.router, prefix="/api/applications", tags=["Applications"])
app.include_router(interview.router, prefix="/api/interviews", tags=["Interviews"])
app.include_router(recruiter.router, prefix="/api/recruiters", tags=["Recruiters"])
app.include_router(reminder.router, prefix="/api/reminders", tags=["Reminders"])


@app.on_event("startup")
def on_startup():
    """Connect the document store and log application startup."""
    logger.info("Starting %s...", settings.app_name)
    get_document_store()
    logger.info("Document store '%s' ready", settings.store_backend)


@app.get("/")
def read_root():
    return {"message": f"Welcome to the {settings.app_name} API"}
