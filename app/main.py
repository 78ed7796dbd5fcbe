import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware

from app.config import settings
from app.database import create_schema
from app.routers.admin import router as admin_router
from app.routers.auth import router as auth_router
from app.routers.projects import router as projects_router
from app.routers.tasks import router as tasks_router
from app.utils.exceptions import TrackerError

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)
logger = logging.getLogger(__name__)

# Full tracebacks of unhandled errors go to a file; clients only see a generic message
error_handler = logging.FileHandler(settings.ERROR_LOG_FILE, delay=True)
error_handler.setLevel(logging.ERROR)
error_handler.setFormatter(logging.Formatter("\n[%(asctime)s] %(name)s:\n%(message)s"))
logger.addHandler(error_handler)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, GET, PATCH, DELETE, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization, X-Client-Info, Apikey, X-Session-Token",
}

@asynccontextmanager
async def lifespan(app: FastAPI):
    await create_schema()
    logger.info("[STARTUP] Database schema ready")
    yield


app = FastAPI(
    lifespan=lifespan,
    title="Construction Task Tracker API",
    description="Sessions, role-based access and schedule shifting for construction projects",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["POST", "GET", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Client-Info", "Apikey", "X-Session-Token"],
)

@app.exception_handler(TrackerError)
async def tracker_error_handler(request: Request, exc: TrackerError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message, exc_info=exc)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message}, headers=CORS_HEADERS)

@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if any(err.get("type") in ("missing", "string_too_short") for err in errors):
        message = "Missing required fields"
    else:
        first = errors[0] if errors else {}
        field = ".".join(str(part) for part in first.get("loc", ())[1:]) or "request"
        message = f"Invalid {field}: {first.get('msg', 'invalid value')}"
    return JSONResponse(status_code=400, content={"error": message}, headers=CORS_HEADERS)

#Global exception handler to ensure CORS headers on failure
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error("%s %s raised an unhandled error", request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error"},
        headers=CORS_HEADERS,
    )

app.include_router(auth_router)
app.include_router(projects_router)
app.include_router(tasks_router)
app.include_router(admin_router)

@app.get("/")
def root():
    return {"message": "Construction Task Tracker API running"}
