"""
Student Records API - FastAPI Application Entry Point.

This is the main application module that:
1. Initializes the FastAPI app with CORS middleware
2. Sets up structured JSON logging
3. Implements request ID middleware (X-Request-ID header)
4. Maps service errors and framework errors to JSON bodies
5. Registers the student routes and the health check endpoint

The application follows a modular architecture:
- routes/: API endpoint handlers
- services/: Validation and the record service
- models/: SQLAlchemy table definition
- logging_config.py: Structured logging configuration
- database.py: Engine, sessions and connection checks
"""

import time
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from student_records.config import CORS_ORIGINS, DATABASE_URL, HOST, PORT
from student_records.database import check_connection, create_tables
from student_records.errors import StudentServiceError
from student_records.logging_config import (
    setup_logging, get_logger, log_with_context,
    request_id_var, generate_request_id
)
from student_records.routes import students

# ──────────────────────────────────────────────────────────────
# Initialize structured logging BEFORE anything else
# ──────────────────────────────────────────────────────────────
setup_logging()
logger = get_logger("http")
db_logger = get_logger("db")

# Auto-create tables for SQLite local development
if DATABASE_URL.startswith("sqlite"):
    logger.info("Using SQLite, creating tables directly")
    create_tables()

# ──────────────────────────────────────────────────────────────
# Create FastAPI application
# ──────────────────────────────────────────────────────────────
app = FastAPI(
    title="Student Records API",
    description=(
        "CRUD backend for student records: paginated listing, search, "
        "field validation and uniqueness checks on student ID, email "
        "and contact number."
    ),
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID"]
)


# ──────────────────────────────────────────────────────────────
# Request ID Middleware
#
# Generates a unique UUID per incoming request, stores it in a
# context variable for log entries, returns it in X-Request-ID
# and logs request start/end with latency.
# ──────────────────────────────────────────────────────────────
@app.middleware("http")
async def request_id_middleware(request: Request, call_next):
    req_id = generate_request_id()
    request_id_var.set(req_id)
    start_time = time.time()

    log_with_context(logger, "INFO",
        f"Request started: {request.method} {request.url.path}",
        context={"request_id": req_id},
        extra_data={
            "ip": request.client.host if request.client else "unknown",
            "user_agent": request.headers.get("user-agent", ""),
            "query_params": dict(request.query_params)
        })

    response = await call_next(request)

    duration_ms = (time.time() - start_time) * 1000
    response.headers["X-Request-ID"] = req_id

    log_with_context(logger, "INFO",
        f"Request completed: {request.method} {request.url.path} → {response.status_code}",
        context={"request_id": req_id},
        extra_data={
            "duration_ms": round(duration_ms, 2),
            "status_code": response.status_code
        })

    return response


# ──────────────────────────────────────────────────────────────
# Error handlers
# ──────────────────────────────────────────────────────────────
@app.exception_handler(StudentServiceError)
async def student_service_error_handler(request: Request, exc: StudentServiceError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    """Report malformed query strings and bodies in the same shape as field validation."""
    errors = []
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        errors.append({
            "field": ".".join(loc) or "body",
            "message": error.get("msg", "Invalid value")
        })
    return JSONResponse(status_code=400, content={"error": "Validation failed", "errors": errors})


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    # A known path with an unsupported method is reported like an unknown route
    if exc.status_code in (404, 405):
        return JSONResponse(status_code=404, content={"error": "Route not found"})
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail},
                        headers=getattr(exc, "headers", None))


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    log_with_context(logger, "ERROR",
        f"Unhandled error on {request.method} {request.url.path}: {exc}",
        exc_info=True)
    return JSONResponse(status_code=500,
                        content={"error": "Something went wrong!", "message": str(exc)})


# ──────────────────────────────────────────────────────────────
# Startup: confirm the database is reachable
# ──────────────────────────────────────────────────────────────
@app.on_event("startup")
def startup_event() -> None:
    try:
        check_connection()
        log_with_context(db_logger, "INFO", "Connected to database",
                         extra_data={"dialect": DATABASE_URL.split(":", 1)[0]})
    except SQLAlchemyError as e:
        log_with_context(db_logger, "ERROR", f"Error connecting to the database: {e}")


# ──────────────────────────────────────────────────────────────
# Register API routes
# ──────────────────────────────────────────────────────────────
app.include_router(students.router, tags=["Students"])


@app.get("/api/health", tags=["Health"])
def health_check():
    """Liveness probe; does not touch the database."""
    return {"status": "OK", "message": "Server is running"}


def run():
    """Serve the app with uvicorn on the configured host and port."""
    import uvicorn

    log_with_context(logger, "INFO", f"Server is running on http://{HOST}:{PORT}",
                     extra_data={"api": f"http://{HOST}:{PORT}/api/students"})
    uvicorn.run(app, host=HOST, port=PORT, log_config=None)


if __name__ == "__main__":
    run()
