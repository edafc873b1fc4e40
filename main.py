from contextlib import asynccontextmanager
from datetime import datetime

from fastapi import Depends, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from app_logging import configure_logging, get_logger
from config import settings
from database import engine, init_db
from dependencies import get_student_store, get_user_store
from stores import StoreError, StudentStore, UserStore

import attendance
import auth
import fees
import grades
import notifications
import reports
import students

configure_logging(settings.LOG_LEVEL)
logger = get_logger("school_api")


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db(engine)
    logger.info("database ready at %s", engine.url.render_as_string(hide_password=True))
    yield


app = FastAPI(
    title="School Management API",
    description="Students, grades, attendance, fees and notifications",
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth.router)
app.include_router(students.router)
app.include_router(grades.router)
app.include_router(attendance.router)
app.include_router(fees.router)
app.include_router(notifications.router)
app.include_router(reports.router)


# =============================================================================
# Error handlers: every failure is returned as {"error": message}
# =============================================================================


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if errors:
        first = errors[0]
        # drop the "body"/"query" prefix pydantic adds to locations
        loc = [str(p) for p in first.get("loc", ()) if p not in ("body", "query", "path")]
        message = first.get("msg", "Invalid request")
        if loc:
            message = f"{'.'.join(loc)}: {message}"
    else:
        message = "Invalid request"
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": message})


@app.exception_handler(StoreError)
async def store_error_handler(request: Request, exc: StoreError):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    logger.exception("database error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"error": str(exc)}
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"error": str(exc)}
    )


# =============================================================================
# Service endpoints
# =============================================================================


@app.get("/")
def home(
    students_store: StudentStore = Depends(get_student_store),
    users: UserStore = Depends(get_user_store),
):
    return {
        "message": "School Management System API",
        "status": "Running",
        "database": "Connected",
        "stats": {
            "total_students": students_store.count(),
            "total_users": users.count(),
        },
    }


@app.get("/health")
def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "timestamp": datetime.utcnow().isoformat()}


if __name__ == "__main__":
    import uvicorn

    logger.info("School Management Server running on port %s", settings.PORT)
    uvicorn.run(app, host="0.0.0.0", port=settings.PORT)
