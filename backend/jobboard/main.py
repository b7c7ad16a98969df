import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from jobboard.config import settings
from jobboard.errors import JobBoardError, UpstreamError
from jobboard.routers import (
    analytics, appointments, jobs, notifications, quotes, technicians, users, webhooks,
)
from jobboard.utils.timestamps import format_timestamp, utc_now

logger = logging.getLogger("jobboard")


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: create the schema and apply pending migrations
    try:
        from jobboard.database import init_db
        settings.data_path.mkdir(parents=True, exist_ok=True)
        init_db(settings.db_path)
        logger.info("Database ready at %s", settings.db_path)
    except Exception as exc:
        logger.error("Could not initialise database: %s", exc)
        raise
    yield


app = FastAPI(
    title="Job Board Service",
    description="Field-service job tracking: reminder webhooks, appointment sync and quote intake",
    version="0.1.0",
    lifespan=lifespan,
)

# Browser clients and third-party webhook senders call from arbitrary origins.
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(JobBoardError)
async def job_board_error_handler(request: Request, exc: JobBoardError):
    content = {"error": exc.message, **exc.extra}
    if isinstance(exc, UpstreamError) and exc.upstream_status is not None:
        content.setdefault("upstream_status", exc.upstream_status)
    return JSONResponse(status_code=exc.status_code, content=content)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = [
        f"{'.'.join(str(p) for p in err['loc'] if p != 'body')}: {err['msg']}"
        for err in exc.errors()
    ]
    return JSONResponse(status_code=400, content={"error": "; ".join(errors) or "Invalid request"})


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail},
                        headers=getattr(exc, "headers", None))


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error", "timestamp": format_timestamp(utc_now())},
    )


app.include_router(jobs.router, prefix=settings.api_prefix)
app.include_router(notifications.router, prefix=settings.api_prefix)
app.include_router(appointments.router, prefix=settings.api_prefix)
app.include_router(analytics.router, prefix=settings.api_prefix)
app.include_router(webhooks.router, prefix=settings.api_prefix)
app.include_router(quotes.router, prefix=settings.api_prefix)
app.include_router(technicians.router, prefix=settings.api_prefix)
app.include_router(users.router, prefix=settings.api_prefix)


@app.get("/health")
async def health():
    return {"status": "ok", "version": "0.1.0"}


if __name__ == "__main__":
    import uvicorn
    logging.basicConfig(level=logging.INFO)
    uvicorn.run("jobboard.main:app", host=settings.host, port=settings.port)
