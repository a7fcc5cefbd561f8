"""FastAPI application entry point."""
import asyncio
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text

from cdmi.config import settings
from cdmi.database import engine, get_db
from cdmi.errors import CdmiError, ErrorKind
from cdmi.models import Base

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables on startup, start the blob cleanup worker."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    from cdmi.services.cleanup_worker import worker_loop
    worker_task = asyncio.create_task(worker_loop())

    yield

    # Cleanup
    worker_task.cancel()
    await engine.dispose()


app = FastAPI(
    title="CDMI Uploads API",
    version="1.0.0",
    description="Backend API for row items, file archives and the fingerprint block-list.",
    lifespan=lifespan,
)

# CORS
origins = [o.strip() for o in settings.CORS_ORIGINS.split(",")]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(CdmiError)
async def cdmi_error_handler(request: Request, exc: CdmiError) -> JSONResponse:
    """Render pipeline errors as {error, message, details}."""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.kind.value}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Render FastAPI's own validation failures in the same shape."""
    return JSONResponse(
        status_code=422,
        content={
            "error": ErrorKind.VALIDATION.value,
            "message": "Invalid request",
            "details": {"errors": [
                {"loc": list(err.get("loc", ())), "msg": err.get("msg"), "type": err.get("type")}
                for err in exc.errors()
            ]},
        },
    )


@app.get("/api/health")
async def health_check():
    """Verify API and database connectivity."""
    try:
        async for db in get_db():
            await db.execute(text("SELECT 1"))
            return {"status": "ok", "database": "connected"}
    except Exception as e:
        return {"status": "error", "database": str(e)}


# Register routers
from cdmi.routes.rows import router as rows_router
from cdmi.routes.fingerprints import router as fingerprints_router
from cdmi.routes.login_logs import router as login_logs_router
app.include_router(rows_router)
app.include_router(fingerprints_router)
app.include_router(login_logs_router)
