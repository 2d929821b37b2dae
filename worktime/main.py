from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from worktime.core.logging import configure_logging
from worktime.models import entry_edit, proof_of_work, time_entry, worker  # noqa: F401
from worktime.routers.approvals import router as approvals_router
from worktime.routers.auth import router as auth_router
from worktime.routers.data import router as data_router
from worktime.routers.reports import router as reports_router
from worktime.routers.time_entries import router as time_entries_router
from worktime.routers.tracking import router as tracking_router
from worktime.routers.workers import router as workers_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    logger.info("Worktime starting")
    yield


app = FastAPI(
    title="Worktime",
    lifespan=lifespan,
)


@app.middleware("http")
async def catch_unhandled_exceptions(request: Request, call_next):
    try:
        return await call_next(request)
    except Exception:
        logger.exception("Unhandled exception", extra={"path": request.url.path})
        return JSONResponse(status_code=500, content={"detail": "Internal Server Error"})


app.include_router(auth_router)
app.include_router(workers_router)
app.include_router(tracking_router)
app.include_router(time_entries_router)
app.include_router(approvals_router)
app.include_router(reports_router)
app.include_router(data_router)


@app.get("/")
def root():
    return {"status": "Worktime running"}


@app.get("/health")
def health():
    return {
        "status": "ok",
        "version": "1.0.0",
    }
