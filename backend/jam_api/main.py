"""FastAPI application entry point."""
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from jam_api.config import settings
from jam_api.database import Database
from jam_api.errors import SettlementError, ValidationError
from jam_api.schemas.response import failure

# Import routers
from jam_api.routers import settlements, users

# Import all models so Base.metadata knows about them
import jam_api.models  # noqa: F401

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Jam Settlements",
    description="Expense settlement reconciliation for shared events: who paid whom, confirmed by both sides",
    version="0.1.0",
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register routers
app.include_router(settlements.router, prefix="/api", tags=["Settlements"])
app.include_router(users.router, prefix="/api/users", tags=["Users"])


@app.exception_handler(SettlementError)
async def settlement_error_handler(request: Request, exc: SettlementError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=failure(exc.code, exc.message))


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    details = "; ".join(
        f"{'.'.join(str(p) for p in err['loc'] if p != 'body')}: {err['msg']}" for err in exc.errors()
    )
    return JSONResponse(
        status_code=ValidationError.status_code,
        content=failure(ValidationError.code, details or "Invalid request"),
    )


@app.on_event("startup")
def on_startup():
    """Open the database handle; create tables directly in SQLite dev mode."""
    if getattr(app.state, "database", None) is None:
        app.state.database = Database(settings.DATABASE_URL, echo=settings.DB_ECHO)
    if app.state.database.is_sqlite:
        app.state.database.create_all()
    logger.info("Jam settlements API started")


@app.on_event("shutdown")
def on_shutdown():
    database = getattr(app.state, "database", None)
    if database is not None:
        database.close()
        app.state.database = None


@app.get("/api/health")
def health_check():
    return {"status": "ok"}
