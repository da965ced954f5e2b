from fastapi import FastAPI, Depends, Request, Response, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import HTTPException, RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import structlog

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from api.config import settings
from api.database import init_db, close_db, get_db
from api.logging_config import setup_logging
from api.middleware.correlation import CorrelationIdMiddleware
from api.services.ai_client import get_ai_client

# Import models so they are registered with Base.metadata
import api.models  # noqa: F401

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    logger.info(
        "starting_siteledger",
        env=settings.ENVIRONMENT,
        ai_configured=get_ai_client().is_configured,
    )
    await init_db()
    yield
    await get_ai_client().aclose()
    await close_db()


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url="/redoc" if settings.DEBUG else None,
    lifespan=lifespan,
)


# ---------------------------------------------------------------------------
# Global exception handlers: every error body is
# {"error": {"code": "...", "message": "..."}}
# ---------------------------------------------------------------------------

@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    detail = exc.detail
    if isinstance(detail, str):
        detail = {"error": {"code": "HTTP_ERROR", "message": detail}}
    elif isinstance(detail, dict) and "error" not in detail:
        detail = {"error": detail}
    return JSONResponse(status_code=exc.status_code, content=detail, headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=422,
        content={
            "error": {
                "code": "VALIDATION_ERROR",
                "message": "Request validation failed",
                "details": jsonable_encoder(exc.errors()),
            }
        },
    )


app.add_middleware(CorrelationIdMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_origin_regex=settings.CORS_ORIGIN_REGEX,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", "X-Requested-With", "X-Request-ID"],
)


@app.get("/health", tags=["System"])
async def health(response: Response, db: AsyncSession = Depends(get_db)):
    health_status = {"status": "healthy", "version": settings.APP_VERSION, "checks": {}}

    try:
        await db.execute(text("SELECT 1"))
        health_status["checks"]["db"] = "ok"
    except Exception as e:
        logger.error("health_check_db_failed", error=str(e))
        health_status["checks"]["db"] = "error"
        health_status["status"] = "unhealthy"

    health_status["checks"]["ai"] = "configured" if get_ai_client().is_configured else "not_configured"

    if health_status["status"] == "unhealthy":
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    return health_status


# --- Routers ---
from api.routes.projects import router as projects_router  # noqa: E402
from api.routes.phases import router as phases_router  # noqa: E402
from api.routes.categories import router as categories_router  # noqa: E402
from api.routes.items import router as items_router  # noqa: E402
from api.routes.vendors import router as vendors_router  # noqa: E402
from api.routes.purchases import router as purchases_router  # noqa: E402
from api.routes.analytics import router as analytics_router  # noqa: E402
from api.routes.chat import router as chat_router  # noqa: E402
from api.routes.companies import router as companies_router  # noqa: E402

app.include_router(projects_router, prefix="/api/v1/projects", tags=["Projects"])
app.include_router(phases_router, prefix="/api/v1/phases", tags=["Phases"])
app.include_router(categories_router, prefix="/api/v1/categories", tags=["Categories"])
app.include_router(items_router, prefix="/api/v1/items", tags=["Items"])
app.include_router(vendors_router, prefix="/api/v1/vendors", tags=["Vendors"])
app.include_router(purchases_router, prefix="/api/v1/purchases", tags=["Purchases"])
app.include_router(analytics_router, prefix="/api/v1/analytics", tags=["Analytics"])
app.include_router(chat_router, prefix="/api/v1/chat", tags=["Chat"])
app.include_router(companies_router, prefix="/api/v1/companies", tags=["Companies"])
