import logging
import os

from fastapi import FastAPI, Request
from fastapi.openapi.utils import get_openapi
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from core.clock import utcnow
from core.config import settings
from core.db import SessionLocal, init_db
from core.errors import AppException
from repositories.sql import SqlRepository
from routes.admin import router as admin_router
from routes.auth import router as auth_router
from routes.posts import router as posts_router
from routes.stores import router as stores_router
from routes.uploads import router as uploads_router
from services.legacy_import import import_legacy_file
from services.stores import ensure_admin_user
from services.view_dedup import build_view_deduplicator

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)

# Add OpenAPI security schemes for Bearer token authentication on docs/redoc
def custom_openapi():
    if app.openapi_schema:
        return app.openapi_schema
    openapi_schema = get_openapi(
        title=app.title,
        version=app.version,
        description=app.description,
        routes=app.routes,
    )
    openapi_schema.setdefault("components", {})["securitySchemes"] = {
        "BearerAuth": {
            "type": "http",
            "scheme": "bearer",
            "bearerFormat": "JWT",
        }
    }
    # Apply BearerAuth globally so docs/redoc send it
    openapi_schema["security"] = [{"BearerAuth": []}]
    app.openapi_schema = openapi_schema
    return app.openapi_schema

app.openapi = custom_openapi


@app.exception_handler(AppException)
async def app_exception_handler(request: Request, exc: AppException):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(SQLAlchemyError)
async def database_exception_handler(request: Request, exc: SQLAlchemyError):
    logger.exception("Unhandled database error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"message": "Database error occurred", "code": "DATABASE_ERROR"})


app.include_router(auth_router, prefix=settings.API_PREFIX)
app.include_router(stores_router, prefix=settings.API_PREFIX)
app.include_router(posts_router, prefix=settings.API_PREFIX)
app.include_router(admin_router, prefix=settings.API_PREFIX)
app.include_router(uploads_router, prefix=settings.API_PREFIX)

# Per-application view cache; tests replace it between cases
app.state.view_deduplicator = build_view_deduplicator(settings)


@app.on_event("startup")
def on_startup():
    # Ensure tables exist (for dev/test; in prod use migrations)
    init_db()
    db = SessionLocal()
    try:
        repo = SqlRepository(db)
        import_legacy_file(repo, settings.LEGACY_DATABASE_FILE)
        ensure_admin_user(repo, utcnow())
    finally:
        db.close()


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
    }


if __name__ == "__main__":
    import uvicorn

    port = int(os.getenv("PORT", 8000))

    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=port,
        reload=settings.DEBUG,
    )
