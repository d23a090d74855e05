import logging
from datetime import datetime
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from contextlib import asynccontextmanager

from phishlens.config import settings
from phishlens.database import init_db
from phishlens.logging_config import configure_logging
from phishlens.api import analysis_routes, auth_routes

logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    configure_logging()
    logger.info(f"🚀 Starting {settings.APP_NAME} {settings.VERSION}...")
    init_db()
    yield
    # Shutdown
    logger.info(f"👋 Shutting down {settings.APP_NAME}...")


def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.VERSION,
        lifespan=lifespan
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "message": exc.detail},
            headers=getattr(exc, "headers", None)
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return JSONResponse(
            status_code=500,
            content={"success": False, "message": "Internal server error"}
        )

    # Include routers
    app.include_router(auth_routes.router, prefix=f"{settings.API_PREFIX}/auth", tags=["Auth"])
    app.include_router(analysis_routes.router, prefix=f"{settings.API_PREFIX}/analysis", tags=["Analysis"])

    @app.get("/")
    def root():
        return {
            "message": f"{settings.APP_NAME} API",
            "version": settings.VERSION,
            "docs": "/docs"
        }

    @app.get("/health")
    def health_check():
        return {
            "status": "healthy",
            "service": settings.APP_NAME,
            "version": settings.VERSION,
            "timestamp": datetime.utcnow().isoformat()
        }

    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("phishlens.main:app", host="0.0.0.0", port=8000, reload=False)
