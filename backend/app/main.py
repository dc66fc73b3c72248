"""FastAPI 应用"""
from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api.api_v1.api import api_router
from app.core.config import settings
from app.core.exceptions import DashboardBuilderError
from app.db.init_db import init_db
from app.db.session import get_db_session

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    with get_db_session() as db:
        await init_db(db, seed=settings.SEED_DEMO_DATA)
    logger.info("Dashboard Builder API 启动完成")
    yield


async def dashboard_builder_error_handler(request: Request, exc: DashboardBuilderError) -> JSONResponse:
    """业务异常 -> HTTP 响应"""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} 失败: {exc.message}")
    content = {"detail": exc.message, "error": exc.__class__.__name__}
    if exc.details:
        content["details"] = exc.details
    return JSONResponse(status_code=exc.status_code, content=content)


def create_app(*, run_startup: bool = True) -> FastAPI:
    app = FastAPI(
        title=settings.PROJECT_NAME,
        description="Dashboard builder: dashboards, widgets, permissions and data sources",
        version="0.1.0",
        lifespan=lifespan if run_startup else None,
    )

    # Set up CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[str(origin).rstrip("/") for origin in settings.BACKEND_CORS_ORIGINS] or ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(DashboardBuilderError, dashboard_builder_error_handler)

    # Include API router
    app.include_router(api_router, prefix=settings.API_V1_STR)
    return app


app = create_app()
