import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from docvault.api.http import documents_router, health_router, users_router
from docvault.core.config import PlanTable, get_settings
from docvault.core.db import SessionLocal, engine
from docvault.core.exceptions import ConfigurationError, DocVaultError
from docvault.core.logging import setup_logging
from docvault.db.models import Base
from docvault.db.repositories.user_repository import UserRepository
from docvault.domains.storage.context import StorageContext

logger = logging.getLogger(__name__)


async def check_stored_plans(session: AsyncSession, plans: PlanTable) -> None:
    """Все планы, записанные у владельцев, должны быть в таблице планов"""
    stored = await UserRepository(session).distinct_plans()

    unknown = sorted(stored - set(plans))
    if unknown:
        raise ConfigurationError(f"Owners reference unknown plans: {', '.join(unknown)}")


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    setup_logging(settings.log_level)

    plans = PlanTable.from_settings(settings)
    logger.info(f"Loaded plan table: {plans!r}")

    try:
        if settings.create_schema:
            async with engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)

        async with SessionLocal() as session:
            await check_stored_plans(session, plans)

        storage = StorageContext.from_settings(settings, plans)
        swept = await storage.blob_store.sweep_partials(settings.partial_upload_max_age_seconds)
        if swept:
            logger.warning(f"Removed {len(swept)} stale partial uploads on startup")

        app.state.storage = storage
        yield
    finally:
        await engine.dispose()


app = FastAPI(
    title="DocVault",
    description="Хранилище документов с квотами по тарифным планам",
    version="1.0.0",
    lifespan=lifespan
)


@app.exception_handler(DocVaultError)
async def docvault_error_handler(request: Request, exc: DocVaultError):
    """Единый формат ответа для доменных ошибок"""
    if isinstance(exc, ConfigurationError):
        logger.critical(f"Configuration error on {request.method} {request.url.path}: {exc.message}")
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": {
                "code": exc.code,
                "message": "Server configuration error.",
                "statusCode": exc.status_code,
            }}
        )

    if exc.status_code >= 500:
        logger.error(f"{exc.code} on {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.payload)


# Подключаем роутеры
app.include_router(health_router)
app.include_router(users_router)
app.include_router(documents_router)


@app.get("/")
async def root():
    """Корневой эндпоинт"""
    return {
        "message": "DocVault API",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/health"
    }
