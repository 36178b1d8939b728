"""
Main FastAPI application.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import Depends, FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from storefront.auth import require_cron_token, require_sync_key
from storefront.config import settings
from storefront.database import AsyncSessionLocal, create_tables
from storefront.errors import (
    CategoryNotFound,
    NotificationFailed,
    ReadUnavailable,
    SourceUnavailable,
    SyncInProgress,
)
from storefront.logger import setup_logger
from storefront.notifications import TelegramNotifier
from storefront.read_service import CatalogReadService
from storefront.schemas import (
    CatalogResult,
    ErrorResponse,
    OrderRequest,
    OrderResponse,
    RemovalPolicy,
    RemovalReport,
    SyncReport,
    SyncStatus,
)
from storefront.sheets import BaseCatalogSource, SheetsCatalogReader
from storefront.sheets.fallback import fallback_catalog
from storefront.store import CatalogStore
from storefront.sync import SyncEngine

logger = logging.getLogger(__name__)


# Global service instances
catalog_source = SheetsCatalogReader()
catalog_store = CatalogStore(AsyncSessionLocal)
sync_engine = SyncEngine(catalog_source, catalog_store)
read_service = CatalogReadService(catalog_store, catalog_source)
notifier = TelegramNotifier()


def get_catalog_source() -> BaseCatalogSource:
    return catalog_source


def get_catalog_store() -> CatalogStore:
    return catalog_store


def get_sync_engine() -> SyncEngine:
    return sync_engine


def get_read_service() -> CatalogReadService:
    return read_service


def get_notifier() -> TelegramNotifier:
    return notifier


# Lifespan context manager for startup/shutdown
@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Handle startup and shutdown events."""
    setup_logger()
    logger.info("Creating database tables...")
    await create_tables()
    logger.info("Database ready")

    if not settings.GOOGLE_SHEET_ID:
        logger.warning("GOOGLE_SHEET_ID is not set; source reads and syncs will fail")
    if not notifier.is_configured:
        logger.warning("Telegram is not configured; order submission will fail")

    yield

    logger.info("Server shutting down...")
    await catalog_source.close()
    await notifier.close()


# Create FastAPI app
app = FastAPI(
    title="Storefront Catalog API",
    description="Spreadsheet-backed product catalog with a relational mirror",
    version="1.0.0",
    lifespan=lifespan,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _error(status_code: int, error: str, detail: Optional[str] = None) -> JSONResponse:
    body = ErrorResponse(error=error, detail=detail)
    return JSONResponse(status_code=status_code, content=body.model_dump())


@app.exception_handler(SyncInProgress)
async def sync_in_progress_handler(request: Request, exc: SyncInProgress) -> JSONResponse:
    return _error(409, "Sync already running", str(exc))


@app.exception_handler(CategoryNotFound)
async def category_not_found_handler(request: Request, exc: CategoryNotFound) -> JSONResponse:
    return _error(404, "Category not found", exc.category)


@app.exception_handler(ReadUnavailable)
async def read_unavailable_handler(request: Request, exc: ReadUnavailable) -> JSONResponse:
    return _error(503, "Failed to fetch products", str(exc))


@app.exception_handler(SourceUnavailable)
async def source_unavailable_handler(request: Request, exc: SourceUnavailable) -> JSONResponse:
    return _error(503, "Source unavailable", str(exc))


@app.exception_handler(NotificationFailed)
async def notification_failed_handler(request: Request, exc: NotificationFailed) -> JSONResponse:
    return _error(502, "Failed to send message", str(exc))


@app.get("/")
async def root() -> dict:
    """Health check endpoint."""
    return {
        "status": "ok",
        "service": "Storefront Catalog API",
        "version": "1.0.0",
    }


@app.get("/api/health")
async def health_check(
    store: CatalogStore = Depends(get_catalog_store),
    engine: SyncEngine = Depends(get_sync_engine),
) -> dict:
    """Detailed health check."""
    database_ok = await store.exists()
    return {
        "status": "healthy" if database_ok else "degraded",
        "database": "connected" if database_ok else "unreachable",
        "sync": engine.state.value,
    }


@app.get(
    "/api/products",
    response_model=CatalogResult,
    responses={404: {"model": ErrorResponse, "description": "Unknown category"}},
)
async def list_source_products(
    category: Optional[str] = Query(None),
    source: BaseCatalogSource = Depends(get_catalog_source),
) -> CatalogResult:
    """
    Read straight from the spreadsheet.

    When the spreadsheet is unreachable, a fixed fallback catalog is
    returned with origin "fallback".
    """
    try:
        categories = await source.list_categories()
        selected = category or (categories[0] if categories else None)
        items = await source.fetch_category(selected) if selected else []
        return CatalogResult(
            items=items, categories=categories, selected_category=selected, origin="source"
        )
    except SourceUnavailable as e:
        logger.warning(f"[API] Source unavailable, serving fallback catalog: {e}")
        return fallback_catalog(str(e))


@app.get(
    "/api/products-store",
    response_model=CatalogResult,
    responses={503: {"model": ErrorResponse, "description": "Store and source both failed"}},
)
async def list_products(
    category: Optional[str] = Query(None),
    service: CatalogReadService = Depends(get_read_service),
) -> CatalogResult:
    """
    Catalog page from the store, falling back to the spreadsheet when
    the store fails.
    """
    return await service.get_catalog(category)


@app.api_route(
    "/api/sync-products",
    methods=["GET", "POST"],
    response_model=SyncReport,
    dependencies=[Depends(require_sync_key)],
    responses={
        401: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
        500: {"model": SyncReport},
    },
)
async def sync_products(
    category: Optional[str] = Query(None),
    engine: SyncEngine = Depends(get_sync_engine),
):
    """
    On-demand sync of one category, or of every category when none is given.
    """
    if not category:
        return await engine.sync_all()

    try:
        return await engine.sync_category(category)
    except (SyncInProgress, CategoryNotFound):
        raise
    except Exception as e:
        logger.error(f"[API] Sync of category {category} failed: {e}")
        report = SyncReport(success=False, message=f"Failed to sync products: {e}")
        return JSONResponse(status_code=500, content=report.model_dump())


@app.get(
    "/api/cron/sync-products",
    response_model=SyncReport,
    dependencies=[Depends(require_cron_token)],
    responses={401: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def scheduled_sync(engine: SyncEngine = Depends(get_sync_engine)) -> SyncReport:
    """Scheduled full sync."""
    logger.info("[API] Starting scheduled sync")
    report = await engine.sync_all()
    logger.info(f"[API] Scheduled sync completed: {report.message}")
    return report


@app.get(
    "/api/sync-products/status",
    response_model=SyncStatus,
    dependencies=[Depends(require_sync_key)],
)
async def sync_status(engine: SyncEngine = Depends(get_sync_engine)) -> SyncStatus:
    return engine.status()


@app.post(
    "/api/sync-products/prune",
    response_model=RemovalReport,
    dependencies=[Depends(require_sync_key)],
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def prune_products(
    category: str = Query(..., min_length=1),
    policy: RemovalPolicy = Query(RemovalPolicy.DEACTIVATE),
    engine: SyncEngine = Depends(get_sync_engine),
) -> RemovalReport:
    """
    Deactivate (or delete) store items that are no longer in the category's tab.
    """
    return await engine.handle_removed_products(category, policy=policy)


@app.post(
    "/api/orders",
    response_model=OrderResponse,
    responses={502: {"model": ErrorResponse, "description": "Notification failed"}},
)
async def submit_order(
    order: OrderRequest,
    telegram: TelegramNotifier = Depends(get_notifier),
) -> OrderResponse:
    """Forward an order summary to the shop's Telegram chat."""
    result = await telegram.send_order(order)
    return OrderResponse(success=True, message_id=result.get("message_id"))


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "storefront.main:app", host=settings.HOST, port=settings.PORT, reload=settings.DEBUG
    )
