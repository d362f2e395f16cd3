from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from storefront.application.auth_service import AuthService
from storefront.application.catalog_service import CatalogService
from storefront.application.order_pipeline import OrderSubmissionPipeline
from storefront.application.search_service import SearchService
from storefront.core.config import Settings
from storefront.core.exceptions import InputValidationError, PersistenceError, StorefrontError
from storefront.core.logging_config import get_logger, setup_logging
from storefront.infrastructure.database import build_engine, build_session_factory, init_db
from storefront.infrastructure.mail_dispatcher import SmtpMailDispatcher
from storefront.infrastructure.notification_composer import NotificationComposer
from storefront.infrastructure.repositories.order_repository import SqlOrderRepository
from storefront.infrastructure.repositories.product_repository import SqlProductRepository
from storefront.infrastructure.repositories.user_repository import SqlUserRepository
from storefront.interfaces import auth_api, catalog_api, images_api, orders_api, product_api, search_api
from storefront.interfaces.IMailDispatcher import IMailDispatcher
from storefront.interfaces.IOrderRepository import IOrderRepository

log = get_logger(__name__)


# ---------------------------------------------------------
# ERROR HANDLERS
# ---------------------------------------------------------
async def handle_input_error(request: Request, exc: InputValidationError):
    body = {"error": exc.message}
    if exc.details:
        body["details"] = exc.details
    if exc.code:
        body["code"] = exc.code
    return JSONResponse(status_code=exc.status_code, content=body)


async def handle_persistence_error(request: Request, exc: PersistenceError):
    log.error(f"❌ {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": "Storage failure", "message": exc.message},
    )


async def handle_storefront_error(request: Request, exc: StorefrontError):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


async def handle_request_validation(request: Request, exc: RequestValidationError):
    details = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        details.append(f"{location}: {error.get('msg')}" if location else error.get("msg"))
    return JSONResponse(status_code=400, content={"error": "Validation failed", "details": details})


# ---------------------------------------------------------
# COMPOSITION ROOT
# ---------------------------------------------------------
def create_app(
    settings: Optional[Settings] = None,
    *,
    mail_dispatcher: Optional[IMailDispatcher] = None,
    order_repo: Optional[IOrderRepository] = None,
) -> FastAPI:
    settings = settings or Settings()

    engine = build_engine(settings.DATABASE_URL)
    session_factory = build_session_factory(engine)
    product_repo = SqlProductRepository(session_factory)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        log.info(f"{settings.PROJECT_NAME} starting ({settings.APP_ENV}), public URL {settings.public_url}")
        app.state.db_ready = await run_in_threadpool(
            init_db, engine, settings.DB_CONNECT_RETRIES, settings.DB_CONNECT_WAIT_SECONDS
        )
        yield

    app = FastAPI(title=settings.PROJECT_NAME, lifespan=lifespan)
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = session_factory
    app.state.catalog_service = CatalogService(product_repo)
    app.state.search_service = SearchService(product_repo)
    app.state.auth_service = AuthService(
        SqlUserRepository(session_factory), settings.JWT_SECRET, settings.JWT_EXPIRES_IN
    )
    app.state.order_pipeline = OrderSubmissionPipeline(
        order_repo=order_repo or SqlOrderRepository(session_factory),
        composer=NotificationComposer(settings),
        mail_dispatcher=mail_dispatcher or SmtpMailDispatcher(settings),
        image_config=settings.image_urls(),
    )
    app.state.db_ready = False

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(InputValidationError, handle_input_error)
    app.add_exception_handler(PersistenceError, handle_persistence_error)
    app.add_exception_handler(StorefrontError, handle_storefront_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation)

    # Include Routers
    app.include_router(auth_api.router)
    app.include_router(catalog_api.router)
    app.include_router(product_api.router)
    app.include_router(search_api.router)
    app.include_router(images_api.router)
    app.include_router(orders_api.router)

    if Path(settings.IMAGES_DIR).is_dir():
        app.mount("/images", StaticFiles(directory=settings.IMAGES_DIR), name="images")
    else:
        log.warning(f"⚠️ IMAGES_DIR {settings.IMAGES_DIR} not found, /images is not served.")

    @app.get("/health")
    def health_check():
        status = "active" if app.state.db_ready else "degraded"
        return {"status": status, "system": settings.PROJECT_NAME}

    return app


def build_app() -> FastAPI:
    settings = Settings()
    setup_logging(settings.LOG_LEVEL, settings.LOG_FILE)
    return create_app(settings)
