import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from salesdesk.core import config
from salesdesk.core.config import API_PREFIX, CORS_ORIGINS
from salesdesk.core.database import Store
from salesdesk.core.errors import AppError
from salesdesk.core.logging_setup import configure_logging
from salesdesk.core.startup_checks import validate_environment
from salesdesk.middleware.observability import ObservabilityMiddleware
from salesdesk.services import queries
from salesdesk.services.passwords import hash_password, password_looks_hashed
from salesdesk.routers.customers import router as customers_router
from salesdesk.routers.internal_metrics import router as internal_metrics_router
from salesdesk.routers.pages import router as pages_router
from salesdesk.routers.products import router as products_router
from salesdesk.routers.users import router as users_router

configure_logging()

logger = logging.getLogger(__name__)
BOOTSTRAP_PREFIX = "[USER_BOOTSTRAP]"


def _bootstrap_initial_user(store: Store) -> None:
    if not config.DEV_USER_PASSWORD:
        logger.info("%s skipped: DEV_USER_PASSWORD not set", BOOTSTRAP_PREFIX)
        return

    username = config.DEV_USER_USERNAME
    with store.session() as db:
        if queries.select_user_by_username(db, username) is not None:
            logger.info("%s exists username=%s", BOOTSTRAP_PREFIX, username)
            return

        password = config.DEV_USER_PASSWORD
        user = queries.insert_user(
            db,
            username=username,
            firstname=username,
            lastname="",
            email=f"{username}@localhost",
            password_hash=password if password_looks_hashed(password) else hash_password(password),
        )
        logger.info("%s created id=%s username=%s", BOOTSTRAP_PREFIX, user.id, username)


def _startup_tasks(store: Store) -> None:
    try:
        validate_environment(store.url)
        store.create_schema()
        _bootstrap_initial_user(store)
    except Exception:
        logger.exception("startup failed")
        raise


async def _app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(
            "request failed: %s",
            exc.message,
            exc_info=(type(exc), exc, exc.__traceback__),
        )
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=exc.headers)


async def _request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    fields = {}
    for error in exc.errors():
        location = [str(part) for part in error.get("loc", ()) if part != "body"]
        fields[".".join(location) or "body"] = error.get("msg", "Invalid value")
    return JSONResponse(status_code=422, content={"error": "Invalid input", "fields": fields})


def create_app(store: Optional[Store] = None) -> FastAPI:
    resolved_store = store or Store()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        _startup_tasks(app.state.store)
        yield
        app.state.store.dispose()

    app = FastAPI(
        title="SalesDesk API",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )
    app.state.store = resolved_store

    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(ObservabilityMiddleware)

    app.add_exception_handler(AppError, _app_error_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)

    # Routers
    app.include_router(users_router, prefix=API_PREFIX)
    app.include_router(customers_router, prefix=API_PREFIX)
    app.include_router(products_router, prefix=API_PREFIX)
    app.include_router(internal_metrics_router)
    app.include_router(pages_router)

    @app.get("/")
    def root():
        return {"status": "ok"}

    @app.get("/health")
    def health():
        return {"status": "healthy"}

    return app


app = create_app()
