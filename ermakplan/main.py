import os

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_fastapi_instrumentator import Instrumentator
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import settings
from .db import Base, SessionLocal, engine
from .logging import RequestIdMiddleware, get_logger, setup_logging
from .auth.router import router as auth_router
from .routes.dashboard import router as dashboard_router
from .routes.live import router as live_router
from .routes.location_reports import admin_router as admin_location_reports_router
from .routes.location_reports import router as location_reports_router
from .routes.notifications import router as notifications_router
from .routes.parts import router as parts_router
from .routes.plans import router as plans_router
from .routes.projects import router as projects_router
from .routes.reminders import router as reminders_router
from .routes.reports import router as reports_router
from .routes.tasks import router as tasks_router
from .routes.users import router as users_router
from .services.live_hub import LiveHub, start_liveness
from .services.seed import seed_demo_data


log = get_logger("ermakplan.app")


def _install_error_handlers(app: FastAPI) -> None:
    # Every error body is {"message": ...}

    @app.exception_handler(StarletteHTTPException)
    async def _http_error(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"message": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def _validation_error(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content={"message": "Validation error", "errors": jsonable_encoder(exc.errors())},
        )

    @app.exception_handler(RateLimitExceeded)
    async def _rate_limited(request: Request, exc: RateLimitExceeded):
        return JSONResponse(status_code=429, content={"message": "Too many requests"})

    @app.exception_handler(Exception)
    async def _unhandled(request: Request, exc: Exception):
        log.exception("unhandled_error", path=request.url.path, method=request.method)
        return JSONResponse(status_code=500, content={"message": "Internal server error"})


def create_app() -> FastAPI:
    setup_logging()
    app = FastAPI(title=settings.app_name)
    app.state.live_hub = LiveHub()
    app.state.liveness_task = None

    # Middlewares
    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    limiter = Limiter(key_func=get_remote_address, default_limits=[settings.rate_limit])
    app.state.limiter = limiter
    app.add_middleware(SlowAPIMiddleware)

    _install_error_handlers(app)

    # Routers
    app.include_router(auth_router)
    app.include_router(users_router)
    app.include_router(tasks_router)
    app.include_router(projects_router)
    app.include_router(reports_router)
    app.include_router(parts_router)
    app.include_router(plans_router)
    app.include_router(reminders_router)
    app.include_router(notifications_router)
    app.include_router(location_reports_router)
    app.include_router(admin_location_reports_router)
    app.include_router(dashboard_router)
    app.include_router(live_router)

    # Metrics
    Instrumentator().instrument(app).expose(app)

    @app.get("/api/health")
    def health():
        return {"status": "ok"}

    @app.on_event("startup")
    async def _startup():
        log.info("startup", environment=settings.environment)
        # Ensure local SQLite directory exists
        if settings.database_url.startswith("sqlite:///./var/"):
            os.makedirs("var", exist_ok=True)
        if settings.auto_create_db:
            Base.metadata.create_all(bind=engine)
        if settings.seed_demo_data:
            db = SessionLocal()
            try:
                if seed_demo_data(db):
                    log.info("demo_data_seeded")
            finally:
                db.close()
        app.state.liveness_task = start_liveness(app.state.live_hub, settings.liveness_interval_seconds)

    @app.on_event("shutdown")
    async def _shutdown():
        task = app.state.liveness_task
        if task is not None:
            task.cancel()
        app.state.liveness_task = None

    return app


app = create_app()
