"""
BARMM CASDT - Cancer screening client registry API
Role-gated registration, records, analytics and directory for barangay
health workers and regional administrators.
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .api import admin, analytics, auth, patients
from .core.config import settings
from .core.errors import CasdtError
from .core.request_logging import RequestLogMiddleware

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    if settings.STORE_BACKEND == "sql":
        from .models.base import Base, engine
        from .seed_demo import seed_demo_data

        # NOTE: In production, use Alembic migrations instead of create_all()
        Base.metadata.create_all(bind=engine)
        if settings.SEED_DEMO_DATA:
            seed_demo_data()
    logger.info("%s %s started (store=%s)", settings.APP_NAME, settings.VERSION, settings.STORE_BACKEND)
    yield


async def handle_domain_error(request: Request, exc: CasdtError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s on %s %s: %s", exc.kind, request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


def create_app() -> FastAPI:
    app = FastAPI(
        title="BARMM CASDT Registry API",
        description=(
            "Client Assessment, Screening, Diagnosis and Treatment registry "
            "for the regional cancer-screening program."
        ),
        version=settings.VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # TODO: Restrict to the deployed frontend origin
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestLogMiddleware)
    app.add_exception_handler(CasdtError, handle_domain_error)

    app.include_router(auth.router, prefix="/api/v1")
    app.include_router(patients.router, prefix="/api/v1")
    app.include_router(analytics.router, prefix="/api/v1")
    app.include_router(admin.router, prefix="/api/v1")

    @app.get("/health")
    def health_check():
        return {"status": "healthy", "service": settings.APP_NAME, "version": settings.VERSION}

    return app


app = create_app()
