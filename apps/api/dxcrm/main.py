import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor

from dxcrm import __version__
from dxcrm.api.routes import router as api_router
from dxcrm.core.config import get_settings
from dxcrm.core.context import RequestContextMiddleware
from dxcrm.core.errors import register_exception_handlers
from dxcrm.logging import configure_logging
from dxcrm.middleware.correlation_id import CorrelationIdMiddleware
from dxcrm.middleware.request_logging import RequestLoggingMiddleware
from dxcrm.otel import server_request_hook, setup_otel


configure_logging()
logger = logging.getLogger("dxcrm.lifecycle")


@asynccontextmanager
async def lifespan(_: FastAPI):
    logger.info("system.started")
    yield
    logger.info("system.stopped")


settings = get_settings()

app = FastAPI(title=settings.app_name, version=__version__, lifespan=lifespan)
register_exception_handlers(app)
app.add_middleware(RequestContextMiddleware)
app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(CorrelationIdMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["x-correlation-id", "x-request-id"],
)
app.include_router(api_router)

setup_otel(settings)

if not getattr(app, "_is_instrumented_by_opentelemetry", False):
    FastAPIInstrumentor().instrument_app(app, server_request_hook=server_request_hook)
