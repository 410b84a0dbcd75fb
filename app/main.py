from fastapi import FastAPI

from app.orderit.api import api_router
from app.orderit.core import config
from app.orderit.core.errors import setup_exception_handlers
from app.orderit.core.logging import configure_logging
from app.orderit.middleware.observability import ObservabilityMiddleware
from app.orderit.middleware.trace import TraceIdMiddleware


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(title=config.settings.APP_NAME)
    app.add_middleware(TraceIdMiddleware)
    app.add_middleware(ObservabilityMiddleware)
    setup_exception_handlers(app)
    app.include_router(api_router)
    return app


app = create_app()
