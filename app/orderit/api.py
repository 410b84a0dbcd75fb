from fastapi import APIRouter

from app.orderit.core import config
from app.orderit.routers.health import router as health_router
from app.orderit.routers.metrics import router as metrics_router
from app.orderit.routers.pod_image import router as pod_image_router
from app.orderit.routers.proxy import router as proxy_router

api_router = APIRouter()
api_router.include_router(health_router)
api_router.include_router(pod_image_router, tags=["pod"])
api_router.include_router(proxy_router, tags=["proxy"])
if config.settings.METRICS_ENABLED:
    api_router.include_router(metrics_router, tags=["ops"])
