from fastapi import APIRouter, Request

from app.orderit.core import config
from app.orderit.core.context import request_trace_id

router = APIRouter()


@router.get("/health")
async def health(request: Request):
    trace_id = request_trace_id(request)
    return {"status": "ok", "app": config.settings.APP_NAME, "trace_id": trace_id}
