import logging

import requests
from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from app.orderit.core.context import request_trace_id
from app.orderit.core.metrics import metrics
from app.orderit.schemas.proxy import ProxyErrorResponse
from app.orderit.services.proxy import CORS_HEADERS, PREFLIGHT_MAX_AGE, BackendProxy, get_backend_proxy

logger = logging.getLogger(__name__)

router = APIRouter()


@router.options("/api/proxy/{path:path}")
async def proxy_preflight(path: str):
    return Response(status_code=200, headers={**CORS_HEADERS, "Access-Control-Max-Age": PREFLIGHT_MAX_AGE})


@router.api_route(
    "/api/proxy/{path:path}",
    methods=["GET", "POST", "PUT", "DELETE", "PATCH"],
    responses={500: {"model": ProxyErrorResponse}},
)
async def proxy_request(path: str, request: Request, proxy: BackendProxy = Depends(get_backend_proxy)):
    body = await request.body()
    try:
        reply = await run_in_threadpool(
            proxy.forward,
            request.method,
            path,
            query=request.url.query,
            body=body,
            authorization=request.headers.get("authorization"),
            trace_id=request_trace_id(request),
        )
    except (requests.RequestException, ValueError) as exc:
        logger.error("Proxy %s /%s failed: %s", request.method, path, exc)
        metrics.increment_proxy_upstream_error(request.method)
        request.state.error_code = "PROXY_ERROR"
        request.state.error_class = exc.__class__.__name__
        payload = ProxyErrorResponse(message=str(exc) or "Could not reach the backend")
        return JSONResponse(status_code=500, content=payload.model_dump())

    request.state.upstream_status = reply.status_code
    if reply.is_empty:
        return Response(status_code=reply.status_code, headers=CORS_HEADERS)
    if reply.is_json:
        return JSONResponse(status_code=reply.status_code, content=reply.body, headers=CORS_HEADERS)
    return Response(
        content=reply.body,
        status_code=reply.status_code,
        media_type=reply.content_type or "text/plain",
        headers=CORS_HEADERS,
    )
