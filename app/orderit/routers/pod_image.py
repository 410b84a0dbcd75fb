from fastapi import APIRouter, Depends, Query, Response

from app.orderit.core import config
from app.orderit.schemas.errors import ApiErrorResponse
from app.orderit.services.pod_images import PodImageStore, get_pod_image_store

router = APIRouter()


@router.get(
    "/api/pod-image",
    response_class=Response,
    responses={400: {"model": ApiErrorResponse}, 404: {"model": ApiErrorResponse}},
)
def get_pod_image(
    path: str | None = Query(default=None),
    store: PodImageStore = Depends(get_pod_image_store),
):
    image = store.read(path)
    return Response(
        content=image.content,
        media_type=image.content_type,
        headers={"Cache-Control": f"public, max-age={config.settings.POD_IMAGE_CACHE_SECONDS}"},
    )
