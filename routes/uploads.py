from fastapi import APIRouter, Depends, File, UploadFile

from core.config import settings
from core.errors import AppException, ValidationException
from core.tenancy import get_current_store
from models.store import Store
from services.cloudinary import cloudinary_service

router = APIRouter(prefix="/uploads", tags=["uploads"])


@router.post("/image", status_code=201)
async def upload_image(
    image: UploadFile = File(...),
    store: Store = Depends(get_current_store),
):
    """Upload one post image; the returned URL goes into the post's images."""

    # Validate file type
    if not image.content_type or not image.content_type.startswith("image/"):
        raise ValidationException("File must be an image")

    # Validate file size
    file_data = await image.read()
    if len(file_data) > settings.MAX_UPLOAD_BYTES:
        raise ValidationException(
            f"File size must be at most {settings.MAX_UPLOAD_BYTES // (1024 * 1024)}MB"
        )

    success, url, error = cloudinary_service.upload_post_image(file_data=file_data, store_id=store.id)
    if not success:
        raise AppException("UPLOAD_FAILED", f"Failed to upload image: {error}", status_code=502)

    return {"imageUrl": url}
