import logging
import uuid
from typing import Optional, Tuple

import cloudinary
import cloudinary.uploader
from cloudinary.exceptions import Error as CloudinaryError

from core.config import settings

logger = logging.getLogger(__name__)


class CloudinaryService:
    def __init__(self):
        # Configure Cloudinary from settings
        cloudinary.config(
            cloud_name=settings.CLOUDINARY_CLOUD_NAME,
            api_key=settings.CLOUDINARY_API_KEY,
            api_secret=settings.CLOUDINARY_API_SECRET,
            secure=True
        )

    def upload_post_image(self, file_data: bytes, store_id: str) -> Tuple[bool, Optional[str], Optional[str]]:
        """
        Upload a sale post image to Cloudinary

        Args:
            file_data: Binary data of the image file
            store_id: ID of the store uploading the image

        Returns:
            Tuple of (success: bool, url: Optional[str], error: Optional[str])
        """
        try:
            # Prefixed by store, unique per upload
            public_id = f"{store_id}_{uuid.uuid4().hex}"

            result = cloudinary.uploader.upload(
                file_data,
                public_id=public_id,
                folder="sale_posts",
                resource_type="image",
                width=1200,
                crop="limit",
                quality="auto",
                fetch_format="auto"
            )

            return True, result.get("secure_url"), None

        except CloudinaryError as e:
            logger.error("Cloudinary upload failed for store %s: %s", store_id, e)
            return False, None, str(e)


# Global instance
cloudinary_service = CloudinaryService()
