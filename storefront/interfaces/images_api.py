from pathlib import Path

from fastapi import APIRouter, Request

from storefront.core.exceptions import InputValidationError, NotFoundError

router = APIRouter(prefix="/api/images", tags=["images"])


@router.get("/image/{image_path:path}")
def get_image_url(image_path: str, request: Request):
    """Resolves a file under IMAGES_DIR to its public URL."""
    settings = request.app.state.settings
    if not image_path:
        raise InputValidationError("Missing path parameter")

    images_dir = Path(settings.IMAGES_DIR).resolve()
    full_path = (images_dir / image_path).resolve()
    if images_dir != full_path and images_dir not in full_path.parents:
        raise InputValidationError("Bad path")
    if not full_path.is_file():
        raise NotFoundError("File not found")

    relative = full_path.relative_to(images_dir).as_posix()
    return {"imageUrl": f"{settings.public_url}/images/{relative}"}
