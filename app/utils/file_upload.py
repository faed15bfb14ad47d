"""
File upload utility functions

Uploaded images live on local disk under settings.UPLOAD_DIR and are served
from the /uploads static mount, so the stored URL is always
"/uploads/<subdirectory>/<filename>".
"""
import uuid
from pathlib import Path
from typing import List, Optional
from fastapi import UploadFile
import aiofiles
import logging
from app.config import settings
from app.utils.exceptions import InvalidArgument

logger = logging.getLogger(__name__)

UPLOAD_URL_PREFIX = "/uploads"


def is_allowed_file(filename: Optional[str], content_type: Optional[str] = None) -> bool:
    """Accept a file when either its extension or its content type says image"""
    extension = Path(filename).suffix.lower() if filename else ""
    if extension in settings.ALLOWED_EXTENSIONS:
        return True
    return bool(content_type) and content_type.startswith("image/")


async def save_upload_file(upload_file: UploadFile, subdirectory: str = "", max_size: Optional[int] = None) -> str:
    """
    Save uploaded file to disk

    Returns:
        URL path to the saved file
    """
    if not is_allowed_file(upload_file.filename, upload_file.content_type):
        raise InvalidArgument("Only images are allowed (jpeg, jpg, png, gif, webp)")

    content = await upload_file.read()
    if max_size is not None and len(content) > max_size:
        raise InvalidArgument(f"Image exceeds the {max_size // (1024 * 1024)}MB limit")

    # Generate unique filename
    file_extension = Path(upload_file.filename).suffix.lower() if upload_file.filename else ""
    unique_filename = f"{uuid.uuid4().hex}{file_extension or '.jpg'}"

    upload_dir = Path(settings.UPLOAD_DIR) / subdirectory
    upload_dir.mkdir(parents=True, exist_ok=True)

    file_path = upload_dir / unique_filename
    async with aiofiles.open(file_path, 'wb') as out_file:
        await out_file.write(content)

    logger.info(f"Saved upload {upload_file.filename} as {file_path}")

    if subdirectory:
        return f"{UPLOAD_URL_PREFIX}/{subdirectory}/{unique_filename}"
    return f"{UPLOAD_URL_PREFIX}/{unique_filename}"


async def save_upload_files(upload_files: List[UploadFile], subdirectory: str = "", max_size: Optional[int] = None) -> List[str]:
    """Save several files in order; already written files are removed if one fails"""
    urls: List[str] = []
    try:
        for upload_file in upload_files:
            urls.append(await save_upload_file(upload_file, subdirectory, max_size))
    except Exception:
        delete_files(urls)
        raise
    return urls


def url_to_path(file_url: str) -> Optional[Path]:
    """Map a stored /uploads URL back to its location on disk"""
    if not file_url or not file_url.startswith(UPLOAD_URL_PREFIX + "/"):
        return None
    relative = file_url[len(UPLOAD_URL_PREFIX) + 1:]
    return Path(settings.UPLOAD_DIR) / relative


def delete_file(file_url: str) -> bool:
    """Delete file from disk"""
    full_path = url_to_path(file_url)
    if full_path is None:
        return False
    try:
        if full_path.exists():
            full_path.unlink()
            return True
        return False
    except OSError as e:
        logger.error(f"Error deleting file {full_path}: {e}")
        return False


def delete_files(file_urls: List[str]) -> None:
    for file_url in file_urls:
        delete_file(file_url)
