import logging
import os
import re
import uuid
from typing import Optional

import boto3
from botocore.config import Config
from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile

from ..auth import get_current_user
from ..config import MAX_FILE_SIZE, R2_ACCESS_KEY_ID, R2_ACCOUNT_ID, R2_BUCKET_NAME, R2_PUBLIC_URL, R2_SECRET_ACCESS_KEY
from ..models import User
from ..security_utils import sanitize_filename

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/files", tags=["Files"])

KEY_PREFIX = "job-event"
MAX_FILES_PER_REQUEST = 10

# Presigned URL expiration time (1 hour), used when no public bucket URL is configured
PRESIGNED_URL_EXPIRATION = 3600

ALLOWED_IMAGE_TYPES = {
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/png": "png",
    "image/gif": "gif",
    "image/webp": "webp",
}
ALLOWED_EXTENSIONS = ("jpeg", "jpg", "png", "gif", "webp")


def get_r2_client():
    """Create and return an R2 client."""
    return boto3.client(
        "s3",
        endpoint_url=f"https://{R2_ACCOUNT_ID}.r2.cloudflarestorage.com",
        aws_access_key_id=R2_ACCESS_KEY_ID,
        aws_secret_access_key=R2_SECRET_ACCESS_KEY,
        config=Config(signature_version="s3v4"),
    )


def object_url(r2, key: str) -> str:
    if R2_PUBLIC_URL:
        return f"{R2_PUBLIC_URL.rstrip('/')}/{key}"
    return r2.generate_presigned_url(
        "get_object",
        Params={"Bucket": R2_BUCKET_NAME, "Key": key, "ResponseContentDisposition": "inline"},
        ExpiresIn=PRESIGNED_URL_EXPIRATION,
    )


def folder_for(upload_type: Optional[str]) -> str:
    """Upload type as a single safe path segment"""
    folder = re.sub(r"[^a-zA-Z0-9_-]", "", upload_type or "")
    return folder or "general"


def file_extension(file: UploadFile) -> str:
    name = sanitize_filename(file.filename or "")
    ext = os.path.splitext(name)[1].lstrip(".").lower()
    if ext in ALLOWED_EXTENSIONS:
        return ext
    return ALLOWED_IMAGE_TYPES[file.content_type]


async def read_image(file: UploadFile) -> bytes:
    """Read an upload, rejecting non-images and files over MAX_FILE_SIZE"""
    if file.content_type not in ALLOWED_IMAGE_TYPES:
        raise HTTPException(
            status_code=400,
            detail="Invalid file type. Only JPEG, PNG, GIF and WebP images are allowed.",
        )

    contents = await file.read()
    if len(contents) > MAX_FILE_SIZE:
        raise HTTPException(
            status_code=400,
            detail=f"File size exceeds {MAX_FILE_SIZE // (1024 * 1024)}MB limit",
        )
    return contents


def store_image(r2, file: UploadFile, contents: bytes, upload_type: Optional[str]) -> dict:
    ext = file_extension(file)
    key = f"{KEY_PREFIX}/{folder_for(upload_type)}/{uuid.uuid4()}.{ext}"
    r2.put_object(Bucket=R2_BUCKET_NAME, Key=key, Body=contents, ContentType=file.content_type)
    logger.info(f"✅ Stored {key} ({len(contents)} bytes)")
    return {"url": object_url(r2, key), "publicId": key, "format": ext, "size": len(contents)}


@router.post("/upload")
async def upload_file(
    file: UploadFile = File(...),
    type: str = Form("general"),
    current_user: User = Depends(get_current_user),
):
    """Upload one image to R2."""
    logger.info(f"📤 User {current_user.id} uploading {file.filename} ({type})")
    contents = await read_image(file)

    try:
        result = store_image(get_r2_client(), file, contents, type)
    except Exception as e:
        logger.error(f"❌ Upload failed: {str(e)}")
        raise HTTPException(status_code=500, detail="Upload failed")

    return {"success": True, "data": result}


@router.post("/upload-multiple")
async def upload_multiple_files(
    files: list[UploadFile] = File(...),
    type: str = Form("general"),
    current_user: User = Depends(get_current_user),
):
    """Upload up to ten images to R2."""
    if not files:
        raise HTTPException(status_code=400, detail="No files uploaded")
    if len(files) > MAX_FILES_PER_REQUEST:
        raise HTTPException(status_code=400, detail=f"Maximum {MAX_FILES_PER_REQUEST} files per upload")

    # Validate everything before storing anything
    contents = [await read_image(file) for file in files]

    try:
        r2 = get_r2_client()
        stored = [store_image(r2, file, body, type) for file, body in zip(files, contents)]
    except Exception as e:
        logger.error(f"❌ Multiple upload failed: {str(e)}")
        raise HTTPException(status_code=500, detail="Upload failed")

    return {
        "success": True,
        "count": len(stored),
        "data": [{"url": item["url"], "publicId": item["publicId"]} for item in stored],
    }


@router.delete("/{public_id:path}")
async def delete_file(public_id: str, current_user: User = Depends(get_current_user)):
    """Delete an uploaded object by its key."""
    if not public_id.startswith(f"{KEY_PREFIX}/") or ".." in public_id:
        raise HTTPException(status_code=400, detail="Invalid file identifier")

    try:
        get_r2_client().delete_object(Bucket=R2_BUCKET_NAME, Key=public_id)
    except Exception as e:
        logger.error(f"❌ Failed to delete {public_id}: {str(e)}")
        raise HTTPException(status_code=500, detail="Delete failed")

    logger.info(f"🗑️ User {current_user.id} deleted {public_id}")
    return {"success": True, "message": "File deleted successfully"}
