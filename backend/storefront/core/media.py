"""
Media host connector

Images (store covers, product photos, user avatars) are pushed to a
Cloudinary-compatible upload API. Incoming multipart files are first staged
on local scratch storage; the staged copy is always removed, whether the
remote upload succeeds or fails.

Usage:
    async with stage_upload(file, settings) as path:
        asset = await media.upload(path, folder="stores", public_id=f"{store_id}_cover_photo")
"""
import hashlib
import logging
import os
import tempfile
import time
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Dict

import httpx
from fastapi import UploadFile

from storefront.core.config import Settings
from storefront.core.errors import ClientError, ServerError

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024


@dataclass
class MediaAsset:
    """Public location of an uploaded file"""
    id: str
    url: str

    def to_dict(self) -> dict:
        return {"id": self.id, "url": self.url}


@asynccontextmanager
async def stage_upload(upload: UploadFile, settings: Settings):
    """
    Write an uploaded file to scratch storage and yield its path

    The file is deleted when the block exits, on success or failure.

    Raises:
        ClientError: file larger than MAX_UPLOAD_BYTES
    """
    os.makedirs(settings.UPLOAD_SCRATCH_DIR, exist_ok=True)
    suffix = os.path.splitext(upload.filename or "")[1]
    fd, path = tempfile.mkstemp(prefix="upload_", suffix=suffix, dir=settings.UPLOAD_SCRATCH_DIR)

    try:
        written = 0
        with os.fdopen(fd, "wb") as staged:
            while True:
                chunk = await upload.read(CHUNK_SIZE)
                if not chunk:
                    break
                written += len(chunk)
                if written > settings.MAX_UPLOAD_BYTES:
                    raise ClientError(
                        f"File '{upload.filename}' exceeds {settings.MAX_UPLOAD_BYTES} bytes"
                    )
                staged.write(chunk)
        logger.debug(f"Staged {upload.filename} ({written} bytes) at {path}")
        yield path
    finally:
        try:
            os.unlink(path)
        except FileNotFoundError:
            pass


class MediaHost:
    """
    Connector for the media upload API

    Handles:
    - Signed uploads of local files
    - Folder layout under MEDIA_ROOT_FOLDER (stores, products, users)
    """

    def __init__(self, settings: Settings, client: httpx.AsyncClient = None):
        self.settings = settings
        self.upload_url = settings.media_upload_url
        self._client = client or httpx.AsyncClient(timeout=settings.MEDIA_TIMEOUT_SECONDS)

    def sign(self, params: Dict[str, str]) -> str:
        """SHA-1 signature over the sorted upload parameters plus the API secret"""
        to_sign = "&".join(f"{key}={params[key]}" for key in sorted(params))
        return hashlib.sha1(f"{to_sign}{self.settings.MEDIA_API_SECRET}".encode()).hexdigest()

    async def upload(self, path: str, folder: str, public_id: str) -> MediaAsset:
        """
        Upload a local file

        Args:
            path: staged file on local disk
            folder: sub-folder under MEDIA_ROOT_FOLDER (stores, products, users)
            public_id: identifier the asset is stored under

        Returns:
            MediaAsset with the public id and secure URL

        Raises:
            ServerError: the media host rejected the upload or was unreachable
        """
        params = {
            "folder": f"{self.settings.MEDIA_ROOT_FOLDER}/{folder}",
            "format": "jpg",
            "public_id": public_id,
            "timestamp": str(int(time.time())),
        }
        data = dict(params)
        data["api_key"] = self.settings.MEDIA_API_KEY
        data["signature"] = self.sign(params)

        try:
            with open(path, "rb") as staged:
                response = await self._client.post(
                    self.upload_url,
                    data=data,
                    files={"file": (os.path.basename(path), staged)},
                )
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPError as e:
            logger.error(f"Media upload of {public_id} failed: {e}")
            raise ServerError(f"Image upload failed: {e}")

        url = body.get("secure_url") or body.get("url")
        if not url:
            raise ServerError("Image upload failed: media host returned no URL")

        logger.info(f"Uploaded {params['folder']}/{public_id}")
        return MediaAsset(id=body.get("public_id", public_id), url=url)

    async def upload_file(self, upload: UploadFile, folder: str, public_id: str) -> MediaAsset:
        """Stage a multipart file, upload it, and clean up the staged copy"""
        async with stage_upload(upload, self.settings) as path:
            return await self.upload(path, folder, public_id)

    async def close(self) -> None:
        await self._client.aclose()
