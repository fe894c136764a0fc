"""
Content transfer strategies: hand Printify a reference to the image, or
upload it and return the upload id.
"""

from typing import Optional

import httpx

from printsync.config import logger
from printsync.core import storage_ops
from printsync.core.printify_client import PrintifyClient
from printsync.errors import TransferError
from printsync.models import ContentHandle

REFERENCE = "reference"
UPLOAD = "upload"


class ReferenceTransfer:
    """Place the source URL directly in the product request."""

    mode = REFERENCE

    async def transfer(self, reference: str, filename: str) -> ContentHandle:
        logger.info(f"Using source URL as placement reference: {reference}")
        return ContentHandle(url=reference)


class UrlUploadTransfer:
    """Ask Printify to fetch the image from its public URL."""

    mode = UPLOAD

    def __init__(self, client: PrintifyClient):
        self._client = client

    async def transfer(self, reference: str, filename: str) -> ContentHandle:
        logger.info(f"Uploading to Printify via URL: {reference}")
        upload_id = await self._client.upload_image_url(reference, filename)
        logger.info(f"Printify accepted {filename} as image {upload_id}")
        return ContentHandle(upload_id=upload_id)


class FileUploadTransfer:
    """Download the image, stage it locally and push it as a multipart upload."""

    mode = UPLOAD

    def __init__(
        self,
        client: PrintifyClient,
        staging_dir: str,
        *,
        timeout: float = 60.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self._client = client
        self._staging_dir = staging_dir
        self._timeout = timeout
        self._http = http_client

    async def _download(self, reference: str) -> bytes:
        try:
            if self._http is not None:
                response = await self._http.get(reference)
            else:
                async with httpx.AsyncClient(
                    timeout=self._timeout, follow_redirects=True
                ) as client:
                    response = await client.get(reference)
        except httpx.RequestError as e:
            raise TransferError(
                f"Image download failed: {e}", kind=TransferError.DOWNLOAD
            ) from e

        if response.is_error:
            raise TransferError(
                f"Image download failed: {response.status_code}",
                kind=TransferError.DOWNLOAD,
                status_code=response.status_code,
            )
        return response.content

    async def transfer(self, reference: str, filename: str) -> ContentHandle:
        logger.info(f"Downloading source image: {reference}")
        data = await self._download(reference)

        try:
            async with storage_ops.staged_file(self._staging_dir, data, filename) as path:
                upload_id = await self._client.upload_image_file(path, filename)
        except OSError as e:
            raise TransferError(
                f"Local staging failed for {filename}: {e}", kind=TransferError.IO
            ) from e

        logger.info(f"Uploaded {filename} ({len(data)} bytes) as image {upload_id}")
        return ContentHandle(upload_id=upload_id)


def build_transfer(
    mode: str,
    client: PrintifyClient,
    *,
    upload_strategy: str = "url",
    staging_dir: str = "./tmp",
    timeout: float = 60.0,
):
    """Pick the transfer strategy for the configured ingestion mode."""
    if mode == REFERENCE:
        return ReferenceTransfer()
    if mode != UPLOAD:
        raise ValueError(f"Unknown ingestion mode: {mode}")
    if upload_strategy == "file":
        return FileUploadTransfer(client, staging_dir, timeout=timeout)
    if upload_strategy == "url":
        return UrlUploadTransfer(client)
    raise ValueError(f"Unknown upload strategy: {upload_strategy}")
