"""
Async client for the Printify REST API.
Covers catalog discovery, image uploads and product creation.
"""

import asyncio
import os
from typing import Any, Dict, List, Optional

import httpx

from printsync.config import logger
from printsync.errors import CatalogRequestError, SubmissionError, TransferError

DEFAULT_API_URL = "https://api.printify.com/v1"


def _response_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text


def _read_file(path: str) -> bytes:
    with open(path, "rb") as handle:
        return handle.read()


class PrintifyClient:
    def __init__(
        self,
        api_key: str,
        shop_id: str,
        *,
        base_url: str = DEFAULT_API_URL,
        timeout: float = 30.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.shop_id = shop_id
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=timeout)
        self._base_url = base_url.rstrip("/")
        self._headers = {"Authorization": f"Bearer {api_key.strip()}"}

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http.aclose()

    def _url(self, path: str) -> str:
        return f"{self._base_url}/{path.lstrip('/')}"

    # -------------------------
    # Catalog discovery
    # -------------------------
    async def _get_catalog(self, path: str) -> Any:
        url = self._url(path)
        try:
            response = await self._http.get(url, headers=self._headers)
        except httpx.RequestError as e:
            raise CatalogRequestError(f"Network error calling {url}: {e}") from e

        if response.is_error:
            body = _response_body(response)
            logger.error(f"Printify catalog request failed [{response.status_code}]: {body}")
            raise CatalogRequestError(
                f"Catalog request {path} failed with status {response.status_code}",
                status_code=response.status_code,
                body=body,
            )
        return response.json()

    async def list_blueprints(self) -> List[Dict[str, Any]]:
        data = await self._get_catalog("catalog/blueprints.json")
        return data if isinstance(data, list) else []

    async def list_print_providers(self, blueprint_id: int) -> List[Dict[str, Any]]:
        data = await self._get_catalog(
            f"catalog/blueprints/{blueprint_id}/print_providers.json"
        )
        return data if isinstance(data, list) else []

    async def list_variants(
        self, blueprint_id: int, provider_id: int
    ) -> List[Dict[str, Any]]:
        data = await self._get_catalog(
            f"catalog/blueprints/{blueprint_id}/print_providers/{provider_id}/variants.json"
        )
        # The endpoint wraps the list as {"id", "title", "variants": [...]}
        if isinstance(data, dict):
            data = data.get("variants")
        return data if isinstance(data, list) else []

    # -------------------------
    # Uploads
    # -------------------------
    def _upload_id(self, response: httpx.Response) -> str:
        body = _response_body(response)
        if response.is_error:
            logger.error(
                f"Printify upload rejected [{response.status_code}]: {body}"
            )
            raise TransferError(
                f"Printify image upload failed: {response.status_code} {response.reason_phrase}",
                kind=TransferError.REMOTE,
                status_code=response.status_code,
                body=body,
            )
        if not isinstance(body, dict) or not body.get("id"):
            raise TransferError(
                "Printify upload response has no id",
                kind=TransferError.REMOTE,
                status_code=response.status_code,
                body=body,
            )
        return str(body["id"])

    async def upload_image_url(self, url: str, file_name: str) -> str:
        """Let Printify fetch the image from ``url``; returns the upload id."""
        try:
            response = await self._http.post(
                self._url("uploads/images.json"),
                json={"file_name": file_name, "url": url},
                headers=self._headers,
            )
        except httpx.RequestError as e:
            raise TransferError(
                f"Network error uploading {file_name}: {e}", kind=TransferError.REMOTE
            ) from e
        return self._upload_id(response)

    async def upload_image_file(self, path: str, file_name: str) -> str:
        """Push a local file as a multipart upload; returns the upload id."""
        try:
            content = await asyncio.to_thread(_read_file, path)
        except OSError as e:
            raise TransferError(
                f"Could not read staged file {path}: {e}", kind=TransferError.IO
            ) from e

        try:
            response = await self._http.post(
                self._url("uploads/images.json"),
                data={"file_name": file_name},
                files={"file": (os.path.basename(file_name), content)},
                headers=self._headers,
            )
        except httpx.RequestError as e:
            raise TransferError(
                f"Network error uploading {file_name}: {e}", kind=TransferError.REMOTE
            ) from e
        return self._upload_id(response)

    # -------------------------
    # Products
    # -------------------------
    async def create_product(self, payload: Dict[str, Any]) -> str:
        """Create a product in the shop and return its id."""
        url = self._url(f"shops/{self.shop_id}/products.json")
        try:
            response = await self._http.post(url, json=payload, headers=self._headers)
        except httpx.RequestError as e:
            raise SubmissionError(
                f"Network error creating product: {e}", status_code=None
            ) from e

        body = _response_body(response)
        if response.is_error:
            raise SubmissionError(
                f"Printify product creation failed with status {response.status_code}",
                status_code=response.status_code,
                body=body,
            )
        if not isinstance(body, dict) or not body.get("id"):
            raise SubmissionError(
                "Printify product response has no id",
                status_code=response.status_code,
                body=body,
            )
        return str(body["id"])
