"""Product title derivation and Printify product requests."""

import os
import re

from printsync.config import logger
from printsync.core.printify_client import PrintifyClient
from printsync.models import (
    CapabilitySelection,
    ContentHandle,
    PlacementImage,
    Placeholder,
    PrintArea,
    ProductRequest,
    ProductVariant,
)

_WORD_START = re.compile(r"\b\w")


def derive_title(path: str, prefix: str = "Auto Product:") -> str:
    """
    Turn a storage path into a product title.

    ``generated-images/sunset-beach_01.png`` becomes
    ``Auto Product: Sunset Beach 01``.
    """
    filename = path.split("/")[-1]
    stem, _ = os.path.splitext(filename)
    words = re.sub(r"[-_]", " ", stem)
    words = _WORD_START.sub(lambda m: m.group().upper(), words)
    return f"{prefix} {words}" if prefix else words


class ProductComposer:
    def __init__(
        self,
        client: PrintifyClient,
        *,
        description: str = "Auto-generated product from Supabase",
        price: int = 2500,
        position: str = "front",
    ):
        self._client = client
        self.description = description
        self.price = price
        self.position = position

    def compose(
        self, title: str, selection: CapabilitySelection, handle: ContentHandle
    ) -> ProductRequest:
        if handle.is_reference:
            image = PlacementImage(src=handle.url)
        else:
            image = PlacementImage(id=handle.upload_id)

        return ProductRequest(
            title=title,
            description=self.description,
            blueprint_id=selection.template_id,
            print_provider_id=selection.provider_id,
            variants=[ProductVariant(id=selection.variant_id, price=self.price)],
            print_areas=[
                PrintArea(
                    variant_ids=[selection.variant_id],
                    placeholders=[Placeholder(position=self.position, images=[image])],
                )
            ],
        )

    async def submit(self, request: ProductRequest) -> str:
        logger.info(f'Creating product "{request.title}"')
        product_id = await self._client.create_product(request.to_payload())
        logger.info(f'Created "{request.title}" -> product_id: {product_id}')
        return product_id
