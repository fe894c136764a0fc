"""
Blueprint/provider/variant resolution against the Printify catalog.
"""

from typing import Any, Dict, Hashable, Optional

from printsync.config import logger
from printsync.core.printify_client import PrintifyClient
from printsync.errors import CatalogRequestError, NoCapabilityError
from printsync.models import CapabilitySelection

ANY_TEMPLATE = "*"


class CapabilityCache:
    """Write-once store of resolved selections keyed by requested template."""

    def __init__(self) -> None:
        self._entries: Dict[Hashable, CapabilitySelection] = {}

    def get(self, key: Hashable) -> Optional[CapabilitySelection]:
        return self._entries.get(key)

    def put(self, key: Hashable, selection: CapabilitySelection) -> None:
        self._entries.setdefault(key, selection)

    def clear(self) -> None:
        self._entries.clear()

    def snapshot(self) -> Dict[str, Dict[str, int]]:
        return {str(key): sel.to_dict() for key, sel in self._entries.items()}

    def __contains__(self, key: Hashable) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)


def _first_id(items: list) -> Any:
    for item in items:
        if isinstance(item, dict) and item.get("id") is not None:
            return item["id"]
    return None


class CapabilityResolver:
    def __init__(self, client: PrintifyClient, cache: Optional[CapabilityCache] = None):
        self._client = client
        self.cache = cache if cache is not None else CapabilityCache()

    async def resolve(self, template_id: int) -> CapabilitySelection:
        """
        Resolve the first provider and first variant offered for a blueprint.

        Raises:
            NoCapabilityError: If the blueprint is unknown (404), has no provider,
                or the first provider has no variant
            CatalogRequestError: If a discovery request fails for any other reason
        """
        cached = self.cache.get(template_id)
        if cached is not None:
            return cached

        try:
            providers = await self._client.list_print_providers(template_id)
        except CatalogRequestError as exc:
            if exc.status_code == 404:
                raise NoCapabilityError(f"Blueprint {template_id} not found in catalog") from exc
            raise
        provider_id = _first_id(providers)
        if provider_id is None:
            raise NoCapabilityError(f"No print providers found for blueprint {template_id}")

        try:
            variants = await self._client.list_variants(template_id, provider_id)
        except CatalogRequestError as exc:
            if exc.status_code == 404:
                raise NoCapabilityError(
                    f"Blueprint {template_id} / provider {provider_id} not found in catalog"
                ) from exc
            raise
        variant_id = _first_id(variants)
        if variant_id is None:
            raise NoCapabilityError(
                f"No variants found for blueprint {template_id} / provider {provider_id}"
            )

        selection = CapabilitySelection(
            template_id=template_id, provider_id=provider_id, variant_id=variant_id
        )
        self.cache.put(template_id, selection)
        logger.info(
            f"Resolved blueprint {template_id} -> provider {provider_id}, variant {variant_id}"
        )
        return selection

    async def resolve_any(self) -> CapabilitySelection:
        """
        Walk every blueprint in catalog order and return the first that resolves.

        Raises:
            NoCapabilityError: If no blueprint has a provider with a variant
        """
        cached = self.cache.get(ANY_TEMPLATE)
        if cached is not None:
            return cached

        blueprints = await self._client.list_blueprints()
        logger.info(f"Scanning {len(blueprints)} blueprint(s) for a usable configuration")

        for blueprint in blueprints:
            template_id = blueprint.get("id") if isinstance(blueprint, dict) else None
            if template_id is None:
                continue
            try:
                selection = await self.resolve(template_id)
            except NoCapabilityError as exc:
                logger.debug(f"Skipping blueprint {template_id}: {exc}")
                continue
            self.cache.put(ANY_TEMPLATE, selection)
            return selection

        raise NoCapabilityError("No blueprint with an available provider and variant")

    async def select(self, preferred: Optional[int]) -> CapabilitySelection:
        """Resolve the pinned blueprint, falling back to a catalog-wide scan."""
        if preferred is None:
            return await self.resolve_any()

        cached = self.cache.get(preferred)
        if cached is not None:
            return cached

        try:
            return await self.resolve(preferred)
        except NoCapabilityError as exc:
            logger.warning(f"Blueprint {preferred} unusable ({exc}); scanning catalog")

        selection = await self.resolve_any()
        self.cache.put(preferred, selection)
        return selection
