"""Tests for printsync.core.capability."""

import asyncio

import pytest

from printsync.core.capability import ANY_TEMPLATE, CapabilityCache, CapabilityResolver
from printsync.errors import CatalogRequestError, NoCapabilityError
from printsync.models import CapabilitySelection


@pytest.fixture
def resolver(printify_client):
    return CapabilityResolver(printify_client, CapabilityCache())


def test_resolve_takes_first_provider_and_variant(resolver, printify):
    printify.providers[1] = [{"id": 29}, {"id": 30}]
    printify.variants[(1, 29)] = [{"id": 4012}, {"id": 4013}]

    selection = asyncio.run(resolver.resolve(1))

    assert selection == CapabilitySelection(template_id=1, provider_id=29, variant_id=4012)


def test_resolve_is_cached(resolver, printify):
    async def twice():
        first = await resolver.resolve(1)
        second = await resolver.resolve(1)
        return first, second

    first, second = asyncio.run(twice())

    assert first == second
    assert printify.discovery_paths() == [
        "/v1/catalog/blueprints/1/print_providers.json",
        "/v1/catalog/blueprints/1/print_providers/29/variants.json",
    ]


def test_resolve_without_providers_fails(resolver, printify):
    printify.providers[1] = []

    with pytest.raises(NoCapabilityError):
        asyncio.run(resolver.resolve(1))
    assert 1 not in resolver.cache


def test_resolve_any_probes_in_listing_order(resolver, printify):
    printify.blueprints = [{"id": 10}, {"id": 20}, {"id": 30}]
    printify.providers = {10: [], 20: [{"id": 5}], 30: [{"id": 6}]}
    printify.variants = {(20, 5): [], (30, 6): [{"id": 77}]}

    selection = asyncio.run(resolver.resolve_any())

    assert selection == CapabilitySelection(template_id=30, provider_id=6, variant_id=77)
    assert printify.discovery_paths() == [
        "/v1/catalog/blueprints.json",
        "/v1/catalog/blueprints/10/print_providers.json",
        "/v1/catalog/blueprints/20/print_providers.json",
        "/v1/catalog/blueprints/20/print_providers/5/variants.json",
        "/v1/catalog/blueprints/30/print_providers.json",
        "/v1/catalog/blueprints/30/print_providers/6/variants.json",
    ]
    assert resolver.cache.get(ANY_TEMPLATE) == selection


def test_resolve_any_exhausted(resolver, printify):
    printify.blueprints = [{"id": 10}, {"id": 20}]
    printify.providers = {10: [], 20: []}

    with pytest.raises(NoCapabilityError):
        asyncio.run(resolver.resolve_any())


def test_select_falls_back_and_caches_under_pinned_key(resolver, printify):
    printify.blueprints = [{"id": 1}, {"id": 2}]
    printify.providers = {1: [], 2: [{"id": 8}]}
    printify.variants = {(2, 8): [{"id": 99}]}

    async def twice():
        first = await resolver.select(1)
        calls = len(printify.requests)
        second = await resolver.select(1)
        return first, second, calls

    first, second, calls = asyncio.run(twice())

    assert first == second == CapabilitySelection(2, 8, 99)
    assert len(printify.requests) == calls


def test_select_without_pin_scans_catalog(resolver, printify):
    selection = asyncio.run(resolver.select(None))

    assert selection.template_id == 1
    assert printify.discovery_paths()[0] == "/v1/catalog/blueprints.json"


def test_catalog_outage_is_not_treated_as_missing(resolver, printify):
    printify.blueprints = [{"id": 7}, {"id": 1}]
    printify.unavailable_blueprints = {7}

    with pytest.raises(CatalogRequestError) as exc_info:
        asyncio.run(resolver.resolve_any())

    assert exc_info.value.status_code == 503
    assert resolver.cache.get(ANY_TEMPLATE) is None


def test_unknown_blueprint_counts_as_missing(resolver, printify):
    with pytest.raises(NoCapabilityError, match="999 not found"):
        asyncio.run(resolver.resolve(999))


def test_select_unknown_pinned_blueprint_scans_catalog(resolver, printify):
    selection = asyncio.run(resolver.select(999))

    assert selection == CapabilitySelection(template_id=1, provider_id=29, variant_id=4012)
    assert printify.discovery_paths() == [
        "/v1/catalog/blueprints/999/print_providers.json",
        "/v1/catalog/blueprints.json",
        "/v1/catalog/blueprints/1/print_providers.json",
        "/v1/catalog/blueprints/1/print_providers/29/variants.json",
    ]
    assert resolver.cache.get(999) == selection


def test_cache_is_write_once():
    cache = CapabilityCache()
    cache.put(1, CapabilitySelection(1, 2, 3))
    cache.put(1, CapabilitySelection(1, 9, 9))

    assert cache.get(1) == CapabilitySelection(1, 2, 3)
    assert cache.snapshot() == {"1": {"template_id": 1, "provider_id": 2, "variant_id": 3}}
