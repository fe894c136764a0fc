"""Shared fakes for the Supabase table and the Printify API."""

import json
import os
import re
from types import SimpleNamespace

os.environ.setdefault("LOG_FILE", "")
os.environ.setdefault("POLLING_ENABLED", "false")

import httpx  # noqa: E402
import pytest  # noqa: E402

from printsync.core.capability import CapabilityCache, CapabilityResolver  # noqa: E402
from printsync.core.content_transfer import build_transfer  # noqa: E402
from printsync.core.printify_client import PrintifyClient  # noqa: E402
from printsync.core.product_composer import ProductComposer  # noqa: E402
from printsync.core.record_store import RecordStore  # noqa: E402
from printsync.services.pipeline import PipelineOrchestrator  # noqa: E402

SUPABASE_URL = "https://project.supabase.co"
FLAG = "printify_uploaded"


# -------------------------
# Supabase
# -------------------------
class FakeQuery:
    def __init__(self, table):
        self._table = table
        self._filters = []
        self._orders = []
        self._limit = None
        self._update = None
        self._negate = False

    def select(self, columns):
        return self

    def update(self, values):
        self._update = values
        return self

    def eq(self, column, value):
        self._filters.append(lambda row: row.get(column) == value)
        return self

    @property
    def not_(self):
        self._negate = True
        return self

    def in_(self, column, values):
        negate, self._negate = self._negate, False
        allowed = set(values)
        if negate:
            self._filters.append(lambda row: row.get(column) not in allowed)
        else:
            self._filters.append(lambda row: row.get(column) in allowed)
        return self

    def order(self, column, desc=False):
        self._orders.append((column, desc))
        return self

    def limit(self, count):
        self._limit = count
        return self

    def execute(self):
        self._table.calls.append("update" if self._update else "select")
        if self._table.error:
            raise self._table.error

        rows = [row for row in self._table.rows if all(f(row) for f in self._filters)]
        if self._update is not None:
            for row in rows:
                row.update(self._update)
            return SimpleNamespace(data=[dict(row) for row in rows])

        for column, desc in reversed(self._orders):
            rows.sort(key=lambda row: row[column], reverse=desc)
        if self._limit is not None:
            rows = rows[: self._limit]
        return SimpleNamespace(data=[dict(row) for row in rows])


class FakeTable:
    def __init__(self, rows):
        self.rows = rows
        self.calls = []
        self.error = None


class FakeBucket:
    def __init__(self, name):
        self.name = name

    def get_public_url(self, path):
        return f"{SUPABASE_URL}/storage/v1/object/public/{self.name}/{path}?"


class FakeSupabase:
    def __init__(self, rows=None):
        self.image_index = FakeTable(rows if rows is not None else [])
        self.storage = SimpleNamespace(from_=FakeBucket)

    def table(self, name):
        assert name == "image_index"
        return FakeQuery(self.image_index)

    @property
    def rows(self):
        return self.image_index.rows


def make_row(record_id, path, created_at, uploaded=False):
    return {"id": record_id, "path": path, "created_at": created_at, FLAG: uploaded}


# -------------------------
# Printify
# -------------------------
class FakePrintify:
    """In-memory Printify API served through httpx.MockTransport."""

    def __init__(self):
        self.blueprints = [{"id": 1, "title": "Unisex Tee"}]
        self.providers = {1: [{"id": 29, "title": "Monster Digital"}]}
        self.variants = {(1, 29): [{"id": 4012, "title": "S / White"}]}
        self.upload_status = 200
        self.upload_body = {"id": "img-1"}
        self.product_status = 200
        self.product_body = {"id": "prod-1"}
        self.downloads = {}
        self.unavailable_blueprints = set()
        self.requests = []
        self.products = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if request.url.host != "api.printify.com":
            content = self.downloads.get(str(request.url))
            if content is None:
                return httpx.Response(404, text="not found")
            return httpx.Response(200, content=content)

        if path == "/v1/catalog/blueprints.json":
            return httpx.Response(200, json=self.blueprints)

        match = re.fullmatch(r"/v1/catalog/blueprints/(\d+)/print_providers\.json", path)
        if match:
            blueprint = int(match.group(1))
            if blueprint in self.unavailable_blueprints:
                return httpx.Response(503, json={"error": "Service unavailable"})
            if blueprint not in self.providers:
                return httpx.Response(404, json={"error": "Blueprint not found"})
            return httpx.Response(200, json=self.providers[blueprint])

        match = re.fullmatch(
            r"/v1/catalog/blueprints/(\d+)/print_providers/(\d+)/variants\.json", path
        )
        if match:
            key = (int(match.group(1)), int(match.group(2)))
            return httpx.Response(
                200, json={"id": key[1], "variants": self.variants.get(key, [])}
            )

        if path == "/v1/uploads/images.json":
            return httpx.Response(self.upload_status, json=self.upload_body)

        if re.fullmatch(r"/v1/shops/[^/]+/products\.json", path):
            if self.product_status < 300:
                self.products.append(json.loads(request.content))
            return httpx.Response(self.product_status, json=self.product_body)

        return httpx.Response(404, json={"error": f"unexpected {path}"})

    def http_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))

    def catalog_requests(self):
        return [r for r in self.requests if r.url.host == "api.printify.com"]

    def discovery_paths(self):
        return [r.url.path for r in self.requests if "/catalog/" in r.url.path]


@pytest.fixture
def printify():
    return FakePrintify()


@pytest.fixture
def printify_client(printify):
    return PrintifyClient("test-key", "shop-1", http_client=printify.http_client())


@pytest.fixture
def supabase():
    return FakeSupabase()


@pytest.fixture
def store(supabase):
    return RecordStore(supabase, timeout=5.0)


@pytest.fixture
def make_orchestrator(store, printify_client):
    def factory(mode="upload", upload_strategy="url", **kwargs):
        transfer = build_transfer(mode, printify_client, upload_strategy=upload_strategy)
        return PipelineOrchestrator(
            store,
            CapabilityResolver(printify_client, CapabilityCache()),
            transfer,
            ProductComposer(printify_client),
            **kwargs,
        )

    return factory
