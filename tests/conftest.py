import json
import os
import sys

import httpx
import pytest

# Add src to path for internal imports
src_path = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'src')
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from tour_pricing.config.settings import Settings
from tour_pricing.storage.cache import LocalCache
from tour_pricing.storage.remote import RemoteStore
from tour_pricing.storage.repository import PriceRepository


class FakeRemoteServer:
    """In-process stand-in for the booking server's /prices endpoints."""

    def __init__(self):
        self.records = {}
        self.requests = []
        self.down = False
        self.fail_writes = False
        self.fail_reads = False

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.down:
            raise httpx.ConnectError("remote unreachable", request=request)

        if request.method == "GET":
            if self.fail_reads:
                return httpx.Response(500, json={"error": "read failed"})
            params = request.url.params
            key = (params["productLine"], params["category"], params["tier"])
            return httpx.Response(200, json={"items": self.records.get(key, [])})

        if request.method == "PUT":
            if self.fail_writes:
                return httpx.Response(500, json={"error": "write failed"})
            body = json.loads(request.content)
            key = (body["productLine"], body["category"], body["tier"])
            self.records[key] = body["items"]
            return httpx.Response(200, json={"message": "saved"})

        return httpx.Response(405)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def settings(tmp_path):
    return Settings(project_root=tmp_path, remote_base_url="http://remote.test/api", price_year=2026)


@pytest.fixture
def remote_server():
    return FakeRemoteServer()


@pytest.fixture
def repository(settings, remote_server):
    """Repository over an in-memory cache and the fake remote server."""
    remote = RemoteStore(
        base_url=settings.remote_base_url,
        year=settings.price_year,
        transport=remote_server.transport(),
    )
    return PriceRepository(cache=LocalCache(), remote=remote, settings=settings)
