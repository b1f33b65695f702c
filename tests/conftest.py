"""Shared fixtures: a fake Linkwarden API behind httpx.MockTransport."""
import httpx
import pytest

from linkwarden_mcp.client import LinkwardenClient
from linkwarden_mcp.session import RequestContext, Session

BASE_URL = "http://linkwarden.test"


class FakeLinkwarden:
    """Records requests and answers from a (method, path) route table."""

    def __init__(self):
        self.requests = []
        self.routes = {}

    def route(self, method, path, status=200, json=None, text=None):
        self.routes[(method, path)] = (status, json, text)
        return self

    def fail_with(self, exc):
        self.routes["*"] = exc
        return self

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if "*" in self.routes:
            raise self.routes["*"]
        status, body, text = self.routes.get((request.method, request.url.path), (404, None, "Not Found"))
        if body is not None:
            return httpx.Response(status, json=body)
        return httpx.Response(status, text=text or "")

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]


@pytest.fixture
def linkwarden():
    return FakeLinkwarden()


@pytest.fixture
def client(linkwarden):
    return LinkwardenClient(BASE_URL, "test-token", transport=httpx.MockTransport(linkwarden))


@pytest.fixture
def session():
    return Session()


@pytest.fixture
def ctx(session):
    return RequestContext(session=session, request_id=1)


@pytest.fixture
def other_linkwarden():
    return FakeLinkwarden()
