import json

import pytest
import requests
from fastapi.testclient import TestClient

from parcel_dashboard.client import ParcelClient
from parcel_dashboard.main import app

BASE_URL = "https://parcel.test/external"


def make_response(status_code=200, payload=None, *, body=None):
    response = requests.Response()
    response.status_code = status_code
    response._content = body if body is not None else json.dumps(payload).encode("utf-8")
    response.headers["content-type"] = "application/json"
    return response


class FakeSession:
    """Stands in for requests.Session; replies with queued responses per path."""

    def __init__(self):
        self.calls = []
        self.replies = {}

    def reply(self, path, status_code=200, payload=None, *, body=None, error=None):
        self.replies[path] = error or make_response(status_code, payload, body=body)

    def _respond(self, method, url, **kwargs):
        path = url[len(BASE_URL):]
        self.calls.append({"method": method, "path": path, **kwargs})
        reply = self.replies.get(path)
        if reply is None:
            raise AssertionError(f"unexpected upstream call {method} {path}")
        if isinstance(reply, Exception):
            raise reply
        return reply

    def get(self, url, headers=None, params=None, timeout=None):
        return self._respond("GET", url, headers=headers, params=params, timeout=timeout)

    def post(self, url, headers=None, json=None, timeout=None):
        return self._respond("POST", url, headers=headers, json=json, timeout=timeout)


@pytest.fixture
def fake_session():
    return FakeSession()


@pytest.fixture
def parcel_client(fake_session):
    return ParcelClient(BASE_URL, timeout=5, session=fake_session)


@pytest.fixture
def client(monkeypatch, parcel_client):
    monkeypatch.setattr(app.state, "parcel_client", parcel_client)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def signed_in(client):
    client.cookies.set("parcel_api_key", "key%20with%3Bsemicolon")
    return client
