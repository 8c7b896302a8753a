import threading

import pytest
import requests

from parcel_dashboard.client import ParcelClient, normalize_filter_mode
from parcel_dashboard.errors import (
    NetworkOrParseFailure,
    Unauthenticated,
    UpstreamRejected,
    UpstreamUnavailable,
)


@pytest.mark.parametrize(
    "value, expected",
    [("recent", "recent"), ("active", "active"), (None, "active"), ("RECENT", "active"), ("all", "active")],
)
def test_normalize_filter_mode(value, expected):
    assert normalize_filter_mode(value) == expected


def test_list_deliveries_sends_key_and_mode(parcel_client, fake_session):
    fake_session.reply("/deliveries/", 200, {"success": True, "deliveries": []})

    payload = parcel_client.list_deliveries("secret", "recent")

    assert payload == {"success": True, "deliveries": []}
    (call,) = fake_session.calls
    assert call["method"] == "GET"
    assert call["headers"]["api-key"] == "secret"
    assert call["params"] == {"filter_mode": "recent"}
    assert call["timeout"] == 5


def test_list_deliveries_defaults_unknown_mode(parcel_client, fake_session):
    fake_session.reply("/deliveries/", 200, {"deliveries": []})
    parcel_client.list_deliveries("secret", "everything")
    assert fake_session.calls[0]["params"] == {"filter_mode": "active"}


def test_add_delivery_posts_json(parcel_client, fake_session):
    fake_session.reply("/add-delivery/", 200, {"success": True})

    result = parcel_client.add_delivery("secret", "1Z999", carrier_code="", title="Monitor")

    assert result == {"success": True}
    (call,) = fake_session.calls
    assert call["method"] == "POST"
    assert call["json"] == {"tracking_number": "1Z999", "carrier_code": None, "title": "Monitor"}


def test_add_delivery_accepts_empty_body(parcel_client, fake_session):
    fake_session.reply("/add-delivery/", 200, body=b"")
    assert parcel_client.add_delivery("secret", "1Z999") is None


def test_supported_carriers_without_key(parcel_client, fake_session):
    fake_session.reply("/supported_carriers.json", 200, {"ups": "UPS"})

    assert parcel_client.supported_carriers() == {"ups": "UPS"}
    assert "api-key" not in fake_session.calls[0]["headers"]


def test_supported_carriers_attaches_key_when_present(parcel_client, fake_session):
    fake_session.reply("/supported_carriers.json", 200, {})
    parcel_client.supported_carriers("secret")
    assert fake_session.calls[0]["headers"]["api-key"] == "secret"


@pytest.mark.parametrize(
    "status, error_type, status_code",
    [
        (401, Unauthenticated, 401),
        (403, Unauthenticated, 401),
        (429, UpstreamRejected, 429),
        (400, UpstreamRejected, 400),
        (500, UpstreamUnavailable, 500),
        (503, UpstreamUnavailable, 503),
        (418, UpstreamRejected, 418),
    ],
)
def test_http_errors_are_translated(parcel_client, fake_session, status, error_type, status_code):
    fake_session.reply("/deliveries/", status, {"error": "upstream detail"})

    with pytest.raises(error_type) as excinfo:
        parcel_client.list_deliveries("secret")

    assert excinfo.value.status_code == status_code
    assert "upstream detail" not in excinfo.value.message


def test_network_error_becomes_parse_failure(parcel_client, fake_session):
    fake_session.reply("/deliveries/", error=requests.ConnectionError("boom"))

    with pytest.raises(NetworkOrParseFailure) as excinfo:
        parcel_client.list_deliveries("secret")

    assert excinfo.value.status_code == 502


def test_unreadable_body_becomes_parse_failure(parcel_client, fake_session):
    fake_session.reply("/supported_carriers.json", 200, body=b"<html>oops</html>")

    with pytest.raises(NetworkOrParseFailure):
        parcel_client.supported_carriers("secret")


def test_base_url_trailing_slash_is_dropped(fake_session):
    client = ParcelClient("https://parcel.test/external/", session=fake_session)
    fake_session.reply("/deliveries/", 200, {"deliveries": []})
    client.list_deliveries("secret")
    assert fake_session.calls[0]["path"] == "/deliveries/"


def test_default_session_is_per_thread():
    client = ParcelClient("https://parcel.test/external")
    seen = []
    worker = threading.Thread(target=lambda: seen.append(client.session))
    worker.start()
    worker.join()

    assert client.session is client.session
    assert isinstance(seen[0], requests.Session)
    assert seen[0] is not client.session


def test_injected_session_is_shared(parcel_client, fake_session):
    seen = []
    worker = threading.Thread(target=lambda: seen.append(parcel_client.session))
    worker.start()
    worker.join()
    assert seen == [fake_session]
    assert parcel_client.session is fake_session
