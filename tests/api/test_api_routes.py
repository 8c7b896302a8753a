import requests
from fastapi.testclient import TestClient

from parcel_dashboard.main import app

DECODED_KEY = "key with;semicolon"


def test_deliveries_requires_session(client, fake_session):
    response = client.get("/api/deliveries")

    assert response.status_code == 401
    assert response.json() == {"error": "Not authenticated"}
    assert fake_session.calls == []


def test_deliveries_passes_payload_through(signed_in, fake_session):
    payload = {"success": True, "deliveries": [{"tracking_number": "1Z", "extra": {"kept": True}}]}
    fake_session.reply("/deliveries/", 200, payload)

    response = signed_in.get("/api/deliveries", params={"filter_mode": "recent"})

    assert response.status_code == 200
    assert response.json() == payload
    (call,) = fake_session.calls
    assert call["headers"]["api-key"] == DECODED_KEY
    assert call["params"] == {"filter_mode": "recent"}


def test_deliveries_defaults_filter_mode(signed_in, fake_session):
    fake_session.reply("/deliveries/", 200, {"deliveries": []})
    signed_in.get("/api/deliveries", params={"filter_mode": "bogus"})
    assert fake_session.calls[0]["params"] == {"filter_mode": "active"}


def test_deliveries_rate_limited(signed_in, fake_session):
    fake_session.reply("/deliveries/", 429, {"error": "slow down"})

    response = signed_in.get("/api/deliveries")

    assert response.status_code == 429
    assert response.json()["error"].startswith("Too many requests")


def test_deliveries_upstream_rejects_key(signed_in, fake_session):
    fake_session.reply("/deliveries/", 403, {})

    response = signed_in.get("/api/deliveries")

    assert response.status_code == 401
    assert "rejected" in response.json()["error"]


def test_deliveries_upstream_down(signed_in, fake_session):
    fake_session.reply("/deliveries/", 500, {"trace": "internal"})

    response = signed_in.get("/api/deliveries")

    assert response.status_code == 500
    assert "temporarily unavailable" in response.json()["error"]
    assert "internal" not in response.text


def test_deliveries_network_failure(signed_in, fake_session):
    fake_session.reply("/deliveries/", error=requests.Timeout("slow"))

    response = signed_in.get("/api/deliveries")

    assert response.status_code == 502
    assert response.json() == {"error": "Could not reach the Parcel service. Please try again."}


def test_add_delivery_requires_session(client, fake_session):
    response = client.post("/api/add-delivery", json={"trackingNumber": "1Z"})
    assert response.status_code == 401
    assert fake_session.calls == []


def test_add_delivery_requires_tracking_number(signed_in, fake_session):
    response = signed_in.post("/api/add-delivery", json={"trackingNumber": "   "})

    assert response.status_code == 400
    assert response.json() == {"error": "trackingNumber is required"}
    assert fake_session.calls == []


def test_add_delivery_tolerates_non_json_body(signed_in, fake_session):
    response = signed_in.post(
        "/api/add-delivery", content=b"not json", headers={"content-type": "application/json"}
    )
    assert response.status_code == 400
    assert fake_session.calls == []


def test_add_delivery_forwards_trimmed_fields(signed_in, fake_session):
    fake_session.reply("/add-delivery/", 200, {"success": True})

    response = signed_in.post(
        "/api/add-delivery",
        json={"trackingNumber": " 1Z999 ", "carrierCode": "", "title": " Monitor "},
    )

    assert response.status_code == 200
    assert response.json() == {"success": True}
    assert fake_session.calls[0]["json"] == {
        "tracking_number": "1Z999",
        "carrier_code": None,
        "title": "Monitor",
    }


def test_add_delivery_unknown_tracking_number(signed_in, fake_session):
    fake_session.reply("/add-delivery/", 404, {})

    response = signed_in.post("/api/add-delivery", json={"trackingNumber": "nope"})

    assert response.status_code == 404
    assert "not recognised" in response.json()["error"]


def test_carriers_sorted_with_cache_header(client, fake_session):
    fake_session.reply("/supported_carriers.json", 200, {"ups": "UPS", "dhl": "DHL", "aus": "australia post"})

    response = client.get("/api/carriers")

    assert response.status_code == 200
    assert response.headers["cache-control"] == "public, max-age=86400"
    assert response.json() == {
        "carriers": [
            {"code": "aus", "name": "australia post"},
            {"code": "dhl", "name": "DHL"},
            {"code": "ups", "name": "UPS"},
        ]
    }
    assert "api-key" not in fake_session.calls[0]["headers"]


def test_carriers_bad_shape(signed_in, fake_session):
    fake_session.reply("/supported_carriers.json", 200, "not a directory")

    response = signed_in.get("/api/carriers")

    assert response.status_code == 502
    assert response.json() == {"error": "Failed to load carriers"}
    assert fake_session.calls[0]["headers"]["api-key"] == DECODED_KEY


def test_create_session_sets_cookie(client):
    response = client.post("/api/session", json={"apiKey": "  a;b=c  "})

    assert response.status_code == 200
    assert response.json() == {"ok": True}
    assert response.headers["cache-control"] == "no-store"
    cookie = response.headers["set-cookie"]
    assert cookie.startswith("parcel_api_key=a%3Bb%3Dc; ")
    assert "HttpOnly" in cookie
    assert "Secure" not in cookie


def test_create_session_secure_over_https(monkeypatch, parcel_client):
    monkeypatch.setattr(app.state, "parcel_client", parcel_client)
    with TestClient(app, base_url="https://testserver") as https_client:
        response = https_client.post("/api/session", json={"apiKey": "abc"})
    assert response.headers["set-cookie"].endswith("; Secure")


def test_create_session_requires_key(client):
    for body in ({}, {"apiKey": "   "}, {"apiKey": 42}):
        response = client.post("/api/session", json=body)
        assert response.status_code == 400
        assert response.json() == {"error": "API key is required"}


def test_destroy_session_clears_cookie(signed_in):
    response = signed_in.delete("/api/session")

    assert response.status_code == 200
    assert response.json() == {"ok": True}
    assert "Max-Age=0" in response.headers["set-cookie"]


def test_unknown_api_route(client):
    response = client.get("/api/nothing-here")
    assert response.status_code == 404
    assert response.json() == {"error": "Resource not found"}


def test_malformed_session_cookie_is_not_forwarded(client, fake_session):
    client.cookies.set("parcel_api_key", "%ZZbad")

    response = client.get("/api/deliveries")

    assert response.status_code == 401
    assert response.json() == {"error": "Not authenticated"}
    assert fake_session.calls == []
