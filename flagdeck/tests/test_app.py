# FlagDeck/flagdeck/tests/test_app.py
"""
Integration tests for the FlagDeck Flask application.

These tests exercise the real Flask app wired to the in-memory backend to
ensure that all components work together as expected.

They intentionally:
- build a fresh app per test through ``create_app`` with explicit settings,
- hit the real HTTP routes with Flask's test client,
- check the JSON error envelope, authentication and rate limiting headers.
"""


import pytest

from flagdeck.app import create_app
from flagdeck.settings import Settings


def _create_env(client, headers, key):
    r = client.post(
        "/v1/environments",
        json={"key": key, "name": key.capitalize()},
        headers=headers,
    )
    assert r.status_code == 201
    return r.get_json()


def _create_flag(client, headers, key="new-checkout", state=None):
    r = client.post(
        "/v1/flags",
        json={
            "key": key,
            "name": "New checkout",
            "description": "Checkout v2",
            "state": state or {},
            "tags": ["checkout"],
        },
        headers=headers,
    )
    assert r.status_code == 201
    return r.get_json()


@pytest.fixture
def production(client, auth_headers):
    return _create_env(client, auth_headers, "production")


# ---------- System & docs ----------


def test_health(client):
    r = client.get("/health/")
    assert r.status_code == 200
    assert r.get_json() == {"status": "ok"}
    assert "X-RateLimit-Limit" not in r.headers


def test_openapi_and_schemas(client):
    yml = client.get("/openapi.yaml")
    assert yml.status_code == 200
    assert b"openapi: 3." in yml.data

    for name in [
        "EvaluateRequest.schema.json",
        "EvaluateResponse.schema.json",
        "FlagCreateRequest.schema.json",
    ]:
        rr = client.get(f"/schemas/{name}")
        assert rr.status_code == 200
        assert rr.data.strip().startswith(b"{")

    missing = client.get("/schemas/nope.json")
    assert missing.status_code == 404
    assert missing.get_json()["error"]["code"] == "not_found"


def test_swagger_ui(client):
    r = client.get("/docs")
    assert r.status_code == 200
    assert b"swagger-ui" in r.data


def test_unknown_route_uses_error_envelope(client):
    r = client.get("/nope")
    assert r.status_code == 404
    assert r.get_json()["error"]["code"] == "not_found"


# ---------- Authentication ----------


def test_missing_api_key_is_rejected(client):
    r = client.get("/v1/flags")
    assert r.status_code == 401
    assert r.get_json() == {
        "error": {"code": "unauthorized", "message": "Missing Authorization header"}
    }


def test_wrong_api_key_is_rejected(client):
    r = client.get("/v1/flags", headers={"Authorization": "ApiKey wrong"})
    assert r.status_code == 401
    assert r.get_json()["error"]["message"] == "Invalid API key"


# ---------- Environments ----------


def test_environment_lifecycle(client, auth_headers):
    env = _create_env(client, auth_headers, "staging")
    assert env["key"] == "staging"
    assert "createdAt" in env

    dup = client.post(
        "/v1/environments", json={"key": "staging", "name": "Again"}, headers=auth_headers
    )
    assert dup.status_code == 409
    assert dup.get_json()["error"]["details"] == {"field": "key", "constraint": "unique"}

    listed = client.get("/v1/environments", headers=auth_headers).get_json()
    assert [e["key"] for e in listed["environments"]] == ["staging"]

    r = client.delete(f"/v1/environments/{env['id']}", headers=auth_headers)
    assert r.status_code == 204

    r = client.delete(f"/v1/environments/{env['id']}", headers=auth_headers)
    assert r.status_code == 404


def test_delete_environment_in_use_conflicts(client, auth_headers, production):
    _create_flag(client, auth_headers, state={"production": True})

    r = client.delete(f"/v1/environments/{production['id']}", headers=auth_headers)

    assert r.status_code == 409
    body = r.get_json()["error"]
    assert body["code"] == "invalid_request"
    assert body["details"]["flags"] == ["new-checkout"]


def test_invalid_environment_body(client, auth_headers):
    r = client.post("/v1/environments", json={"name": "No key"}, headers=auth_headers)
    assert r.status_code == 400
    assert r.get_json()["error"]["code"] == "invalid_request"


# ---------- Flags ----------


def test_flag_crud(client, auth_headers, production):
    flag = _create_flag(client, auth_headers, state={"production": False})
    assert flag["state"] == {"production": False}
    assert flag["rules"] == []

    r = client.get(f"/v1/flags/{flag['id']}", headers=auth_headers)
    assert r.status_code == 200
    assert r.get_json()["key"] == "new-checkout"

    r = client.put(
        f"/v1/flags/{flag['id']}",
        json={"name": "Checkout v2", "tags": ["checkout", "beta", "beta"]},
        headers=auth_headers,
    )
    assert r.status_code == 200
    updated = r.get_json()
    assert updated["name"] == "Checkout v2"
    assert updated["description"] == "Checkout v2"
    assert updated["tags"] == ["checkout", "beta"]

    r = client.patch(
        f"/v1/flags/{flag['id']}/state",
        json={"environment": "production", "enabled": True},
        headers=auth_headers,
    )
    assert r.status_code == 200
    assert r.get_json()["state"] == {"production": True}

    r = client.delete(f"/v1/flags/{flag['id']}", headers=auth_headers)
    assert r.status_code == 204
    r = client.get(f"/v1/flags/{flag['id']}", headers=auth_headers)
    assert r.status_code == 404
    assert r.get_json()["error"]["code"] == "not_found"


def test_create_flag_errors(client, auth_headers, production):
    _create_flag(client, auth_headers)

    dup = client.post(
        "/v1/flags", json={"key": "new-checkout", "name": "Dup"}, headers=auth_headers
    )
    assert dup.status_code == 409

    unknown_env = client.post(
        "/v1/flags",
        json={"key": "other", "name": "Other", "state": {"qa": True}},
        headers=auth_headers,
    )
    assert unknown_env.status_code == 400
    assert unknown_env.get_json()["error"]["details"] == {"environment": "qa"}

    not_json = client.post("/v1/flags", data="oops", headers=auth_headers)
    assert not_json.status_code == 400


def test_list_flags_paginates_and_filters(client, auth_headers, production):
    _create_env(client, auth_headers, "dev")
    _create_flag(client, auth_headers, key="a", state={"production": True})
    _create_flag(client, auth_headers, key="b", state={"dev": True})
    _create_flag(client, auth_headers, key="c", state={"production": False})

    body = client.get("/v1/flags?limit=1&offset=1", headers=auth_headers).get_json()
    assert body["total"] == 3
    assert body["limit"] == 1
    assert body["offset"] == 1
    assert [f["key"] for f in body["flags"]] == ["b"]

    body = client.get(
        "/v1/flags?environment_id=production&project_id=ignored", headers=auth_headers
    ).get_json()
    assert body["total"] == 2
    assert [f["key"] for f in body["flags"]] == ["a", "c"]


def test_targeting_rule_lifecycle(client, auth_headers, production):
    flag = _create_flag(client, auth_headers, state={"production": False})
    rule_body = {
        "type": "user",
        "attribute": "email",
        "operator": "ends_with",
        "values": ["@company.com"],
        "environment": "production",
    }

    r = client.post(f"/v1/flags/{flag['id']}/rules", json=rule_body, headers=auth_headers)
    assert r.status_code == 201
    rule = r.get_json()
    assert rule["values"] == ["@company.com"]

    bad = dict(rule_body, operator="regex")
    r = client.post(f"/v1/flags/{flag['id']}/rules", json=bad, headers=auth_headers)
    assert r.status_code == 400

    r = client.post("/v1/flags/missing/rules", json=rule_body, headers=auth_headers)
    assert r.status_code == 404

    url = f"/v1/flags/{flag['id']}/rules/{rule['id']}"
    assert client.delete(url, headers=auth_headers).status_code == 204
    assert client.delete(url, headers=auth_headers).status_code == 404


# ---------- SDK ----------


def test_sdk_evaluate_applies_targeting(client, auth_headers, production):
    flag = _create_flag(client, auth_headers, state={"production": False})
    client.post(
        f"/v1/flags/{flag['id']}/rules",
        json={
            "type": "user",
            "attribute": "email",
            "operator": "ends_with",
            "values": ["@company.com"],
            "environment": "production",
        },
        headers=auth_headers,
    )

    r = client.post(
        "/v1/sdk/evaluate",
        json={"environment": "production", "user": {"id": "u-1", "email": "a@company.com"}},
        headers=auth_headers,
    )
    assert r.status_code == 200
    body = r.get_json()
    assert body["environment"] == "production"
    assert body["flags"] == {"new-checkout": True}
    assert "evaluatedAt" in body

    r = client.post(
        "/v1/sdk/evaluate",
        json={"environment": "production", "user": {"email": "a@other.com"}},
        headers=auth_headers,
    )
    assert r.get_json()["flags"] == {"new-checkout": False}

    config = client.get("/v1/sdk/config?environment=production", headers=auth_headers)
    assert config.status_code == 200
    assert config.get_json()["flags"] == {"new-checkout": False}


def test_sdk_environment_without_flags(client, auth_headers):
    _create_env(client, auth_headers, "staging")

    r = client.post(
        "/v1/sdk/evaluate", json={"environment": "staging", "user": {}}, headers=auth_headers
    )
    assert r.status_code == 200
    assert r.get_json()["flags"] == {}

    r = client.get("/v1/sdk/config?environment=staging", headers=auth_headers)
    assert r.status_code == 200
    assert r.get_json()["flags"] == {}


def test_sdk_unknown_environment(client, auth_headers):
    r = client.post(
        "/v1/sdk/evaluate", json={"environment": "staging", "user": {}}, headers=auth_headers
    )
    assert r.status_code == 400
    assert r.get_json()["error"]["message"] == "Environment 'staging' does not exist"

    r = client.get("/v1/sdk/config", headers=auth_headers)
    assert r.status_code == 400
    assert r.get_json()["error"]["code"] == "invalid_request"


# ---------- Analytics ----------


def test_exposure_and_stats(client, auth_headers, production):
    flag = _create_flag(client, auth_headers, state={"production": True})

    r = client.post(
        "/v1/analytics/exposure",
        json={"flagKey": "new-checkout", "environment": "production", "userId": "u-1"},
        headers=auth_headers,
    )
    assert r.status_code == 204

    r = client.post(
        "/v1/analytics/exposure",
        json={"flagKey": "new-checkout", "environment": "production"},
        headers=auth_headers,
    )
    assert r.status_code == 400
    assert r.get_json()["error"]["message"] == "Missing required fields"

    r = client.get(
        f"/v1/analytics/flags/{flag['id']}/stats?environment=production&period=1d",
        headers=auth_headers,
    )
    assert r.status_code == 200
    stats = r.get_json()
    assert stats["flagKey"] == "new-checkout"
    assert stats["exposures"]["total"] == 1
    assert len(stats["exposures"]["breakdown"]) == 2

    r = client.get(
        f"/v1/analytics/flags/{flag['id']}/stats?environment=production&period=week",
        headers=auth_headers,
    )
    assert r.status_code == 400

    r = client.get(
        f"/v1/analytics/flags/{flag['id']}/stats?environment=production&period=1000000d",
        headers=auth_headers,
    )
    assert r.status_code == 400
    assert r.get_json()["error"]["code"] == "invalid_request"

    r = client.get(
        "/v1/analytics/flags/missing/stats?environment=production", headers=auth_headers
    )
    assert r.status_code == 404


# ---------- Rate limiting ----------


def test_rate_limit_headers_and_429():
    app = create_app(
        Settings(api_keys=frozenset({"k"}), rate_limit_per_minute=2, log_level="warning")
    )
    headers = {"Authorization": "ApiKey k"}

    with app.test_client() as client:
        first = client.get("/v1/environments", headers=headers)
        assert first.status_code == 200
        assert first.headers["X-RateLimit-Limit"] == "2"
        assert first.headers["X-RateLimit-Remaining"] == "1"
        assert "X-RateLimit-Reset" in first.headers

        client.get("/v1/environments", headers=headers)
        limited = client.get("/v1/environments", headers=headers)

    assert limited.status_code == 429
    assert limited.get_json()["error"]["code"] == "rate_limit_exceeded"
    assert limited.headers["X-RateLimit-Remaining"] == "0"


# ---------- Seeding ----------


def test_seeded_app_serves_example_flags():
    app = create_app(
        Settings(api_keys=frozenset({"k"}), seed_example_data=True, log_level="warning")
    )
    headers = {"Authorization": "ApiKey k"}

    with app.test_client() as client:
        r = client.post(
            "/v1/sdk/evaluate",
            json={"environment": "staging", "user": {"email": "dev@company.com"}},
            headers=headers,
        )

    assert r.status_code == 200
    assert r.get_json()["flags"] == {
        "new-checkout-flow": True,
        "dark-mode": True,
        "recommendation-engine": True,
    }
