"""
tests/test_health.py -- Integration tests for GET /api/v1/health.
"""

from __future__ import annotations


def test_health_returns_200(api_client):
    client, _token, _svc = api_client
    resp = client.get("/api/v1/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "ok"
    assert "version" in data


def test_health_no_auth_required(api_client):
    client, _token, _svc = api_client
    resp = client.get("/api/v1/health", headers={})
    assert resp.status_code == 200
