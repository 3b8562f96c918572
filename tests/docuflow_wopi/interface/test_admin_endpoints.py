# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Tests for the introspected admin routes and their authentication."""

import pytest
from fastapi.testclient import TestClient

from docuflow_wopi import WopiConfig, WopiHost
from docuflow_wopi.entities.instance import InstanceEndpoint
from docuflow_wopi.entities.locks import LockEndpoint


@pytest.fixture
def secured_host(blobs, metadata):
    return WopiHost(
        config=WopiConfig(api_token="secret"), blob_store=blobs, metadata_store=metadata
    )


@pytest.fixture
def secured_client(secured_host):
    return TestClient(secured_host.api)


AUTH = {"X-API-Token": "secret"}


class TestAuthentication:
    """Tests for X-API-Token on admin routes."""

    def test_missing_token_returns_401(self, secured_client):
        assert secured_client.get("/locks/list").status_code == 401

    def test_wrong_token_returns_401(self, secured_client):
        response = secured_client.get("/locks/list", headers={"X-API-Token": "nope"})

        assert response.status_code == 401

    def test_valid_token(self, secured_client):
        assert secured_client.get("/locks/list", headers=AUTH).status_code == 200

    def test_wopi_routes_do_not_need_api_token(self, secured_client):
        assert secured_client.get("/wopi/files/doc1?access_token=t").status_code == 200
        assert secured_client.get("/ping").status_code == 200
        assert secured_client.get("/health").status_code == 200

    def test_open_access_without_configured_token(self, client):
        assert client.get("/locks/list").status_code == 200


class TestLockAdminRoutes:
    """Tests for /locks/*."""

    def test_list_get_release(self, secured_client):
        secured_client.post(
            "/wopi/files/doc1", headers={"X-WOPI-Override": "LOCK", "X-WOPI-Lock": "abc"}
        )

        listing = secured_client.get("/locks/list", headers=AUTH).json()
        assert listing["ok"] is True
        assert [(lk["file_id"], lk["token"]) for lk in listing["locks"]] == [("doc1", "abc")]

        current = secured_client.get("/locks/get", params={"file_id": "doc1"}, headers=AUTH)
        assert current.json() == {"ok": True, "file_id": "doc1", "lock": "abc"}

        released = secured_client.post("/locks/release", json={"file_id": "doc1"}, headers=AUTH)
        assert released.json() == {"ok": True, "file_id": "doc1", "released": True}

        after = secured_client.get("/locks/get", params={"file_id": "doc1"}, headers=AUTH)
        assert after.json()["lock"] is None

    def test_get_requires_file_id(self, secured_client):
        assert secured_client.get("/locks/get", headers=AUTH).status_code == 422


class TestInstanceRoutes:
    """Tests for /instance/*."""

    def test_status(self, secured_client):
        response = secured_client.get("/instance/status", headers=AUTH)

        assert response.status_code == 200
        data = response.json()
        assert data["ok"] is True
        assert data["instance_name"] == "docuflow-wopi"
        assert data["backend"] == "memory"
        assert data["lock_store"] == "memory"
        assert data["active_locks"] == 0

    def test_lifespan_marks_host_active(self, secured_host):
        with TestClient(secured_host.api) as client:
            data = client.get("/instance/status", headers=AUTH).json()
            assert data["active"] is True

        assert secured_host.active is False


class TestEndpointIntrospection:
    """Tests for BaseEndpoint method discovery."""

    def test_lock_endpoint_methods(self, host):
        endpoint = LockEndpoint(host)

        methods = {name for name, _ in endpoint.get_methods()}

        assert methods == {"list", "get", "release"}
        assert endpoint.get_http_method("release") == "POST"
        assert endpoint.get_http_method("list") == "GET"

    def test_request_model(self, host):
        model = LockEndpoint(host).create_request_model("release")

        assert model(file_id="doc1").model_dump() == {"file_id": "doc1"}

    async def test_instance_health(self, host):
        assert await InstanceEndpoint(host).health() == {"status": "ok"}
