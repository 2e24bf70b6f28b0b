"""Tests for the HTTP API: request validation, envelopes and error mapping."""

import pytest
from fastapi.testclient import TestClient

import rfc_svc.app as app_module
from rfc_svc.errors import BackendError


RFC_BODY = {
    "actions": [
        {
            "actionType": "add",
            "target": {"targetType": "item", "targetDescriptor": "table"},
            "data": {"name": "orders"},
        }
    ]
}


@pytest.fixture
def client(monkeypatch, orchestrator, backend):
    """Client whose app runs on the in-memory orchestrator."""
    monkeypatch.delenv("RFC_SVC_CONFIG", raising=False)
    monkeypatch.setattr(app_module, "build_orchestrator", lambda config: (orchestrator, [backend]))
    with TestClient(app_module.app) as client:
        yield client


@pytest.fixture
def submitted(client):
    response = client.post("/submitRequest", json=RFC_BODY)
    assert response.status_code == 200
    return response.json()["rfcIdentifier"]


class TestHealth:

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"message": "healthy"}


class TestSubmitRequest:

    def test_submit(self, client, backend):
        response = client.post("/submitRequest", json=RFC_BODY)

        assert response.status_code == 200
        assert response.json() == {"rfcIdentifier": "rfc-1"}
        assert "rfc-1" in backend.artifacts

    @pytest.mark.parametrize("body", [
        {"actions": []},
        {},
        {"actions": [{"actionType": "drop", "target": {"targetType": "item", "targetDescriptor": "t"}}]},
        {"actions": [{"actionType": "add", "target": {"targetType": "item"}}]},
    ])
    def test_malformed_body(self, client, backend, body):
        response = client.post("/submitRequest", json=body)

        assert response.status_code == 400
        assert response.json() == {"error": "Malformed request received"}
        assert backend.calls == []

    def test_not_json(self, client):
        response = client.post(
            "/submitRequest", content="not json", headers={"Content-Type": "application/json"}
        )
        assert response.status_code == 400

    def test_unencodable_text_rejected(self, client, backend):
        # Valid JSON escape, but a lone surrogate has no UTF-8 encoding
        body = (
            '{"actions": [{"actionType": "add", '
            '"target": {"targetType": "item", "targetDescriptor": "table"}, '
            '"data": {"name": "\\ud800"}}]}'
        )

        response = client.post(
            "/submitRequest", content=body, headers={"Content-Type": "application/json"}
        )

        assert response.status_code == 400
        assert response.json() == {"error": "Malformed request received"}
        assert backend.calls == []

    def test_backend_failure_is_generic(self, client, backend):
        backend.fail_on("create_workspace", BackendError("token abc leaked in message"))

        response = client.post("/submitRequest", json=RFC_BODY)

        assert response.status_code == 502
        assert response.json() == {"error": "Request creation error occurred"}


class TestUpdateRequest:

    def test_update(self, client, submitted):
        response = client.post("/updateRequest", json={"rfcIdentifier": submitted, "rfc": RFC_BODY})

        assert response.status_code == 200
        assert response.json() == {"rfcIdentifier": submitted}

    def test_update_unknown(self, client):
        response = client.post("/updateRequest", json={"rfcIdentifier": "rfc-404", "rfc": RFC_BODY})

        assert response.status_code == 502
        assert response.json() == {"error": "Update request error occurred"}

    def test_update_missing_rfc(self, client, submitted):
        response = client.post("/updateRequest", json={"rfcIdentifier": submitted})
        assert response.status_code == 400


class TestReviewRequest:

    def test_approve(self, client, submitted):
        response = client.post("/reviewRequest", json={"rfcIdentifier": submitted, "type": "APPROVE"})

        assert response.status_code == 200
        assert response.json() == {"success": "Successfully reviewed RFC rfc-1 with type of 'APPROVE'"}

    def test_comment_without_text_rejected(self, client, backend, submitted):
        backend.calls.clear()

        response = client.post("/reviewRequest", json={"rfcIdentifier": submitted, "type": "COMMENT"})

        assert response.status_code == 400
        assert "must include a top level comment" in response.json()["error"]
        assert backend.calls == []

    def test_inline_comments(self, client, backend, submitted):
        response = client.post("/reviewRequest", json={
            "rfcIdentifier": submitted,
            "type": "REQUEST_CHANGES",
            "topLevelComment": "see inline",
            "comments": {"abc": ["unknown target"]},
        })

        assert response.status_code == 200
        assert backend.submissions[-1].inline_comments == ("unknown target",)

    def test_approve_with_load(self, client, submitted):
        response = client.post("/reviewRequest", json={
            "rfcIdentifier": submitted,
            "type": "APPROVE",
            "loadOnApproval": True,
        })

        assert response.status_code == 200
        assert "A load request was submitted" in response.json()["success"]

    def test_unknown_review_type(self, client, submitted):
        response = client.post("/reviewRequest", json={"rfcIdentifier": submitted, "type": "VETO"})

        assert response.status_code == 400
        assert response.json() == {"error": "Malformed request received"}


class TestMergeLoadStatus:

    def test_status_none(self, client, submitted):
        response = client.post("/status", json={"rfcIdentifier": submitted})

        assert response.status_code == 200
        assert response.json() == {"status": "none"}

    def test_load_request(self, client, submitted):
        response = client.post("/loadRequest", json={"rfcIdentifier": submitted})

        assert response.status_code == 200
        assert response.json()["message"].startswith("Submitted load request for RFC rfc-1")

    def test_merge(self, client, backend, submitted):
        response = client.post("/mergeRequest", json={"rfcIdentifier": submitted})

        assert response.status_code == 200
        assert response.json() == {"success": "Successfully merged and tagged RFC rfc-1"}
        assert backend.tags == {"rfc-1": "sha-rfc-1"}

    def test_corrupt_stored_rfc(self, client, backend):
        backend.seed("rfc-9", "{broken")

        response = client.post("/status", json={"rfcIdentifier": "rfc-9"})

        assert response.status_code == 500
        assert "error" in response.json()

    def test_missing_identifier(self, client):
        response = client.post("/status", json={})
        assert response.status_code == 400


class TestListing:

    def test_get_rfcs(self, client, submitted):
        client.post("/submitRequest", json=RFC_BODY)

        response = client.post("/getRfcs", json={"count": -1})

        assert response.status_code == 200
        assert response.json() == {
            "rfcs": {"rfc-1": "RFC: rfc-1", "rfc-2": "RFC: rfc-2"},
            "count": 2,
        }

    def test_get_rfcs_filters(self, client, backend, submitted):
        backend.seed("other", '{"actions": []}', author="bob")

        response = client.post("/getRfcs", json={"count": 10, "state": "open", "owner": "bob"})

        assert response.json() == {"rfcs": {"other": "RFC: other"}, "count": 1}

    @pytest.mark.parametrize("body", [{}, {"count": -2}, {"count": 1, "state": "draft"}])
    def test_get_rfcs_invalid(self, client, body):
        assert client.post("/getRfcs", json=body).status_code == 400

    def test_get_contents(self, client, backend, submitted):
        response = client.post("/getRfcContents", json={"rfcIdentifier": submitted})

        assert response.status_code == 200
        assert response.json() == {"body": backend.artifacts[submitted]}

    def test_get_contents_unknown(self, client):
        response = client.post("/getRfcContents", json={"rfcIdentifier": "rfc-404"})

        assert response.status_code == 502
        assert response.json() == {"error": "Error occurred when querying contents for RFC #rfc-404"}


class TestLifespan:

    def test_backends_closed_on_shutdown(self, monkeypatch, orchestrator, backend):
        monkeypatch.setattr(app_module, "build_orchestrator", lambda config: (orchestrator, [backend]))

        with TestClient(app_module.app):
            assert backend.closed is False

        assert backend.closed is True

    def test_unconfigured_service(self, monkeypatch):
        for name in ("RFC_SVC_CONFIG", "GIT_TOKEN", "GIT_MACHINE_TOKEN", "TRACKING_REPOSITORY"):
            monkeypatch.delenv(name, raising=False)

        with TestClient(app_module.app) as client:
            assert client.get("/health").status_code == 200

            response = client.post("/status", json={"rfcIdentifier": "rfc-1"})

        assert response.status_code == 500
        assert response.json() == {"error": "Configuration error occurred"}
