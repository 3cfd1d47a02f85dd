"""Integration tests for the /api/v1/pmc endpoints."""

import uuid

import httpx
import pytest
import pytest_asyncio

from pmc_deposit.api.deps import get_session_maker
from pmc_deposit.config import get_settings
from pmc_deposit.main import app

API = "/api/v1/pmc"


@pytest_asyncio.fixture
async def client(session_maker, settings):
    """HTTP client bound to the app with the test database wired in."""
    app.dependency_overrides[get_session_maker] = lambda: session_maker
    app.dependency_overrides[get_settings] = lambda: settings

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers(user_id) -> dict:
    return {"X-User-Id": str(user_id), "X-User-Name": "Ada Lovelace"}


@pytest_asyncio.fixture
async def api_deposit(client, auth_headers) -> dict:
    response = await client.post(f"{API}/deposits", headers=auth_headers)
    assert response.status_code == 201
    return response.json()


class TestDepositAPI:
    """Deposit lifecycle through the HTTP surface."""

    async def test_health(self, client):
        response = await client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"

    async def test_request_id_echoed(self, client):
        response = await client.get("/health", headers={"X-Request-ID": "req-42"})
        assert response.headers["X-Request-ID"] == "req-42"

    async def test_create_requires_user(self, client):
        response = await client.post(f"{API}/deposits")
        assert response.status_code == 401
        assert response.json()["error"]["message"] == "This operation requires a signed-in user"

    async def test_bad_user_header(self, client):
        response = await client.post(f"{API}/deposits", headers={"X-User-Id": "not-a-uuid"})
        assert response.status_code == 400

    async def test_create_and_read_metadata(self, client, api_deposit):
        response = await client.get(f"{API}/work-versions/{api_deposit['work_version_id']}/metadata")
        assert response.status_code == 200
        assert response.json()["pmc"]["ownerLastName"] == "Lovelace"

    async def test_metadata_not_found(self, client):
        response = await client.get(f"{API}/work-versions/{uuid.uuid4()}/metadata")
        assert response.status_code == 404

    async def test_grant_actions(self, client, api_deposit):
        url = f"{API}/work-versions/{api_deposit['work_version_id']}/actions"

        added = await client.post(f"{url}/grant-add", json={"funderKey": "hhmi", "grantId": "R01-123"})
        assert added.status_code == 200
        assert added.json()["success"] is True
        assert added.json()["data"]["pmc"]["grants"][0]["grantId"] == "R01-123"

        duplicate = await client.post(f"{url}/grant-add", json={"funderKey": "hhmi", "grantId": "r01-123"})
        assert duplicate.status_code == 422
        body = duplicate.json()
        assert body["success"] is False
        assert body["error"]["intent"] == "grant-add"
        assert "already exists" in body["error"]["message"]

    async def test_invalid_form(self, client, api_deposit):
        url = f"{API}/work-versions/{api_deposit['work_version_id']}/actions/reviewer-email"
        response = await client.post(url, json={"email": "nope"})
        assert response.status_code == 422
        assert response.json()["validation_errors"][0]["path"] == ["email"]

    async def test_plain_action_without_body(self, client, api_deposit):
        url = f"{API}/work-versions/{api_deposit['work_version_id']}/actions/preview-set"
        response = await client.post(url)
        assert response.status_code == 200
        assert response.json()["data"]["pmc"]["previewed"] is True

    async def test_unknown_action(self, client, api_deposit):
        url = f"{API}/work-versions/{api_deposit['work_version_id']}/actions/launch-rocket"
        response = await client.post(url, json={})
        assert response.status_code == 404

    async def test_confirm_runs_validation(self, client, api_deposit):
        wv_id = api_deposit["work_version_id"]

        validation = await client.post(f"{API}/work-versions/{wv_id}/validate")
        assert validation.status_code == 422
        messages = [i["message"] for i in validation.json()["validation_errors"]]
        assert "At least one manuscript file is required" in messages

        confirm = await client.post(f"{API}/work-versions/{wv_id}/confirm")
        assert confirm.status_code == 422

        metadata = await client.get(f"{API}/work-versions/{wv_id}/metadata")
        assert "confirmed" not in metadata.json()["pmc"]

    async def test_full_lifecycle(
        self,
        client,
        api_deposit,
        auth_headers,
        write_metadata,
        manuscript_files,
        complete_pmc,
    ):
        wv_id = api_deposit["work_version_id"]
        sv_id = api_deposit["submission_version_id"]
        await write_metadata(uuid.UUID(wv_id), {"files": manuscript_files, "pmc": complete_pmc})

        confirm = await client.post(f"{API}/work-versions/{wv_id}/confirm", headers=auth_headers)
        assert confirm.status_code == 200
        assert confirm.json()["data"]["status"] == "PENDING"

        signal = {
            "result": {"status": "success", "message": "Received", "manuscript_id": "NIHMS123"},
            "message_id": "msg-1",
            "target_status": "SUBMITTED",
            "processor": "pmc-email",
        }
        first = await client.post(f"{API}/work-versions/{wv_id}/status", json=signal)
        second = await client.post(f"{API}/work-versions/{wv_id}/status", json=signal)
        assert first.json() == {"applied": True}
        assert second.json() == {"applied": False}

        timeline = await client.get(f"{API}/submission-versions/{sv_id}/activities")
        assert [e["status"] for e in timeline.json()] == ["DRAFT", "PENDING", "SUBMITTED"]

        no_draft = await client.get(f"{API}/works/{api_deposit['work_id']}/draft")
        assert no_draft.status_code == 404

        clone = await client.post(f"{API}/submission-versions/{sv_id}/clone", headers=auth_headers)
        assert clone.status_code == 201

        draft = await client.get(f"{API}/works/{api_deposit['work_id']}/draft")
        assert draft.status_code == 200
        assert draft.json()["work_version_id"] == clone.json()["new_work_version_id"]
        assert draft.json()["title"] == complete_pmc["title"]

        again = await client.post(f"{API}/submission-versions/{sv_id}/clone", headers=auth_headers)
        assert again.status_code == 409

    async def test_status_for_unknown_work_version(self, client):
        signal = {
            "result": {"status": "success"},
            "message_id": "msg-1",
            "target_status": "SUBMITTED",
            "processor": "pmc-email",
        }
        response = await client.post(f"{API}/work-versions/{uuid.uuid4()}/status", json=signal)
        assert response.status_code == 404

    async def test_status_payload_validated(self, client, api_deposit):
        response = await client.post(
            f"{API}/work-versions/{api_deposit['work_version_id']}/status",
            json={"result": {"status": "maybe"}, "message_id": "m", "target_status": "", "processor": "p"},
        )
        assert response.status_code == 422
        assert response.json()["detail"] == "Validation error"


class TestMessagesAPI:

    async def test_receive_and_update(self, client):
        created = await client.post(
            f"{API}/messages",
            json={"payload": {"headers": {"subject": "NIHMS123 received"}}},
        )
        assert created.status_code == 201
        assert created.json()["status"] == "PENDING"

        message_id = created.json()["id"]
        updated = await client.patch(f"{API}/messages/{message_id}", json={"status": "IGNORED"})
        assert updated.status_code == 200
        assert updated.json() == {"id": message_id, "status": "IGNORED"}

    async def test_update_unknown_message(self, client):
        response = await client.patch(f"{API}/messages/{uuid.uuid4()}", json={"status": "ERROR"})
        assert response.status_code == 404
