"""
Tests for the menu generation routes (submit, callback, results).
"""

import pytest
import requests

from instantly_chef.config import Settings
from instantly_chef.generation.client import MenuGenerationClient
from instantly_chef.web.app import create_app


def _submit(client, body=None):
    response = client.post("/api/n8n/submit", json=body or {})
    return response, response.get_json()


class TestSubmit:

    def test_requires_login(self, anon_client, mock_session):
        response = anon_client.post("/api/n8n/submit", json={})
        assert response.status_code == 401
        assert mock_session.post.call_count == 0

    def test_accepted(self, client, mock_session):
        response, data = _submit(client, {"generate": {"receipt": False}})

        assert response.status_code == 202
        assert data["success"] is True
        assert data["status"] == "accepted"
        assert data["correlationId"]

        body = mock_session.post.call_args.kwargs["json"]
        assert body["generate"]["receipt"] is False
        assert body["client"]["basicInformation"]["email"] == "jane.doe@example.com"
        assert body["weekly"]["dinnersNeededThisWeek"] == 3
        assert body["weekly"]["ingredientQuantities"] == "perPortion"

    def test_missing_config_is_500_without_outbound_call(self, temp_db_dir, db, mock_session):
        settings = Settings(n8n_webhook_url=None, public_base_url=None, secret_key="t", db_dir=temp_db_dir)
        app = create_app(settings, db=db, generation_client=MenuGenerationClient(settings, db, mock_session))
        with app.test_client() as client:
            with client.session_transaction() as sess:
                sess["user_id"] = "user-1"
            response, data = _submit(client)

        assert response.status_code == 500
        assert data["success"] is False
        assert "N8N_WEBHOOK_URL" in data["error"]
        assert mock_session.post.call_count == 0

    def test_upstream_rejection_is_502(self, client, mock_session):
        mock_session.post.return_value.ok = False
        mock_session.post.return_value.status_code = 404
        mock_session.post.return_value.text = "workflow not active"

        response, data = _submit(client)

        assert response.status_code == 502
        assert data["error"] == "n8n error 404"
        assert data["details"] == "workflow not active"

    def test_transport_failure_is_500(self, client, mock_session):
        mock_session.post.side_effect = requests.Timeout("slow")
        response, data = _submit(client)
        assert response.status_code == 500
        assert data["error"] == "Failed to submit generation request"

    def test_malformed_client_is_400(self, client, mock_session):
        response, data = _submit(client, {"client": {"householdSetup": "lots"}})
        assert response.status_code == 400
        assert mock_session.post.call_count == 0


class TestCallback:

    def _pending_cid(self, client):
        return _submit(client)[1]["correlationId"]

    def test_stores_result_then_poll_installs(self, client):
        cid = self._pending_cid(client)

        response = client.post("/api/n8n/callback", json={
            "correlationId": cid,
            "status": "done",
            "menus": [{"id": "g1", "title": "Tacos"}],
        })
        assert response.status_code == 200
        assert response.get_json()["stored"] is True

        result = client.get(f"/api/n8n/results?cid={cid}").get_json()
        assert result["status"] == "done"
        assert result["installed"] is True

        dashboard = client.get("/api/dashboard").get_json()["dashboard"]
        assert [m["title"] for m in dashboard["menus"]] == ["Tacos"]

    def test_unknown_id_is_ignored(self, client):
        response = client.post("/api/n8n/callback", json={"correlationId": "nope", "status": "done", "menus": []})
        assert response.status_code == 200
        assert response.get_json()["stored"] is False

    def test_duplicate_delivery_ignored(self, client):
        cid = self._pending_cid(client)
        client.post("/api/n8n/callback", json={"correlationId": cid, "menus": [{"id": "a"}]})
        response = client.post("/api/n8n/callback", json={"correlationId": cid, "menus": [{"id": "b"}]})

        assert response.get_json()["stored"] is False
        result = client.get(f"/api/n8n/results?cid={cid}").get_json()
        assert result["menus"] == [{"id": "a"}]

    def test_ingredient_without_name_is_400(self, client):
        cid = self._pending_cid(client)
        response = client.post("/api/n8n/callback", json={
            "correlationId": cid,
            "menus": [{"id": "g1", "ingredients": [{"qty": 1, "measure": "lb"}]}],
        })

        assert response.status_code == 400
        assert client.get(f"/api/n8n/results?cid={cid}").get_json() == {"status": "pending"}

    def test_string_price_installs_and_approves(self, client):
        cid = self._pending_cid(client)
        client.post("/api/n8n/callback", json={
            "correlationId": cid,
            "menus": [{
                "id": "g1",
                "title": "Tacos",
                "portions": 2,
                "ingredients": [{"name": "Beef", "qty": "0.5", "measure": "lb", "estPrice": "5.5"}],
            }],
        })
        assert client.get(f"/api/n8n/results?cid={cid}").get_json()["installed"] is True

        response = client.post("/api/menus/g1/approve")

        assert response.status_code == 200
        line = response.get_json()["lines"][0]
        assert line["qty"] == 1.0
        assert line["est_price"] == pytest.approx(5.5)

    @pytest.mark.parametrize("body", [{"menus": []}, {"correlationId": "x"}, ["not", "an", "object"]])
    def test_bad_payload(self, client, body):
        response = client.post("/api/n8n/callback", json=body)
        assert response.status_code == 400

    def test_secret_required_when_configured(self, app, anon_client):
        app.config["IC_SETTINGS"].webhook_secret = "s3cret"

        bad = anon_client.post("/api/n8n/callback", json={"correlationId": "x", "menus": []})
        good = anon_client.post(
            "/api/n8n/callback",
            json={"correlationId": "x", "menus": []},
            headers={"x-ic-webhook-secret": "s3cret"},
        )

        assert bad.status_code == 401
        assert good.status_code == 200


class TestResults:

    def test_missing_cid(self, client):
        response = client.get("/api/n8n/results")
        assert response.status_code == 400
        assert response.get_json()["error"] == "missing cid"

    def test_pending(self, client):
        cid = _submit(client)[1]["correlationId"]
        assert client.get(f"/api/n8n/results?cid={cid}").get_json() == {"status": "pending"}

    def test_other_users_result_is_hidden(self, app, client):
        cid = _submit(client)[1]["correlationId"]
        client.post("/api/n8n/callback", json={"correlationId": cid, "menus": [{"id": "g1", "title": "Tacos"}]})

        other = app.test_client()
        with other.session_transaction() as sess:
            sess["user_id"] = "user-2"
        response = other.get(f"/api/n8n/results?cid={cid}")
        assert response.get_json() == {"status": "pending"}
        assert other.get("/api/dashboard").get_json()["dashboard"]["menus"] == []

        result = client.get(f"/api/n8n/results?cid={cid}").get_json()
        assert result["installed"] is True
        assert result["menus"] == [{"id": "g1", "title": "Tacos"}]

    def test_stored_result_with_pending_status_installs(self, client):
        cid = _submit(client)[1]["correlationId"]
        client.post("/api/n8n/callback", json={
            "correlationId": cid,
            "status": "pending",
            "menus": [{"id": "g1", "title": "Tacos"}],
        })

        result = client.get(f"/api/n8n/results?cid={cid}").get_json()

        assert result["correlationId"] == cid
        assert result["installed"] is True
        dashboard = client.get("/api/dashboard").get_json()["dashboard"]
        assert [m["title"] for m in dashboard["menus"]] == ["Tacos"]
