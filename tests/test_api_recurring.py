"""Tests for recurring expense API endpoints."""

from datetime import date
from decimal import Decimal


def create_payload(**overrides):
    payload = {
        "amount": "500",
        "currency": "INR",
        "frequency": "monthly",
        "start_date": "2026-01-15",
        "description": "Rent",
    }
    payload.update(overrides)
    return payload


class TestRecurringApi:
    """Test recurring expense endpoints."""

    def test_requires_user_header(self, client):
        """Requests without a caller identity are rejected."""
        response = client.get("/api/v1/recurring")
        assert response.status_code == 401

        response = client.post("/api/v1/recurring", json=create_payload())
        assert response.status_code == 401

    def test_create(self, client, auth_headers, user_id):
        response = client.post("/api/v1/recurring", json=create_payload(), headers=auth_headers)
        assert response.status_code == 201

        data = response.json()
        assert data["user_id"] == user_id
        assert Decimal(str(data["amount"])) == Decimal("500")
        assert data["next_execution_date"] == "2026-02-15"
        assert data["is_active"] is True
        assert data["last_executed_at"] is None
        assert data["frequency_display"] == "Monthly"

    def test_create_defaults_start_to_today(self, client, auth_headers):
        payload = create_payload(frequency="daily")
        del payload["start_date"]

        response = client.post("/api/v1/recurring", json=payload, headers=auth_headers)
        assert response.status_code == 201
        assert response.json()["start_date"] == date.today().isoformat()

    def test_create_rejects_negative_amount(self, client, auth_headers):
        response = client.post("/api/v1/recurring", json=create_payload(amount="-5"), headers=auth_headers)
        assert response.status_code == 400

    def test_create_rejects_end_before_start(self, client, auth_headers):
        response = client.post(
            "/api/v1/recurring",
            json=create_payload(end_date="2026-01-01"),
            headers=auth_headers
        )
        assert response.status_code == 400

    def test_create_rejects_unknown_frequency(self, client, auth_headers):
        response = client.post("/api/v1/recurring", json=create_payload(frequency="hourly"), headers=auth_headers)
        assert response.status_code == 422

    def test_list(self, client, auth_headers, sample_recurring):
        response = client.get("/api/v1/recurring", headers=auth_headers)
        assert response.status_code == 200

        data = response.json()
        assert data["total"] == 1
        assert data["items"][0]["id"] == sample_recurring.id

    def test_list_only_own(self, client, sample_recurring):
        response = client.get("/api/v1/recurring", headers={"X-User-Id": "someone-else"})
        assert response.json()["total"] == 0

    def test_get_not_found(self, client, auth_headers):
        response = client.get("/api/v1/recurring/does-not-exist", headers=auth_headers)
        assert response.status_code == 404

    def test_get_other_users(self, client, sample_recurring):
        """Another user's definition is forbidden, not hidden."""
        response = client.get(
            f"/api/v1/recurring/{sample_recurring.id}",
            headers={"X-User-Id": "intruder"}
        )
        assert response.status_code == 403

    def test_process_and_generated_expenses(self, client, auth_headers, sample_recurring):
        """Processing fires once per day and the expense is traceable."""
        response = client.post("/api/v1/recurring/process?as_of=2026-02-15", headers=auth_headers)
        assert response.status_code == 200
        assert response.json() == {"processed": 1, "as_of": "2026-02-15"}

        response = client.post("/api/v1/recurring/process?as_of=2026-02-15", headers=auth_headers)
        assert response.json()["processed"] == 0

        response = client.get(f"/api/v1/recurring/{sample_recurring.id}/expenses", headers=auth_headers)
        expenses = response.json()
        assert len(expenses) == 1
        assert expenses[0]["description"] == "Rent (Auto)"
        assert expenses[0]["expense_date"] == "2026-02-15"

        response = client.get(f"/api/v1/recurring/{sample_recurring.id}", headers=auth_headers)
        assert response.json()["next_execution_date"] == "2026-03-15"

    def test_toggle(self, client, auth_headers, sample_recurring):
        response = client.post(f"/api/v1/recurring/{sample_recurring.id}/toggle", headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["is_active"] is False
        assert response.json()["next_execution_date"] == "2026-02-15"

        response = client.get("/api/v1/recurring?include_inactive=false", headers=auth_headers)
        assert response.json()["total"] == 0

    def test_delete(self, client, auth_headers, sample_recurring):
        recurring_id = sample_recurring.id
        response = client.delete(f"/api/v1/recurring/{recurring_id}", headers=auth_headers)
        assert response.status_code == 200
        assert response.json() == {"deleted": True}

        response = client.get(f"/api/v1/recurring/{recurring_id}", headers=auth_headers)
        assert response.status_code == 404
