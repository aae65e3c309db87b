"""Tests for exchange rate and currency preference endpoints."""

import pytest

from pennywise.errors import TransientSourceError


class TestRatesApi:
    """Test rate listing, refresh and conversion."""

    def test_rates_before_refresh(self, client):
        response = client.get("/api/v1/currency/rates")
        assert response.status_code == 200

        data = response.json()
        assert data["base_currency"] == "USD"
        assert data["source"] == "empty"
        assert data["is_stale"] is True

    def test_refresh_fetches_once_per_day(self, client, stub_source):
        response = client.post("/api/v1/currency/rates/refresh")
        assert response.status_code == 200
        data = response.json()
        assert data["refreshed"] is True
        assert data["source"] == "live"
        assert data["rates"]["INR"] == 83.5

        response = client.post("/api/v1/currency/rates/refresh")
        assert response.json()["refreshed"] is False
        assert stub_source.calls == 1

        response = client.post("/api/v1/currency/rates/refresh?force=true")
        assert response.json()["refreshed"] is True
        assert stub_source.calls == 2

    def test_refresh_with_source_down(self, client, stub_source):
        """A failing source still answers, with fallback rates."""
        stub_source.error = TransientSourceError("offline")

        response = client.post("/api/v1/currency/rates/refresh")
        assert response.status_code == 200
        data = response.json()
        assert data["refreshed"] is False
        assert data["source"] == "fallback"
        assert data["rates"]["AED"] == 3.67

    def test_convert(self, client):
        client.post("/api/v1/currency/rates/refresh")

        response = client.get("/api/v1/currency/convert?amount=835&from_currency=inr&to_currency=EUR")
        assert response.status_code == 200
        data = response.json()
        assert data["from_currency"] == "INR"
        assert data["to_currency"] == "EUR"
        assert data["converted_amount"] == pytest.approx(9.0)
        assert data["formatted"] == "€9.00"

    def test_convert_same_currency(self, client):
        response = client.get("/api/v1/currency/convert?amount=12.5&from_currency=JPY&to_currency=JPY")
        assert response.json()["converted_amount"] == 12.5
        assert response.json()["rate"] == 1.0

    def test_rate_change(self, client, stub_source):
        client.post("/api/v1/currency/rates/refresh")
        response = client.get("/api/v1/currency/rates/INR/change")
        assert response.json()["change_percent"] is None

        stub_source.rates = {"INR": 84.335}
        client.post("/api/v1/currency/rates/refresh?force=true")

        data = client.get("/api/v1/currency/rates/inr/change").json()
        assert data["currency"] == "INR"
        assert data["rate"] == 84.335
        assert data["change_percent"] == pytest.approx(1.0)

    def test_supported(self, client):
        data = client.get("/api/v1/currency/supported").json()
        codes = [c["code"] for c in data["currencies"]]
        assert "INR" in codes
        assert "AED" in codes
        assert data["base_currency"] == "USD"


class TestPreferenceApi:
    """Test the per-user display currency preference."""

    def test_requires_user_header(self, client):
        assert client.get("/api/v1/currency/preference").status_code == 401

    def test_default_preference(self, client, auth_headers):
        response = client.get("/api/v1/currency/preference", headers=auth_headers)
        assert response.json() == {"preferred_currency": "INR"}

    def test_update_preference(self, client, auth_headers):
        response = client.put(
            "/api/v1/currency/preference",
            json={"preferred_currency": "gbp"},
            headers=auth_headers
        )
        assert response.status_code == 200
        assert response.json() == {"preferred_currency": "GBP"}

        response = client.get("/api/v1/currency/preference", headers=auth_headers)
        assert response.json() == {"preferred_currency": "GBP"}

    def test_unsupported_preference(self, client, auth_headers):
        response = client.put(
            "/api/v1/currency/preference",
            json={"preferred_currency": "XYZ"},
            headers=auth_headers
        )
        assert response.status_code == 400
