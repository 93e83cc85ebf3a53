"""Integration tests for the admin API: clients, credits, pricing, invoices and payments"""

from datetime import datetime
import pytest
from httpx import AsyncClient

from tests.fixtures.seed import seed_client, seed_usage

CLIENTS_URL = "/api/admin/clients"


class TestClientAdminAPI:
    @pytest.mark.asyncio
    async def test_create_client(self, client: AsyncClient, admin_headers):
        """
        Given: A valid client payload
        When: POST /admin/clients
        Then: 201 with the client and its product configuration
        """
        # Act
        response = await client.post(
            CLIENTS_URL,
            json={"name": "Acme Lending", "code": "ACME2", "allow_overdraft": True},
            headers=admin_headers,
        )

        # Assert
        assert response.status_code == 201
        data = response.json()
        assert data["code"] == "ACME2"
        assert data["status"] == "active"
        assert data["allow_overdraft"] is True
        assert data["product_id"] == "true_identity"

    @pytest.mark.asyncio
    async def test_duplicate_code_conflicts(self, client: AsyncClient, admin_headers, acme):
        response = await client.post(CLIENTS_URL, json={"name": "Again", "code": "ACME"}, headers=admin_headers)

        assert response.status_code == 409
        assert response.json()["error"]["code"] == "CLIENT_CODE_EXISTS"

    @pytest.mark.asyncio
    async def test_issue_api_key(self, client: AsyncClient, admin_headers, acme):
        response = await client.post(f"{CLIENTS_URL}/{acme.id}/api-keys", headers=admin_headers)

        assert response.status_code == 201
        data = response.json()
        assert data["api_key"].startswith("ts_live_")
        assert data["api_key"].startswith(data["key_prefix"])

    @pytest.mark.asyncio
    async def test_missing_admin_token(self, client: AsyncClient):
        response = await client.post(CLIENTS_URL, json={"name": "X", "code": "X"})

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "UNAUTHORIZED"

    @pytest.mark.asyncio
    async def test_api_key_is_not_an_admin_token(self, client: AsyncClient, acme, acme_headers):
        response = await client.get(f"{CLIENTS_URL}/{acme.id}/credits/balance", headers=acme_headers)

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_health(self, client: AsyncClient):
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok"}


class TestCreditsAdminAPI:
    @pytest.mark.asyncio
    async def test_topup_and_adjustment(self, client: AsyncClient, admin_headers, acme):
        """
        Given: A new client
        When: A top-up of 1000 and an adjustment of -150 are posted
        Then: The balance is 850 and both entries are listed newest first
        """
        # Act
        topup = await client.post(
            f"{CLIENTS_URL}/{acme.id}/credits",
            json={"amount": 1000, "type": "topup", "description": "Initial"},
            headers=admin_headers,
        )
        adjustment = await client.post(
            f"{CLIENTS_URL}/{acme.id}/credits",
            json={"amount": -150, "type": "adjustment"},
            headers=admin_headers,
        )
        balance = await client.get(f"{CLIENTS_URL}/{acme.id}/credits/balance", headers=admin_headers)
        ledger = await client.get(f"{CLIENTS_URL}/{acme.id}/credits", headers=admin_headers)

        # Assert
        assert topup.status_code == 201
        assert topup.json()["balance_after"] == 1000
        assert topup.json()["created_by"] == "admin"
        assert adjustment.json()["balance_after"] == 850
        assert balance.json()["balance"] == 850
        page = ledger.json()
        assert page["balance"] == 850
        assert page["total"] == 2
        assert [e["type"] for e in page["entries"]] == ["adjustment", "topup"]

    @pytest.mark.asyncio
    async def test_usage_type_is_refused(self, client: AsyncClient, admin_headers, acme):
        response = await client.post(
            f"{CLIENTS_URL}/{acme.id}/credits", json={"amount": -50, "type": "usage"}, headers=admin_headers
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    @pytest.mark.asyncio
    async def test_unknown_client(self, client: AsyncClient, admin_headers):
        response = await client.get(f"{CLIENTS_URL}/missing/credits/balance", headers=admin_headers)

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "CLIENT_NOT_FOUND"


class TestPricingAdminAPI:
    @pytest.mark.asyncio
    async def test_replace_get_and_delete(self, client: AsyncClient, admin_headers, acme):
        url = f"{CLIENTS_URL}/{acme.id}/pricing"
        tiers = {
            "tiers": [
                {"tier_name": "Starter", "min_volume": 1, "max_volume": 3, "credits_per_session": 50},
                {"tier_name": "Volume", "min_volume": 4, "credits_per_session": 40},
            ]
        }

        replaced = await client.post(url, json=tiers, headers=admin_headers)
        current = await client.get(url, headers=admin_headers)
        deleted = await client.delete(url, headers=admin_headers)
        after = await client.get(url, headers=admin_headers)

        assert replaced.status_code == 200
        assert [t["tier_name"] for t in replaced.json()] == ["Starter", "Volume"]
        assert current.json()["tiers"][1]["max_volume"] is None
        assert current.json()["current_month_usage"] == 0
        assert deleted.json() == {"success": True, "deleted": 2}
        assert after.json()["tiers"] == []
        assert after.json()["default_credits_per_session"] == 50

    @pytest.mark.asyncio
    async def test_overlapping_tiers_are_refused(self, client: AsyncClient, admin_headers, acme):
        tiers = {
            "tiers": [
                {"min_volume": 1, "max_volume": 5, "credits_per_session": 50},
                {"min_volume": 3, "credits_per_session": 40},
            ]
        }

        response = await client.post(f"{CLIENTS_URL}/{acme.id}/pricing", json=tiers, headers=admin_headers)

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"


class TestInvoiceAdminAPI:
    @pytest.mark.asyncio
    async def test_preview_generate_and_pay(self, client: AsyncClient, db_session, admin_headers):
        """
        Given: A client with 1000 credits of January usage
        When: The invoice is previewed, generated and paid RM 108.00
        Then: The invoice is paid and the payment is listed against it
        """
        # Arrange
        billed = await seed_client(db_session, code="BILLED", created_at=datetime(2024, 1, 1))
        await seed_usage(db_session, billed.id, 50, datetime(2024, 1, 15, 4, 0), count=20)
        base = f"{CLIENTS_URL}/{billed.id}/invoices"

        # Act
        preview = await client.get(f"{base}/preview", params={"end_date": "2024-01-31"}, headers=admin_headers)
        generated = await client.post(base, json={"end_date": "2024-01-31"}, headers=admin_headers)
        invoice_id = generated.json()["id"]
        paid = await client.post(
            f"{base}/{invoice_id}/payments",
            json={"amount_paid": "108.00", "payment_date": "2024-02-10", "payment_reference": "FT-1"},
            headers=admin_headers,
        )
        detail = await client.get(f"{base}/{invoice_id}", headers=admin_headers)
        payments = await client.get(f"{base}/{invoice_id}/payments", headers=admin_headers)
        listed = await client.get(base, params={"status": "paid"}, headers=admin_headers)

        # Assert
        assert preview.status_code == 200
        assert preview.json()["can_generate"] is True
        assert preview.json()["amount_due_credits"] == 1000
        assert preview.json()["total_with_sst"] == "108.00"

        assert generated.status_code == 201
        assert generated.json()["status"] == "generated"
        assert generated.json()["generated_by"] == "admin"

        assert paid.status_code == 201
        assert paid.json()["invoice_status"] == "paid"
        assert paid.json()["payment"]["credits"] == 1000

        assert detail.json()["invoice"]["remaining_credits"] == 0
        assert len(detail.json()["lines"]) == 1
        assert [p["payment_reference"] for p in payments.json()] == ["FT-1"]
        assert [i["id"] for i in listed.json()] == [invoice_id]

    @pytest.mark.asyncio
    async def test_nothing_to_invoice_conflicts(self, client: AsyncClient, db_session, admin_headers):
        quiet = await seed_client(db_session, code="QUIET", created_at=datetime(2024, 1, 1))

        preview = await client.get(
            f"{CLIENTS_URL}/{quiet.id}/invoices/preview", params={"end_date": "2024-01-31"}, headers=admin_headers
        )
        response = await client.post(
            f"{CLIENTS_URL}/{quiet.id}/invoices", json={"end_date": "2024-01-31"}, headers=admin_headers
        )

        assert preview.json()["can_generate"] is False
        assert preview.json()["reason"]
        assert response.status_code == 409
        assert response.json()["error"]["code"] == "NOTHING_TO_INVOICE"

    @pytest.mark.asyncio
    async def test_cleanup_with_nothing_pending(self, client: AsyncClient, admin_headers, acme):
        response = await client.delete(f"{CLIENTS_URL}/{acme.id}/invoices/cleanup", headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["deleted_count"] == 0

    @pytest.mark.asyncio
    async def test_non_positive_payment_is_rejected(self, client: AsyncClient, admin_headers, acme):
        response = await client.post(
            f"{CLIENTS_URL}/{acme.id}/advance-payments", json={"amount_paid": "0"}, headers=admin_headers
        )

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_advance_payment(self, client: AsyncClient, admin_headers, acme):
        recorded = await client.post(
            f"{CLIENTS_URL}/{acme.id}/advance-payments",
            json={"amount_paid": "216.00", "payment_method": "bank_transfer"},
            headers=admin_headers,
        )
        listed = await client.get(f"{CLIENTS_URL}/{acme.id}/advance-payments", headers=admin_headers)
        balance = await client.get(f"{CLIENTS_URL}/{acme.id}/credits/balance", headers=admin_headers)

        assert recorded.status_code == 201
        assert recorded.json()["payment"]["invoice_id"] is None
        assert recorded.json()["new_balance"] == 2000
        assert len(listed.json()) == 1
        assert balance.json()["balance"] == 2000
