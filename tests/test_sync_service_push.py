from decimal import Decimal

import pytest

from pricesync.domain.schemas.sync import OdooResponse


class TestPush:

    def test_success_marks_product_synced(self, sync_service, make_product, sync_logs, stub_client):
        product = make_product(cost="10", markup="50")

        response = sync_service.push(product)

        assert response.ok is True
        assert stub_client.pushed == [("SKU-1001", 10.0, 15.0, "USD")]
        assert product.last_sync_status == "success"
        assert product.origin_system == "local"
        assert product.last_sync_direction == "push"
        assert product.last_synced_at is not None
        assert product.last_sync_message == "Odoo cost updated."
        assert product.last_sync_payload == {
            "request": {
                "sku": "SKU-1001",
                "cost_price": 10.0,
                "sale_price": 15.0,
                "markup_percent": 50.0,
                "currency": "USD",
            },
            "response": {"status": "success"},
        }

        logs = sync_logs()
        assert len(logs) == 1
        assert (logs[0].status, logs[0].direction, logs[0].operation) == ("success", "push", "cost_update")
        assert logs[0].product_id == product.id

    def test_success_claims_origin_for_local(self, sync_service, make_product):
        product = make_product(origin_system="odoo")

        sync_service.push(product)

        assert product.origin_system == "local"

    def test_success_without_message_uses_default(self, sync_service, make_product, stub_client):
        stub_client.default = OdooResponse(ok=True, response={"status": "success"})
        product = make_product()

        sync_service.push(product)

        assert product.last_sync_message == "Odoo product cost updated."

    def test_rejection_is_recorded_without_raising(self, sync_service, make_product, sync_logs, stub_client):
        stub_client.default = OdooResponse(
            ok=False,
            response={"status": "error", "code": 500},
            message="Simulated Odoo failure.",
        )
        product = make_product()

        response = sync_service.push(product)

        assert response.ok is False
        assert product.last_sync_status == "failed"
        assert product.last_sync_message == "Simulated Odoo failure."
        assert product.last_sync_payload["response"] == {"status": "error", "code": 500}
        assert product.last_synced_at is None
        assert [log.status for log in sync_logs()] == ["failed"]

    def test_rejection_without_message_uses_default(self, sync_service, make_product, stub_client):
        stub_client.default = OdooResponse(ok=False)
        product = make_product()

        sync_service.push(product)

        assert product.last_sync_message == "Odoo product cost update failed."

    def test_exception_is_recorded_and_reraised(self, sync_service, make_product, sync_logs, stub_client):
        product = make_product(sku="SKU-FAIL", cost="5", markup="20", currency="EUR")
        assert product.sale_price == Decimal("6.00")
        stub_client.outcomes["SKU-FAIL"] = RuntimeError("Boom")

        with pytest.raises(RuntimeError, match="Boom"):
            sync_service.push(product)

        assert product.last_sync_status == "failed"
        assert product.last_sync_message == "Boom"
        assert product.last_sync_payload["exception"] == {"type": "RuntimeError", "message": "Boom"}
        assert product.last_sync_payload["request"]["currency"] == "EUR"

        logs = sync_logs()
        assert len(logs) == 1
        assert logs[0].status == "failed"
        assert logs[0].message == "Boom"
        assert logs[0].response == {"exception": "RuntimeError", "message": "Boom"}

    def test_push_does_not_schedule_another_push(self, sync_service, make_product, dispatcher):
        product = make_product()

        sync_service.push(product)

        assert dispatcher.pushed == []

    def test_push_from_pending_state(self, sync_service, product_repo, make_product):
        product = make_product()
        product.cost_price = Decimal("12")
        product_repo.save(product)
        assert product.last_sync_status == "pending"

        sync_service.push(product)

        assert product.last_sync_status == "success"
        assert product.sale_price == Decimal("18.00")


class TestPushById:

    def test_pushes_existing_product(self, sync_service, make_product, stub_client):
        product = make_product()

        response = sync_service.push_by_id(product.id)

        assert response.ok is True
        assert len(stub_client.pushed) == 1

    def test_missing_product_is_logged_not_raised(self, sync_service, sync_logs, stub_client):
        assert sync_service.push_by_id(999) is None

        logs = sync_logs()
        assert len(logs) == 1
        assert logs[0].product_id is None
        assert logs[0].sku == "missing-999"
        assert logs[0].status == "failed"
        assert logs[0].payload == {"product_id": 999}
        assert logs[0].message == "Product not found for sync."
        assert stub_client.pushed == []


class TestPushProducts:

    def test_mixed_batch_counts_every_product(self, sync_service, make_product, sync_logs, stub_client):
        products = [
            make_product("SKU-1001"),
            make_product("SKU-1002"),
            make_product("SKU-1003"),
            make_product("SKU-1004"),
        ]
        stub_client.outcomes["SKU-1002"] = RuntimeError("Connection reset")
        stub_client.outcomes["SKU-1003"] = OdooResponse(ok=False, message="Product with SKU SKU-1003 not found in Odoo.")

        summary = sync_service.push_products(products)

        assert summary.total == 4
        assert summary.success == 2
        assert summary.failed == 2
        assert summary.success + summary.failed == summary.total
        assert [(r.sku, r.status) for r in summary.results] == [
            ("SKU-1001", "success"),
            ("SKU-1002", "failed"),
            ("SKU-1003", "failed"),
            ("SKU-1004", "success"),
        ]
        assert summary.results[1].message == "Connection reset"

        assert len(sync_logs()) == 4
        assert [p.last_sync_status for p in products] == ["success", "failed", "failed", "success"]

    def test_empty_batch(self, sync_service):
        summary = sync_service.push_products([])

        assert summary.total == 0
        assert summary.results == []
